import pytest

import vrf
from beacon.deploy import BeaconDeployConfig, deploy_beacon, deploy_example_caller
from ledger.accounts import random_address
from ledger.chain import Ledger, LedgerParams
from ledger.txns import PaymentTxn

MIN_FEE = 1000


@pytest.fixture(scope="session")
def vrf_keys():
    return vrf.keypair_from_seed(bytes(range(32)))


@pytest.fixture
def ledger():
    return Ledger(LedgerParams(min_txn_fee=MIN_FEE), genesis_seed=b"beacon-tests")


@pytest.fixture
def manager(ledger):
    addr = random_address()
    ledger.fund(addr, 100_000_000)
    return addr


@pytest.fixture
def user(ledger):
    addr = random_address()
    ledger.fund(addr, 10_000_000)
    return addr


@pytest.fixture
def beacon_config():
    return BeaconDeployConfig(max_pending_requests=3, max_future_rounds=10, stale_request_timeout=20)


@pytest.fixture
def beacon(ledger, manager, vrf_keys, beacon_config):
    return deploy_beacon(ledger, manager, vrf_keys[0], beacon_config)


@pytest.fixture
def caller(ledger, manager, beacon):
    return deploy_example_caller(ledger, manager, beacon)


@pytest.fixture
def make_request(ledger, user, caller, beacon):
    """Request randomness through the example caller; returns (request_id, round)."""
    def _make(rounds_ahead=1, amount=None, sender=None, via=None):
        app_id = caller if via is None else via
        if amount is None:
            amount = ledger.read(beacon, "get_costs").total
        pay = PaymentTxn(receiver=ledger.app_address(app_id), amount=amount)
        return tuple(ledger.call(sender or user, app_id, "request_randomness", pay, rounds_ahead))
    return _make


@pytest.fixture
def prove(ledger, vrf_keys):
    def _prove(round, sk=None):
        proof, status = vrf.prove(sk or vrf_keys[1], ledger.block_seed(round))
        assert status == 0
        return proof
    return _prove
