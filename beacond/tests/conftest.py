import pytest
from prometheus_client import CollectorRegistry

import vrf
from beacon.deploy import BeaconDeployConfig, deploy_beacon, deploy_example_caller
from beacond.client import LocalBeaconClient
from beacond.metrics import Metrics
from beacond.prover import Prover
from beacond.service import BeaconDaemon
from ledger.accounts import random_address
from ledger.chain import Ledger
from ledger.txns import PaymentTxn

STALE_TIMEOUT = 20


@pytest.fixture(scope="session")
def vrf_keys():
    return vrf.keypair_from_seed(b"\x42" * 32)


@pytest.fixture
def ledger():
    return Ledger(genesis_seed=b"daemon-tests")


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
def beacon(ledger, manager, vrf_keys):
    config = BeaconDeployConfig(max_pending_requests=5, max_future_rounds=50, stale_request_timeout=STALE_TIMEOUT)
    return deploy_beacon(ledger, manager, vrf_keys[0], config)


@pytest.fixture
def caller(ledger, manager, beacon):
    return deploy_example_caller(ledger, manager, beacon)


@pytest.fixture
def make_request(ledger, user, caller, beacon):
    def _make(rounds_ahead=1, via=None):
        app_id = caller if via is None else via
        amount = ledger.read(beacon, "get_costs").total
        pay = PaymentTxn(receiver=ledger.app_address(app_id), amount=amount)
        return tuple(ledger.call(user, app_id, "request_randomness", pay, rounds_ahead))
    return _make


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    return Metrics(registry=registry)


@pytest.fixture
def prover(vrf_keys):
    return Prover(vrf_keys[1])


@pytest.fixture
def client(ledger, beacon, manager):
    return LocalBeaconClient(ledger, beacon, manager)


@pytest.fixture
def daemon(client, prover, metrics):
    return BeaconDaemon(client, prover, poll_interval_s=0.01, metrics=metrics)
