import pytest

from beacon import errors
from ledger.accounts import ZERO_ADDRESS, random_address
from ledger.errors import Revert

FEES = 12 * 1000


def _reverts(reason, fn, *args):
    with pytest.raises(Revert) as ei:
        fn(*args)
    assert ei.value.reason == reason


@pytest.fixture
def other(ledger):
    addr = random_address()
    ledger.fund(addr, 10_000_000)
    return addr


# --------------------------------------------------------------- manager

def test_update_manager(ledger, beacon, manager, other, make_request, prove):
    _reverts(errors.ERR_ONLY_MANAGER, ledger.call, other, beacon, "update_manager", other)
    _reverts(errors.ERR_MANAGER_ZERO_ADDRESS, ledger.call, manager, beacon, "update_manager", ZERO_ADDRESS)

    ledger.call(manager, beacon, "update_manager", other)
    assert ledger.read(beacon, "manager") == other
    updates = ledger.events.get_logs(app_id=beacon, name="ManagerUpdated")
    assert [(u.fields["previous"], u.fields["manager"]) for u in updates] == [(manager, other)]

    request_id, rnd = make_request()
    ledger.advance()
    proof = prove(rnd)
    _reverts(errors.ERR_ONLY_MANAGER, ledger.call, manager, beacon, "complete_request", request_id, proof)
    ledger.call(other, beacon, "complete_request", request_id, proof, fee=FEES)


def test_delete_manager_is_permanent(ledger, beacon, manager, make_request, prove):
    ledger.call(manager, beacon, "delete_manager")
    assert ledger.read(beacon, "manager") == ZERO_ADDRESS

    _reverts(errors.ERR_ONLY_MANAGER, ledger.call, manager, beacon, "update_manager", manager)
    _reverts(errors.ERR_ONLY_MANAGER, ledger.call, manager, beacon, "delete_manager")

    request_id, rnd = make_request()
    ledger.advance()
    _reverts(errors.ERR_ONLY_MANAGER, ledger.call, manager, beacon, "complete_request", request_id, prove(rnd))


# ---------------------------------------------------------------- pauser

def test_pause_blocks_new_requests_only(ledger, beacon, manager, other, make_request, prove):
    pending_id, rnd = make_request()
    _reverts(errors.ERR_ONLY_PAUSER, ledger.call, other, beacon, "pause")

    ledger.call(manager, beacon, "pause")
    assert ledger.read(beacon, "paused") is True
    _reverts(errors.ERR_PAUSED, make_request)

    # pending requests can still be completed while paused
    ledger.advance()
    ledger.call(manager, beacon, "complete_request", pending_id, prove(rnd), fee=FEES)

    _reverts(errors.ERR_ONLY_PAUSER, ledger.call, other, beacon, "unpause")
    ledger.call(manager, beacon, "unpause")
    assert make_request()[0] == 2

    names = [e.name for e in ledger.events.get_logs(app_id=beacon) if e.name in ("Paused", "Unpaused")]
    assert names == ["Paused", "Unpaused"]


def test_cancel_while_paused(ledger, beacon, manager, make_request):
    request_id, rnd = make_request()
    ledger.call(manager, beacon, "pause")
    ledger.advance(rnd + 20)
    ledger.call(manager, beacon, "cancel_request", request_id)
    assert ledger.global_state(beacon)["total_pending_requests"] == 0


def test_update_pauser(ledger, beacon, manager, other):
    _reverts(errors.ERR_ONLY_PAUSER, ledger.call, other, beacon, "update_pauser", other)
    _reverts(errors.ERR_PAUSER_ZERO_ADDRESS, ledger.call, manager, beacon, "update_pauser", ZERO_ADDRESS)

    ledger.call(manager, beacon, "update_pauser", other)
    assert ledger.read(beacon, "pauser") == other
    _reverts(errors.ERR_ONLY_PAUSER, ledger.call, manager, beacon, "pause")
    ledger.call(other, beacon, "pause")
    # the pauser role does not grant manager rights
    assert ledger.read(beacon, "manager") == manager

    updates = ledger.events.get_logs(app_id=beacon, name="PauserUpdated")
    assert [(u.fields["previous"], u.fields["pauser"]) for u in updates] == [(manager, other)]
