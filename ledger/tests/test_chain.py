from dataclasses import dataclass

import pytest

from ledger.abi import Application, abimethod
from ledger.accounts import random_address
from ledger.chain import FEE_SINK_ADDRESS, Ledger, LedgerParams
from ledger.errors import (
    BudgetExceeded,
    FeeTooLow,
    InsufficientFunds,
    InvalidTransaction,
    MinBalanceViolation,
    Revert,
    SeedUnavailable,
    UnknownApplication,
    require,
)
from ledger.events import JsonlEventSink
from ledger.txns import Payment, PaymentTxn

MIN_FEE = 1000
BASE_MIN = 100_000


@dataclass(frozen=True)
class Bumped:
    count: int


class Counter(Application):
    @abimethod(action="create")
    def create_application(self, start: int) -> None:
        self.host.put_global("count", start)

    @abimethod
    def bump(self, fail: bool = False) -> int:
        n = int(self.host.get_global("count")) + 1
        self.host.put_global("count", n)
        self.host.box_put(b"n" + n.to_bytes(8, "big"), b"x" * 8)
        self.host.emit(Bumped(count=n))
        require(not fail, "asked to fail")
        return n

    @abimethod
    def payout(self, receiver: bytes, amount: int, times: int = 1) -> None:
        for _ in range(times):
            self.host.pay(receiver, amount)

    @abimethod
    def deposit(self, payment: Payment) -> int:
        require(self.host.claim_payment(payment), "unknown payment")
        return payment.amount

    @abimethod
    def heavy(self, units: int, opup: bool = True) -> int:
        if opup:
            self.host.ensure_budget(units)
        self.host.consume_budget(units)
        return units

    @abimethod(readonly=True)
    def count(self) -> int:
        return int(self.host.get_global("count"))

    @abimethod(action="update")
    def update_application(self) -> None:
        require(self.host.sender == self.host.creator, "only creator")

    @abimethod(action="delete")
    def delete_application(self) -> None:
        require(self.host.sender == self.host.creator, "only creator")


class CounterV2(Counter):
    @abimethod(readonly=True)
    def version(self) -> int:
        return 2


@pytest.fixture
def ledger():
    return Ledger(LedgerParams(min_txn_fee=MIN_FEE, base_min_balance=BASE_MIN))


@pytest.fixture
def alice(ledger):
    addr = random_address()
    ledger.fund(addr, 10_000_000)
    return addr


@pytest.fixture
def counter(ledger, alice):
    app_id = ledger.deploy(Counter, alice, 0)
    ledger.payment(alice, ledger.app_address(app_id), 1_000_000)
    return app_id


# ---------------------------------------------------------------- rounds

def test_rounds_and_seeds_are_deterministic():
    a = Ledger(genesis_seed=b"devnet")
    b = Ledger(genesis_seed=b"devnet")
    assert a.round == 0
    assert a.advance(3) == 3
    b.advance(3)
    assert [a.block_seed(r) for r in range(4)] == [b.block_seed(r) for r in range(4)]
    assert len({a.block_seed(r) for r in range(4)}) == 4
    assert Ledger(genesis_seed=b"other").block_seed(0) != a.block_seed(0)


def test_seed_window():
    ledger = Ledger(LedgerParams(seed_lookback=5))
    ledger.advance(10)
    assert len(ledger.block_seed(5)) == 32
    assert ledger.block_seed(10) == ledger.block(10)["seed"]
    with pytest.raises(SeedUnavailable):
        ledger.block_seed(4)
    with pytest.raises(SeedUnavailable):
        ledger.block_seed(11)


def test_status(ledger, counter):
    ledger.advance(2)
    st = ledger.status()
    assert st["last_round"] == 2
    assert st["min_txn_fee"] == MIN_FEE
    assert st["applications"] == 1


# -------------------------------------------------------------- payments

def test_payment_charges_min_fee(ledger, alice):
    bob = random_address()
    ledger.payment(alice, bob, 500_000)
    assert ledger.balance(bob) == 500_000
    assert ledger.balance(alice) == 10_000_000 - 500_000 - MIN_FEE
    assert ledger.balance(FEE_SINK_ADDRESS) == MIN_FEE


def test_payment_below_min_balance_rolls_back(ledger, alice):
    bob = random_address()
    with pytest.raises(MinBalanceViolation):
        ledger.payment(alice, bob, 50_000)
    assert ledger.balance(alice) == 10_000_000
    assert ledger.account(bob) is None


def test_emptied_account_is_removed(ledger, alice):
    bob = random_address()
    ledger.payment(alice, bob, 10_000_000 - MIN_FEE)
    assert ledger.account(alice) is None
    assert ledger.balance(bob) == 10_000_000 - MIN_FEE


def test_insufficient_funds(ledger):
    with pytest.raises(InsufficientFunds):
        ledger.payment(random_address(), random_address(), 1)


# ------------------------------------------------------------ applications

def test_call_commits_state_boxes_and_events(ledger, alice, counter):
    assert ledger.call(alice, counter, "bump") == 1
    assert ledger.global_state(counter)["count"] == 1
    assert ledger.box(counter, b"n" + (1).to_bytes(8, "big")) == b"x" * 8
    logs = ledger.events.get_logs(app_id=counter, name="Bumped")
    assert [r.fields for r in logs] == [{"count": 1}]
    assert ledger.min_balance(ledger.app_address(counter)) == BASE_MIN + 2500 + 400 * 17


def test_revert_is_atomic(ledger, alice, counter):
    ledger.call(alice, counter, "bump")
    before = (ledger.balance(alice), ledger.global_state(counter), ledger.boxes(counter), len(ledger.events))

    with pytest.raises(Revert) as ei:
        ledger.call(alice, counter, "bump", True)
    assert ei.value.reason == "asked to fail"

    after = (ledger.balance(alice), ledger.global_state(counter), ledger.boxes(counter), len(ledger.events))
    assert after == before


def test_box_requires_funded_app(ledger, alice):
    app_id = ledger.deploy(Counter, alice, 0)
    with pytest.raises(MinBalanceViolation):
        ledger.call(alice, app_id, "bump")
    assert ledger.boxes(app_id) == {}


def test_fee_pooling(ledger, alice, counter):
    bob = random_address()
    with pytest.raises(FeeTooLow):
        ledger.call(alice, counter, "payout", bob, 200_000, 2, fee=2 * MIN_FEE)

    before = ledger.balance(alice)
    ledger.call(alice, counter, "payout", bob, 200_000, 2)
    assert ledger.balance(alice) == before - 3 * MIN_FEE
    assert ledger.balance(bob) == 400_000


def test_group_payment_is_claimable_once(ledger, alice, counter):
    app_addr = ledger.app_address(counter)
    before = ledger.balance(app_addr)
    assert ledger.call(alice, counter, "deposit", PaymentTxn(receiver=app_addr, amount=5000)) == 5000
    assert ledger.balance(app_addr) == before + 5000

    forged = Payment(txn_id=1, sender=alice, receiver=app_addr, amount=5000)
    with pytest.raises(Revert):
        ledger.call(alice, counter, "deposit", forged)


def test_opup_budget(ledger, alice, counter):
    before = ledger.balance(alice)
    ledger.call(alice, counter, "heavy", 5700)
    # 700 from the call itself, 8 op-ups of 700 each
    assert ledger.balance(alice) == before - 9 * MIN_FEE

    with pytest.raises(BudgetExceeded):
        ledger.call(alice, counter, "heavy", 5700, False)


def test_read_never_commits(ledger, alice, counter):
    ledger.call(alice, counter, "bump")
    assert ledger.read(counter, "count") == 1
    with pytest.raises(InvalidTransaction):
        ledger.read(counter, "bump")
    assert ledger.global_state(counter)["count"] == 1


def test_invalid_calls(ledger, alice, counter):
    with pytest.raises(InvalidTransaction):
        ledger.call(alice, counter, "no_such_method")
    with pytest.raises(InvalidTransaction):
        ledger.call(alice, counter, "_int")
    with pytest.raises(InvalidTransaction):
        ledger.call(alice, counter, "payout")
    with pytest.raises(InvalidTransaction):
        ledger.call(alice, counter, "create_application", 3)
    with pytest.raises(UnknownApplication):
        ledger.call(alice, 999_999, "bump")
    # failed calls do not charge fees
    assert ledger.balance(alice) == 10_000_000 - MIN_FEE - 1_000_000 - MIN_FEE


def test_update_and_delete(ledger, alice, counter):
    mallory = random_address()
    ledger.fund(mallory, 1_000_000)
    with pytest.raises(Revert):
        ledger.update_application(mallory, counter, CounterV2)

    ledger.update_application(alice, counter, CounterV2)
    assert ledger.read(counter, "version") == 2

    ledger.call(alice, counter, "bump")
    with pytest.raises(InvalidTransaction):
        ledger.delete_application(alice, counter)
    assert ledger.app_exists(counter)


def test_delete_application(ledger, alice):
    app_id = ledger.deploy(Counter, alice, 0)
    ledger.delete_application(alice, app_id)
    assert not ledger.app_exists(app_id)


def test_jsonl_event_sink(tmp_path):
    sink = JsonlEventSink(str(tmp_path / "events.jsonl"))
    ledger = Ledger(event_sink=sink)
    alice = random_address()
    ledger.fund(alice, 10_000_000)
    app_id = ledger.deploy(Counter, alice, 0)
    ledger.payment(alice, ledger.app_address(app_id), 1_000_000)
    ledger.advance()
    ledger.call(alice, app_id, "bump")
    ledger.call(alice, app_id, "bump")

    logs = sink.get_logs(app_id=app_id, name="Bumped", from_round=1)
    assert [r.fields["count"] for r in logs] == [1, 2]
    assert sink.get_logs(to_round=0) == []
    sink.close()
