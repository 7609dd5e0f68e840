"""
ledger.chain — an in-process ledger that hosts applications.

The ledger provides the execution environment the beacon contract relies on:

- Rounds with a 32-byte block seed each; seeds are only queryable for the
  last `seed_lookback` rounds.
- Accounts with a minimum balance (base + box storage cost).
- Atomic transactions: every public mutating method snapshots state, runs, and
  either settles (fees, minimum balances, event flush) or restores the
  snapshot and re-raises. Nothing partial is ever visible.
- Fee pooling: the outer fee must cover `min_txn_fee * (1 + inner txns)`.
- Pooled opcode budget: `app_call_budget` per application call; op-ups add
  more at the cost of one inner transaction each.

All operations are serialized by a re-entrant lock, so concurrent callers
(daemon, RPC server, round ticker) observe a single total order.
"""

from __future__ import annotations

import copy
import hashlib
import inspect
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Type

from ledger.abi import Application, resolve
from ledger.accounts import ZERO_ADDRESS, Account, application_address, ensure_address
from ledger.errors import (
    FeeTooLow,
    InsufficientFunds,
    InvalidTransaction,
    MinBalanceViolation,
    SeedUnavailable,
    UnknownApplication,
)
from ledger.events import EventSink, InMemoryEventSink
from ledger.host import AppHost, TxnContext
from ledger.storage import AppRecord, CostModel, StorageCostModel
from ledger.txns import Payment, PaymentTxn

log = logging.getLogger(__name__)

FEE_SINK_ADDRESS: bytes = hashlib.sha3_256(b"fee-sink").digest()
FIRST_APP_ID = 1001


@dataclass
class LedgerParams:
    """
    Consensus-like parameters of the host ledger.

    min_txn_fee:      minimum fee per (inner or outer) transaction
    seed_lookback:    how many rounds back a block seed stays queryable
    base_min_balance: minimum balance of any non-empty account
    app_call_budget:  opcode budget contributed by each application call
    max_inner_txns:   cap on inner transactions per outer transaction
    max_call_depth:   cap on nested application calls
    cost_model:       box storage rent formula
    """

    min_txn_fee: int = 1000
    seed_lookback: int = 1000
    base_min_balance: int = 100_000
    app_call_budget: int = 700
    max_inner_txns: int = 256
    max_call_depth: int = 8
    cost_model: CostModel = field(default_factory=StorageCostModel)

    def validate(self) -> None:
        if self.min_txn_fee <= 0:
            raise ValueError("min_txn_fee must be > 0")
        if self.seed_lookback <= 0:
            raise ValueError("seed_lookback must be > 0")
        if self.base_min_balance < 0:
            raise ValueError("base_min_balance must be >= 0")
        if self.app_call_budget <= 0:
            raise ValueError("app_call_budget must be > 0")
        if self.max_inner_txns <= 0 or self.max_call_depth <= 0:
            raise ValueError("max_inner_txns and max_call_depth must be > 0")


@dataclass
class _State:
    accounts: Dict[bytes, Account] = field(default_factory=dict)
    apps: Dict[int, AppRecord] = field(default_factory=dict)
    next_app_id: int = FIRST_APP_ID


class Ledger:
    """
    In-process ledger.

    Example:
        ledger = Ledger()
        ledger.fund(alice, 10_000_000)
        app_id = ledger.deploy(MyApp, alice, b"arg")
        ledger.advance()
        ledger.call(alice, app_id, "do_thing", 1, fee=ledger.params.min_txn_fee)
    """

    def __init__(
        self,
        params: Optional[LedgerParams] = None,
        *,
        genesis_seed: bytes = b"",
        event_sink: Optional[EventSink] = None,
    ) -> None:
        self.params = params or LedgerParams()
        self.params.validate()
        self.events: EventSink = event_sink if event_sink is not None else InMemoryEventSink()
        self._lock = threading.RLock()
        self._state = _State()
        self._seeds: List[bytes] = [hashlib.sha3_256(b"genesis" + bytes(genesis_seed)).digest()]
        self._txn_counter = 0

    # ------------------------------------------------------------------ rounds

    @property
    def round(self) -> int:
        """Last committed round."""
        with self._lock:
            return len(self._seeds) - 1

    def advance(self, n: int = 1) -> int:
        """Commit `n` new rounds; returns the new last round."""
        if n < 0:
            raise ValueError("n must be >= 0")
        with self._lock:
            for _ in range(n):
                prev = self._seeds[-1]
                rnd = len(self._seeds)
                self._seeds.append(hashlib.sha3_256(prev + rnd.to_bytes(8, "big")).digest())
            return len(self._seeds) - 1

    def block_seed(self, round: int) -> bytes:
        """Seed of `round`; raises SeedUnavailable outside the lookback window."""
        with self._lock:
            current = len(self._seeds) - 1
            if round < 0 or round > current or current - round > self.params.seed_lookback:
                raise SeedUnavailable(round, current, self.params.seed_lookback)
            return self._seeds[round]

    def block(self, round: int) -> Dict[str, Any]:
        return {"round": round, "seed": self.block_seed(round)}

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "last_round": len(self._seeds) - 1,
                "min_txn_fee": self.params.min_txn_fee,
                "seed_lookback": self.params.seed_lookback,
                "applications": len(self._state.apps),
            }

    # ---------------------------------------------------------------- accounts

    def account(self, address: bytes) -> Optional[Account]:
        with self._lock:
            acct = self._state.accounts.get(ensure_address(address))
            return copy.copy(acct) if acct is not None else None

    def balance(self, address: bytes) -> int:
        with self._lock:
            return self._balance_of(ensure_address(address))

    def min_balance(self, address: bytes) -> int:
        with self._lock:
            acct = self._state.accounts.get(ensure_address(address))
            return acct.min_balance(self.params.base_min_balance) if acct else 0

    def fund(self, address: bytes, amount: int) -> None:
        """Mint `amount` into `address` (devnet faucet)."""
        addr = ensure_address(address)
        with self._transaction(None, None) as txn:
            self._account_for(addr).credit(amount)
            txn.touched.add(addr)
        log.debug("funded %s with %d", addr.hex(), amount)

    def payment(
        self,
        sender: bytes,
        receiver: bytes,
        amount: int,
        *,
        fee: Optional[int] = None,
        note: bytes = b"",
        close_to: Optional[bytes] = None,
    ) -> Payment:
        sender = ensure_address(sender)
        with self._transaction(sender, fee) as txn:
            return self._transfer(
                txn, sender, ensure_address(receiver), amount, note=note,
                close_to=ensure_address(close_to) if close_to is not None else None,
            )

    # ------------------------------------------------------------ applications

    def app_address(self, app_id: int) -> bytes:
        return application_address(app_id)

    def app_exists(self, app_id: int) -> bool:
        with self._lock:
            return app_id in self._state.apps

    def global_state(self, app_id: int) -> Dict[str, Any]:
        with self._lock:
            return dict(self._record(app_id).global_state)

    def boxes(self, app_id: int, prefix: bytes = b"") -> Dict[bytes, bytes]:
        with self._lock:
            return dict(self._record(app_id).box_items(prefix))

    def box(self, app_id: int, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._record(app_id).boxes.get(bytes(key))

    def deploy(self, app_cls: Type[Application], creator: bytes, *args: Any, fee: Optional[int] = None) -> int:
        """Create an application by running its "create" entry point; returns the app id."""
        creator = ensure_address(creator)
        method = app_cls.method_for("create")
        with self._transaction(creator, fee) as txn:
            app_id = self._state.next_app_id
            self._state.next_app_id += 1
            self._state.apps[app_id] = AppRecord(app_id=app_id, creator=creator, app_cls=app_cls)
            self._invoke(txn, app_id, method, args, sender=creator, caller_app_id=0, action="create")
        log.info("deployed %s as app %d", app_cls.__name__, app_id)
        return app_id

    def call(self, sender: bytes, app_id: int, method: str, *args: Any, fee: Optional[int] = None) -> Any:
        """
        Execute one application call atomically and return its result.

        `PaymentTxn` arguments are executed first (grouped, each paying its own
        minimum fee) and replaced by their `Payment` records. `fee=None`
        pays exactly the required pooled fee.
        """
        sender = ensure_address(sender)
        with self._transaction(sender, fee) as txn:
            call_args = self._execute_group_payments(txn, sender, args)
            return self._invoke(txn, app_id, method, call_args, sender=sender, caller_app_id=0)

    def read(self, app_id: int, method: str, *args: Any, sender: Optional[bytes] = None) -> Any:
        """Simulate a read-only entry point; state is never changed."""
        sender = ensure_address(sender) if sender is not None else ZERO_ADDRESS
        with self._transaction(None, None, commit=False) as txn:
            return self._invoke(txn, app_id, method, args, sender=sender, caller_app_id=0, readonly=True)

    def update_application(self, sender: bytes, app_id: int, app_cls: Type[Application],
                           *args: Any, fee: Optional[int] = None) -> None:
        """Run the current code's "update" entry point, then swap in `app_cls`."""
        sender = ensure_address(sender)
        with self._transaction(sender, fee) as txn:
            record = self._record(app_id)
            method = record.app_cls.method_for("update")
            self._invoke(txn, app_id, method, args, sender=sender, caller_app_id=0, action="update")
            record.app_cls = app_cls
        log.info("updated app %d to %s", app_id, app_cls.__name__)

    def delete_application(self, sender: bytes, app_id: int, *args: Any, fee: Optional[int] = None) -> None:
        """Run the "delete" entry point, then remove the application."""
        sender = ensure_address(sender)
        with self._transaction(sender, fee) as txn:
            record = self._record(app_id)
            method = record.app_cls.method_for("delete")
            self._invoke(txn, app_id, method, args, sender=sender, caller_app_id=0, action="delete")
            if record.boxes:
                raise InvalidTransaction("application still owns boxes", data={"app_id": app_id})
            del self._state.apps[app_id]
        log.info("deleted app %d", app_id)

    # --------------------------------------------------------------- internals

    @contextmanager
    def _transaction(self, sender: Optional[bytes], fee: Optional[int], *, commit: bool = True) -> Iterator[TxnContext]:
        with self._lock:
            snapshot = copy.deepcopy(self._state)
            self._txn_counter += 1
            txn = TxnContext(txn_id=self._txn_counter, sender=sender, fee=fee, round=len(self._seeds) - 1)
            try:
                if sender is not None:
                    # fees are charged before execution; the pooled remainder is settled afterwards
                    self._charge_fee(txn, sender, self.params.min_txn_fee if fee is None else fee)
                yield txn
                self._settle(txn)
            except Exception:
                self._state = snapshot
                raise
            if not commit:
                self._state = snapshot
                return
            for rec in txn.events:
                self.events.append(rec)
            log.debug(
                "txn %d committed (inner=%d opups=%d events=%d)",
                txn.txn_id, txn.inner_txns, txn.opups, len(txn.events),
            )

    def _settle(self, txn: TxnContext) -> None:
        if txn.sender is not None:
            required = self.params.min_txn_fee * (1 + txn.inner_txns)
            if txn.fee is None:
                if required > self.params.min_txn_fee:
                    self._charge_fee(txn, txn.sender, required - self.params.min_txn_fee)
            elif txn.fee < required:
                raise FeeTooLow(txn.fee, required)
        for addr in sorted(txn.touched):
            acct = self._state.accounts.get(addr)
            if acct is None or addr == FEE_SINK_ADDRESS:
                continue
            if acct.balance == 0 and acct.box_mbr == 0:
                del self._state.accounts[addr]
                continue
            min_bal = acct.min_balance(self.params.base_min_balance)
            if acct.balance < min_bal:
                raise MinBalanceViolation(addr, acct.balance, min_bal)

    def _charge_fee(self, txn: TxnContext, payer: bytes, fee: int) -> None:
        acct = self._state.accounts.get(payer)
        if acct is None:
            raise InsufficientFunds(payer, fee, 0)
        acct.debit(fee)
        self._account_for(FEE_SINK_ADDRESS).credit(fee)
        txn.touched.add(payer)

    def _record(self, app_id: int) -> AppRecord:
        record = self._state.apps.get(app_id)
        if record is None:
            raise UnknownApplication(app_id)
        return record

    def _account_for(self, address: bytes) -> Account:
        acct = self._state.accounts.get(address)
        if acct is None:
            acct = Account(address=address)
            self._state.accounts[address] = acct
        return acct

    def _balance_of(self, address: bytes) -> int:
        acct = self._state.accounts.get(address)
        return acct.balance if acct else 0

    def _transfer(
        self,
        txn: TxnContext,
        sender: bytes,
        receiver: bytes,
        amount: int,
        *,
        note: bytes = b"",
        close_to: Optional[bytes] = None,
    ) -> Payment:
        src = self._state.accounts.get(sender)
        if src is None:
            raise InsufficientFunds(sender, amount, 0)
        src.debit(amount)
        self._account_for(receiver).credit(amount)
        close_amount = 0
        if close_to is not None:
            if src.box_mbr:
                raise InvalidTransaction("cannot close an account that owns boxes")
            close_amount = src.balance
            src.debit(close_amount)
            self._account_for(close_to).credit(close_amount)
            txn.touched.add(close_to)
        txn.touched.update((sender, receiver))
        pay = Payment(
            txn_id=txn.txn_id, sender=sender, receiver=receiver, amount=amount,
            note=bytes(note), close_to=close_to, close_amount=close_amount,
        )
        txn.payments.append(pay)
        return pay

    def _execute_group_payments(self, txn: TxnContext, sender: bytes, args: Sequence[Any]) -> List[Any]:
        out: List[Any] = []
        for arg in args:
            if isinstance(arg, PaymentTxn):
                payer = ensure_address(arg.sender) if arg.sender is not None else sender
                fee = self.params.min_txn_fee if arg.fee is None else arg.fee
                if fee < self.params.min_txn_fee:
                    raise FeeTooLow(fee, self.params.min_txn_fee)
                self._charge_fee(txn, payer, fee)
                out.append(self._transfer(txn, payer, ensure_address(arg.receiver), arg.amount, note=arg.note))
            else:
                out.append(arg)
        return out

    def _invoke_inner(self, txn: TxnContext, host: AppHost, app_id: int, method: str, args: Sequence[Any]) -> Any:
        call_args: List[Any] = []
        for arg in args:
            if isinstance(arg, PaymentTxn):
                if arg.sender is not None and arg.sender != host.app_address:
                    raise InvalidTransaction("inner payments must be sent from the calling application")
                call_args.append(host.pay(arg.receiver, arg.amount, note=arg.note))
            else:
                call_args.append(arg)
        host._count_inner()
        return self._invoke(txn, app_id, method, call_args, sender=host.app_address, caller_app_id=host.app_id)

    def _invoke(
        self,
        txn: TxnContext,
        app_id: int,
        method: str,
        args: Sequence[Any],
        *,
        sender: bytes,
        caller_app_id: int,
        action: str = "call",
        readonly: bool = False,
    ) -> Any:
        if txn.depth >= self.params.max_call_depth:
            raise InvalidTransaction("application call depth exceeded", data={"limit": self.params.max_call_depth})
        record = self._record(app_id)
        txn.budget += self.params.app_call_budget
        host = AppHost(self, txn, record, sender=sender, caller_app_id=caller_app_id)
        fn, meta = resolve(record.app_cls(host), method)
        if meta.action != action:
            raise InvalidTransaction(f"method {method!r} is not a {action!r} entry point",
                                     data={"method": method, "action": meta.action})
        if readonly and not meta.readonly:
            raise InvalidTransaction(f"method {method!r} is not read-only", data={"method": method})
        try:
            inspect.signature(fn).bind(*args)
        except TypeError as e:
            raise InvalidTransaction(f"bad arguments for {method!r}: {e}", data={"method": method}) from e
        txn.depth += 1
        try:
            return fn(*args)
        finally:
            txn.depth -= 1


__all__ = ["FEE_SINK_ADDRESS", "FIRST_APP_ID", "Ledger", "LedgerParams"]
