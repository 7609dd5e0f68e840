"""
ledger.host — the execution surface an application sees during one call.

`TxnContext` accumulates everything a transaction does (inner transaction
count, pooled opcode budget, buffered events, touched accounts) until the
ledger settles or discards it. `AppHost` is the per-invocation view handed to
application code: caller identity, current round, global state, boxes,
payments, inner application calls, opcode budget and the VRF / block-seed
opcodes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional, Set, Tuple

import vrf
from ledger.accounts import Account, application_address, ensure_address
from ledger.errors import BudgetExceeded, InvalidTransaction
from ledger.events import EventRecord
from ledger.storage import MAX_BOX_KEY_SIZE, MAX_BOX_SIZE, AppRecord, GlobalValue
from ledger.txns import Payment

if TYPE_CHECKING:  # pragma: no cover
    from ledger.chain import Ledger

log = logging.getLogger(__name__)

# Opcode cost of one vrf_verify.
VRF_VERIFY_COST = 5700


@dataclass
class TxnContext:
    """Mutable bookkeeping for one (outer) transaction and all its inner ones."""
    txn_id: int
    sender: Optional[bytes]
    fee: Optional[int]
    round: int
    inner_txns: int = 0
    opups: int = 0
    budget: int = 0
    budget_used: int = 0
    depth: int = 0
    events: List[EventRecord] = field(default_factory=list)
    touched: Set[bytes] = field(default_factory=set)
    payments: List[Payment] = field(default_factory=list)
    claimed: Set[int] = field(default_factory=set)

    @property
    def budget_left(self) -> int:
        return self.budget - self.budget_used


class AppHost:
    """
    Host functions available to an application for the duration of one call.

    Attributes mirror the global/transaction fields a contract can read:
    `sender` (transaction sender), `caller_app_id` (0 for a top-level call,
    otherwise the app that issued the inner call), `app_id`, `app_address`,
    `round`, `min_txn_fee`.
    """

    def __init__(self, ledger: "Ledger", txn: TxnContext, record: AppRecord, *,
                 sender: bytes, caller_app_id: int) -> None:
        self._ledger = ledger
        self._txn = txn
        self._record = record
        self.sender = sender
        self.caller_app_id = caller_app_id

    # ------------------------------------------------------------------ context

    @property
    def app_id(self) -> int:
        return self._record.app_id

    @property
    def app_address(self) -> bytes:
        return application_address(self._record.app_id)

    @property
    def creator(self) -> bytes:
        return self._record.creator

    @property
    def round(self) -> int:
        return self._txn.round

    @property
    def min_txn_fee(self) -> int:
        return self._ledger.params.min_txn_fee

    @property
    def seed_lookback(self) -> int:
        return self._ledger.params.seed_lookback

    # ------------------------------------------------------------ global state

    def get_global(self, key: str, default: Optional[GlobalValue] = None) -> Optional[GlobalValue]:
        return self._record.global_state.get(key, default)

    def put_global(self, key: str, value: GlobalValue) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, bytes)):
            raise InvalidTransaction("global state values must be int or bytes", data={"key": key})
        if isinstance(value, int) and not 0 <= value < 2**64:
            raise InvalidTransaction("global state ints must be uint64", data={"key": key})
        self._record.global_state[key] = value

    # ------------------------------------------------------------------- boxes

    def box_cost(self, key_size: int, value_size: int) -> int:
        return self._ledger.params.cost_model.box_cost(key_size, value_size)

    def box_get(self, key: bytes) -> Optional[bytes]:
        return self._record.boxes.get(bytes(key))

    def box_keys(self, prefix: bytes = b"") -> List[bytes]:
        return [k for k, _ in self._record.box_items(prefix)]

    def box_put(self, key: bytes, value: bytes) -> None:
        """
        Create or overwrite a box. Creation charges the app account's minimum
        balance; an existing box keeps its size.
        """
        key, value = bytes(key), bytes(value)
        if not 0 < len(key) <= MAX_BOX_KEY_SIZE:
            raise InvalidTransaction("invalid box key size", data={"size": len(key)})
        if len(value) > MAX_BOX_SIZE:
            raise InvalidTransaction("box too large", data={"size": len(value)})
        existing = self._record.boxes.get(key)
        if existing is not None:
            if len(existing) != len(value):
                raise InvalidTransaction("box size mismatch", data={"size": len(existing)})
        else:
            account = self._app_account()
            account.box_mbr += self.box_cost(len(key), len(value))
        self._record.boxes[key] = value

    def box_delete(self, key: bytes) -> bool:
        key = bytes(key)
        value = self._record.boxes.pop(key, None)
        if value is None:
            return False
        account = self._app_account()
        account.box_mbr -= self.box_cost(len(key), len(value))
        return True

    def _app_account(self) -> Account:
        addr = self.app_address
        self._txn.touched.add(addr)
        return self._ledger._account_for(addr)

    # -------------------------------------------------------------- value flow

    def balance(self, address: Optional[bytes] = None) -> int:
        return self._ledger._balance_of(self.app_address if address is None else ensure_address(address))

    def can_receive(self, address: bytes, amount: int) -> bool:
        """True if `address` would hold at least its minimum balance after receiving `amount`."""
        if amount == 0:
            return True
        acct = self._ledger._state.accounts.get(ensure_address(address)) or Account(address=ensure_address(address))
        return acct.balance + amount >= acct.min_balance(self._ledger.params.base_min_balance)

    def pay(self, receiver: bytes, amount: int, *, note: bytes = b"") -> Payment:
        """Inner payment from this application's account."""
        self._count_inner()
        return self._ledger._transfer(self._txn, self.app_address, ensure_address(receiver), amount, note=note)

    def close_out(self, receiver: bytes, *, note: bytes = b"") -> Payment:
        """Inner payment of the entire app balance to `receiver`."""
        self._count_inner()
        return self._ledger._transfer(self._txn, self.app_address, ensure_address(receiver), 0,
                                      note=note, close_to=ensure_address(receiver))

    def claim_payment(self, payment: Any) -> bool:
        """
        True if `payment` was executed within this transaction and has not been
        claimed before; marks it claimed. Guards against forged or reused
        payment records.
        """
        for idx, executed in enumerate(self._txn.payments):
            if executed is payment:
                if idx in self._txn.claimed:
                    return False
                self._txn.claimed.add(idx)
                return True
        return False

    def call_app(self, app_id: int, method: str, *args: Any) -> Any:
        """Inner application call; the callee sees this app as its caller."""
        return self._ledger._invoke_inner(self._txn, self, app_id, method, args)

    # ---------------------------------------------------------------- budget

    def _count_inner(self) -> None:
        if self._txn.inner_txns >= self._ledger.params.max_inner_txns:
            raise BudgetExceeded("too many inner transactions",
                                 data={"limit": self._ledger.params.max_inner_txns})
        self._txn.inner_txns += 1

    def ensure_budget(self, units: int) -> None:
        """Issue op-up inner transactions until at least `units` budget is left."""
        while self._txn.budget_left < units:
            self._count_inner()
            self._txn.opups += 1
            self._txn.budget += self._ledger.params.app_call_budget

    def consume_budget(self, units: int) -> None:
        if self._txn.budget_left < units:
            raise BudgetExceeded(data={"needed": units, "available": self._txn.budget_left})
        self._txn.budget_used += units

    # --------------------------------------------------------------- opcodes

    def block_seed(self, round: int) -> bytes:
        return self._ledger.block_seed(round)

    def vrf_verify(self, public_key: bytes, proof: bytes, message: bytes) -> Tuple[bytes, bool]:
        self.consume_budget(VRF_VERIFY_COST)
        return vrf.verify(public_key, proof, message)

    def emit(self, event: Any) -> None:
        """Buffer an event; it reaches the event log only if the transaction commits."""
        rec = EventRecord.from_event(
            event,
            round=self._txn.round,
            txn_id=self._txn.txn_id,
            app_id=self.app_id,
            log_index=len(self._txn.events),
        )
        self._txn.events.append(rec)
        log.debug("app %d emitted %s", self.app_id, rec.name)


__all__ = ["AppHost", "TxnContext", "VRF_VERIFY_COST"]
