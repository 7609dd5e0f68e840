"""
ledger.txns — payment intents and executed payment records.

A `PaymentTxn` passed as an application-call argument is executed as part of
the same atomic group before the call runs; the application receives the
resulting `Payment` record and can inspect receiver and amount.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PaymentTxn:
    """Unexecuted payment. `sender` defaults to the sender of the enclosing call."""
    receiver: bytes
    amount: int
    sender: Optional[bytes] = None
    note: bytes = b""
    fee: Optional[int] = None


@dataclass(frozen=True)
class Payment:
    """An executed payment."""
    txn_id: int
    sender: bytes
    receiver: bytes
    amount: int
    note: bytes = b""
    close_to: Optional[bytes] = None
    close_amount: int = 0


__all__ = ["Payment", "PaymentTxn"]
