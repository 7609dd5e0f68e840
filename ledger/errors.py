"""
ledger.errors — typed failures raised by the in-process ledger.

Every transaction either commits completely or fails with one of these
exceptions, in which case no balance, global-state, box or event change is
visible afterwards.

Hierarchy
---------
LedgerError (base)
 ├─ Revert               : an application assertion failed (carries the reason)
 ├─ InvalidTransaction   : malformed call (unknown method, bad argument, wrong action)
 ├─ UnknownApplication   : target app id does not exist
 ├─ SeedUnavailable      : block seed outside the queryable window
 ├─ InsufficientFunds    : sender cannot cover amount + fee
 ├─ MinBalanceViolation  : an account ends a transaction below its minimum balance
 ├─ FeeTooLow            : pooled fee does not cover outer + inner transactions
 └─ BudgetExceeded       : opcode budget (or inner transaction limit) exhausted
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class LedgerError(Exception):
    """
    Base ledger error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'REVERT', 'FEE_TOO_LOW').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "ledger error"
    code: str = "LEDGER_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for logs and RPC errors."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class Revert(LedgerError):
    """
    Application-triggered failure.

    The reason string is the stable, user-facing explanation (e.g. 'proof must
    be valid'); it is also copied into `data["reason"]`.
    """
    def __init__(self, reason: str, *, data: Optional[Dict[str, Any]] = None):
        d: Dict[str, Any] = {"reason": reason}
        if data:
            d.update(data)
        super().__init__(message=reason, code="REVERT", data=d)

    @property
    def reason(self) -> str:
        return self.message


class InvalidTransaction(LedgerError):
    def __init__(self, message: str = "invalid transaction", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_TRANSACTION", data=data)


class UnknownApplication(LedgerError):
    def __init__(self, app_id: int):
        super().__init__(message=f"application {app_id} does not exist", code="UNKNOWN_APPLICATION",
                         data={"app_id": app_id})


class SeedUnavailable(LedgerError):
    """Block seed requested for a round outside [current - lookback, current]."""
    def __init__(self, round: int, current_round: int, lookback: int):
        super().__init__(
            message=f"seed for round {round} is not available",
            code="SEED_UNAVAILABLE",
            data={"round": round, "current_round": current_round, "lookback": lookback},
        )


class InsufficientFunds(LedgerError):
    def __init__(self, address: bytes, needed: int, available: int):
        super().__init__(
            message="insufficient funds",
            code="INSUFFICIENT_FUNDS",
            data={"address": "0x" + bytes(address).hex(), "needed": needed, "available": available},
        )


class MinBalanceViolation(LedgerError):
    def __init__(self, address: bytes, balance: int, min_balance: int):
        super().__init__(
            message="balance below minimum",
            code="MIN_BALANCE",
            data={"address": "0x" + bytes(address).hex(), "balance": balance, "min_balance": min_balance},
        )


class FeeTooLow(LedgerError):
    def __init__(self, fee: int, required: int):
        super().__init__(
            message=f"fee {fee} below required {required}",
            code="FEE_TOO_LOW",
            data={"fee": fee, "required": required},
        )


class BudgetExceeded(LedgerError):
    def __init__(self, message: str = "opcode budget exceeded", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="BUDGET_EXCEEDED", data=data)


def require(condition: Any, reason: str) -> None:
    """Raise `Revert(reason)` unless `condition` holds."""
    if not condition:
        raise Revert(reason)


__all__ = [
    "LedgerError",
    "Revert",
    "InvalidTransaction",
    "UnknownApplication",
    "SeedUnavailable",
    "InsufficientFunds",
    "MinBalanceViolation",
    "FeeTooLow",
    "BudgetExceeded",
    "require",
]
