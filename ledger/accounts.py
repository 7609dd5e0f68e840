"""
ledger.accounts — account records and address helpers.

An Account holds a balance and the storage cost of the boxes it owns; the
minimum balance it must keep is `base_min_balance + box_mbr`. Addresses are
raw 32-byte strings; the JSON-RPC surface renders them as 0x-hex.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass

from ledger.errors import InsufficientFunds

ADDRESS_SIZE = 32
ZERO_ADDRESS: bytes = bytes(ADDRESS_SIZE)


def _ensure_amount(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return value


def ensure_address(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError("address must be bytes-like")
    addr = bytes(value)
    if len(addr) != ADDRESS_SIZE:
        raise ValueError(f"address must be {ADDRESS_SIZE} bytes")
    return addr


def random_address() -> bytes:
    """Fresh random address (devnet / tests)."""
    return secrets.token_bytes(ADDRESS_SIZE)


def application_address(app_id: int) -> bytes:
    """Deterministic escrow address controlled by application `app_id`."""
    return hashlib.sha3_256(b"appID" + int(app_id).to_bytes(8, "big")).digest()


def address_to_hex(addr: bytes) -> str:
    return "0x" + bytes(addr).hex()


def address_from_hex(s: str) -> bytes:
    if s.startswith("0x") or s.startswith("0X"):
        s = s[2:]
    return ensure_address(bytes.fromhex(s))


@dataclass(slots=True)
class Account:
    """
    A minimal account record.

    Invariants:
    - balance and box_mbr are non-negative
    """
    address: bytes
    balance: int = 0
    box_mbr: int = 0

    def credit(self, amount: int) -> None:
        self.balance += _ensure_amount("amount", amount)

    def debit(self, amount: int) -> None:
        """Decrease balance by `amount`; raises InsufficientFunds if short."""
        amt = _ensure_amount("amount", amount)
        if self.balance < amt:
            raise InsufficientFunds(self.address, amt, self.balance)
        self.balance -= amt

    def min_balance(self, base: int) -> int:
        return base + self.box_mbr

    def to_dict(self) -> dict:
        return {
            "address": address_to_hex(self.address),
            "balance": self.balance,
            "box_mbr": self.box_mbr,
        }


__all__ = [
    "ADDRESS_SIZE",
    "ZERO_ADDRESS",
    "Account",
    "address_from_hex",
    "address_to_hex",
    "application_address",
    "ensure_address",
    "random_address",
]
