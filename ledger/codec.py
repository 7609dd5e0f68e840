"""
ledger.codec — JSON <-> Python value mapping for the node's JSON-RPC surface.

Conventions (all hex is 0x-prefixed):
- bytes                 <-> "0x…" strings
- dataclass results      -> objects (field name -> value)
- tuples                 -> arrays
- {"type": "pay", ...}  <-  PaymentTxn arguments
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict

from ledger.txns import PaymentTxn


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith("0x") or s.startswith("0X") else s


def hex_to_bytes(s: str) -> bytes:
    return bytes.fromhex(_strip_0x(s))


def bytes_to_hex(b: bytes) -> str:
    return "0x" + bytes(b).hex()


def to_json(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes_to_hex(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {(bytes_to_hex(k) if isinstance(k, bytes) else k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


def _payment_from_json(obj: Dict[str, Any]) -> PaymentTxn:
    try:
        return PaymentTxn(
            receiver=hex_to_bytes(obj["receiver"]),
            amount=int(obj["amount"]),
            sender=hex_to_bytes(obj["sender"]) if obj.get("sender") else None,
            note=hex_to_bytes(obj["note"]) if obj.get("note") else b"",
            fee=int(obj["fee"]) if obj.get("fee") is not None else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"bad payment argument: {e}") from e


def from_json(value: Any) -> Any:
    """Decode one call argument."""
    if isinstance(value, str) and (value.startswith("0x") or value.startswith("0X")):
        return hex_to_bytes(value)
    if isinstance(value, dict):
        if value.get("type") == "pay":
            return _payment_from_json(value)
        return {k: from_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_json(v) for v in value]
    return value


def payment_to_json(receiver: bytes, amount: int, *, sender: bytes = None, fee: int = None) -> Dict[str, Any]:
    """Encode a PaymentTxn argument for `app.call`."""
    out: Dict[str, Any] = {"type": "pay", "receiver": bytes_to_hex(receiver), "amount": int(amount)}
    if sender is not None:
        out["sender"] = bytes_to_hex(sender)
    if fee is not None:
        out["fee"] = int(fee)
    return out


__all__ = ["bytes_to_hex", "from_json", "hex_to_bytes", "payment_to_json", "to_json"]
