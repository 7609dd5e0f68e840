"""
ledger.storage — per-application state: global key/values and boxes.

Boxes are keyed byte-strings owned by an application. Creating a box raises
the owning app account's minimum balance by `StorageCostModel.box_cost`;
deleting it releases the same amount. The cost model is pluggable so other
hosts can supply their own rent formula.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Protocol, Tuple, Union

GlobalValue = Union[int, bytes]

MAX_BOX_KEY_SIZE = 64
MAX_BOX_SIZE = 32_768


class CostModel(Protocol):
    def box_cost(self, key_size: int, value_size: int) -> int: ...


@dataclass(frozen=True)
class StorageCostModel:
    """
    Flat rent formula: create_cost + byte_cost * (key_size + value_size).
    """
    create_cost: int = 2500
    byte_cost: int = 400

    def box_cost(self, key_size: int, value_size: int) -> int:
        if key_size < 0 or value_size < 0:
            raise ValueError("sizes must be non-negative")
        return self.create_cost + self.byte_cost * (key_size + value_size)


@dataclass
class AppRecord:
    """Persistent state of one deployed application."""
    app_id: int
    creator: bytes
    app_cls: Any
    global_state: Dict[str, GlobalValue] = field(default_factory=dict)
    boxes: Dict[bytes, bytes] = field(default_factory=dict)

    def box_items(self, prefix: bytes = b"") -> Iterator[Tuple[bytes, bytes]]:
        for key in sorted(self.boxes):
            if key.startswith(prefix):
                yield key, self.boxes[key]

    def get_global(self, key: str, default: Optional[GlobalValue] = None) -> Optional[GlobalValue]:
        return self.global_state.get(key, default)


__all__ = [
    "AppRecord",
    "CostModel",
    "GlobalValue",
    "MAX_BOX_KEY_SIZE",
    "MAX_BOX_SIZE",
    "StorageCostModel",
]
