"""
beacon.types — request records, costs and lifecycle events.

`RandomnessRequest` is persisted in one box per request under
`b"requests" || uint64_be(request_id)`. Its value is a fixed 72-byte
big-endian record:

    created_at        uint64
    requester_app_id  uint64
    requester_address 32 bytes
    round             uint64
    costs.fees        uint64
    costs.box_mbr     uint64

The daemon decodes boxes read from the node with the same codec.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

from beacon.constants import REQUEST_ID_SIZE, REQUESTS_BOX_PREFIX

_REQUEST_STRUCT = struct.Struct(">QQ32sQQQ")


@dataclass(frozen=True)
class RandomnessRequestCosts:
    """Pre-paid amounts: `fees` go to the completer, `box_mbr` is refunded to the requester."""
    fees: int
    box_mbr: int

    @property
    def total(self) -> int:
        return self.fees + self.box_mbr


@dataclass(frozen=True)
class RandomnessRequest:
    created_at: int
    requester_app_id: int
    requester_address: bytes
    round: int
    costs: RandomnessRequestCosts

    SIZE: ClassVar[int] = _REQUEST_STRUCT.size

    def encode(self) -> bytes:
        return _REQUEST_STRUCT.pack(
            self.created_at,
            self.requester_app_id,
            bytes(self.requester_address),
            self.round,
            self.costs.fees,
            self.costs.box_mbr,
        )

    @classmethod
    def decode(cls, data: bytes) -> "RandomnessRequest":
        if len(data) != cls.SIZE:
            raise ValueError(f"request record must be {cls.SIZE} bytes, got {len(data)}")
        created_at, app_id, addr, rnd, fees, box_mbr = _REQUEST_STRUCT.unpack(bytes(data))
        return cls(
            created_at=created_at,
            requester_app_id=app_id,
            requester_address=addr,
            round=rnd,
            costs=RandomnessRequestCosts(fees=fees, box_mbr=box_mbr),
        )


def request_box_key(request_id: int) -> bytes:
    return REQUESTS_BOX_PREFIX + int(request_id).to_bytes(REQUEST_ID_SIZE, "big")


def request_id_from_box_key(key: bytes) -> int:
    key = bytes(key)
    if not key.startswith(REQUESTS_BOX_PREFIX) or len(key) != len(REQUESTS_BOX_PREFIX) + REQUEST_ID_SIZE:
        raise ValueError(f"not a request box key: {key!r}")
    return int.from_bytes(key[len(REQUESTS_BOX_PREFIX):], "big")


# --------------------------------------------------------------------------- #
# Events
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class RequestCreated:
    request_id: int
    requester_app_id: int
    requester_address: bytes
    round: int


@dataclass(frozen=True)
class RequestFulfilled:
    request_id: int
    requester_app_id: int
    requester_address: bytes
    vrf_output: bytes


@dataclass(frozen=True)
class RequestCancelled:
    request_id: int
    requester_app_id: int
    requester_address: bytes


@dataclass(frozen=True)
class RefundRetained:
    request_id: int
    requester_address: bytes
    amount: int


@dataclass(frozen=True)
class ManagerUpdated:
    previous: bytes
    manager: bytes


@dataclass(frozen=True)
class PauserUpdated:
    previous: bytes
    pauser: bytes


@dataclass(frozen=True)
class Paused:
    by: bytes


@dataclass(frozen=True)
class Unpaused:
    by: bytes


__all__ = [
    "ManagerUpdated",
    "Paused",
    "PauserUpdated",
    "RandomnessRequest",
    "RandomnessRequestCosts",
    "RefundRetained",
    "RequestCancelled",
    "RequestCreated",
    "RequestFulfilled",
    "Unpaused",
    "request_box_key",
    "request_id_from_box_key",
]
