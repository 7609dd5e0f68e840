"""
beacon.control — pause capability.

Owns the `pauser` and `paused` global-state fields; the pauser defaults to the
application creator and the contract starts unpaused. Request creation calls
`require_not_paused()`; completion and cancellation stay available while
paused so pending requests can still be unwound.
"""

from __future__ import annotations

from beacon.constants import KEY_PAUSED, KEY_PAUSER
from beacon.errors import ERR_ONLY_PAUSER, ERR_PAUSED, ERR_PAUSER_ZERO_ADDRESS
from beacon.types import Paused, PauserUpdated, Unpaused
from ledger.accounts import ZERO_ADDRESS, ensure_address
from ledger.errors import require
from ledger.host import AppHost


class Pausable:
    def __init__(self, host: AppHost) -> None:
        self.host = host

    def init(self) -> None:
        self.host.put_global(KEY_PAUSER, self.host.creator)
        self.host.put_global(KEY_PAUSED, 0)

    def pauser(self) -> bytes:
        return self.host.get_global(KEY_PAUSER, ZERO_ADDRESS)  # type: ignore[return-value]

    def is_paused(self) -> bool:
        return bool(self.host.get_global(KEY_PAUSED, 0))

    def require_not_paused(self) -> None:
        require(not self.is_paused(), ERR_PAUSED)

    def require_pauser(self) -> None:
        require(self.pauser() == self.host.sender, ERR_ONLY_PAUSER)

    def pause(self) -> None:
        self.require_pauser()
        self.host.put_global(KEY_PAUSED, 1)
        self.host.emit(Paused(by=self.host.sender))

    def unpause(self) -> None:
        self.require_pauser()
        self.host.put_global(KEY_PAUSED, 0)
        self.host.emit(Unpaused(by=self.host.sender))

    def update_pauser(self, new_pauser: bytes) -> None:
        self.require_pauser()
        new_pauser = ensure_address(new_pauser)
        require(new_pauser != ZERO_ADDRESS, ERR_PAUSER_ZERO_ADDRESS)
        previous = self.pauser()
        self.host.put_global(KEY_PAUSER, new_pauser)
        self.host.emit(PauserUpdated(previous=previous, pauser=new_pauser))


__all__ = ["Pausable"]
