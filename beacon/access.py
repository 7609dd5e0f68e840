"""
beacon.access — manager role capability.

Owns the `manager` global-state field. The beacon composes one instance per
call and calls `require_manager()` explicitly from restricted entry points.

Semantics
---------
- `init()` sets the manager to the application creator.
- `update_manager(new)` is manager-only and rejects the zero address.
- `delete_manager()` is manager-only and sets the zero address, after which
  no one can perform manager actions again.
- Changes emit `ManagerUpdated(previous, manager)`.
"""

from __future__ import annotations

from beacon.constants import KEY_MANAGER
from beacon.errors import ERR_MANAGER_ZERO_ADDRESS, ERR_ONLY_MANAGER
from beacon.types import ManagerUpdated
from ledger.accounts import ZERO_ADDRESS, ensure_address
from ledger.errors import require
from ledger.host import AppHost


class Managable:
    def __init__(self, host: AppHost) -> None:
        self.host = host

    def init(self) -> None:
        self.host.put_global(KEY_MANAGER, self.host.creator)

    def manager(self) -> bytes:
        return self.host.get_global(KEY_MANAGER, ZERO_ADDRESS)  # type: ignore[return-value]

    def is_manager(self, address: bytes) -> bool:
        mgr = self.manager()
        return mgr != ZERO_ADDRESS and mgr == address

    def require_manager(self) -> None:
        require(self.is_manager(self.host.sender), ERR_ONLY_MANAGER)

    def update_manager(self, new_manager: bytes) -> None:
        self.require_manager()
        new_manager = ensure_address(new_manager)
        require(new_manager != ZERO_ADDRESS, ERR_MANAGER_ZERO_ADDRESS)
        self._set(new_manager)

    def delete_manager(self) -> None:
        self.require_manager()
        self._set(ZERO_ADDRESS)

    def _set(self, new_manager: bytes) -> None:
        previous = self.manager()
        self.host.put_global(KEY_MANAGER, new_manager)
        self.host.emit(ManagerUpdated(previous=previous, manager=new_manager))


__all__ = ["Managable"]
