"""
ledger.abi — application base class and the `abimethod` entry-point marker.

Only methods decorated with `@abimethod` can be invoked through the ledger.
Each method carries an on-completion action:

- "call"   : ordinary application call (default)
- "create" : runs once when the application is deployed
- "update" : runs (with the old code) before the code is replaced
- "delete" : runs before the application is removed

`readonly=True` marks methods that may be simulated with `Ledger.read`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Tuple

from ledger.errors import InvalidTransaction

if TYPE_CHECKING:  # pragma: no cover
    from ledger.host import AppHost

ACTIONS = ("call", "create", "update", "delete")


@dataclass(frozen=True)
class AbiMethod:
    name: str
    readonly: bool = False
    action: str = "call"


def abimethod(fn: Optional[Callable] = None, *, readonly: bool = False, action: str = "call"):
    """Mark a method as an application entry point."""
    if action not in ACTIONS:
        raise ValueError(f"unknown action {action!r}")

    def wrap(f: Callable) -> Callable:
        f.__abimethod__ = AbiMethod(name=f.__name__, readonly=readonly, action=action)  # type: ignore[attr-defined]
        return f

    if fn is not None:
        return wrap(fn)
    return wrap


def resolve(instance: Any, method: str) -> Tuple[Callable, AbiMethod]:
    """Return the bound entry point `method` of `instance` with its metadata."""
    if not isinstance(method, str) or method.startswith("_"):
        raise InvalidTransaction(f"unknown method {method!r}")
    fn = getattr(instance, method, None)
    meta = getattr(fn, "__abimethod__", None)
    if fn is None or not isinstance(meta, AbiMethod):
        raise InvalidTransaction(f"unknown method {method!r}", data={"method": method})
    return fn, meta


class Application:
    """
    Base class for ledger applications.

    The ledger instantiates the class for every invocation with an `AppHost`
    bound to the current transaction; all persistent state lives behind the
    host (global state and boxes), never on the instance.
    """

    def __init__(self, host: "AppHost") -> None:
        self.host = host

    @classmethod
    def method_for(cls, action: str) -> str:
        """Name of the unique entry point handling `action`."""
        names = [
            name for name in dir(cls)
            if isinstance(getattr(getattr(cls, name, None), "__abimethod__", None), AbiMethod)
            and getattr(cls, name).__abimethod__.action == action
        ]
        if len(names) != 1:
            raise InvalidTransaction(f"{cls.__name__} must define exactly one {action!r} method")
        return names[0]

    @classmethod
    def abi_methods(cls) -> Tuple[AbiMethod, ...]:
        out = []
        for name in sorted(dir(cls)):
            meta = getattr(getattr(cls, name, None), "__abimethod__", None)
            if isinstance(meta, AbiMethod):
                out.append(meta)
        return tuple(out)


__all__ = ["ACTIONS", "AbiMethod", "Application", "abimethod", "resolve"]
