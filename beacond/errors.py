"""
Beacon daemon errors.

Callers can catch the base `DaemonError` to handle every daemon-local failure,
or the concrete subclasses for more granular control:

- ConfigError   : missing or invalid configuration (fatal at startup)
- ClientError   : node unreachable or a submitted call was rejected (per request, retried next cycle)
- ProofError    : the VRF prover returned a non-zero status
- NotReadyError : the beacon application is not initialized (fatal at startup)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class DaemonError(Exception):
    """Base class for all beacon daemon errors."""
    pass


@dataclass
class ConfigError(DaemonError):
    """
    Attributes:
        key:    Environment variable / config field at fault.
        reason: Human-readable explanation.
    """
    key: str
    reason: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"ConfigError: {self.key}: {self.reason}"


@dataclass
class ClientError(DaemonError):
    """
    Attributes:
        method:  Node method that failed (e.g. 'app.call').
        code:    Remote error code ('REVERT', 'SEED_UNAVAILABLE', …) or 'NETWORK' / 'HTTP'.
        message: Remote or transport message.
        data:    Optional structured details from the node.
    """
    method: str
    code: str
    message: str
    data: Optional[Dict[str, Any]] = field(default=None)

    @property
    def reason(self) -> Optional[str]:
        return (self.data or {}).get("reason")

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"ClientError: {self.method} failed: {self.code}: {self.message}"


@dataclass
class ProofError(DaemonError):
    round: Optional[int]
    status: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"ProofError: vrf prove failed for round={self.round} status={self.status}"


@dataclass
class NotReadyError(DaemonError):
    reason: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"NotReadyError: {self.reason}"


__all__ = ["ClientError", "ConfigError", "DaemonError", "NotReadyError", "ProofError"]
