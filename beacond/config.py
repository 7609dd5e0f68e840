"""
Beacon daemon configuration.

Environment variables:

  - LEDGER_RPC_URL          node JSON-RPC endpoint (default http://127.0.0.1:8545/rpc)
  - POLL_INTERVAL           milliseconds between cycles (required)
  - BEACON_APP_ID           beacon application id (required)
  - MANAGER_ADDRESS         0x-hex operator (manager) address (required)
  - VRF_KEYPAIR_SECRET_KEY  base64 64-byte VRF secret key (required)
  - COMPLETE_FEE_MULTIPLIER fee for complete_request in min fees (default 12)
  - CANCEL_FEE_MULTIPLIER   fee for cancel_request in min fees (default 3)
  - RPC_TIMEOUT_S           HTTP timeout per node call (default 10)
  - LOG_LEVEL               logging level (default INFO)
  - PROMETHEUS_PORT         expose metrics on this port when set
"""

from __future__ import annotations

import binascii
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

from beacon.constants import CANCEL_FEE_MULTIPLIER, COMPLETE_FEE_MULTIPLIER
from beacond.errors import ConfigError
from ledger.accounts import ADDRESS_SIZE
from vrf import SECRET_KEY_SIZE, decode_secret_key

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def must_get_env(name: str, env: Optional[Mapping[str, str]] = None) -> str:
    """Return the value of `name` or raise ConfigError if it is unset or empty."""
    env = os.environ if env is None else env
    val = env.get(name)
    if val is None or val.strip() == "":
        raise ConfigError(name, "is undefined")
    return val.strip()


@dataclass
class DaemonConfig:
    beacon_app_id: int
    manager_address: bytes
    vrf_secret_key: bytes = field(repr=False)
    poll_interval_ms: int = 5000
    rpc_url: str = "http://127.0.0.1:8545/rpc"
    complete_fee_multiplier: int = COMPLETE_FEE_MULTIPLIER
    cancel_fee_multiplier: int = CANCEL_FEE_MULTIPLIER
    rpc_timeout_s: float = 10.0
    log_level: str = "INFO"
    prometheus_port: Optional[int] = None

    @property
    def poll_interval_s(self) -> float:
        return self.poll_interval_ms / 1000.0

    def validate(self) -> None:
        if self.beacon_app_id <= 0:
            raise ConfigError("BEACON_APP_ID", "must be > 0")
        if len(self.manager_address) != ADDRESS_SIZE:
            raise ConfigError("MANAGER_ADDRESS", f"must be {ADDRESS_SIZE} bytes")
        if len(self.vrf_secret_key) != SECRET_KEY_SIZE:
            raise ConfigError("VRF_KEYPAIR_SECRET_KEY", f"must decode to {SECRET_KEY_SIZE} bytes")
        if self.poll_interval_ms <= 0:
            raise ConfigError("POLL_INTERVAL", "must be > 0")
        if urlparse(self.rpc_url).scheme not in {"http", "https"}:
            raise ConfigError("LEDGER_RPC_URL", "must be http(s)")
        if self.complete_fee_multiplier < COMPLETE_FEE_MULTIPLIER:
            raise ConfigError("COMPLETE_FEE_MULTIPLIER", f"must be >= {COMPLETE_FEE_MULTIPLIER}")
        if self.cancel_fee_multiplier < CANCEL_FEE_MULTIPLIER:
            raise ConfigError("CANCEL_FEE_MULTIPLIER", f"must be >= {CANCEL_FEE_MULTIPLIER}")
        if self.rpc_timeout_s <= 0:
            raise ConfigError("RPC_TIMEOUT_S", "must be > 0")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigError("LOG_LEVEL", f"must be one of {sorted(_LOG_LEVELS)}")
        if self.prometheus_port is not None and not 0 < self.prometheus_port < 65536:
            raise ConfigError("PROMETHEUS_PORT", "must be a valid port")

    def redacted(self) -> Dict[str, Any]:
        """Config snapshot safe for logs (secret key masked)."""
        return {
            "rpc_url": self.rpc_url,
            "beacon_app_id": self.beacon_app_id,
            "manager_address": "0x" + self.manager_address.hex(),
            "vrf_secret_key": "***",
            "poll_interval_ms": self.poll_interval_ms,
            "complete_fee_multiplier": self.complete_fee_multiplier,
            "cancel_fee_multiplier": self.cancel_fee_multiplier,
            "rpc_timeout_s": self.rpc_timeout_s,
            "log_level": self.log_level,
            "prometheus_port": self.prometheus_port,
        }

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "DaemonConfig":
        env = os.environ if env is None else env

        def _get(name: str, cast: Any, default: Any) -> Any:
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return cast(raw.strip())
            except (TypeError, ValueError) as e:
                raise ConfigError(name, f"invalid value {raw!r}") from e

        def _required(name: str, cast: Any) -> Any:
            raw = must_get_env(name, env)
            try:
                return cast(raw)
            except (TypeError, ValueError, binascii.Error) as e:
                raise ConfigError(name, "invalid value") from e

        def _hex(s: str) -> bytes:
            return bytes.fromhex(s[2:] if s.lower().startswith("0x") else s)

        cfg = DaemonConfig(
            beacon_app_id=_required("BEACON_APP_ID", int),
            manager_address=_required("MANAGER_ADDRESS", _hex),
            vrf_secret_key=_required("VRF_KEYPAIR_SECRET_KEY", decode_secret_key),
            poll_interval_ms=_required("POLL_INTERVAL", int),
            rpc_url=_get("LEDGER_RPC_URL", str, "http://127.0.0.1:8545/rpc"),
            complete_fee_multiplier=_get("COMPLETE_FEE_MULTIPLIER", int, COMPLETE_FEE_MULTIPLIER),
            cancel_fee_multiplier=_get("CANCEL_FEE_MULTIPLIER", int, CANCEL_FEE_MULTIPLIER),
            rpc_timeout_s=_get("RPC_TIMEOUT_S", float, 10.0),
            log_level=_get("LOG_LEVEL", str, "INFO").upper(),
            prometheus_port=_get("PROMETHEUS_PORT", int, None),
        )
        cfg.validate()
        return cfg


__all__ = ["DaemonConfig", "must_get_env"]
