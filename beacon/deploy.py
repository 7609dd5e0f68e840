"""
beacon.deploy — helpers that stand up a beacon (and an example requester) on a ledger.

Defaults: max_pending_requests=5, max_future_rounds=100,
stale_request_timeout=1000; the beacon account is funded with 1_000_000 so it
can hold request boxes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from beacon.constants import (
    DEFAULT_APP_FUNDING,
    DEFAULT_MAX_FUTURE_ROUNDS,
    DEFAULT_MAX_PENDING_REQUESTS,
    DEFAULT_STALE_REQUEST_TIMEOUT,
)
from beacon.contract import RandomnessBeacon
from beacon.requester import ExampleCaller
from ledger.chain import Ledger

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeaconDeployConfig:
    max_pending_requests: int = DEFAULT_MAX_PENDING_REQUESTS
    max_future_rounds: int = DEFAULT_MAX_FUTURE_ROUNDS
    stale_request_timeout: int = DEFAULT_STALE_REQUEST_TIMEOUT
    fund: int = DEFAULT_APP_FUNDING

    def validate(self) -> None:
        for name in ("max_pending_requests", "max_future_rounds", "stale_request_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.fund < 0:
            raise ValueError("fund must be >= 0")


def deploy_beacon(ledger: Ledger, deployer: bytes, public_key: bytes,
                  config: BeaconDeployConfig = BeaconDeployConfig()) -> int:
    """Create the beacon app (deployer becomes manager and pauser) and fund its account."""
    config.validate()
    app_id = ledger.deploy(
        RandomnessBeacon,
        deployer,
        public_key,
        config.max_pending_requests,
        config.max_future_rounds,
        config.stale_request_timeout,
    )
    if config.fund:
        ledger.payment(deployer, ledger.app_address(app_id), config.fund)
    log.info("beacon app %d deployed (manager=%s)", app_id, deployer.hex())
    return app_id


def deploy_example_caller(ledger: Ledger, deployer: bytes, beacon_app_id: int,
                          fund: int = DEFAULT_APP_FUNDING) -> int:
    app_id = ledger.deploy(ExampleCaller, deployer, beacon_app_id)
    if fund:
        ledger.payment(deployer, ledger.app_address(app_id), fund)
    log.info("example caller app %d deployed for beacon %d", app_id, beacon_app_id)
    return app_id


__all__ = ["BeaconDeployConfig", "deploy_beacon", "deploy_example_caller"]
