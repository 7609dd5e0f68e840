"""
beacon.requester — the callback interface requester applications implement,
plus `ExampleCaller`, a minimal requester used by devnets and tests.

A requester application:

1. receives a payment covering `RandomnessBeacon.get_costs()` from its user,
2. forwards it to the beacon as an inner payment together with an inner
   `create_request` call (the beacon only accepts requests from applications),
3. later receives `fulfill_randomness(request_id, requester_address, output)`
   as an inner call from the beacon when the request is completed. Raising
   from the callback aborts the completion and keeps the request pending.
"""

from __future__ import annotations

from typing import Protocol, Tuple, runtime_checkable

from ledger.abi import Application, abimethod
from ledger.accounts import application_address
from ledger.errors import require
from ledger.txns import Payment, PaymentTxn

ERR_ONLY_BEACON = "only the beacon can fulfill randomness"
ERR_PAYMENT_MUST_BE_VALID = "payment must be sent to this application"

KEY_BEACON_APP = "beacon_app"
KEY_TOTAL_FULFILLED = "total_fulfilled"
KEY_OUTPUT = "output"
KEY_REQUEST_ID = "request_id"


@runtime_checkable
class RandomnessRequester(Protocol):
    def fulfill_randomness(self, request_id: int, requester_address: bytes, output: bytes) -> None:
        """Receive the 64-byte VRF output for `request_id`."""


class ExampleCaller(Application):
    """Requests randomness for the next round and records what it receives."""

    @abimethod(action="create")
    def create_application(self, beacon_app_id: int) -> None:
        self.host.put_global(KEY_BEACON_APP, int(beacon_app_id))
        self.host.put_global(KEY_TOTAL_FULFILLED, 0)

    @abimethod
    def request_randomness(self, costs_payment: Payment, rounds_ahead: int = 1) -> Tuple[int, int]:
        """Forward `costs_payment` to the beacon; returns (request_id, target_round)."""
        require(
            isinstance(costs_payment, Payment)
            and costs_payment.receiver == self.host.app_address
            and self.host.claim_payment(costs_payment),
            ERR_PAYMENT_MUST_BE_VALID,
        )
        beacon_app = int(self.host.get_global(KEY_BEACON_APP))  # type: ignore[arg-type]
        target_round = self.host.round + int(rounds_ahead)
        request_id = self.host.call_app(
            beacon_app,
            "create_request",
            self.host.sender,
            target_round,
            PaymentTxn(receiver=application_address(beacon_app), amount=costs_payment.amount),
        )
        self.host.put_global(KEY_REQUEST_ID, request_id)
        return request_id, target_round

    @abimethod
    def fulfill_randomness(self, request_id: int, requester_address: bytes, output: bytes) -> None:
        require(self.host.caller_app_id == self.host.get_global(KEY_BEACON_APP), ERR_ONLY_BEACON)
        self.host.put_global(KEY_OUTPUT, bytes(output))
        self.host.put_global(KEY_REQUEST_ID, int(request_id))
        self.host.put_global(KEY_TOTAL_FULFILLED, int(self.host.get_global(KEY_TOTAL_FULFILLED, 0)) + 1)  # type: ignore[arg-type]


__all__ = ["ExampleCaller", "RandomnessRequester"]
