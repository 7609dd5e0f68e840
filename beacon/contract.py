"""
beacon.contract — the randomness beacon application.

Request lifecycle (per request id):

    ∅ --create_request--> Pending --complete_request--> ∅   (valid proof, callback ok)
                                  --cancel_request----> ∅   (stale only)

Presence of the request box *is* the pending state. `total_pending_requests`
moves by exactly one on each creation and deletion; `next_request_id` only
ever increases.

Economics
---------
- `get_costs()` quotes `fees = 12 * min_txn_fee` (8 op-ups for vrf_verify,
  2 payouts, the outer call and the callback call) and `box_mbr` from the
  host storage-cost model for one request box.
- `create_request` records `payment.amount - box_mbr` as `costs.fees`, so any
  overpayment travels with the request: paid to the completer on completion,
  or refunded to the requester (minus the cancellation incentive) on cancel.
- `cancel_request` by anyone other than the requester pays that caller
  `3 * min_txn_fee` out of the refund pool.
- A refund that would leave `requester_address` below its minimum balance is
  kept by the beacon instead: it is added to `unclaimed_refunds` and a
  `RefundRetained` event is emitted, so completion and cancellation never
  depend on the requester's account.

Roles are composed, not inherited: `Managable` (manager) and `Pausable`
(pauser / paused flag) each own their state; entry points call the guards
they need explicitly.
"""

from __future__ import annotations

from typing import Any

from beacon.access import Managable
from beacon.constants import (
    CANCEL_FEE_MULTIPLIER,
    COMPLETE_FEE_MULTIPLIER,
    KEY_MAX_FUTURE_ROUNDS,
    KEY_MAX_PENDING_REQUESTS,
    KEY_NEXT_REQUEST_ID,
    KEY_PUBLIC_KEY,
    KEY_STALE_REQUEST_TIMEOUT,
    KEY_TOTAL_PENDING_REQUESTS,
    KEY_UNCLAIMED_REFUNDS,
    NOTE_BOX_MBR_REFUND,
    NOTE_CANCEL_PAYMENT,
    NOTE_CLOSE_OUT_REMAINDER,
    NOTE_FEES_PAYMENT,
    REQUEST_BOX_KEY_SIZE,
    VRF_PROOF_SIZE,
    VRF_PUBLIC_KEY_SIZE,
    VRF_VERIFY_OPCODE_COST,
)
from beacon.control import Pausable
from beacon import errors
from beacon.types import (
    RandomnessRequest,
    RandomnessRequestCosts,
    RefundRetained,
    RequestCancelled,
    RequestCreated,
    RequestFulfilled,
    request_box_key,
)
from ledger.abi import Application, abimethod
from ledger.accounts import ensure_address
from ledger.errors import InvalidTransaction, require
from ledger.host import AppHost
from ledger.txns import Payment


def _uint64(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 2**64:
        raise InvalidTransaction(f"{name} must be uint64", data={"arg": name})
    return value


def _bytes(name: str, value: Any) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise InvalidTransaction(f"{name} must be bytes", data={"arg": name})
    return bytes(value)


class RandomnessBeacon(Application):
    def __init__(self, host: AppHost) -> None:
        super().__init__(host)
        self.access = Managable(host)
        self.control = Pausable(host)

    # ------------------------------------------------------------------ state

    def _int(self, key: str) -> int:
        return int(self.host.get_global(key, 0))  # type: ignore[arg-type]

    def _load_request(self, request_id: int) -> RandomnessRequest:
        raw = self.host.box_get(request_box_key(request_id))
        require(raw is not None, errors.ERR_REQUEST_NOT_FOUND)
        return RandomnessRequest.decode(raw)  # type: ignore[arg-type]

    def _create_request(self, request: RandomnessRequest) -> int:
        request_id = self._int(KEY_NEXT_REQUEST_ID)
        self.host.put_global(KEY_NEXT_REQUEST_ID, request_id + 1)
        self.host.box_put(request_box_key(request_id), request.encode())
        self.host.put_global(KEY_TOTAL_PENDING_REQUESTS, self._int(KEY_TOTAL_PENDING_REQUESTS) + 1)
        return request_id

    def _delete_request(self, request_id: int) -> None:
        self.host.put_global(KEY_TOTAL_PENDING_REQUESTS, self._int(KEY_TOTAL_PENDING_REQUESTS) - 1)
        self.host.box_delete(request_box_key(request_id))

    def _costs(self) -> RandomnessRequestCosts:
        return RandomnessRequestCosts(
            fees=self.host.min_txn_fee * COMPLETE_FEE_MULTIPLIER,
            box_mbr=self.host.box_cost(REQUEST_BOX_KEY_SIZE, RandomnessRequest.SIZE),
        )

    def _refund(self, request_id: int, request: RandomnessRequest, amount: int) -> None:
        # amounts the receiver could not hold stay with the beacon
        if self.host.can_receive(request.requester_address, amount):
            self.host.pay(request.requester_address, amount, note=NOTE_BOX_MBR_REFUND)
            return
        self.host.put_global(KEY_UNCLAIMED_REFUNDS, self._int(KEY_UNCLAIMED_REFUNDS) + amount)
        self.host.emit(RefundRetained(
            request_id=request_id, requester_address=request.requester_address, amount=amount,
        ))

    # -------------------------------------------------------------- lifecycle

    @abimethod(action="create")
    def create_application(
        self,
        public_key: bytes,
        max_pending_requests: int,
        max_future_rounds: int,
        stale_request_timeout: int,
    ) -> None:
        public_key = _bytes("public_key", public_key)
        require(_uint64("max_pending_requests", max_pending_requests) > 0,
                errors.ERR_MAX_PENDING_REQUESTS_CANNOT_BE_ZERO)
        require(_uint64("max_future_rounds", max_future_rounds) > 0, errors.ERR_MAX_FUTURE_ROUNDS_CANNOT_BE_ZERO)
        require(_uint64("stale_request_timeout", stale_request_timeout) > 0, errors.ERR_TIMEOUT_CANNOT_BE_ZERO)
        require(len(public_key) == VRF_PUBLIC_KEY_SIZE, errors.ERR_INVALID_PUBLIC_KEY)
        # a request must become cancellable no later than its seed stops being queryable
        require(stale_request_timeout <= self.host.seed_lookback, errors.ERR_TIMEOUT_EXCEEDS_SEED_LOOKBACK)

        self.host.put_global(KEY_PUBLIC_KEY, public_key)
        self.host.put_global(KEY_MAX_PENDING_REQUESTS, max_pending_requests)
        self.host.put_global(KEY_MAX_FUTURE_ROUNDS, max_future_rounds)
        self.host.put_global(KEY_STALE_REQUEST_TIMEOUT, stale_request_timeout)
        self.host.put_global(KEY_NEXT_REQUEST_ID, 1)
        self.host.put_global(KEY_TOTAL_PENDING_REQUESTS, 0)
        self.host.put_global(KEY_UNCLAIMED_REFUNDS, 0)
        self.access.init()
        self.control.init()

    @abimethod(action="update")
    def update_application(self) -> None:
        self.access.require_manager()

    @abimethod(action="delete")
    def delete_application(self) -> None:
        self.access.require_manager()
        require(self._int(KEY_TOTAL_PENDING_REQUESTS) == 0, errors.ERR_NO_PENDING_REQUESTS)
        if self.host.balance() > 0:
            self.host.close_out(self.access.manager(), note=NOTE_CLOSE_OUT_REMAINDER)

    # ---------------------------------------------------------------- requests

    @abimethod
    def create_request(self, requester_address: bytes, round: int, costs_payment: Payment) -> int:
        """
        Register a randomness request for `round` on behalf of `requester_address`.

        Must be called by an application, together with a payment to this
        application's address covering `get_costs()`.
        """
        requester_address = ensure_address(_bytes("requester_address", requester_address))
        round = _uint64("round", round)
        current = self.host.round

        self.control.require_not_paused()
        require(self._int(KEY_TOTAL_PENDING_REQUESTS) < self._int(KEY_MAX_PENDING_REQUESTS),
                errors.ERR_MAX_PENDING_REQUESTS)
        require(round > current, errors.ERR_MUST_BE_FUTURE_ROUND)
        require(round <= current + self._int(KEY_MAX_FUTURE_ROUNDS), errors.ERR_ROUND_EXCEEDS_MAX_FUTURE_ROUND)
        require(self.host.caller_app_id != 0, errors.ERR_MUST_BE_CALLED_FROM_APP)

        costs = self._costs()
        require(
            isinstance(costs_payment, Payment)
            and costs_payment.receiver == self.host.app_address
            and costs_payment.amount >= costs.total
            and self.host.claim_payment(costs_payment),
            errors.ERR_COSTS_PAYMENT_MUST_BE_VALID,
        )

        request = RandomnessRequest(
            created_at=current,
            requester_app_id=self.host.caller_app_id,
            requester_address=requester_address,
            round=round,
            costs=RandomnessRequestCosts(fees=costs_payment.amount - costs.box_mbr, box_mbr=costs.box_mbr),
        )
        request_id = self._create_request(request)
        self.host.emit(RequestCreated(
            request_id=request_id,
            requester_app_id=request.requester_app_id,
            requester_address=request.requester_address,
            round=request.round,
        ))
        return request_id

    @abimethod
    def complete_request(self, request_id: int, proof: bytes) -> None:
        """
        Fulfil a pending request with a VRF proof over the target round's seed.

        Verification, the requester callback and both payouts happen in one
        transaction; any failure leaves the request pending.
        """
        self.access.require_manager()
        request_id = _uint64("request_id", request_id)
        proof = _bytes("proof", proof)
        request = self._load_request(request_id)
        require(len(proof) == VRF_PROOF_SIZE, errors.ERR_INVALID_PROOF_LENGTH)

        seed = self.host.block_seed(request.round)
        self.host.ensure_budget(VRF_VERIFY_OPCODE_COST)
        output, verified = self.host.vrf_verify(self.host.get_global(KEY_PUBLIC_KEY), proof, seed)  # type: ignore[arg-type]
        require(verified, errors.ERR_PROOF_MUST_BE_VALID)

        self.host.call_app(
            request.requester_app_id, "fulfill_randomness", request_id, request.requester_address, output,
        )
        self.host.pay(self.host.sender, request.costs.fees, note=NOTE_FEES_PAYMENT)
        self._refund(request_id, request, request.costs.box_mbr)

        self.host.emit(RequestFulfilled(
            request_id=request_id,
            requester_app_id=request.requester_app_id,
            requester_address=request.requester_address,
            vrf_output=output,
        ))
        self._delete_request(request_id)

    @abimethod
    def cancel_request(self, request_id: int) -> None:
        """Unwind a stale request, refunding the requester (minus the caller incentive)."""
        request_id = _uint64("request_id", request_id)
        request = self._load_request(request_id)
        require(self.host.round >= request.round + self._int(KEY_STALE_REQUEST_TIMEOUT),
                errors.ERR_REQUEST_MUST_BE_STALE)

        refund = request.costs.box_mbr + request.costs.fees
        if self.host.sender != request.requester_address:
            incentive = self.host.min_txn_fee * CANCEL_FEE_MULTIPLIER
            refund -= incentive
            self.host.pay(self.host.sender, incentive, note=NOTE_CANCEL_PAYMENT)
        self._refund(request_id, request, refund)

        self.host.emit(RequestCancelled(
            request_id=request_id,
            requester_app_id=request.requester_app_id,
            requester_address=request.requester_address,
        ))
        self._delete_request(request_id)

    # ------------------------------------------------------------------ reads

    @abimethod(readonly=True)
    def get_costs(self) -> RandomnessRequestCosts:
        return self._costs()

    @abimethod(readonly=True)
    def get_request(self, request_id: int) -> RandomnessRequest:
        return self._load_request(_uint64("request_id", request_id))

    # ------------------------------------------------------------------ admin

    @abimethod(readonly=True)
    def manager(self) -> bytes:
        return self.access.manager()

    @abimethod
    def update_manager(self, new_manager: bytes) -> None:
        self.access.update_manager(_bytes("new_manager", new_manager))

    @abimethod
    def delete_manager(self) -> None:
        self.access.delete_manager()

    @abimethod(readonly=True)
    def pauser(self) -> bytes:
        return self.control.pauser()

    @abimethod(readonly=True)
    def paused(self) -> bool:
        return self.control.is_paused()

    @abimethod
    def pause(self) -> None:
        self.control.pause()

    @abimethod
    def unpause(self) -> None:
        self.control.unpause()

    @abimethod
    def update_pauser(self, new_pauser: bytes) -> None:
        self.control.update_pauser(_bytes("new_pauser", new_pauser))


__all__ = ["RandomnessBeacon"]
