"""
beacond.client — the daemon's view of a node.

Two implementations of the same `BeaconClient` protocol:

- LocalBeaconClient : drives an in-process `ledger.chain.Ledger` (devnets, tests)
- RpcBeaconClient   : talks JSON-RPC 2.0 to a node (`ledger.rpc`) over `requests`

Both submit `complete_request` / `cancel_request` as the configured manager
account and pay `multiplier * min_txn_fee` so the outer call covers the inner
transactions it issues. Every failure surfaces as `ClientError`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import requests

from beacon.constants import (
    CANCEL_FEE_MULTIPLIER,
    COMPLETE_FEE_MULTIPLIER,
    REQUESTS_BOX_PREFIX,
)
from beacon.types import RandomnessRequest, request_id_from_box_key
from beacond.errors import ClientError
from ledger.chain import Ledger
from ledger.codec import bytes_to_hex, from_json, hex_to_bytes
from ledger.errors import LedgerError

log = logging.getLogger(__name__)

PendingRequests = Dict[int, RandomnessRequest]


class BeaconClient(Protocol):
    def last_round(self) -> int: ...

    def min_txn_fee(self) -> int: ...

    def block_seed(self, round: int) -> bytes: ...

    def global_state(self) -> Dict[str, Any]: ...

    def pending_requests(self) -> PendingRequests: ...

    def complete_request(self, request_id: int, proof: bytes) -> None: ...

    def cancel_request(self, request_id: int) -> None: ...


def _decode_boxes(boxes: Dict[bytes, bytes]) -> PendingRequests:
    return {request_id_from_box_key(k): RandomnessRequest.decode(v) for k, v in boxes.items()}


class LocalBeaconClient:
    def __init__(
        self,
        ledger: Ledger,
        app_id: int,
        sender: bytes,
        *,
        complete_fee_multiplier: int = COMPLETE_FEE_MULTIPLIER,
        cancel_fee_multiplier: int = CANCEL_FEE_MULTIPLIER,
    ) -> None:
        self.ledger = ledger
        self.app_id = int(app_id)
        self.sender = bytes(sender)
        self.complete_fee_multiplier = complete_fee_multiplier
        self.cancel_fee_multiplier = cancel_fee_multiplier

    def _wrap(self, method: str, e: LedgerError) -> ClientError:
        return ClientError(method, e.code, e.message, e.data)

    def last_round(self) -> int:
        return self.ledger.round

    def min_txn_fee(self) -> int:
        return self.ledger.params.min_txn_fee

    def block_seed(self, round: int) -> bytes:
        try:
            return self.ledger.block_seed(round)
        except LedgerError as e:
            raise self._wrap("ledger.getBlock", e) from e

    def global_state(self) -> Dict[str, Any]:
        try:
            return self.ledger.global_state(self.app_id)
        except LedgerError as e:
            raise self._wrap("app.getGlobalState", e) from e

    def pending_requests(self) -> PendingRequests:
        try:
            return _decode_boxes(self.ledger.boxes(self.app_id, REQUESTS_BOX_PREFIX))
        except LedgerError as e:
            raise self._wrap("app.getBoxes", e) from e

    def complete_request(self, request_id: int, proof: bytes) -> None:
        fee = self.complete_fee_multiplier * self.min_txn_fee()
        try:
            self.ledger.call(self.sender, self.app_id, "complete_request", request_id, proof, fee=fee)
        except LedgerError as e:
            raise self._wrap("app.call", e) from e

    def cancel_request(self, request_id: int) -> None:
        fee = self.cancel_fee_multiplier * self.min_txn_fee()
        try:
            self.ledger.call(self.sender, self.app_id, "cancel_request", request_id, fee=fee)
        except LedgerError as e:
            raise self._wrap("app.call", e) from e


class RpcBeaconClient:
    """
    JSON-RPC client for a node serving `ledger.rpc`.

    `session` only needs a `post(url, json=..., timeout=...)` method returning
    an object with `status_code`, `text` and `json()`; a `requests.Session` is
    created when omitted.
    """

    def __init__(
        self,
        url: str,
        app_id: int,
        sender: bytes,
        *,
        session: Any = None,
        timeout: float = 10.0,
        complete_fee_multiplier: int = COMPLETE_FEE_MULTIPLIER,
        cancel_fee_multiplier: int = CANCEL_FEE_MULTIPLIER,
    ) -> None:
        self.url = url
        self.app_id = int(app_id)
        self.sender = bytes(sender)
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.complete_fee_multiplier = complete_fee_multiplier
        self.cancel_fee_multiplier = cancel_fee_multiplier
        self._min_fee: Optional[int] = None
        self._next_id = 0

    def _call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self._next_id += 1
        body = {"jsonrpc": "2.0", "id": self._next_id, "method": method, "params": params or {}}
        try:
            r = self.session.post(self.url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise ClientError(method, "NETWORK", str(e)) from e
        if r.status_code != 200:
            raise ClientError(method, "HTTP", f"HTTP {r.status_code}: {r.text[:200]}")
        try:
            data = r.json()
        except ValueError as e:
            raise ClientError(method, "HTTP", "response is not JSON") from e
        err = data.get("error")
        if err:
            remote = err.get("data") if isinstance(err.get("data"), dict) else {}
            code = remote.get("code") or str(err.get("code"))
            raise ClientError(method, code, remote.get("message") or err.get("message", ""), remote.get("data"))
        return data.get("result")

    def _status(self) -> Dict[str, Any]:
        status = self._call("ledger.getStatus")
        self._min_fee = int(status["min_txn_fee"])
        return status

    def last_round(self) -> int:
        return int(self._status()["last_round"])

    def min_txn_fee(self) -> int:
        if self._min_fee is None:
            self._status()
        return self._min_fee  # type: ignore[return-value]

    def block_seed(self, round: int) -> bytes:
        return hex_to_bytes(self._call("ledger.getBlock", {"round": int(round)})["seed"])

    def global_state(self) -> Dict[str, Any]:
        state = self._call("app.getGlobalState", {"app_id": self.app_id})
        return {k: from_json(v) for k, v in state.items()}

    def pending_requests(self) -> PendingRequests:
        boxes = self._call("app.getBoxes", {"app_id": self.app_id, "prefix": bytes_to_hex(REQUESTS_BOX_PREFIX)})
        return _decode_boxes({hex_to_bytes(b["key"]): hex_to_bytes(b["value"]) for b in boxes})

    def _app_call(self, method: str, args: list, fee: int) -> Any:
        res = self._call("app.call", {
            "sender": bytes_to_hex(self.sender),
            "app_id": self.app_id,
            "method": method,
            "args": args,
            "fee": fee,
        })
        log.debug("%s accepted at round %s", method, res.get("round"))
        return res.get("result")

    def complete_request(self, request_id: int, proof: bytes) -> None:
        fee = self.complete_fee_multiplier * self.min_txn_fee()
        self._app_call("complete_request", [int(request_id), bytes_to_hex(proof)], fee)

    def cancel_request(self, request_id: int) -> None:
        fee = self.cancel_fee_multiplier * self.min_txn_fee()
        self._app_call("cancel_request", [int(request_id)], fee)


__all__ = ["BeaconClient", "LocalBeaconClient", "PendingRequests", "RpcBeaconClient"]
