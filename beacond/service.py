"""
beacond.service — the operator's poll loop.

Each cycle:

1. read `total_pending_requests` from the beacon's global state; stop if zero
   (request boxes are not read at all);
2. snapshot the pending request boxes, then read the last round once;
3. classify every request against that round:

   - WAIT     : target round not reached yet
   - CANCEL   : `last_round - round >= stale_request_timeout`
   - COMPLETE : otherwise; fetch the round's seed, prove it, submit the proof

A failure on one request (rejected call, network error, prover error) is
logged with the request id, its round and lateness, counted, and the cycle
moves on to the next request. The request is retried on the next cycle.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from beacon.constants import (
    KEY_PUBLIC_KEY,
    KEY_STALE_REQUEST_TIMEOUT,
    KEY_TOTAL_PENDING_REQUESTS,
)
from beacon.types import RandomnessRequest
from beacond.client import BeaconClient
from beacond.errors import NotReadyError
from beacond.metrics import METRICS, Metrics
from beacond.prover import Prover

log = logging.getLogger(__name__)


class RequestAction(str, Enum):
    WAIT = "wait"
    COMPLETE = "complete"
    CANCEL = "cancel"


def classify(request: RandomnessRequest, last_round: int, stale_timeout: int) -> RequestAction:
    if request.round > last_round:
        return RequestAction.WAIT
    if last_round - request.round >= stale_timeout:
        return RequestAction.CANCEL
    return RequestAction.COMPLETE


@dataclass
class CycleReport:
    last_round: Optional[int] = None
    pending: int = 0
    completed: List[int] = field(default_factory=list)
    cancelled: List[int] = field(default_factory=list)
    waiting: List[int] = field(default_factory=list)
    failed: Dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "last_round": self.last_round,
            "pending": self.pending,
            "completed": list(self.completed),
            "cancelled": list(self.cancelled),
            "waiting": list(self.waiting),
            "failed": {str(k): v for k, v in self.failed.items()},
        }


class BeaconDaemon:
    def __init__(
        self,
        client: BeaconClient,
        prover: Prover,
        *,
        poll_interval_s: float = 5.0,
        metrics: Optional[Metrics] = None,
    ) -> None:
        if poll_interval_s <= 0:
            raise ValueError("poll_interval_s must be > 0")
        self.client = client
        self.prover = prover
        self.poll_interval_s = poll_interval_s
        self.metrics = metrics if metrics is not None else METRICS

    def check_ready(self) -> None:
        """Fail unless the beacon exists, is initialized and uses our public key."""
        state = self.client.global_state()
        for key in (KEY_TOTAL_PENDING_REQUESTS, KEY_STALE_REQUEST_TIMEOUT, KEY_PUBLIC_KEY):
            if key not in state:
                raise NotReadyError(f"beacon global state has no {key!r}")
        if bytes(state[KEY_PUBLIC_KEY]) != self.prover.public_key:
            raise NotReadyError("beacon public key does not match the configured VRF key")
        log.info("beacon ready (pending=%s, stale_timeout=%s)",
                 state[KEY_TOTAL_PENDING_REQUESTS], state[KEY_STALE_REQUEST_TIMEOUT])

    def run_once(self, stop_event: Optional[threading.Event] = None) -> CycleReport:
        report = CycleReport()
        with self.metrics.cycle_timer():
            state = self.client.global_state()
            report.pending = int(state.get(KEY_TOTAL_PENDING_REQUESTS, 0))
            self.metrics.set_pending(report.pending)
            if report.pending == 0:
                log.debug("no pending requests")
                self.metrics.record_cycle("idle")
                return report

            pending = self.client.pending_requests()
            report.last_round = last_round = self.client.last_round()
            stale_timeout = int(state[KEY_STALE_REQUEST_TIMEOUT])
            log.info("%d pending request(s) at round %d", len(pending), last_round)

            for request_id in sorted(pending):
                if stop_event is not None and stop_event.is_set():
                    break
                self._handle(report, request_id, pending[request_id], last_round, stale_timeout)
            self.metrics.record_cycle("processed")
        return report

    def _handle(self, report: CycleReport, request_id: int, request: RandomnessRequest,
                last_round: int, stale_timeout: int) -> None:
        action = classify(request, last_round, stale_timeout)
        lateness = last_round - request.round
        try:
            if action is RequestAction.WAIT:
                log.debug("request %d waits for round %d (%d to go)", request_id, request.round, -lateness)
                report.waiting.append(request_id)
            elif action is RequestAction.CANCEL:
                self.client.cancel_request(request_id)
                log.info("request %d cancelled (round=%d lateness=%d)", request_id, request.round, lateness)
                report.cancelled.append(request_id)
            else:
                seed = self.client.block_seed(request.round)
                proof = self.prover.prove(seed, round=request.round)
                self.client.complete_request(request_id, proof)
                log.info("request %d completed (round=%d lateness=%d)", request_id, request.round, lateness)
                report.completed.append(request_id)
        except Exception as e:
            log.error("request %d: %s failed (round=%d lateness=%d): %s",
                      request_id, action.value, request.round, lateness, e)
            report.failed[request_id] = str(e)
            self.metrics.record_action(action.value, "error")
            return
        self.metrics.record_action(action.value, "ok")

    def run(self, stop_event: threading.Event) -> None:
        """Poll until `stop_event` is set; the sleep between cycles is interruptible."""
        log.info("daemon loop started (interval=%.3fs)", self.poll_interval_s)
        while not stop_event.is_set():
            try:
                self.run_once(stop_event)
            except Exception:
                log.exception("poll cycle failed")
                self.metrics.record_cycle("error")
            if stop_event.wait(self.poll_interval_s):
                break
        log.info("daemon loop stopped")


__all__ = ["BeaconDaemon", "CycleReport", "RequestAction", "classify"]
