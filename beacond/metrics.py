"""
Prometheus metrics for the beacon daemon.

Instruments:
  • actions_total        — request actions taken per cycle, labeled by action and outcome
  • cycles_total         — poll cycles, labeled by outcome
  • cycle_seconds        — wall time of one poll cycle
  • pending_requests     — total_pending_requests as last read from the beacon

Label vocabularies are small and fixed; request ids and rounds are never used
as labels.

Usage
-----
    from beacond.metrics import METRICS

    with METRICS.cycle_timer():
        report = daemon.run_once()
    METRICS.record_action("complete", "ok")

Tests construct their own `Metrics(registry=CollectorRegistry())`.
"""

from __future__ import annotations

from contextlib import contextmanager
from time import perf_counter
from typing import Iterable

from prometheus_client import Counter, Gauge, Histogram, REGISTRY


_ACTIONS = (
    "wait",       # target round not reached yet
    "complete",   # proof submitted
    "cancel",     # stale request cancelled
)

_ACTION_OUTCOMES = (
    "ok",
    "error",
)

_CYCLE_OUTCOMES = (
    "idle",       # no pending requests
    "processed",  # at least one request inspected
    "error",      # cycle aborted before inspecting requests
)

_CYCLE_BUCKETS = (
    0.005, 0.01, 0.025, 0.05,
    0.1, 0.25, 0.5,
    1.0, 2.5, 5.0, 10.0, 30.0,
)


class Metrics:
    """
    Container for all daemon Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "beacon",
        subsystem: str = "daemon",
        registry = REGISTRY,
        cycle_buckets: Iterable[float] = _CYCLE_BUCKETS,
    ) -> None:
        self.actions_total = Counter(
            "actions_total",
            "Request actions taken by the daemon, labeled by action and outcome.",
            labelnames=("action", "outcome"),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.cycles_total = Counter(
            "cycles_total",
            "Poll cycles run by the daemon, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.cycle_seconds = Histogram(
            "cycle_seconds",
            "Wall time of one poll cycle (seconds).",
            buckets=tuple(cycle_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.pending_requests = Gauge(
            "pending_requests",
            "Pending requests reported by the beacon application.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    def record_action(self, action: str, outcome: str) -> None:
        if action not in _ACTIONS or outcome not in _ACTION_OUTCOMES:
            raise ValueError(f"unknown action/outcome: {action}/{outcome}")
        self.actions_total.labels(action=action, outcome=outcome).inc()

    def record_cycle(self, outcome: str) -> None:
        if outcome not in _CYCLE_OUTCOMES:
            outcome = "error"
        self.cycles_total.labels(outcome=outcome).inc()

    def set_pending(self, n: int) -> None:
        self.pending_requests.set(int(n))

    @contextmanager
    def cycle_timer(self):
        start = perf_counter()
        try:
            yield
        finally:
            self.cycle_seconds.observe(perf_counter() - start)


# Singleton used by the CLI
METRICS = Metrics()

__all__ = ["METRICS", "Metrics"]
