"""
ledger.ticker — background thread that commits a new round at a fixed cadence.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from ledger.chain import Ledger

log = logging.getLogger(__name__)


class RoundTicker:
    def __init__(self, ledger: Ledger, interval_s: float = 1.0) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.ledger = ledger
        self.interval_s = interval_s
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="round-ticker", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        log.info("round ticker started (every %.3fs)", self.interval_s)
        while not self._stop.wait(self.interval_s):
            rnd = self.ledger.advance()
            log.debug("round %d", rnd)
        log.info("round ticker stopped")

    def __enter__(self) -> "RoundTicker":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()


__all__ = ["RoundTicker"]
