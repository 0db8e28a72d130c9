"""
Clock sources for the ledger.

The ledger reads "now" as integer seconds from a callable.  Readings must
never decrease; callers cannot adjust them.
"""

from __future__ import annotations

import threading
import time


class MonotonicClock:
    """Integer seconds anchored at wall-clock start, advanced monotonically."""

    def __init__(self) -> None:
        self._base = int(time.time())
        self._start = time.monotonic()
        self._last = self._base
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            now = self._base + int(time.monotonic() - self._start)
            self._last = max(self._last, now)
            return self._last


class ManualClock:
    """Deterministic clock for tests and simulations."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("clock cannot move backward")
        self.now += seconds
        return self.now

    def set(self, timestamp: int) -> int:
        if timestamp < self.now:
            raise ValueError(f"clock cannot move backward ({timestamp} < {self.now})")
        self.now = timestamp
        return self.now
