"""Timestamp sources for `created_at` / `updated_at`."""

from __future__ import annotations

import threading
import time
from typing import Callable, Protocol


class Clock(Protocol):
    """Anything returning the current time in nanoseconds since the epoch."""

    def __call__(self) -> int: ...


class MonotonicClock:
    """
    Wall clock in nanoseconds, clamped so successive readings strictly increase.

    The system clock can step backwards (NTP, manual changes) or return the same
    value twice on coarse platforms. Item timestamps must not, so each reading is
    at least one nanosecond past the previous one handed out by this instance.
    """

    def __init__(self, source: Callable[[], int] = time.time_ns) -> None:
        self._source = source
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            now = self._source()
            if now <= self._last:
                now = self._last + 1
            self._last = now
            return now


__all__ = ["Clock", "MonotonicClock"]
