"""
In-Memory Rate Limiter
======================

Fixed-window call counter shared by all requests of a process.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ticketdesk.classification.application import IRateLimiter
from ticketdesk.classification.domain import RateLimitStatus


@dataclass
class _Window:
    started_at: float
    calls: int = 0


class InMemoryRateLimiter(IRateLimiter):
    """
    Thread-safe fixed-window rate limiter.

    A window starts at the first call under a key and lasts
    `window_seconds`; once it elapses the count starts again from zero.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def _active_window(self, key: str, window_seconds: int, now: float) -> Optional[_Window]:
        window = self._windows.get(key)
        if window is not None and now - window.started_at >= window_seconds:
            del self._windows[key]
            return None
        return window

    def allow(self, key: str, max_calls: int, window_seconds: int) -> bool:
        with self._lock:
            now = self._clock()
            window = self._active_window(key, window_seconds, now)
            if window is None:
                window = _Window(started_at=now)
                self._windows[key] = window

            if window.calls >= max_calls:
                return False

            window.calls += 1
            return True

    def status(self, key: str, max_calls: int, window_seconds: int) -> RateLimitStatus:
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)
            if window is None or now - window.started_at >= window_seconds:
                calls, available_in = 0, 0
            else:
                calls = window.calls
                available_in = math.ceil(window.started_at + window_seconds - now)

        return RateLimitStatus(
            calls_made=calls,
            max_calls=max_calls,
            remaining_calls=max(max_calls - calls, 0),
            window_seconds=window_seconds,
            available_in_seconds=available_in
        )

    def clear(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)
