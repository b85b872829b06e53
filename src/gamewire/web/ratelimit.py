"""Fixed-window request limiter for the pipeline trigger endpoints."""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Allow at most ``max_requests`` per key in each ``window_seconds`` window.

    State lives on the instance; the app creates one at startup and the
    scheduler calls ``sweep`` periodically to drop expired windows.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (window start, request count)
        self._windows: dict[str, tuple[float, int]] = {}

    def check(self, key: str) -> tuple[bool, int]:
        """Count a request. Returns (allowed, seconds until the window resets)."""
        now = self._clock()
        with self._lock:
            start, count = self._windows.get(key, (now, 0))
            if now - start >= self._window:
                start, count = now, 0
            if count >= self._max_requests:
                retry_after = max(1, math.ceil(self._window - (now - start)))
                return False, retry_after
            self._windows[key] = (start, count + 1)
        return True, 0

    def sweep(self) -> int:
        """Drop expired windows. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (start, _) in self._windows.items() if now - start >= self._window]
            for key in expired:
                del self._windows[key]
        if expired:
            logger.debug("Rate limiter swept %d expired window(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)
