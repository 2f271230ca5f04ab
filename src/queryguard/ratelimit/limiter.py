"""Sliding-window rate limiter for tool invocations.

The window is the half-open interval ``(now - window_ms, now]``: a timestamp
exactly ``window_ms`` old no longer counts. Unlike a fixed bucket, a slot
frees up as soon as its own timestamp ages out.
"""

import threading
import time
from collections import deque
from typing import Callable, Deque, Optional

from queryguard.common.exceptions import RateLimited, validation_error
from queryguard.constants.query import DEFAULT_RATE_LIMIT_MAX_CALLS, DEFAULT_RATE_LIMIT_WINDOW_MS
from queryguard.logging import get_logger

logger = get_logger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class SlidingWindowRateLimiter:
    """Bounds the number of acquisitions within a sliding time window.

    Args:
        max_calls: Maximum acquisitions allowed within the window
        window_ms: Window length in milliseconds
        clock: Callable returning the current time in milliseconds;
            defaults to a monotonic clock

    Example:
        >>> limiter = SlidingWindowRateLimiter(max_calls=2, window_ms=10_000)
        >>> limiter.try_acquire(), limiter.try_acquire(), limiter.try_acquire()
        (True, True, False)
    """

    def __init__(
        self,
        max_calls: int = DEFAULT_RATE_LIMIT_MAX_CALLS,
        window_ms: int = DEFAULT_RATE_LIMIT_WINDOW_MS,
        clock: Optional[Callable[[], float]] = None,
    ):
        if max_calls < 1:
            raise validation_error("max_calls must be at least 1", field="max_calls", value=max_calls)
        if window_ms <= 0:
            raise validation_error("window_ms must be positive", field="window_ms", value=window_ms)

        self.max_calls = max_calls
        self.window_ms = window_ms
        self._clock = clock or _monotonic_ms
        self._timestamps: Deque[float] = deque()
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        """Record a call if a slot is free.

        Returns:
            True if the call is allowed, False if rate limited
        """
        with self._lock:
            now = self._clock()
            window_start = now - self.window_ms

            # Timestamps are appended in order, so expired ones sit at the left
            while self._timestamps and self._timestamps[0] <= window_start:
                self._timestamps.popleft()

            if len(self._timestamps) >= self.max_calls:
                logger.debug(
                    "Rate limit reached",
                    extra={"max_calls": self.max_calls, "window_ms": self.window_ms},
                )
                return False

            self._timestamps.append(now)
            return True

    def acquire(self) -> None:
        """Like ``try_acquire`` but raises ``RateLimited`` when denied."""
        if not self.try_acquire():
            raise RateLimited(max_calls=self.max_calls, window_ms=self.window_ms)

    def reset(self) -> None:
        """Forget all recorded calls regardless of their age."""
        with self._lock:
            self._timestamps.clear()
