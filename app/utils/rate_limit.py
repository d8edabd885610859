"""Sliding-window rate limiter keyed by client identity.

Keeps the timestamps of recent hits per key and rejects a hit once the
window already holds ``limit`` entries.
"""

import time
from collections import defaultdict

from app.utils.exceptions import TooManyRequestsError


class SlidingWindowRateLimiter:
    """Per-key sliding window limiter (process-local).

    Attributes:
        limit: Maximum hits allowed within the window
        window_seconds: Window length in seconds
    """

    def __init__(self, limit: int, window_seconds: int) -> None:
        self.limit: int = limit
        self.window_seconds: int = window_seconds
        self._hits: dict[str, list[float]] = defaultdict(list)

    def _prune(self, key: str, now: float) -> list[float]:
        cutoff = now - self.window_seconds
        recent = [t for t in self._hits.get(key, []) if t > cutoff]
        if recent:
            self._hits[key] = recent
        else:
            self._hits.pop(key, None)
        return recent

    def hit(self, key: str) -> bool:
        """Record a hit. Returns False when the key is over its limit."""
        now = time.monotonic()
        recent = self._prune(key, now)
        if len(recent) >= self.limit:
            return False
        self._hits[key].append(now)
        return True

    def retry_after(self, key: str) -> int:
        """Seconds until the oldest hit in the window expires."""
        recent = self._hits.get(key)
        if not recent:
            return 0
        return max(1, int(recent[0] + self.window_seconds - time.monotonic()) + 1)

    def check(self, key: str) -> None:
        """Record a hit or raise 429.

        Raises:
            TooManyRequestsError: Key exceeded its limit in the current window
        """
        if not self.hit(key):
            raise TooManyRequestsError(
                "Too many login attempts. Please try again later.",
                retry_after=self.retry_after(key),
            )

    def reset(self) -> None:
        self._hits.clear()
