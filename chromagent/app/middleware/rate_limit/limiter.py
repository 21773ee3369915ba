"""Fixed-window in-memory rate limiter.

State is held per process. In a horizontally scaled deployment every instance
keeps its own table, so the limit is a per-instance approximation of a global
one.
"""

import math
import time
from typing import Callable, Dict

from chromagent.app.core.logging import get_logger
from chromagent.app.middleware.rate_limit.models import RateLimitEntry, RateLimitResult

logger = get_logger(__name__)


class FixedWindowRateLimiter:
    """Counts requests per key within a fixed window of ``window_seconds``.

    The first request from a key opens a window ending at
    ``now + window_seconds``; requests inside the window are admitted until
    ``limit`` is reached. Expired entries are swept opportunistically from
    ``check()`` at most once per ``sweep_interval_seconds``.

    ``check()`` does no I/O and never awaits, so on a single event loop the
    read-compare-increment sequence cannot interleave with another check.
    """

    def __init__(
        self,
        limit: int = 10,
        window_seconds: float = 60,
        sweep_interval_seconds: float = 300,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize rate limiter.

        Args:
            limit: Maximum admitted requests per key per window
            window_seconds: Window duration in seconds
            sweep_interval_seconds: Minimum time between expiry sweeps
            clock: Time source returning epoch seconds
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def check(self, key: str) -> RateLimitResult:
        """Record a request for ``key`` and decide whether to admit it."""
        now = self._clock()
        if now - self._last_sweep >= self.sweep_interval_seconds:
            self.sweep()

        entry = self._entries.get(key)

        if entry is None or entry.expired(now):
            entry = RateLimitEntry(key=key, count=1, reset_at=now + self.window_seconds)
            self._entries[key] = entry
            return RateLimitResult(
                allowed=True,
                limit=self.limit,
                remaining=self.limit - 1,
                reset_at=entry.reset_at,
            )

        if entry.count >= self.limit:
            return RateLimitResult(
                allowed=False,
                limit=self.limit,
                remaining=0,
                reset_at=entry.reset_at,
                retry_after=max(1, math.ceil(entry.reset_at - now)),
            )

        entry.count += 1
        return RateLimitResult(
            allowed=True,
            limit=self.limit,
            remaining=self.limit - entry.count,
            reset_at=entry.reset_at,
        )

    def sweep(self) -> int:
        """Remove every entry whose window has expired.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        self._last_sweep = now
        expired = [key for key, entry in self._entries.items() if entry.expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Rate limit sweep removed {len(expired)} expired entries")
        return len(expired)

    def reset(self) -> None:
        """Drop all state."""
        self._entries.clear()
        self._last_sweep = self._clock()
