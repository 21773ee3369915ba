"""Rate limiting data models.

This module contains dataclasses for rate limit state and results.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass
class RateLimitEntry:
    """Per-client admission state for one fixed window."""
    key: str
    count: int
    reset_at: float

    def expired(self, now: float) -> bool:
        return now >= self.reset_at


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: Optional[int] = None

    @property
    def reset_time(self) -> int:
        """Window expiry as whole epoch seconds (X-RateLimit-Reset)."""
        return int(self.reset_at)

    @property
    def reset_at_iso(self) -> str:
        return datetime.fromtimestamp(self.reset_at, tz=timezone.utc).isoformat()
