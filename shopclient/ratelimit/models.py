"""Rate limiting data models.

This module contains dataclasses for bucket options and queued tasks.
"""

import asyncio
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Optional

MIN_REQUESTS_PER_INTERVAL = 1
MIN_INTERVAL = 0.01  # seconds
MIN_CONCURRENCY = 1


@dataclass(frozen=True)
class RateLimitOptions:
    """Settings of one token bucket.

    Attributes:
        max_requests_per_interval: Tokens restored on every refill
        interval: Refill period in seconds
        max_concurrency: Simultaneous in-flight executions
    """
    max_requests_per_interval: int = 5
    interval: float = 1.0
    max_concurrency: int = 5

    def clamped(self) -> "RateLimitOptions":
        """Return a copy clamped to sensible minimums."""
        return RateLimitOptions(
            max_requests_per_interval=max(MIN_REQUESTS_PER_INTERVAL, int(self.max_requests_per_interval)),
            interval=max(MIN_INTERVAL, float(self.interval)),
            max_concurrency=max(MIN_CONCURRENCY, int(self.max_concurrency)),
        )

    def merged(
        self,
        max_requests_per_interval: Optional[int] = None,
        interval: Optional[float] = None,
        max_concurrency: Optional[int] = None,
    ) -> "RateLimitOptions":
        """Merge partial options over these ones and clamp the result."""
        changes = {
            "max_requests_per_interval": max_requests_per_interval,
            "interval": interval,
            "max_concurrency": max_concurrency,
        }
        return replace(self, **{k: v for k, v in changes.items() if v is not None}).clamped()


DEFAULT_OPTIONS = RateLimitOptions()


@dataclass
class QueuedTask:
    """A task waiting for admission into a bucket."""
    fn: Callable[[], Awaitable[Any]]
    future: "asyncio.Future[Any]" = field(repr=False)
