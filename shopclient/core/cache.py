"""In-memory caches used by the storefront client.

Provides a lazily-expiring TTL map for small values (handle existence
checks) and a single-key cache with in-flight request coalescing for
expensive aggregates (store info). Nothing is persisted; every cache is
owned by one client instance.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar

from shopclient.core.logging import get_logger

logger = get_logger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")

Clock = Callable[[], float]


@dataclass
class CacheEntry(Generic[T]):
    """Cache entry with the time it was stored."""

    value: T
    stored_at: float

    def is_fresh(self, ttl: float, now: float) -> bool:
        """Check whether the entry is still within its TTL."""
        return now - self.stored_at < ttl


def _validate_ttl(ttl: float) -> float:
    if ttl is None or ttl <= 0:
        raise ValueError("Cache TTL must be positive")
    return float(ttl)


class TTLCache(Generic[K, T]):
    """Map with per-entry timestamps and lazy expiry.

    Stale entries are never swept proactively; they are detected and
    dropped when read.
    """

    def __init__(self, ttl: float, clock: Clock = time.monotonic) -> None:
        self.ttl = _validate_ttl(ttl)
        self._clock = clock
        self._data: Dict[K, CacheEntry[T]] = {}

    def get(self, key: K, default: Optional[T] = None) -> Optional[T]:
        """Return the fresh value for ``key`` or ``default``."""
        entry = self._data.get(key)
        if entry is None:
            return default
        if not entry.is_fresh(self.ttl, self._clock()):
            del self._data[key]
            return default
        return entry.value

    def set(self, key: K, value: T) -> None:
        """Store ``value`` with a fresh timestamp, superseding any previous entry."""
        self._data[key] = CacheEntry(value=value, stored_at=self._clock())

    def delete(self, key: K) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        entry = self._data.get(key)  # type: ignore[arg-type]
        return entry is not None and entry.is_fresh(self.ttl, self._clock())

    def __len__(self) -> int:
        return len(self._data)


class CacheState(str, Enum):
    """Lifecycle states of a single-flight cache."""

    EMPTY = "empty"
    FETCHING = "fetching"
    CACHED = "cached"
    STALE = "stale"


class SingleFlightCache(Generic[T]):
    """Single-value TTL cache with in-flight request coalescing.

    Guarantees at most one concurrent call to ``loader``: callers that
    arrive while a load is running await the same task. A failed load is
    never cached; the in-flight marker is cleared so the next call starts
    from scratch.

    State machine::

        EMPTY -> FETCHING -> CACHED -> (TTL) -> STALE -> FETCHING -> ...
        CACHED/STALE -> EMPTY  (invalidate)

    Example:
        >>> cache = SingleFlightCache(fetch_store_info, ttl=300)
        >>> info = await cache.get()
        >>> fresh = await cache.get(force=True)
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[T]],
        ttl: float,
        clock: Clock = time.monotonic,
    ) -> None:
        self.ttl = _validate_ttl(ttl)
        self._loader = loader
        self._clock = clock
        self._entry: Optional[CacheEntry[T]] = None
        self._in_flight: Optional["asyncio.Task[T]"] = None

    @property
    def state(self) -> CacheState:
        if self._in_flight is not None:
            return CacheState.FETCHING
        if self._entry is None:
            return CacheState.EMPTY
        if self._entry.is_fresh(self.ttl, self._clock()):
            return CacheState.CACHED
        return CacheState.STALE

    def peek(self) -> Optional[T]:
        """Return the cached value if fresh, without triggering a load."""
        entry = self._entry
        if entry is not None and entry.is_fresh(self.ttl, self._clock()):
            return entry.value
        return None

    def invalidate(self) -> None:
        """Drop the cached value.

        An in-flight load is left alone; it repopulates the cache when it
        completes.
        """
        self._entry = None

    async def get(self, force: bool = False) -> T:
        """Return the cached value, loading it if missing or stale.

        Args:
            force: Invalidate before reading, bypassing the TTL

        Returns:
            The cached or freshly loaded value
        """
        if force:
            self.invalidate()

        entry = self._entry
        if entry is not None and entry.is_fresh(self.ttl, self._clock()):
            return entry.value

        if self._in_flight is None:
            self._in_flight = asyncio.ensure_future(self._load())
        else:
            logger.debug("Joining in-flight load")

        # Shield so one caller's cancellation does not abort the shared load.
        return await asyncio.shield(self._in_flight)

    async def _load(self) -> T:
        try:
            value = await self._loader()
            self._entry = CacheEntry(value=value, stored_at=self._clock())
            return value
        finally:
            self._in_flight = None
