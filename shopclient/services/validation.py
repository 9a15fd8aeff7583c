"""Existence checks for product and collection handles.

Handles scraped from homepage HTML are probed before they are trusted as
showcase entries. Results, including negative ones, are cached per
``kind:handle`` for a short TTL. Network errors count as "does not
exist": a transient failure should not block showcase extraction, at the
cost of a handle being wrongly reported missing until its entry expires.
"""

import asyncio
import time
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar
from urllib.parse import quote

from shopclient.core.cache import Clock, TTLCache
from shopclient.core.logging import get_log_context, get_logger
from shopclient.transport.retry import Fetcher

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_PAUSE = 0.1  # seconds

# Lightweight HEAD probes that distinguish "exists" from "does not exist".
PROBE_PATHS = {
    "product": "products/{handle}.js",
    "collection": "collections/{handle}.json",
}


class HandleValidator:
    """Cached handle existence checks with batched validation.

    Usage:
        validator = HandleValidator(base_url, fetcher, ttl=300)
        if await validator.is_valid_handle("product", "blue-shirt"):
            ...
        valid = await validator.validate_in_batches(
            handles, lambda h: validator.is_valid_handle("collection", h)
        )
    """

    def __init__(
        self,
        base_url: str,
        fetcher: Fetcher,
        ttl: float = 300.0,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_pause: float = DEFAULT_BATCH_PAUSE,
        clock: Clock = time.monotonic,
    ):
        """Initialize the validator.

        Args:
            base_url: Store base URL ending with "/"
            fetcher: Fetcher used for probes
            ttl: Seconds a cached result stays fresh
            batch_size: Default number of concurrent checks per batch
            batch_pause: Pause between batches in seconds
            clock: Monotonic time source (injectable for tests)
        """
        self.base_url = base_url
        self.fetcher = fetcher
        self.batch_size = max(1, batch_size)
        self.batch_pause = max(0.0, batch_pause)
        self._cache: TTLCache[str, bool] = TTLCache(ttl, clock=clock)

    @property
    def cache(self) -> TTLCache[str, bool]:
        return self._cache

    async def is_valid_handle(self, kind: str, handle: str) -> bool:
        """Check whether a product or collection handle exists.

        Args:
            kind: "product" or "collection"
            handle: Handle to probe

        Returns:
            True if the storefront answered the probe successfully

        Raises:
            ValueError: If ``kind`` is not supported
        """
        if kind not in PROBE_PATHS:
            raise ValueError(f"Unsupported handle kind: {kind!r}")

        key = f"{kind}:{handle}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        url = self.base_url + PROBE_PATHS[kind].format(handle=quote(handle, safe=""))
        try:
            response = await self.fetcher.fetch(
                url, method="HEAD", rate_limit_class=f"validate:{kind}"
            )
            exists = response.is_success
        except Exception as e:
            logger.debug(
                f"Existence probe failed for {key}: {type(e).__name__}: {e}",
                extra=get_log_context(url=url),
            )
            exists = False

        self._cache.set(key, exists)
        return exists

    async def validate_in_batches(
        self,
        items: Sequence[T],
        validator: Callable[[T], Awaitable[bool]],
        batch_size: Optional[int] = None,
    ) -> List[T]:
        """Keep the items for which ``validator`` returns True.

        Items are checked concurrently within fixed-size batches, with a
        pause between batches to bound the burst against the store.
        Relative order is preserved.
        """
        size = max(1, batch_size or self.batch_size)
        valid: List[T] = []

        for start in range(0, len(items), size):
            batch = items[start:start + size]
            results = await asyncio.gather(*(validator(item) for item in batch))
            valid.extend(item for item, ok in zip(batch, results) if ok)

            if start + size < len(items) and self.batch_pause > 0:
                await asyncio.sleep(self.batch_pause)

        return valid
