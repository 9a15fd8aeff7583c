"""Async client for public Shopify storefront endpoints."""

from typing import Any, Dict, Optional

import httpx

from shopclient.core.cache import SingleFlightCache
from shopclient.core.config import Settings, settings as default_settings
from shopclient.core.http_client import create_http_client
from shopclient.core.logging import get_log_context, get_logger
from shopclient.core.utils import generate_store_slug, normalize_store_url, sanitize_handle
from shopclient.dto.models import StoreInfo
from shopclient.dto.products import MappingContext
from shopclient.exceptions import FetchError
from shopclient.ratelimit.registry import RateLimiterRegistry
from shopclient.services.collections import CollectionOperations
from shopclient.services.pagination import MAX_PAGE_LIMIT, FetchPage, collect_all
from shopclient.services.products import ProductOperations
from shopclient.services.redirects import CanonicalHandle, HandleKind, resolve_canonical_handle
from shopclient.services.store_info import fetch_store_info
from shopclient.services.validation import HandleValidator
from shopclient.transport.retry import Fetcher, RetryPolicy

logger = get_logger(__name__)


class ShopClient:
    """Client for a single Shopify storefront.

    Owns the HTTP client and rate-limit registry unless they are injected.
    Injected resources are left open by ``aclose``.

    Example:
        >>> async with ShopClient("exampleshop.com") as shop:
        ...     info = await shop.get_info()
        ...     products = await shop.products.all()
        ...     tee = await shop.products.find("t-shirt?variant=123")
    """

    def __init__(
        self,
        store_url: str,
        *,
        cache_ttl: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[RateLimiterRegistry] = None,
        retry_policy: Optional[RetryPolicy] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize the client.

        Args:
            store_url: Store URL, with or without scheme
            cache_ttl: Store-info TTL in seconds (configured default if None
                or not positive)
            http_client: Shared httpx client; one is created if omitted
            rate_limiter: Shared registry; a disabled one is built from
                settings if omitted
            retry_policy: Retry policy; built from settings if omitted
            settings: Settings instance (module settings by default)

        Raises:
            InvalidStoreUrlError: If the store URL is malformed
        """
        self.settings = settings or default_settings
        self.store_domain, self.base_url = normalize_store_url(store_url)
        self.store_slug = generate_store_slug(self.store_domain)
        self.mapping_context = MappingContext(
            store_domain=self.store_domain, store_slug=self.store_slug
        )

        if cache_ttl is not None and cache_ttl <= 0:
            logger.warning(
                f"Ignoring non-positive cache_ttl={cache_ttl}, "
                f"using default {self.settings.cache_ttl}s",
                extra=get_log_context(store_domain=self.store_domain),
            )
            cache_ttl = None
        self.cache_ttl = cache_ttl or self.settings.cache_ttl

        self._owns_http_client = http_client is None
        self.http_client = http_client or create_http_client(self.settings)
        self._owns_rate_limiter = rate_limiter is None
        self.rate_limiter = rate_limiter or RateLimiterRegistry.from_settings(self.settings)

        self.fetcher = Fetcher(
            self.http_client,
            self.rate_limiter,
            retry_policy or RetryPolicy.from_settings(self.settings),
        )
        self.validator = HandleValidator(
            self.base_url,
            self.fetcher,
            ttl=self.settings.validation_cache_ttl,
            batch_size=self.settings.validation_batch_size,
            batch_pause=self.settings.validation_batch_pause,
        )
        self._info_cache: SingleFlightCache[StoreInfo] = SingleFlightCache(
            self._load_info, ttl=self.cache_ttl
        )

        self.products = ProductOperations(self)
        self.collections = CollectionOperations(self)

    async def __aenter__(self) -> "ShopClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close owned resources."""
        if self._owns_rate_limiter:
            await self.rate_limiter.aclose()
        if self._owns_http_client:
            await self.http_client.aclose()

    async def _load_info(self) -> StoreInfo:
        try:
            return await fetch_store_info(
                self.fetcher, self.validator, self.store_domain, self.base_url
            )
        except Exception as e:
            raise FetchError.wrap(e, "fetching store info", self.base_url) from e

    async def get_info(self, force: bool = False) -> StoreInfo:
        """Get store metadata, cached for ``cache_ttl`` seconds.

        Concurrent callers share a single homepage fetch.

        Args:
            force: Bypass the cache and refetch

        Raises:
            FetchError: If the homepage cannot be loaded
        """
        return await self._info_cache.get(force=force)

    def clear_info_cache(self) -> None:
        """Drop the cached store info. An in-flight fetch is not cancelled."""
        self._info_cache.invalidate()

    async def is_valid_handle(self, kind: HandleKind, handle: str) -> bool:
        """Check that a handle exists on the store.

        Raises:
            InvalidHandleError: If the handle is empty or too long
        """
        return await self.validator.is_valid_handle(kind, sanitize_handle(handle))

    async def resolve_canonical_handle(self, kind: HandleKind, handle: str) -> CanonicalHandle:
        """Follow redirects to the current handle.

        Raises:
            InvalidHandleError: If the handle is empty or too long
        """
        return await resolve_canonical_handle(
            self.fetcher, self.base_url, kind, sanitize_handle(handle)
        )

    async def collect_all(self, fetch_page: FetchPage, limit: int = MAX_PAGE_LIMIT) -> list:
        return await collect_all(fetch_page, limit)

    def get_rate_limit_status(self) -> Dict[str, Any]:
        return self.rate_limiter.get_status()
