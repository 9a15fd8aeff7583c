"""Scope resolution for rate limiting.

A registry owns one global bucket plus optional per-host and per-class
buckets. Exactly one bucket governs each request, chosen by priority:
explicit class, then host, then the global default. Registries are
constructed explicitly and handed to clients, so separate clients (and
tests) never share limiter state by accident.
"""

from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TypeVar, Union

from shopclient.core.config import Settings
from shopclient.core.logging import get_logger
from shopclient.core.utils import host_of
from shopclient.ratelimit.bucket import TokenBucket
from shopclient.ratelimit.models import DEFAULT_OPTIONS, RateLimitOptions

logger = get_logger(__name__)

T = TypeVar("T")

PartialOptions = Union[RateLimitOptions, Mapping[str, Any]]

_OPTION_KEYS = ("max_requests_per_interval", "interval", "max_concurrency")


def _as_partial(opts: PartialOptions) -> Dict[str, Any]:
    if isinstance(opts, RateLimitOptions):
        return {key: getattr(opts, key) for key in _OPTION_KEYS}
    unknown = set(opts) - set(_OPTION_KEYS)
    if unknown:
        raise ValueError(f"Unknown rate limit options: {sorted(unknown)}")
    return {key: opts.get(key) for key in _OPTION_KEYS}


class RateLimiterRegistry:
    """Registry of token buckets keyed by scope.

    Scopes:
    - global: the default bucket
    - host:<hostname>: exact host or "*.example.com" wildcard suffix
    - class:<name>: caller-assigned operation class, e.g. "products:list"

    When disabled (the default), ``schedule`` runs the task immediately
    with no queueing.

    Example:
        >>> registry = RateLimiterRegistry()
        >>> registry.configure(
        ...     enabled=True,
        ...     max_requests_per_interval=10,
        ...     per_host={"*.myshopify.com": {"max_concurrency": 2}},
        ...     per_class={"products:list": {"interval": 2.0}},
        ... )
        >>> response = await registry.schedule(lambda: client.get(url), url=url)
    """

    def __init__(self, enabled: bool = False, options: Optional[RateLimitOptions] = None):
        self.enabled = enabled
        self._global = TokenBucket(options or DEFAULT_OPTIONS, name="global")
        self._per_host: Dict[str, TokenBucket] = {}
        self._per_class: Dict[str, TokenBucket] = {}

    @classmethod
    def from_settings(cls, config: Settings) -> "RateLimiterRegistry":
        """Build a registry, including host and class scopes, from client settings."""
        registry = cls(
            enabled=config.rate_limit_enabled,
            options=RateLimitOptions(
                max_requests_per_interval=config.rate_limit_max_requests_per_interval,
                interval=config.rate_limit_interval,
                max_concurrency=config.rate_limit_max_concurrency,
            ),
        )
        if config.rate_limit_per_host or config.rate_limit_per_class:
            registry.configure(
                per_host=config.rate_limit_per_host,
                per_class=config.rate_limit_per_class,
            )
        return registry

    @property
    def global_bucket(self) -> TokenBucket:
        return self._global

    def configure(
        self,
        enabled: Optional[bool] = None,
        max_requests_per_interval: Optional[int] = None,
        interval: Optional[float] = None,
        max_concurrency: Optional[int] = None,
        per_host: Optional[Mapping[str, PartialOptions]] = None,
        per_class: Optional[Mapping[str, PartialOptions]] = None,
    ) -> None:
        """Update the registry.

        New per-host/per-class buckets start from the package defaults
        merged with the given partial options; existing ones are
        reconfigured in place.
        """
        if enabled is not None:
            self.enabled = bool(enabled)

        if any(v is not None for v in (max_requests_per_interval, interval, max_concurrency)):
            self._global.configure(
                max_requests_per_interval=max_requests_per_interval,
                interval=interval,
                max_concurrency=max_concurrency,
            )

        for host, opts in (per_host or {}).items():
            self._upsert(self._per_host, host, f"host:{host}", opts)
        for klass, opts in (per_class or {}).items():
            self._upsert(self._per_class, klass, f"class:{klass}", opts)

        logger.info(
            f"Rate limiting {'enabled' if self.enabled else 'disabled'} "
            f"({len(self._per_host)} host scopes, {len(self._per_class)} class scopes)"
        )

    def _upsert(
        self,
        buckets: Dict[str, TokenBucket],
        key: str,
        scope: str,
        opts: PartialOptions,
    ) -> None:
        partial = _as_partial(opts)
        existing = buckets.get(key)
        if existing is not None:
            existing.configure(**partial)
        else:
            buckets[key] = TokenBucket(DEFAULT_OPTIONS.merged(**partial), name=scope)

    def bucket_for_host(self, host: Optional[str]) -> Optional[TokenBucket]:
        """Find the bucket for a host: exact match first, then "*." wildcard suffix."""
        if not host:
            return None
        exact = self._per_host.get(host)
        if exact is not None:
            return exact
        for key, bucket in self._per_host.items():
            if not key.startswith("*."):
                continue
            suffix = key[2:]
            if host == suffix or host.endswith(f".{suffix}"):
                return bucket
        return None

    def resolve(
        self,
        url: Optional[str] = None,
        rate_limit_class: Optional[str] = None,
    ) -> Optional[TokenBucket]:
        """Resolve the bucket governing a request.

        Returns:
            The class bucket, else the host bucket, else the global bucket;
            None when rate limiting is disabled
        """
        if not self.enabled:
            return None
        if rate_limit_class:
            by_class = self._per_class.get(rate_limit_class)
            if by_class is not None:
                return by_class
        by_host = self.bucket_for_host(host_of(url))
        if by_host is not None:
            return by_host
        return self._global

    async def schedule(
        self,
        fn: Callable[[], Awaitable[T]],
        url: Optional[str] = None,
        rate_limit_class: Optional[str] = None,
    ) -> T:
        """Run ``fn`` through the resolved bucket, or directly when disabled."""
        bucket = self.resolve(url, rate_limit_class)
        if bucket is None:
            return await fn()
        return await bucket.schedule(fn)

    def get_status(self) -> Dict[str, Any]:
        """Get registry status.

        Returns:
            Dictionary with the enabled flag and the state of every bucket
        """
        return {
            "enabled": self.enabled,
            "options": {
                "max_requests_per_interval": self._global.options.max_requests_per_interval,
                "interval": self._global.options.interval,
                "max_concurrency": self._global.options.max_concurrency,
            },
            "global": self._global.snapshot(),
            "per_host": {k: b.snapshot() for k, b in self._per_host.items()},
            "per_class": {k: b.snapshot() for k, b in self._per_class.items()},
        }

    async def aclose(self) -> None:
        """Stop every bucket's refill task."""
        for bucket in (self._global, *self._per_host.values(), *self._per_class.values()):
            await bucket.aclose()
