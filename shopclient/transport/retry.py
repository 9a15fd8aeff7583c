"""Retrying fetch with exponential backoff for storefront requests.

This module provides a configurable retry policy and a fetcher that runs
each attempt through the rate-limit registry. Unlike an exception-driven
retry decorator, retry decisions here are driven by the response status:
a 404 comes back after one attempt, while 429/503 and transport errors
are retried with backoff.
"""

import asyncio
import random
import time
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Tuple, Type

import httpx

from shopclient.core.config import Settings
from shopclient.core.logging import get_log_context, get_logger
from shopclient.ratelimit.registry import RateLimiterRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry behavior with exponential backoff.

    Attributes:
        max_retries: Retries after the first attempt (default: 2)
        base_delay: Initial delay between retries in seconds (default: 0.2)
        max_jitter: Upper bound of the random jitter added to each delay
        retry_on_statuses: HTTP statuses that trigger a retry
        retryable_exceptions: Exception types that trigger a retry

    Example:
        >>> policy = RetryPolicy(max_retries=3, base_delay=0.5, max_jitter=0)
        >>> policy.calculate_delay(attempt=2)
        2.0
    """

    max_retries: int = 2
    base_delay: float = 0.2
    max_jitter: float = 0.1
    retry_on_statuses: Tuple[int, ...] = (429, 503)
    retryable_exceptions: Tuple[Type[Exception], ...] = field(
        default=(httpx.TransportError,)
    )

    @classmethod
    def from_settings(cls, config: Settings) -> "RetryPolicy":
        return cls(
            max_retries=config.retry_max_retries,
            base_delay=config.retry_base_delay,
            max_jitter=config.retry_max_jitter,
            retry_on_statuses=tuple(config.retry_on_statuses),
        )

    def with_overrides(
        self,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        retry_on_statuses: Optional[Tuple[int, ...]] = None,
    ) -> "RetryPolicy":
        """Return a copy with the given fields replaced."""
        changes: dict[str, Any] = {}
        if max_retries is not None:
            changes["max_retries"] = max_retries
        if base_delay is not None:
            changes["base_delay"] = base_delay
        if retry_on_statuses is not None:
            changes["retry_on_statuses"] = tuple(retry_on_statuses)
        return replace(self, **changes)

    @property
    def attempts(self) -> int:
        """Total number of attempts (first try plus retries)."""
        return max(0, self.max_retries) + 1

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the delay before the retry following ``attempt``.

        delay = base_delay * 2 ^ attempt + uniform(0, max_jitter)

        Args:
            attempt: The failed attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = max(0.0, self.base_delay) * (2 ** attempt)
        jitter = random.uniform(0, self.max_jitter) if self.max_jitter > 0 else 0.0
        return delay + jitter

    def should_retry_status(self, status_code: int) -> bool:
        return status_code in self.retry_on_statuses

    def is_retryable(self, exception: BaseException) -> bool:
        """Check if a raised exception should trigger a retry."""
        return isinstance(exception, self.retryable_exceptions)


class Fetcher:
    """Rate-limited HTTP fetcher with retry and backoff.

    Every attempt goes through the registry's resolved bucket (class, then
    host, then global), or straight to the network when rate limiting is
    disabled.

    Usage:
        fetcher = Fetcher(http_client, registry, RetryPolicy())
        response = await fetcher.fetch(url, rate_limit_class="products:list")
        if response.is_success:
            data = response.json()
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        registry: Optional[RateLimiterRegistry] = None,
        policy: Optional[RetryPolicy] = None,
    ):
        self.http_client = http_client
        self.registry = registry or RateLimiterRegistry()
        self.policy = policy or RetryPolicy()

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        rate_limit_class: Optional[str] = None,
        policy: Optional[RetryPolicy] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Fetch ``url``, retrying transient failures.

        Args:
            url: Absolute URL
            method: HTTP method (GET or HEAD for storefront use)
            rate_limit_class: Operation class used for bucket selection
            policy: Per-call retry policy (defaults to the fetcher's)
            **kwargs: Passed to ``httpx.AsyncClient.request``

        Returns:
            The first non-retriable response, or the last retriable one
            once retries are exhausted. Callers check ``is_success``.

        Raises:
            httpx.TransportError: When every attempt failed at network level
        """
        retry_policy = policy or self.policy
        last_error: Optional[BaseException] = None
        response: Optional[httpx.Response] = None

        async def send() -> httpx.Response:
            return await self.http_client.request(method, url, **kwargs)

        for attempt in range(retry_policy.attempts):
            started = time.monotonic()
            try:
                response = await self.registry.schedule(
                    send, url=url, rate_limit_class=rate_limit_class
                )
            except Exception as e:
                if not retry_policy.is_retryable(e):
                    raise
                last_error = e
                reason = f"{type(e).__name__}: {e}"
            else:
                if response.is_success or not retry_policy.should_retry_status(response.status_code):
                    return response
                reason = f"HTTP {response.status_code}"

            if attempt + 1 >= retry_policy.attempts:
                logger.warning(
                    f"Max retries ({retry_policy.max_retries}) exceeded for {method} {url}: {reason}",
                    extra=get_log_context(url=url, rate_limit_class=rate_limit_class, attempt=attempt),
                )
                break

            delay = retry_policy.calculate_delay(attempt)
            logger.warning(
                f"Retry {attempt + 1}/{retry_policy.max_retries} for {method} {url} "
                f"after {reason}. Waiting {delay:.2f}s...",
                extra=get_log_context(
                    url=url,
                    rate_limit_class=rate_limit_class,
                    attempt=attempt,
                    duration_ms=round((time.monotonic() - started) * 1000, 1),
                ),
            )
            await asyncio.sleep(delay)

        if response is not None:
            return response
        if last_error is not None:
            raise last_error
        raise httpx.TransportError(f"{method} {url} failed without response")
