"""Token-bucket rate limiting for outbound storefront requests.

This package provides:
- Bucket options (RateLimitOptions)
- Interval-refilled token bucket with bounded concurrency (TokenBucket)
- Scope resolution across global / per-host / per-class buckets (RateLimiterRegistry)
"""

from shopclient.ratelimit.bucket import TokenBucket
from shopclient.ratelimit.models import DEFAULT_OPTIONS, RateLimitOptions
from shopclient.ratelimit.registry import RateLimiterRegistry

__all__ = [
    "DEFAULT_OPTIONS",
    "RateLimitOptions",
    "RateLimiterRegistry",
    "TokenBucket",
]
