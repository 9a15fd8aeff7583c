"""Async client for public Shopify storefront endpoints."""

from shopclient.client import ShopClient
from shopclient.exceptions import (
    FetchError,
    InputValidationError,
    InvalidHandleError,
    InvalidPaginationError,
    InvalidStoreUrlError,
    RateLimiterClosedError,
    ShopClientError,
)
from shopclient.ratelimit import RateLimiterRegistry, RateLimitOptions
from shopclient.transport import RetryPolicy

__version__ = "0.1.0"

__all__ = [
    "FetchError",
    "InputValidationError",
    "InvalidHandleError",
    "InvalidPaginationError",
    "InvalidStoreUrlError",
    "RateLimitOptions",
    "RateLimiterClosedError",
    "RateLimiterRegistry",
    "RetryPolicy",
    "ShopClient",
    "ShopClientError",
]
