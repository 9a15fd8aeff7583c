"""HTTP transport: retry policy and the rate-limited fetcher."""

from shopclient.transport.retry import Fetcher, RetryPolicy

__all__ = [
    "Fetcher",
    "RetryPolicy",
]
