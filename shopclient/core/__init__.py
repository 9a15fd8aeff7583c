"""Core utilities for the storefront client."""

from shopclient.core.cache import CacheState, SingleFlightCache, TTLCache
from shopclient.core.config import Settings, settings
from shopclient.core.logging import get_log_context, get_logger, setup_logging

__all__ = [
    "CacheState",
    "Settings",
    "SingleFlightCache",
    "TTLCache",
    "get_log_context",
    "get_logger",
    "settings",
    "setup_logging",
]
