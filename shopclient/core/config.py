import json
import re
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_statuses(raw: Any) -> list[int]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set)):
        return [int(v) for v in raw]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []

    # Prefer JSON, but tolerate "429,503" or "429 503".
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [int(v) for v in parsed]

    return [int(p) for p in re.split(r"[,\s]+", raw) if p]


def _parse_scopes(raw: Any) -> dict[str, dict[str, Any]]:
    """Parse a JSON object of scope -> partial rate limit options."""
    if raw is None:
        return {}
    if isinstance(raw, dict):
        scopes = raw
    else:
        raw = str(raw).strip()
        if not raw:
            return {}
        scopes = json.loads(raw)

    if not isinstance(scopes, dict) or not all(isinstance(v, dict) for v in scopes.values()):
        raise ValueError("Rate limit scopes must map names to option objects")
    return scopes


class Settings(BaseSettings):
    """Client settings loaded from environment variables.

    All settings can be configured via ``SHOPCLIENT_*`` environment variables
    or a .env file. Durations are in seconds.
    """

    # Rate limiting (disabled until explicitly turned on)
    rate_limit_enabled: bool = False
    rate_limit_max_requests_per_interval: int = 5
    rate_limit_interval: float = 1.0
    rate_limit_max_concurrency: int = 5
    # JSON, e.g. {"*.myshopify.com": {"max_concurrency": 2}}
    rate_limit_per_host: Annotated[dict[str, dict[str, Any]], NoDecode] = {}
    rate_limit_per_class: Annotated[dict[str, dict[str, Any]], NoDecode] = {}

    @field_validator("rate_limit_per_host", "rate_limit_per_class", mode="before")
    @classmethod
    def decode_rate_limit_scopes(cls, v: Any) -> dict[str, dict[str, Any]]:
        return _parse_scopes(v)

    # Retry / backoff
    retry_max_retries: int = 2
    retry_base_delay: float = 0.2
    retry_max_jitter: float = 0.1
    # NoDecode so "429,503" in the environment does not have to be JSON.
    retry_on_statuses: Annotated[list[int], NoDecode] = [429, 503]

    @field_validator("retry_on_statuses", mode="before")
    @classmethod
    def decode_retry_statuses(cls, v: Any) -> list[int]:
        return _parse_statuses(v)

    # Caches
    cache_ttl: float = 300.0  # store info, 5 minutes
    validation_cache_ttl: float = 300.0  # handle existence, 5 minutes
    validation_batch_size: int = 10
    validation_batch_pause: float = 0.1

    # HTTP client connection pool settings
    http_connect_timeout: float = 10.0  # Time to establish connection
    http_read_timeout: float = 15.0  # Time to read response data
    http_write_timeout: float = 10.0  # Time to send request data
    http_pool_timeout: float = 5.0  # Time to acquire connection from pool
    http_keepalive_expiry: float = 30.0
    http_max_connections: int = 50
    http_max_keepalive_connections: int = 10
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator(
        "rate_limit_max_requests_per_interval",
        "rate_limit_max_concurrency",
        "validation_batch_size",
    )
    @classmethod
    def validate_count_positive(cls, v: int) -> int:
        """Validate count-like values are at least 1."""
        if v < 1:
            raise ValueError("Rate limit and batch values must be at least 1")
        return v

    @field_validator("rate_limit_interval")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        """Validate the refill interval is not below 10ms."""
        if v < 0.01:
            raise ValueError("rate_limit_interval must be at least 0.01 seconds")
        return v

    @field_validator("cache_ttl", "validation_cache_ttl")
    @classmethod
    def validate_ttl_positive(cls, v: float) -> float:
        """Validate cache TTLs are positive."""
        if v <= 0:
            raise ValueError("Cache TTL values must be positive")
        return v

    @field_validator(
        "http_connect_timeout",
        "http_read_timeout",
        "http_write_timeout",
        "http_pool_timeout",
    )
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    @field_validator(
        "retry_max_retries", "retry_base_delay", "retry_max_jitter", "validation_batch_pause"
    )
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        """Validate retry and pause values are not negative."""
        if v < 0:
            raise ValueError("Retry and pause values must not be negative")
        return v

    model_config = SettingsConfigDict(
        env_prefix="SHOPCLIENT_", env_file=".env", extra="ignore"
    )


# Global settings instance
settings = Settings()
