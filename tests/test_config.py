"""Tests for client settings."""

import httpx
import pytest
from pydantic import ValidationError

from shopclient.core.config import Settings
from shopclient.core.http_client import build_timeout, create_http_client


class TestSettings:
    """Tests for Settings defaults and validation."""

    def test_defaults(self):
        """Test documented defaults."""
        config = Settings()

        assert config.rate_limit_enabled is False
        assert config.rate_limit_max_requests_per_interval == 5
        assert config.rate_limit_interval == 1.0
        assert config.rate_limit_max_concurrency == 5
        assert config.retry_max_retries == 2
        assert config.retry_base_delay == 0.2
        assert config.retry_on_statuses == [429, 503]
        assert config.cache_ttl == 300.0
        assert config.validation_batch_size == 10
        assert config.http_read_timeout == 15.0

    def test_env_override(self, monkeypatch):
        """Test SHOPCLIENT_* environment variables are read."""
        monkeypatch.setenv("SHOPCLIENT_RATE_LIMIT_ENABLED", "true")
        monkeypatch.setenv("SHOPCLIENT_CACHE_TTL", "60")

        config = Settings()

        assert config.rate_limit_enabled is True
        assert config.cache_ttl == 60.0

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("429,503", [429, 503]),
            ("429 500 503", [429, 500, 503]),
            ("[502]", [502]),
            ("", []),
        ],
    )
    def test_retry_statuses_from_env(self, monkeypatch, raw, expected):
        """Test comma, space and JSON list formats."""
        monkeypatch.setenv("SHOPCLIENT_RETRY_ON_STATUSES", raw)

        assert Settings().retry_on_statuses == expected

    def test_rate_limit_scopes_from_env(self, monkeypatch):
        """Test per-host and per-class scopes are read as JSON objects."""
        monkeypatch.setenv("SHOPCLIENT_RATE_LIMIT_PER_HOST", '{"*.myshopify.com": {"max_concurrency": 2}}')
        monkeypatch.setenv("SHOPCLIENT_RATE_LIMIT_PER_CLASS", '{"products:list": {"interval": 2.5}}')

        config = Settings()

        assert config.rate_limit_per_host == {"*.myshopify.com": {"max_concurrency": 2}}
        assert config.rate_limit_per_class == {"products:list": {"interval": 2.5}}

    @pytest.mark.parametrize("raw", ["[1, 2]", '{"shop.example.com": 3}', "{not json"])
    def test_invalid_rate_limit_scopes(self, monkeypatch, raw):
        """Test scopes that are not objects of option objects are rejected."""
        monkeypatch.setenv("SHOPCLIENT_RATE_LIMIT_PER_HOST", raw)

        with pytest.raises(ValidationError):
            Settings()

    @pytest.mark.parametrize(
        "field,value",
        [
            ("cache_ttl", 0),
            ("validation_cache_ttl", -1),
            ("rate_limit_interval", 0.001),
            ("rate_limit_max_concurrency", 0),
            ("http_read_timeout", 0),
            ("retry_max_retries", -1),
        ],
    )
    def test_invalid_values(self, field, value):
        """Test out-of-range values are rejected."""
        with pytest.raises(ValidationError):
            Settings(**{field: value})


class TestHttpClient:
    """Tests for the HTTP client factory."""

    def test_build_timeout_from_settings(self):
        """Test granular timeouts come from settings."""
        timeout = build_timeout(Settings(http_read_timeout=20))

        assert timeout.read == 20
        assert timeout.connect == 10

    def test_build_timeout_single_value(self):
        """Test a single value overrides every phase."""
        timeout = build_timeout(timeout=3)

        assert timeout.read == 3
        assert timeout.pool == 3

    @pytest.mark.asyncio
    async def test_create_http_client(self):
        """Test client defaults."""
        config = Settings(user_agent="test-agent/1.0")

        async with create_http_client(config, headers={"X-Extra": "1"}) as client:
            assert isinstance(client, httpx.AsyncClient)
            assert client.follow_redirects is True
            assert client.headers["User-Agent"] == "test-agent/1.0"
            assert client.headers["X-Extra"] == "1"
            assert client.timeout.read == 15.0
