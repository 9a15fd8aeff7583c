"""HTTP client construction for storefront requests.

Every request made by the client shares one ``httpx.AsyncClient`` so that
connections to the storefront are pooled and the same timeout policy
applies to HTML pages, JSON endpoints and existence probes alike.
"""

from typing import Optional

import httpx

from shopclient.core.config import Settings, settings as default_settings


def build_timeout(config: Optional[Settings] = None, timeout: Optional[float] = None) -> httpx.Timeout:
    """Build the granular request timeout.

    Args:
        config: Settings to read timeouts from (module settings by default)
        timeout: Single timeout value overriding all granular timeouts

    Returns:
        httpx.Timeout instance
    """
    if timeout is not None:
        return httpx.Timeout(timeout)
    config = config or default_settings
    # - connect: Time to establish socket connection
    # - read: Time to read response data
    # - write: Time to send request data
    # - pool: Time to acquire connection from pool
    return httpx.Timeout(
        connect=config.http_connect_timeout,
        read=config.http_read_timeout,
        write=config.http_write_timeout,
        pool=config.http_pool_timeout,
    )


def create_http_client(config: Optional[Settings] = None, **kwargs) -> httpx.AsyncClient:
    """Create a new HTTP client with the configured defaults.

    Redirects are followed so that ``response.url`` reflects the final
    location, which the handle-redirect resolver relies on.

    Note: The returned client should be closed when done:
        async with create_http_client() as client:
            # use client
            pass

    Args:
        config: Settings instance (module settings by default)
        **kwargs: Overrides. Can include:
            - timeout: Single timeout value
            - transport: Custom httpx transport (tests use httpx.MockTransport)
            - headers: Extra default headers

    Returns:
        A new httpx.AsyncClient instance.
    """
    config = config or default_settings

    headers = {
        "User-Agent": config.user_agent,
        "Accept": "text/html,application/json;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    }
    headers.update(kwargs.pop("headers", None) or {})

    limits = httpx.Limits(
        max_connections=config.http_max_connections,
        max_keepalive_connections=config.http_max_keepalive_connections,
        keepalive_expiry=config.http_keepalive_expiry,
    )

    return httpx.AsyncClient(
        timeout=build_timeout(config, kwargs.pop("timeout", None)),
        limits=limits,
        headers=headers,
        follow_redirects=True,
        **kwargs,
    )
