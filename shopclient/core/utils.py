"""Utility functions for URL, domain and handle normalization."""

import re
from typing import Optional, Tuple
from urllib.parse import urlsplit

from shopclient.exceptions import InvalidHandleError, InvalidStoreUrlError

MAX_HANDLE_LENGTH = 255

_HANDLE_UNSAFE = re.compile(r"[^a-zA-Z0-9\-_]")
_DOMAIN_PATTERN = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


def normalize_store_url(url: str) -> Tuple[str, str]:
    """Validate a store URL and derive the store domain and base URL.

    Args:
        url: Store URL with or without scheme (e.g. "exampleshop.com")

    Returns:
        Tuple of (store_domain, base_url), e.g.
        ("https://exampleshop.com", "https://exampleshop.com/")

    Raises:
        InvalidStoreUrlError: If the URL or its hostname is malformed
    """
    if not url or not isinstance(url, str):
        raise InvalidStoreUrlError("Store URL is required and must be a string")

    normalized = url.strip()
    if not normalized.startswith(("http://", "https://")):
        normalized = f"https://{normalized}"

    try:
        parts = urlsplit(normalized)
        hostname = parts.hostname or ""
    except ValueError as e:
        raise InvalidStoreUrlError("Invalid store URL format") from e

    if len(hostname) < 3:
        raise InvalidStoreUrlError("Invalid domain name")
    if ".." in hostname or "//" in hostname or "@" in hostname:
        raise InvalidStoreUrlError("Invalid characters in domain name")
    if "." not in hostname or hostname.startswith(".") or hostname.endswith("."):
        raise InvalidStoreUrlError("Invalid domain format - must be a valid domain with TLD")
    if not _DOMAIN_PATTERN.match(hostname):
        raise InvalidStoreUrlError("Invalid domain format")

    store_domain = f"https://{hostname}"
    base_url = f"{store_domain}{parts.path}"
    if not base_url.endswith("/"):
        base_url += "/"
    return store_domain, base_url


def host_of(url: Optional[str]) -> Optional[str]:
    """Return the host (with port, if any) of ``url``, or None if unparsable."""
    if not url:
        return None
    try:
        netloc = urlsplit(str(url)).netloc
    except ValueError:
        return None
    # Drop userinfo
    return netloc.rsplit("@", 1)[-1] or None


def sanitize_handle(handle: object) -> str:
    """Validate and sanitize a product or collection handle.

    Characters outside ``[A-Za-z0-9_-]`` are stripped.

    Raises:
        InvalidHandleError: If the handle is missing, empty after
            sanitizing, or longer than 255 characters
    """
    if not handle or not isinstance(handle, str):
        raise InvalidHandleError(handle, "Handle is required and must be a string")

    sanitized = _HANDLE_UNSAFE.sub("", handle.strip())
    if not sanitized:
        raise InvalidHandleError(handle, "Invalid handle format")
    if len(sanitized) > MAX_HANDLE_LENGTH:
        raise InvalidHandleError(handle, "Handle is too long")
    return sanitized


def split_handle_query(handle: str) -> Tuple[str, Optional[str]]:
    """Split "t-shirt?variant=123" into ("t-shirt", "variant=123")."""
    if "?" in handle:
        base, query = handle.split("?", 1)
        return base, query or None
    return handle, None


def sanitize_domain(url: str) -> str:
    """Return the bare hostname of a URL without scheme or "www." prefix."""
    hostname = urlsplit(url if "://" in url else f"https://{url}").hostname or url
    return hostname[4:] if hostname.startswith("www.") else hostname


def generate_store_slug(url: str) -> str:
    """Generate a URL-safe slug from the store's registrable name.

    "https://www.cool-shop.myshopify.com" -> "cool-shop"
    """
    hostname = sanitize_domain(url)
    name = hostname.split(".")[0]
    slug = re.sub(r"[^a-z0-9]", "-", name.lower())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def price_to_cents(value: object) -> int:
    """Convert a Shopify price ("19.99", 1999, None) to integer cents.

    Strings are decimal amounts; numbers are already cents (the ``.js``
    endpoints report cents).
    """
    if value is None or value == "":
        return 0
    if isinstance(value, str):
        try:
            return int(round(float(value) * 100))
        except ValueError:
            return 0
    if isinstance(value, (int, float)):
        return int(value)
    return 0
