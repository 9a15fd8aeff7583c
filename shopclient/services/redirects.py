"""Resolution of stale product/collection handles to their canonical form.

Shopify keeps old handles alive as HTTP redirects on the HTML page, but
the JSON endpoints 404 for them. Requesting the HTML page first and
reading the final URL recovers the current handle.
"""

from dataclasses import dataclass
from typing import Literal, Optional
from urllib.parse import quote, unquote, urlsplit

from shopclient.core.logging import get_log_context, get_logger
from shopclient.transport.retry import Fetcher

logger = get_logger(__name__)

HandleKind = Literal["product", "collection"]

HANDLE_KINDS = ("product", "collection")


@dataclass(frozen=True)
class CanonicalHandle:
    original_handle: str
    final_handle: str

    @property
    def redirected(self) -> bool:
        return self.original_handle != self.final_handle


def _handle_from_path(path: str, kind: str) -> Optional[str]:
    parts = [p for p in path.rstrip("/").split("/") if p]
    segment = f"{kind}s"
    if segment not in parts:
        return None
    idx = parts.index(segment)
    if idx + 1 >= len(parts):
        return None
    return unquote(parts[idx + 1]) or None


async def resolve_canonical_handle(
    fetcher: Fetcher,
    base_url: str,
    kind: HandleKind,
    handle: str,
    rate_limit_class: Optional[str] = None,
) -> CanonicalHandle:
    """Follow redirects on the HTML page of a handle.

    Never raises for network or parsing problems: any failure falls back
    to the original handle.

    Args:
        fetcher: Fetcher used for the request
        base_url: Store base URL ending with "/"
        kind: "product" or "collection"
        handle: Handle to resolve
        rate_limit_class: Defaults to "{kind}s:resolve"

    Returns:
        CanonicalHandle with the original and final handle

    Raises:
        ValueError: If ``kind`` is not supported or ``handle`` is empty
    """
    if kind not in HANDLE_KINDS:
        raise ValueError(f"Unsupported handle kind: {kind!r}")
    if not handle:
        raise ValueError("Handle must not be empty")

    url = f"{base_url}{kind}s/{quote(handle, safe='')}"
    try:
        response = await fetcher.fetch(url, rate_limit_class=rate_limit_class or f"{kind}s:resolve")
        if not response.is_success:
            return CanonicalHandle(handle, handle)

        final_path = urlsplit(str(response.url)).path
        requested_path = urlsplit(url).path
        if final_path.rstrip("/") == requested_path.rstrip("/"):
            return CanonicalHandle(handle, handle)

        resolved = _handle_from_path(final_path, kind)
        if resolved and resolved != handle:
            logger.info(
                f"Resolved {kind} handle '{handle}' -> '{resolved}'",
                extra=get_log_context(url=url),
            )
            return CanonicalHandle(handle, resolved)
    except Exception as e:
        logger.debug(
            f"Handle resolution failed for {kind} '{handle}': {type(e).__name__}: {e}",
            extra=get_log_context(url=url),
        )
    return CanonicalHandle(handle, handle)
