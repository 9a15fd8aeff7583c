"""Page sweeps over storefront list endpoints.

Storefront list endpoints return a short (or empty) final page and no
"has more" flag, so comparing the page length to the requested limit is
the only reliable termination signal.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from shopclient.core.logging import get_logger
from shopclient.exceptions import InvalidPaginationError

logger = get_logger(__name__)

T = TypeVar("T")

MAX_PAGE_LIMIT = 250

FetchPage = Callable[[int, int], Awaitable[Optional[Sequence[T]]]]


def validate_pagination(page: Optional[int] = None, limit: Optional[int] = None) -> tuple[int, int]:
    """Apply defaults and validate page/limit before any network call.

    Raises:
        InvalidPaginationError: If page < 1 or limit is outside 1..250
    """
    page = 1 if page is None else page
    limit = MAX_PAGE_LIMIT if limit is None else limit
    if (
        isinstance(page, bool)
        or isinstance(limit, bool)
        or not isinstance(page, int)
        or not isinstance(limit, int)
        or page < 1
        or limit < 1
        or limit > MAX_PAGE_LIMIT
    ):
        raise InvalidPaginationError(page, limit)
    return page, limit


@dataclass
class PaginationCursor:
    """Position of a page sweep."""
    page: int = 1
    limit: int = MAX_PAGE_LIMIT

    def __post_init__(self) -> None:
        validate_pagination(self.page, self.limit)

    def advance(self) -> None:
        self.page += 1

    def is_last_page(self, batch: Sequence[object]) -> bool:
        return len(batch) == 0 or len(batch) < self.limit


async def collect_all(fetch_page: FetchPage, limit: int = MAX_PAGE_LIMIT) -> List[T]:
    """Fetch pages until a short or empty page, accumulating every item.

    ``fetch_page`` returning None is a soft stop: the items collected so
    far are returned. An exception raised by ``fetch_page`` propagates.

    Args:
        fetch_page: Coroutine function called as ``fetch_page(page, limit)``
        limit: Page size (1..250)

    Returns:
        All items in page order
    """
    cursor = PaginationCursor(page=1, limit=limit)
    accumulated: List[T] = []

    while True:
        batch = await fetch_page(cursor.page, cursor.limit)
        if batch is None:
            logger.debug(f"Page {cursor.page} returned no result, stopping sweep")
            break
        accumulated.extend(batch)
        if cursor.is_last_page(batch):
            break
        cursor.advance()

    return accumulated
