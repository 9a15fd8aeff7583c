"""Tests for the paginated collector."""

from unittest.mock import AsyncMock

import pytest

from shopclient.exceptions import InvalidPaginationError
from shopclient.services.pagination import (
    MAX_PAGE_LIMIT,
    PaginationCursor,
    collect_all,
    validate_pagination,
)


def pages_of(*sizes):
    """Build a fetch_page stub returning pages with the given sizes."""
    pages = []
    start = 0
    for size in sizes:
        pages.append(list(range(start, start + size)))
        start += size
    return AsyncMock(side_effect=pages)


class TestValidatePagination:
    """Tests for page/limit validation."""

    def test_defaults(self):
        """Test missing values default to page 1 and the max limit."""
        assert validate_pagination() == (1, MAX_PAGE_LIMIT)

    @pytest.mark.parametrize("page,limit", [(1, 1), (3, 250), (100, 50)])
    def test_valid(self, page, limit):
        """Test accepted ranges."""
        assert validate_pagination(page, limit) == (page, limit)

    @pytest.mark.parametrize("page,limit", [(0, 10), (-1, 10), (1, 0), (1, 251), (1.5, 10), (True, 10)])
    def test_invalid(self, page, limit):
        """Test rejected values."""
        with pytest.raises(InvalidPaginationError):
            validate_pagination(page, limit)

    def test_error_is_value_error(self):
        """Test callers can catch invalid input as ValueError."""
        with pytest.raises(ValueError):
            validate_pagination(0, 10)


class TestPaginationCursor:
    """Tests for the sweep cursor."""

    def test_advance(self):
        """Test advancing increments the page."""
        cursor = PaginationCursor(limit=10)
        cursor.advance()

        assert cursor.page == 2

    def test_last_page_detection(self):
        """Test short and empty pages end the sweep."""
        cursor = PaginationCursor(limit=3)

        assert cursor.is_last_page([]) is True
        assert cursor.is_last_page([1, 2]) is True
        assert cursor.is_last_page([1, 2, 3]) is False

    def test_invalid_cursor(self):
        """Test construction validates the limit."""
        with pytest.raises(InvalidPaginationError):
            PaginationCursor(limit=500)


class TestCollectAll:
    """Tests for collect_all."""

    @pytest.mark.asyncio
    async def test_stops_on_short_page(self):
        """Test pages of 250, 250, 17 make three calls and 517 items."""
        fetch_page = pages_of(250, 250, 17)

        items = await collect_all(fetch_page)

        assert len(items) == 517
        assert items == list(range(517))
        assert [c.args for c in fetch_page.await_args_list] == [(1, 250), (2, 250), (3, 250)]

    @pytest.mark.asyncio
    async def test_stops_on_empty_page(self):
        """Test an exact multiple of the limit ends with an empty page."""
        fetch_page = pages_of(2, 2, 0)

        items = await collect_all(fetch_page, limit=2)

        assert items == [0, 1, 2, 3]
        assert fetch_page.await_count == 3

    @pytest.mark.asyncio
    async def test_none_returns_partial_results(self):
        """Test a None page stops the sweep with what was collected."""
        fetch_page = AsyncMock(side_effect=[[1, 2], None])

        items = await collect_all(fetch_page, limit=2)

        assert items == [1, 2]
        assert fetch_page.await_count == 2

    @pytest.mark.asyncio
    async def test_none_on_first_page(self):
        """Test a None first page yields an empty list."""
        fetch_page = AsyncMock(return_value=None)

        assert await collect_all(fetch_page) == []

    @pytest.mark.asyncio
    async def test_exception_propagates(self):
        """Test fetch errors abort the sweep."""
        fetch_page = AsyncMock(side_effect=[[1, 2], RuntimeError("page 2 failed")])

        with pytest.raises(RuntimeError, match="page 2 failed"):
            await collect_all(fetch_page, limit=2)
