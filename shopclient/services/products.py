"""Product operations: listing, pagination, lookup by handle, showcase."""

import asyncio
from typing import TYPE_CHECKING, List, Optional

from shopclient.core.logging import get_log_context, get_logger
from shopclient.core.utils import sanitize_handle, split_handle_query
from shopclient.dto.models import Product
from shopclient.dto.products import map_product, map_products
from shopclient.exceptions import FetchError, HTTPStatusFetchError, InvalidHandleError
from shopclient.services.pagination import MAX_PAGE_LIMIT, collect_all, validate_pagination

if TYPE_CHECKING:
    from shopclient.client import ShopClient

logger = get_logger(__name__)


class ProductOperations:
    """Accessed as ``client.products``."""

    def __init__(self, client: "ShopClient"):
        self._client = client

    async def fetch_page(self, page: int, limit: int) -> List[Product]:
        """Fetch one page of ``products.json``.

        Raises:
            FetchError: On any network failure or non-2xx status
        """
        client = self._client
        url = f"{client.base_url}products.json?page={page}&limit={limit}"
        try:
            response = await client.fetcher.fetch(url, rate_limit_class="products:list")
            if not response.is_success:
                raise HTTPStatusFetchError(response.status_code, response.reason_phrase)
            data = response.json()
        except Exception as e:
            raise FetchError.wrap(e, "fetching products", f"{client.base_url}products.json") from e
        return map_products(data.get("products"), client.mapping_context)

    async def all(self) -> List[Product]:
        """Fetch every product in the store.

        Raises:
            FetchError: If any page fails
        """
        try:
            return await collect_all(self.fetch_page, MAX_PAGE_LIMIT)
        except FetchError as e:
            logger.error(
                f"Failed to fetch all products: {e}",
                extra=get_log_context(store_domain=self._client.store_domain),
            )
            raise

    async def paginated(self, page: int = 1, limit: int = MAX_PAGE_LIMIT) -> Optional[List[Product]]:
        """Fetch a single page of products.

        Args:
            page: Page number, starting at 1
            limit: Products per page (1..250)

        Returns:
            Products of the page ([] past the last page), or None if the
            request failed

        Raises:
            InvalidPaginationError: If page or limit is out of range
        """
        page, limit = validate_pagination(page, limit)
        try:
            return await self.fetch_page(page, limit)
        except FetchError as e:
            logger.error(
                f"Error fetching products page {page} with limit {limit}: {e}",
                extra=get_log_context(store_domain=self._client.store_domain),
            )
            return None

    async def find(self, handle: str) -> Optional[Product]:
        """Find a product by handle.

        A query string is kept, so "t-shirt?variant=123" selects the
        variant. Renamed handles are followed to their current form.

        Returns:
            The product, or None if the store answers 404

        Raises:
            InvalidHandleError: If the handle is missing or malformed
            FetchError: On any other failure
        """
        if not handle or not isinstance(handle, str):
            raise InvalidHandleError(handle, "Product handle is required and must be a string")

        base, query = split_handle_query(handle)
        sanitized = sanitize_handle(base)

        client = self._client
        resolved = await client.resolve_canonical_handle("product", sanitized)
        url = f"{client.base_url}products/{resolved.final_handle}.js"
        if query:
            url += f"?{query}"

        try:
            response = await client.fetcher.fetch(url)
            if response.status_code == 404:
                return None
            if not response.is_success:
                raise HTTPStatusFetchError(response.status_code, response.reason_phrase)
            return map_product(response.json(), client.mapping_context)
        except Exception as e:
            logger.error(
                f"Error fetching product {sanitized}: {type(e).__name__}: {e}",
                extra=get_log_context(store_domain=client.store_domain, url=url),
            )
            raise FetchError.wrap(e, "fetching product", url) from e

    async def showcased(self) -> List[Product]:
        """Products linked from the homepage that still exist."""
        info = await self._client.get_info()
        products = await asyncio.gather(*(self.find(h) for h in info.showcase.products))
        return [p for p in products if p is not None]
