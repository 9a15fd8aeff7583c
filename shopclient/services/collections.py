"""Collection operations, including products within a collection."""

import asyncio
from typing import TYPE_CHECKING, List, Optional

from shopclient.core.logging import get_log_context, get_logger
from shopclient.core.utils import sanitize_handle
from shopclient.dto.collections import map_collection, map_collections
from shopclient.dto.models import Collection, CollectionImage, Product
from shopclient.dto.products import map_products
from shopclient.exceptions import FetchError, HTTPStatusFetchError, InputValidationError
from shopclient.services.pagination import MAX_PAGE_LIMIT, collect_all, validate_pagination

if TYPE_CHECKING:
    from shopclient.client import ShopClient

logger = get_logger(__name__)


class CollectionProductOperations:
    """Accessed as ``client.collections.products``."""

    def __init__(self, client: "ShopClient"):
        self._client = client

    async def paginated(
        self, handle: str, page: int = 1, limit: int = MAX_PAGE_LIMIT
    ) -> Optional[List[Product]]:
        """Fetch one page of products in a collection.

        The collection handle is resolved through redirects first, since
        ``collections/{old}/products.json`` 404s after a rename.

        Returns:
            Products of the page, or None if the collection does not exist

        Raises:
            InvalidHandleError: If the handle is missing or malformed
            InvalidPaginationError: If page or limit is out of range
            FetchError: On any other failure
        """
        sanitized = sanitize_handle(handle)
        page, limit = validate_pagination(page, limit)

        client = self._client
        resolved = await client.resolve_canonical_handle("collection", sanitized)
        url = (
            f"{client.base_url}collections/{resolved.final_handle}/products.json"
            f"?page={page}&limit={limit}"
        )

        try:
            response = await client.fetcher.fetch(url, rate_limit_class="collections:items")
            if response.status_code == 404:
                return None
            if not response.is_success:
                raise HTTPStatusFetchError(response.status_code, response.reason_phrase)
            data = response.json()
        except Exception as e:
            raise FetchError.wrap(
                e,
                "fetching products from collection",
                f"{client.base_url}collections/{sanitized}/products.json",
            ) from e
        return map_products(data.get("products"), client.mapping_context)

    async def all(self, handle: str) -> Optional[List[Product]]:
        """Fetch every product in a collection.

        Returns:
            All products, the products gathered so far if the collection
            disappears mid-sweep, or None if a page request failed
        """
        sanitized = sanitize_handle(handle)
        try:
            return await collect_all(
                lambda page, limit: self.paginated(sanitized, page, limit), MAX_PAGE_LIMIT
            )
        except FetchError as e:
            logger.error(
                f"Failed to fetch all products from collection {sanitized}: {e}",
                extra=get_log_context(store_domain=self._client.store_domain),
            )
            return None


class CollectionOperations:
    """Accessed as ``client.collections``."""

    def __init__(self, client: "ShopClient"):
        self._client = client
        self.products = CollectionProductOperations(client)

    async def fetch_page(self, page: int, limit: int) -> List[Collection]:
        client = self._client
        url = f"{client.base_url}collections.json?page={page}&limit={limit}"
        try:
            response = await client.fetcher.fetch(url, rate_limit_class="collections:list")
            if not response.is_success:
                raise HTTPStatusFetchError(response.status_code, response.reason_phrase)
            data = response.json()
        except Exception as e:
            raise FetchError.wrap(e, "fetching collections", f"{client.base_url}collections.json") from e
        return map_collections(data.get("collections"))

    async def all(self) -> List[Collection]:
        """Fetch every collection in the store.

        Raises:
            FetchError: If any page fails
        """
        return await collect_all(self.fetch_page, MAX_PAGE_LIMIT)

    async def paginated(self, page: int = 1, limit: int = MAX_PAGE_LIMIT) -> Optional[List[Collection]]:
        page, limit = validate_pagination(page, limit)
        try:
            return await self.fetch_page(page, limit)
        except FetchError as e:
            logger.error(
                f"Error fetching collections page {page} with limit {limit}: {e}",
                extra=get_log_context(store_domain=self._client.store_domain),
            )
            return None

    async def find(self, handle: str) -> Optional[Collection]:
        """Find a collection by handle.

        A collection without its own image borrows the first image of its
        first product.

        Returns:
            The collection, or None if the store answers 404

        Raises:
            InvalidHandleError: If the handle is missing or malformed
            FetchError: On any other failure
        """
        sanitized = sanitize_handle(handle)
        client = self._client
        url = f"{client.base_url}collections/{sanitized}.json"

        try:
            response = await client.fetcher.fetch(url)
            if response.status_code == 404:
                return None
            if not response.is_success:
                raise HTTPStatusFetchError(response.status_code, response.reason_phrase)
            collection = map_collection(response.json()["collection"])
        except Exception as e:
            raise FetchError.wrap(e, "fetching collection", url) from e

        if collection.image is None:
            collection.image = await self._first_product_image(collection.handle)
        return collection

    async def _first_product_image(self, handle: str) -> Optional[CollectionImage]:
        try:
            products = await self.products.paginated(handle, page=1, limit=1)
        except (FetchError, InputValidationError) as e:
            logger.debug(f"No fallback image for collection {handle}: {e}")
            return None
        if not products or not products[0].images:
            return None
        image = products[0].images[0]
        return CollectionImage(id=image.id, src=image.src, alt=image.alt)

    async def showcased(self) -> List[Collection]:
        """Collections linked from the homepage that still exist."""
        info = await self._client.get_info()
        collections = await asyncio.gather(*(self.find(h) for h in info.showcase.collections))
        return [c for c in collections if c is not None]
