"""Services package for the storefront client.

This package provides:
- Handle existence validation with caching and batching
- Page sweeps over list endpoints
- Handle redirect resolution
- Homepage parsing and the store-info loader
- Product and collection operation groups
"""

from shopclient.services.collections import CollectionOperations, CollectionProductOperations
from shopclient.services.pagination import MAX_PAGE_LIMIT, PaginationCursor, collect_all, validate_pagination
from shopclient.services.products import ProductOperations
from shopclient.services.redirects import CanonicalHandle, resolve_canonical_handle
from shopclient.services.store_info import fetch_store_info
from shopclient.services.store_parser import ParsedStorefront, parse_storefront
from shopclient.services.validation import HandleValidator

__all__ = [
    "MAX_PAGE_LIMIT",
    "CanonicalHandle",
    "CollectionOperations",
    "CollectionProductOperations",
    "HandleValidator",
    "PaginationCursor",
    "ParsedStorefront",
    "ProductOperations",
    "collect_all",
    "fetch_store_info",
    "parse_storefront",
    "resolve_canonical_handle",
    "validate_pagination",
]
