"""Normalized models and mapping from raw Shopify JSON."""

from shopclient.dto.collections import map_collection, map_collections
from shopclient.dto.models import (
    Collection,
    CollectionImage,
    ContactLinks,
    Product,
    ProductImage,
    ProductOption,
    ProductVariant,
    Showcase,
    StoreInfo,
    TechProvider,
)
from shopclient.dto.products import MappingContext, map_product, map_products

__all__ = [
    "Collection",
    "CollectionImage",
    "ContactLinks",
    "MappingContext",
    "Product",
    "ProductImage",
    "ProductOption",
    "ProductVariant",
    "Showcase",
    "StoreInfo",
    "TechProvider",
    "map_collection",
    "map_collections",
    "map_product",
    "map_products",
]
