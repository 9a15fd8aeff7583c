"""Mapping of raw Shopify collection JSON into the Collection model."""

from typing import Any, Dict, List, Optional

from shopclient.dto.models import Collection, CollectionImage
from shopclient.dto.products import normalize_image_url


def map_collection(collection: Dict[str, Any]) -> Collection:
    raw_image = collection.get("image")
    image = None
    if isinstance(raw_image, dict) and raw_image.get("src"):
        image = CollectionImage(
            id=raw_image.get("id"),
            src=normalize_image_url(raw_image["src"]) or "",
            alt=raw_image.get("alt"),
            created_at=raw_image.get("created_at"),
        )

    return Collection(
        id=str(collection["id"]),
        title=collection.get("title") or "",
        handle=collection["handle"],
        description=collection.get("description") or collection.get("body_html") or None,
        image=image,
        products_count=collection.get("products_count"),
        published_at=collection.get("published_at"),
        updated_at=collection.get("updated_at"),
    )


def map_collections(collections: Optional[List[Dict[str, Any]]]) -> List[Collection]:
    return [map_collection(c) for c in collections or []]
