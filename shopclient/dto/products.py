"""Mapping of raw Shopify product JSON into the normalized Product model.

Two upstream shapes exist:
- ``/products.json`` and ``/collections/{handle}/products.json``: prices are
  decimal strings, images are objects.
- ``/products/{handle}.js``: prices are integer cents, images are URLs.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from shopclient.core.utils import price_to_cents
from shopclient.dto.models import Product, ProductImage, ProductOption, ProductVariant


@dataclass(frozen=True)
class MappingContext:
    store_domain: str
    store_slug: str
    currency: str = "USD"


def normalize_image_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    return f"https:{url}" if url.startswith("//") else url


def normalize_key(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", (name or "").strip().lower()).strip("_")


def parse_date(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def calculate_discount(price: int, compare_at_price: int) -> int:
    """Percentage saved versus the compare-at price, rounded."""
    if not compare_at_price:
        return 0
    return max(0, round(100 - (price / compare_at_price) * 100))


def _featured_image_src(raw: Any) -> Optional[str]:
    if isinstance(raw, dict):
        return normalize_image_url(raw.get("src"))
    if isinstance(raw, str):
        return normalize_image_url(raw)
    return None


def map_variants(raw_variants: List[Dict[str, Any]]) -> List[ProductVariant]:
    variants = []
    for variant in raw_variants or []:
        option_values = [variant.get(f"option{i}") for i in (1, 2, 3)]
        variants.append(
            ProductVariant(
                id=str(variant["id"]),
                title=variant.get("title") or "",
                option1=option_values[0] or None,
                option2=option_values[1] or None,
                option3=option_values[2] or None,
                options=[v for v in option_values if v],
                sku=variant.get("sku") or None,
                requires_shipping=bool(variant.get("requires_shipping", True)),
                taxable=bool(variant.get("taxable", True)),
                available=bool(variant.get("available")),
                price=price_to_cents(variant.get("price")),
                compare_at_price=price_to_cents(variant.get("compare_at_price")),
                weight_in_grams=variant.get("grams"),
                position=variant.get("position") or 1,
                product_id=variant.get("product_id"),
                featured_image=_featured_image_src(variant.get("featured_image")),
            )
        )
    return variants


def map_options(raw_options: List[Any]) -> List[ProductOption]:
    options = []
    for index, option in enumerate(raw_options or [], start=1):
        # products.json uses objects; the storefront .js endpoint may use bare names
        if isinstance(option, str):
            option = {"name": option, "position": index, "values": []}
        options.append(
            ProductOption(
                key=normalize_key(option.get("name", "")),
                name=option.get("name", ""),
                position=option.get("position") or index,
                values=[str(v) for v in option.get("values") or []],
            )
        )
    return options


def _tags(raw: Any) -> List[str]:
    if isinstance(raw, list):
        return [str(t) for t in raw]
    if isinstance(raw, str) and raw:
        return [t.strip() for t in raw.split(",") if t.strip()]
    return []


def map_product_listing(product: Dict[str, Any], ctx: MappingContext) -> Product:
    """Map one product from a ``products.json`` page."""
    variants = map_variants(product.get("variants") or [])
    prices = [v.price for v in variants]
    compare_prices = [v.compare_at_price for v in variants]

    price_min = min(prices) if prices else 0
    price_max = max(prices) if prices else 0
    compare_min = min(compare_prices) if compare_prices else 0
    compare_max = max(compare_prices) if compare_prices else 0

    images = [
        ProductImage(
            id=image.get("id") or index,
            product_id=image.get("product_id"),
            position=image.get("position") or index,
            src=normalize_image_url(image.get("src")) or "",
            alt=image.get("alt"),
            width=image.get("width") or 0,
            height=image.get("height") or 0,
            variant_ids=image.get("variant_ids") or [],
        )
        for index, image in enumerate(product.get("images") or [], start=1)
        if image.get("src")
    ]

    handle = product["handle"]
    return Product(
        platform_id=str(product["id"]),
        handle=handle,
        slug=f"{handle}-by-{ctx.store_slug}",
        title=product.get("title") or "",
        url=f"{ctx.store_domain}/products/{handle}",
        vendor=product.get("vendor"),
        product_type=product.get("product_type") or None,
        tags=_tags(product.get("tags")),
        body_html=product.get("body_html") or None,
        available=any(v.available for v in variants),
        currency=ctx.currency,
        price=price_min,
        price_min=price_min,
        price_max=price_max,
        price_varies=len(variants) > 1 and price_min != price_max,
        compare_at_price=compare_min,
        compare_at_price_min=compare_min,
        compare_at_price_max=compare_max,
        discount=calculate_discount(price_min, compare_min),
        featured_image=images[0].src if images else None,
        options=map_options(product.get("options") or []),
        variants=variants,
        images=images,
        store_domain=ctx.store_domain,
        store_slug=ctx.store_slug,
        created_at=parse_date(product.get("created_at")),
        updated_at=parse_date(product.get("updated_at")),
        published_at=parse_date(product.get("published_at")),
    )


def map_products(products: Optional[List[Dict[str, Any]]], ctx: MappingContext) -> List[Product]:
    """Map a ``products.json`` page; an empty or missing list maps to []."""
    return [map_product_listing(p, ctx) for p in products or []]


def map_product(product: Dict[str, Any], ctx: MappingContext) -> Product:
    """Map the single-product ``products/{handle}.js`` shape."""
    handle = product["handle"]
    price = price_to_cents(product.get("price"))
    compare_at = price_to_cents(product.get("compare_at_price"))

    images = [
        ProductImage(
            id=index,
            product_id=product.get("id"),
            position=index,
            src=normalize_image_url(src) or "",
        )
        for index, src in enumerate(product.get("images") or [], start=1)
        if isinstance(src, str) and src
    ]

    return Product(
        platform_id=str(product["id"]),
        handle=handle,
        slug=f"{handle}-by-{ctx.store_slug}",
        title=product.get("title") or "",
        url=product.get("url") or f"{ctx.store_domain}/products/{handle}",
        vendor=product.get("vendor"),
        product_type=product.get("type") or None,
        tags=_tags(product.get("tags")),
        body_html=product.get("description") or None,
        available=bool(product.get("available")),
        currency=ctx.currency,
        price=price,
        price_min=price_to_cents(product.get("price_min", product.get("price"))),
        price_max=price_to_cents(product.get("price_max", product.get("price"))),
        price_varies=bool(product.get("price_varies")),
        compare_at_price=compare_at,
        compare_at_price_min=price_to_cents(product.get("compare_at_price_min")),
        compare_at_price_max=price_to_cents(product.get("compare_at_price_max")),
        discount=calculate_discount(price, compare_at),
        featured_image=normalize_image_url(product.get("featured_image")),
        options=map_options(product.get("options") or []),
        variants=map_variants(product.get("variants") or []),
        images=images,
        store_domain=ctx.store_domain,
        store_slug=ctx.store_slug,
        created_at=parse_date(product.get("created_at")),
        updated_at=parse_date(product.get("updated_at")),
        published_at=parse_date(product.get("published_at")),
    )
