"""Normalized storefront models.

Prices are integer amounts in the store currency's minor unit (cents).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ProductImage(BaseModel):
    id: int
    product_id: Optional[int] = None
    position: int = 1
    src: str
    alt: Optional[str] = None
    width: int = 0
    height: int = 0
    variant_ids: List[int] = Field(default_factory=list)


class ProductOption(BaseModel):
    key: str
    name: str
    position: int
    values: List[str] = Field(default_factory=list)


class ProductVariant(BaseModel):
    id: str
    title: str
    option1: Optional[str] = None
    option2: Optional[str] = None
    option3: Optional[str] = None
    options: List[str] = Field(default_factory=list)
    sku: Optional[str] = None
    requires_shipping: bool = True
    taxable: bool = True
    available: bool = False
    price: int = 0
    compare_at_price: int = 0
    weight_in_grams: Optional[int] = None
    position: int = 1
    product_id: Optional[int] = None
    featured_image: Optional[str] = None


class Product(BaseModel):
    """A product normalized from either ``products.json`` or ``products/{handle}.js``."""

    platform_id: str
    handle: str
    slug: str
    title: str
    url: str
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    body_html: Optional[str] = None
    available: bool = False
    currency: str = "USD"
    price: int = 0
    price_min: int = 0
    price_max: int = 0
    price_varies: bool = False
    compare_at_price: int = 0
    compare_at_price_min: int = 0
    compare_at_price_max: int = 0
    discount: int = 0
    featured_image: Optional[str] = None
    options: List[ProductOption] = Field(default_factory=list)
    variants: List[ProductVariant] = Field(default_factory=list)
    images: List[ProductImage] = Field(default_factory=list)
    store_domain: str
    store_slug: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None


class CollectionImage(BaseModel):
    id: Optional[int] = None
    src: str
    alt: Optional[str] = None
    created_at: Optional[str] = None


class Collection(BaseModel):
    id: str
    title: str
    handle: str
    description: Optional[str] = None
    image: Optional[CollectionImage] = None
    products_count: Optional[int] = None
    published_at: Optional[str] = None
    updated_at: Optional[str] = None


class ContactLinks(BaseModel):
    tel: Optional[str] = None
    email: Optional[str] = None
    contact_page: Optional[str] = None


class Showcase(BaseModel):
    products: List[str] = Field(default_factory=list)
    collections: List[str] = Field(default_factory=list)


class TechProvider(BaseModel):
    name: str = "shopify"
    wallet_id: Optional[str] = None
    sub_domain: Optional[str] = None


class StoreInfo(BaseModel):
    """Store metadata aggregate derived from the storefront homepage."""

    name: str
    domain: str
    slug: str
    title: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    social_links: Dict[str, str] = Field(default_factory=dict)
    contact_links: ContactLinks = Field(default_factory=ContactLinks)
    header_links: List[str] = Field(default_factory=list)
    showcase: Showcase = Field(default_factory=Showcase)
    json_ld_data: List[Any] = Field(default_factory=list)
    tech_provider: TechProvider = Field(default_factory=TechProvider)
