"""Extraction of store metadata from storefront homepage HTML.

The parser is purely syntactic: it collects candidate product and
collection handles but does not check that they exist. Existence is
checked by the caller (see ``services.store_info``).
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import unquote, urljoin, urlsplit

from bs4 import BeautifulSoup

from shopclient.core.logging import get_logger
from shopclient.core.utils import sanitize_domain

logger = get_logger(__name__)

SOCIAL_DOMAINS = (
    "facebook",
    "twitter",
    "instagram",
    "pinterest",
    "youtube",
    "linkedin",
    "tiktok",
    "vimeo",
)

_SOCIAL_HREF = re.compile(
    r"(?:^|[/.])(" + "|".join(SOCIAL_DOMAINS) + r")\.com(?:[/:?#]|$)", re.IGNORECASE
)
_CONTACT_HREF = re.compile(r"/(?:pages/)?contact", re.IGNORECASE)
_MYSHOPIFY = re.compile(r"['\"]([^'\"\s]*?\.myshopify\.com)['\"]")
_CDN_LOGO = re.compile(r"/cdn/shop/")
_HEADER_HINT = re.compile(r"\b(header|navigation|nav|menu)\b", re.IGNORECASE)


@dataclass
class ParsedStorefront:
    """Raw store-info record extracted from homepage HTML."""

    name: str
    title: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    social_links: Dict[str, str] = field(default_factory=dict)
    tel: Optional[str] = None
    email: Optional[str] = None
    contact_page: Optional[str] = None
    header_links: List[str] = field(default_factory=list)
    product_handles: List[str] = field(default_factory=list)
    collection_handles: List[str] = field(default_factory=list)
    json_ld_data: List[Any] = field(default_factory=list)
    wallet_id: Optional[str] = None
    sub_domain: Optional[str] = None


def _meta(soup: BeautifulSoup, attr: str, value: str) -> Optional[str]:
    tag = soup.find("meta", attrs={attr: value})
    if tag is None:
        return None
    content = tag.get("content")
    return content.strip() if content and content.strip() else None


def _to_https(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    if url.startswith("//"):
        return f"https:{url}"
    return url.replace("http://", "https://", 1)


def _last_segment(path: str, marker: str) -> Optional[str]:
    if marker not in path:
        return None
    segment = unquote(path.rstrip("/").rsplit("/", 1)[-1])
    # "/collections/" alone is the index page, not a handle
    if not segment or segment == marker.strip("/"):
        return None
    return segment


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def extract_social_links(soup: BeautifulSoup, base_url: str) -> Dict[str, str]:
    links: Dict[str, str] = {}
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        match = _SOCIAL_HREF.search(href)
        if not match:
            continue
        try:
            if href.startswith("//"):
                href = f"https:{href}"
            elif href.startswith("/"):
                href = urljoin(base_url, href)
            host = urlsplit(href).hostname
        except ValueError:
            continue
        if not host:
            continue
        key = host.replace("www.", "", 1).split(".")[0].lower()
        if key:
            links[key] = href
    return links


def extract_header_links(soup: BeautifulSoup, store_domain: str) -> List[str]:
    """Paths of product/collection/page links inside Shopify header sections."""
    paths: List[str] = []
    for section in soup.find_all(["header", "nav", "div", "section"]):
        marker = " ".join(section.get("class") or []) + " " + (section.get("id") or "")
        if "shopify-section" not in marker or not _HEADER_HINT.search(marker):
            continue
        for a in section.find_all("a", href=True):
            href = a["href"].strip()
            if href.startswith(("#", "javascript:")):
                continue
            if not any(p in href for p in ("/products/", "/collections/", "/pages/")):
                continue
            try:
                path = urlsplit(urljoin(store_domain, href)).path.strip("/")
            except ValueError:
                continue
            if path:
                paths.append(path)
    return _unique(paths)


def extract_json_ld(soup: BeautifulSoup) -> List[Any]:
    entries: List[Any] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            entries.append(json.loads(raw))
        except json.JSONDecodeError:
            logger.debug("Skipping invalid JSON-LD block")
    return entries


def parse_storefront(html: str, store_domain: str) -> ParsedStorefront:
    """Parse homepage HTML into a ParsedStorefront.

    Args:
        html: Homepage HTML
        store_domain: Store origin, e.g. "https://exampleshop.com"

    Returns:
        ParsedStorefront with candidate (unvalidated) handles
    """
    soup = BeautifulSoup(html, "html.parser")

    name = (
        _meta(soup, "property", "og:site_name")
        or _meta(soup, "name", "og:site_name")
        or sanitize_domain(store_domain)
    )
    title = (
        _meta(soup, "property", "og:title")
        or _meta(soup, "name", "og:title")
        or _meta(soup, "name", "twitter:title")
    )
    description = _meta(soup, "name", "description") or _meta(soup, "property", "og:description")

    logo_url = _meta(soup, "property", "og:image") or _meta(soup, "property", "og:image:secure_url")
    if not logo_url:
        img = soup.find("img", src=_CDN_LOGO)
        logo_url = img["src"] if img is not None else None
    logo_url = _to_https(logo_url)

    wallet = _meta(soup, "name", "shopify-digital-wallet")
    wallet_id = wallet.split("/")[1] if wallet and "/" in wallet else None

    sub_domain_match = _MYSHOPIFY.search(html)
    sub_domain = sub_domain_match.group(1) if sub_domain_match else None

    parsed = ParsedStorefront(
        name=name,
        title=title,
        description=description,
        logo_url=logo_url,
        social_links=extract_social_links(soup, store_domain),
        header_links=extract_header_links(soup, store_domain),
        json_ld_data=extract_json_ld(soup),
        wallet_id=wallet_id,
        sub_domain=sub_domain,
    )

    products: List[str] = []
    collections: List[str] = []
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if href.startswith("tel:"):
            parsed.tel = href[4:].strip() or parsed.tel
        elif href.startswith("mailto:"):
            parsed.email = href[7:].split("?", 1)[0].strip() or parsed.email
        else:
            try:
                path = urlsplit(href).path
            except ValueError:
                logger.debug(f"Skipping malformed link: {href!r}")
                continue
            if _CONTACT_HREF.search(path):
                parsed.contact_page = href
            product = _last_segment(path, "/products/")
            if product:
                products.append(product)
            collection = _last_segment(path, "/collections/")
            if collection and "/products/" not in path:
                collections.append(collection)

    parsed.product_handles = _unique(products)
    parsed.collection_handles = _unique(collections)
    return parsed
