"""Loading of the store-info aggregate from the storefront homepage."""

import asyncio

from shopclient.core.logging import get_log_context, get_logger
from shopclient.core.utils import generate_store_slug
from shopclient.dto.models import ContactLinks, Showcase, StoreInfo, TechProvider
from shopclient.exceptions import HTTPStatusFetchError
from shopclient.services.store_parser import parse_storefront
from shopclient.services.validation import HandleValidator
from shopclient.transport.retry import Fetcher

logger = get_logger(__name__)


async def fetch_store_info(
    fetcher: Fetcher,
    validator: HandleValidator,
    store_domain: str,
    base_url: str,
) -> StoreInfo:
    """Fetch and parse the homepage, then keep only showcase handles that exist.

    Args:
        fetcher: Fetcher for the homepage request
        validator: Validator used for showcase handle checks
        store_domain: Store origin, e.g. "https://exampleshop.com"
        base_url: Store base URL ending with "/"

    Returns:
        StoreInfo for the store

    Raises:
        HTTPStatusFetchError: If the homepage answers with a non-2xx status
        httpx.HTTPError: If the homepage cannot be fetched
    """
    response = await fetcher.fetch(base_url)
    if not response.is_success:
        raise HTTPStatusFetchError(response.status_code, response.reason_phrase)

    parsed = parse_storefront(response.text, store_domain)

    products, collections = await asyncio.gather(
        validator.validate_in_batches(
            parsed.product_handles,
            lambda handle: validator.is_valid_handle("product", handle),
        ),
        validator.validate_in_batches(
            parsed.collection_handles,
            lambda handle: validator.is_valid_handle("collection", handle),
        ),
    )

    logger.info(
        f"Loaded store info: {len(products)}/{len(parsed.product_handles)} products, "
        f"{len(collections)}/{len(parsed.collection_handles)} collections showcased",
        extra=get_log_context(store_domain=store_domain, url=base_url),
    )

    slug = generate_store_slug(base_url)
    return StoreInfo(
        name=parsed.name or slug,
        domain=base_url,
        slug=slug,
        title=parsed.title,
        description=parsed.description,
        logo_url=parsed.logo_url,
        social_links=parsed.social_links,
        contact_links=ContactLinks(
            tel=parsed.tel,
            email=parsed.email,
            contact_page=parsed.contact_page,
        ),
        header_links=parsed.header_links,
        showcase=Showcase(
            products=list(dict.fromkeys(products)),
            collections=list(dict.fromkeys(collections)),
        ),
        json_ld_data=parsed.json_ld_data,
        tech_provider=TechProvider(wallet_id=parsed.wallet_id, sub_domain=parsed.sub_domain),
    )
