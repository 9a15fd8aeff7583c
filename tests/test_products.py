"""Tests for product operations."""

import httpx
import pytest
import pytest_asyncio
import respx

from shopclient import FetchError, InvalidHandleError, InvalidPaginationError, ShopClient
from shopclient.transport import RetryPolicy

BASE_URL = "https://shop.example.com/"


def listing_product(n):
    return {
        "id": n,
        "handle": f"tee-{n}",
        "title": f"Tee {n}",
        "vendor": "Example",
        "product_type": "Shirts",
        "tags": ["cotton", "summer"],
        "variants": [
            {"id": n * 10, "title": "S", "option1": "S", "price": "19.99", "compare_at_price": "25.00", "available": True},
            {"id": n * 10 + 1, "title": "M", "option1": "M", "price": "21.99", "compare_at_price": None, "available": False},
        ],
        "images": [{"id": n * 100, "src": "//cdn.shopify.com/tee.png", "position": 1}],
        "options": [{"name": "Size", "position": 1, "values": ["S", "M"]}],
        "created_at": "2024-01-02T03:04:05-05:00",
    }


def single_product(handle="blue-tee"):
    return {
        "id": 7,
        "handle": handle,
        "title": "Blue Tee",
        "vendor": "Example",
        "type": "Shirts",
        "price": 1999,
        "price_min": 1999,
        "price_max": 2199,
        "price_varies": True,
        "compare_at_price": 2500,
        "available": True,
        "images": ["//cdn.shopify.com/blue.png"],
        "featured_image": "//cdn.shopify.com/blue.png",
        "options": [{"name": "Size", "position": 1, "values": ["S", "M"]}],
        "variants": [{"id": 70, "title": "S", "option1": "S", "price": 1999, "available": True}],
    }


def products_page(request):
    """Serve products.json: two full pages of 250 then 17 products."""
    page = int(request.url.params["page"])
    limit = int(request.url.params["limit"])
    total = 517
    start = (page - 1) * limit
    count = max(0, min(limit, total - start))
    return httpx.Response(200, json={"products": [listing_product(start + i + 1) for i in range(count)]})


@pytest_asyncio.fixture
async def shop():
    async with httpx.AsyncClient(follow_redirects=True) as http:
        client = ShopClient(
            "shop.example.com",
            http_client=http,
            retry_policy=RetryPolicy(max_retries=0),
        )
        yield client
        await client.aclose()


class TestProductsAll:
    """Tests for products.all."""

    @pytest.mark.asyncio
    async def test_sweeps_all_pages(self, shop):
        """Test three requests collect every product."""
        with respx.mock:
            route = respx.get(host="shop.example.com", path="/products.json").mock(side_effect=products_page)

            products = await shop.products.all()

        assert len(products) == 517
        assert route.call_count == 3
        assert products[0].handle == "tee-1"
        assert products[-1].handle == "tee-517"

    @pytest.mark.asyncio
    async def test_page_error_raises_fetch_error(self, shop):
        """Test a failing page aborts the sweep with FetchError."""
        with respx.mock:
            respx.get(host="shop.example.com", path="/products.json").mock(return_value=httpx.Response(500))

            with pytest.raises(FetchError) as exc_info:
                await shop.products.all()

        assert exc_info.value.status_code == 500
        assert exc_info.value.url == f"{BASE_URL}products.json"


class TestProductsPaginated:
    """Tests for products.paginated."""

    @pytest.mark.asyncio
    async def test_maps_products(self, shop):
        """Test the page is mapped into normalized products."""
        with respx.mock:
            respx.get(host="shop.example.com", path="/products.json").mock(side_effect=products_page)

            products = await shop.products.paginated(page=1, limit=2)

        assert [p.handle for p in products] == ["tee-1", "tee-2"]
        product = products[0]
        assert product.price == 1999
        assert product.price_min == 1999
        assert product.price_max == 2199
        assert product.price_varies is True
        assert product.compare_at_price == 0
        assert product.available is True
        assert product.featured_image == "https://cdn.shopify.com/tee.png"
        assert product.options[0].key == "size"
        assert product.slug == "tee-1-by-shop"
        assert product.url == "https://shop.example.com/products/tee-1"
        assert product.created_at.year == 2024

    @pytest.mark.asyncio
    async def test_past_last_page_is_empty(self, shop):
        """Test a page beyond the end yields []."""
        with respx.mock:
            respx.get(host="shop.example.com", path="/products.json").mock(
                return_value=httpx.Response(200, json={"products": []})
            )

            assert await shop.products.paginated(page=99) == []

    @pytest.mark.asyncio
    async def test_failure_returns_none(self, shop):
        """Test a failed page request yields None."""
        with respx.mock:
            respx.get(host="shop.example.com", path="/products.json").mock(side_effect=httpx.ConnectError("refused"))

            assert await shop.products.paginated() is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 251)])
    async def test_invalid_input(self, shop, page, limit):
        """Test invalid pagination raises before any request."""
        with respx.mock:
            with pytest.raises(InvalidPaginationError):
                await shop.products.paginated(page=page, limit=limit)


class TestProductsFind:
    """Tests for products.find."""

    @pytest.mark.asyncio
    async def test_find(self, shop):
        """Test a product is fetched from the .js endpoint."""
        with respx.mock:
            respx.get(f"{BASE_URL}products/blue-tee").mock(return_value=httpx.Response(200))
            respx.get(f"{BASE_URL}products/blue-tee.js").mock(
                return_value=httpx.Response(200, json=single_product())
            )

            product = await shop.products.find("blue-tee")

        assert product.platform_id == "7"
        assert product.price == 1999
        assert product.price_max == 2199
        assert product.discount == 20
        assert product.images[0].src == "https://cdn.shopify.com/blue.png"

    @pytest.mark.asyncio
    async def test_find_follows_renamed_handle(self, shop):
        """Test a renamed handle is resolved before the JSON fetch."""
        with respx.mock:
            respx.get(f"{BASE_URL}products/old-tee").mock(
                return_value=httpx.Response(301, headers={"Location": f"{BASE_URL}products/blue-tee"})
            )
            respx.get(f"{BASE_URL}products/blue-tee").mock(return_value=httpx.Response(200))
            js = respx.get(f"{BASE_URL}products/blue-tee.js").mock(
                return_value=httpx.Response(200, json=single_product())
            )

            product = await shop.products.find("old-tee")

        assert product.handle == "blue-tee"
        assert js.called

    @pytest.mark.asyncio
    async def test_find_keeps_variant_query(self, shop):
        """Test "handle?variant=.." keeps the query on the .js request."""
        with respx.mock:
            respx.get(f"{BASE_URL}products/blue-tee").mock(return_value=httpx.Response(200))
            js = respx.get(host="shop.example.com", path="/products/blue-tee.js").mock(
                return_value=httpx.Response(200, json=single_product())
            )

            await shop.products.find("blue-tee?variant=70")

        assert js.calls.last.request.url.params["variant"] == "70"

    @pytest.mark.asyncio
    async def test_find_not_found(self, shop):
        """Test a 404 yields None."""
        with respx.mock:
            respx.get(f"{BASE_URL}products/missing").mock(return_value=httpx.Response(404))
            respx.get(f"{BASE_URL}products/missing.js").mock(return_value=httpx.Response(404))

            assert await shop.products.find("missing") is None

    @pytest.mark.asyncio
    async def test_find_server_error(self, shop):
        """Test other failures raise FetchError."""
        with respx.mock:
            respx.get(f"{BASE_URL}products/blue-tee").mock(return_value=httpx.Response(200))
            respx.get(f"{BASE_URL}products/blue-tee.js").mock(return_value=httpx.Response(500))

            with pytest.raises(FetchError) as exc_info:
                await shop.products.find("blue-tee")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_find_sanitizes_handle(self, shop):
        """Test unsafe characters are stripped from the handle."""
        with respx.mock:
            respx.get(f"{BASE_URL}products/blue-tee").mock(return_value=httpx.Response(200))
            respx.get(f"{BASE_URL}products/blue-tee.js").mock(
                return_value=httpx.Response(200, json=single_product())
            )

            product = await shop.products.find("  blue-tee<script>  ")

        assert product.handle == "blue-tee"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("handle", ["", "   ", "!!!", "a" * 256, None])
    async def test_find_invalid_handle(self, shop, handle):
        """Test invalid handles raise before any request."""
        with respx.mock:
            with pytest.raises(InvalidHandleError):
                await shop.products.find(handle)


class TestProductsShowcased:
    """Tests for products.showcased."""

    @pytest.mark.asyncio
    async def test_showcased(self, shop):
        """Test homepage products are looked up and missing ones dropped."""
        homepage = '<a href="/products/blue-tee">Blue</a><a href="/products/gone-tee">Gone</a>'
        with respx.mock:
            respx.get(BASE_URL).mock(return_value=httpx.Response(200, text=homepage))
            respx.head(f"{BASE_URL}products/blue-tee.js").mock(return_value=httpx.Response(200))
            respx.head(f"{BASE_URL}products/gone-tee.js").mock(return_value=httpx.Response(404))
            respx.get(f"{BASE_URL}products/blue-tee").mock(return_value=httpx.Response(200))
            respx.get(f"{BASE_URL}products/blue-tee.js").mock(
                return_value=httpx.Response(200, json=single_product())
            )

            products = await shop.products.showcased()

        assert [p.handle for p in products] == ["blue-tee"]
