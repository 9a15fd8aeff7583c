"""Tests for mapping raw Shopify JSON into models."""

from shopclient.dto import MappingContext, map_collection, map_product, map_products
from shopclient.dto.products import calculate_discount, normalize_key, parse_date

CTX = MappingContext(store_domain="https://shop.example.com", store_slug="shop", currency="EUR")


class TestProductMapping:
    """Tests for product mapping."""

    def test_listing_prices_in_cents(self):
        """Test decimal price strings become cents with min/max and discount."""
        raw = {
            "id": 1,
            "handle": "tee",
            "title": "Tee",
            "tags": "cotton, summer",
            "variants": [
                {"id": 10, "title": "S", "option1": "S", "price": "10.00", "compare_at_price": "20.00", "available": False},
                {"id": 11, "title": "L", "option1": "L", "price": "12.50", "compare_at_price": "20.00", "available": True},
            ],
            "images": [],
        }

        product = map_products([raw], CTX)[0]

        assert product.price == 1000
        assert product.price_max == 1250
        assert product.compare_at_price == 2000
        assert product.discount == 50
        assert product.currency == "EUR"
        assert product.tags == ["cotton", "summer"]
        assert product.available is True
        assert product.featured_image is None
        assert [v.options for v in product.variants] == [["S"], ["L"]]

    def test_empty_listing(self):
        """Test empty and missing lists map to []."""
        assert map_products([], CTX) == []
        assert map_products(None, CTX) == []

    def test_single_product_shape(self):
        """Test the .js shape with cent prices and bare image URLs."""
        raw = {
            "id": 5,
            "handle": "cap",
            "title": "Cap",
            "price": 1500,
            "compare_at_price": None,
            "available": False,
            "images": ["//cdn.shopify.com/cap.png", None],
            "options": ["Color"],
            "variants": [],
            "url": "/products/cap",
        }

        product = map_product(raw, CTX)

        assert product.price == 1500
        assert product.discount == 0
        assert product.url == "/products/cap"
        assert [i.src for i in product.images] == ["https://cdn.shopify.com/cap.png"]
        assert product.options[0].key == "color"


class TestCollectionMapping:
    """Tests for collection mapping."""

    def test_collection(self):
        """Test ids become strings and missing images stay None."""
        collection = map_collection({"id": 3, "handle": "sale", "title": "Sale"})

        assert collection.id == "3"
        assert collection.image is None
        assert collection.description is None


class TestHelpers:
    """Tests for mapping helpers."""

    def test_calculate_discount(self):
        """Test percentage rounding and zero compare-at."""
        assert calculate_discount(750, 1000) == 25
        assert calculate_discount(1000, 0) == 0
        assert calculate_discount(1200, 1000) == 0

    def test_normalize_key(self):
        """Test option names become snake-case keys."""
        assert normalize_key("Frame Color ") == "frame_color"

    def test_parse_date(self):
        """Test ISO dates and junk."""
        assert parse_date("2024-01-02T03:04:05Z").year == 2024
        assert parse_date("yesterday") is None
        assert parse_date(None) is None
