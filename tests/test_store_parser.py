"""Tests for homepage HTML parsing."""

from shopclient.services.store_parser import parse_storefront

STORE = "https://shop.example.com"

HOMEPAGE = """
<html>
<head>
  <meta property="og:site_name" content="Example Shop">
  <meta property="og:title" content="Example Shop | Tees">
  <meta name="description" content="Soft tees since 2010">
  <meta property="og:image" content="http://cdn.shopify.com/s/files/logo.png">
  <meta name="shopify-digital-wallet" content="/12345/digital_wallets/dialog">
  <script>var Shopify = {}; Shopify.shop = "example-shop.myshopify.com";</script>
  <script type="application/ld+json">{"@type": "Organization", "name": "Example Shop"}</script>
  <script type="application/ld+json">{not valid json</script>
</head>
<body>
  <div id="shopify-section-header" class="shopify-section header">
    <nav>
      <a href="/collections/summer">Summer</a>
      <a href="/pages/about">About</a>
      <a href="#top">Top</a>
      <a href="https://shop.example.com/products/blue-tee/">Blue</a>
    </nav>
  </div>
  <main>
    <a href="/products/blue-tee">Blue tee</a>
    <a href="/products/red-tee?variant=1">Red tee</a>
    <a href="/products/blue-tee">Blue tee again</a>
    <a href="/collections/summer">Summer</a>
    <a href="/collections/sale/products/green-tee">Green in sale</a>
  </main>
  <footer>
    <a href="https://www.instagram.com/exampleshop">Instagram</a>
    <a href="//facebook.com/exampleshop">Facebook</a>
    <a href="https://example.org/blog">Blog</a>
    <a href="tel:+1 555 0100">Call</a>
    <a href="mailto:hello@example.com?subject=Hi">Mail</a>
    <a href="/pages/contact">Contact</a>
  </footer>
</body>
</html>
"""


class TestParseStorefront:
    """Tests for parse_storefront."""

    def test_meta_fields(self):
        """Test name, title, description and logo."""
        parsed = parse_storefront(HOMEPAGE, STORE)

        assert parsed.name == "Example Shop"
        assert parsed.title == "Example Shop | Tees"
        assert parsed.description == "Soft tees since 2010"
        assert parsed.logo_url == "https://cdn.shopify.com/s/files/logo.png"

    def test_name_falls_back_to_domain(self):
        """Test a page without og:site_name uses the domain."""
        parsed = parse_storefront("<html><head></head><body></body></html>", "https://www.tees.example.com")

        assert parsed.name == "tees.example.com"
        assert parsed.title is None
        assert parsed.product_handles == []

    def test_logo_from_cdn_image(self):
        """Test the logo falls back to a /cdn/shop/ image."""
        html = '<img src="//shop.example.com/cdn/shop/files/logo.png" alt="logo">'

        assert parse_storefront(html, STORE).logo_url == "https://shop.example.com/cdn/shop/files/logo.png"

    def test_social_links(self):
        """Test social links are keyed by network."""
        parsed = parse_storefront(HOMEPAGE, STORE)

        assert parsed.social_links == {
            "instagram": "https://www.instagram.com/exampleshop",
            "facebook": "https://facebook.com/exampleshop",
        }

    def test_contact_links(self):
        """Test tel, mailto and contact page extraction."""
        parsed = parse_storefront(HOMEPAGE, STORE)

        assert parsed.tel == "+1 555 0100"
        assert parsed.email == "hello@example.com"
        assert parsed.contact_page == "/pages/contact"

    def test_candidate_handles_deduplicated(self):
        """Test product and collection handles are unique and ordered."""
        parsed = parse_storefront(HOMEPAGE, STORE)

        assert parsed.product_handles == ["blue-tee", "red-tee", "green-tee"]
        assert parsed.collection_handles == ["summer"]

    def test_header_links(self):
        """Test header navigation paths."""
        parsed = parse_storefront(HOMEPAGE, STORE)

        assert parsed.header_links == ["collections/summer", "pages/about", "products/blue-tee"]

    def test_json_ld_skips_invalid_blocks(self):
        """Test invalid JSON-LD is skipped rather than failing the parse."""
        parsed = parse_storefront(HOMEPAGE, STORE)

        assert parsed.json_ld_data == [{"@type": "Organization", "name": "Example Shop"}]

    def test_tech_provider_fields(self):
        """Test wallet id and myshopify subdomain."""
        parsed = parse_storefront(HOMEPAGE, STORE)

        assert parsed.wallet_id == "12345"
        assert parsed.sub_domain == "example-shop.myshopify.com"

    def test_malformed_links_skipped(self):
        """Test unparseable hrefs are ignored and valid ones still collected."""
        html = """
        <div class="shopify-section header-menu">
          <a href="http://[broken/products/bad">Bad</a>
          <a href="/products/blue-tee">Blue</a>
        </div>
        <a href="http://[broken/">Broken</a>
        <a href="/collections/summer">Summer</a>
        """
        parsed = parse_storefront(html, STORE)

        assert parsed.product_handles == ["blue-tee"]
        assert parsed.collection_handles == ["summer"]
        assert parsed.header_links == ["products/blue-tee"]

    def test_index_links_are_not_handles(self):
        """Test bare /collections/ and /products/ links yield no handle."""
        html = '<a href="/collections/">All</a><a href="/products/">Shop</a><a href="/collections/all">All products</a>'
        parsed = parse_storefront(html, STORE)

        assert parsed.product_handles == []
        assert parsed.collection_handles == ["all"]
