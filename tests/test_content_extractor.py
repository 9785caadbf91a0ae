import httpx
import pytest

from services.extraction.ContentExtractor import ContentExtractor, derive_tags, parse_page
from services.extraction.heuristics import detect_categories, domain_tag, extract_keywords
from shared.errors.product_errors import ExtractionBlockedError, ExtractionUnreachableError, InvalidURLError

FULL_PAGE = """
<html>
<head>
  <title>Fallback Title</title>
  <meta property="og:title" content="ExampleHQ">
  <meta property="og:description" content="A collaboration tool for remote teams">
  <meta property="og:type" content="product">
  <meta name="keywords" content="Remote Work, teams, ok">
  <meta name="twitter:creator" content="@JaneDoe">
  <meta name="twitter:site" content="@ExampleHQ">
</head>
<body>
  <nav>Home Pricing Login</nav>
  <main><h1>Work together</h1><p>ExampleHQ keeps teams in sync.</p></main>
  <script>var tracking = true;</script>
  <footer>Copyright</footer>
</body>
</html>
"""

BARE_PAGE = """
<html><body>
  <header>Site header</header>
  <h1>Invoice Wizard</h1>
  <p>Create an invoice in seconds. Invoice templates for freelancers.</p>
</body></html>
"""


class TestHeuristics:
    def test_keywords_by_frequency(self):
        assert extract_keywords("invoice invoice tool the and invoice tool for teams")[:2] == ["invoice", "tool"]

    def test_keywords_skip_short_and_stop_words(self):
        assert extract_keywords("an ai is the your app") == ["app"]

    def test_categories(self):
        assert set(detect_categories("AI powered analytics for your Shopify store")) >= {"ai", "analytics", "ecommerce"}
        assert detect_categories("A lovely garden") == []

    def test_domain_tag(self):
        assert domain_tag("www.notion.so") == "notion"
        assert domain_tag("io.example.com") is None


class TestParsePage:
    def test_prefers_open_graph(self):
        content = parse_page(FULL_PAGE, "https://examplehq.io")
        assert content.name == "ExampleHQ"
        assert content.description == "A collaboration tool for remote teams"
        assert content.creator_handle == "janedoe"
        assert content.site_handle == "examplehq"

    def test_main_text_strips_chrome(self):
        content = parse_page(FULL_PAGE, "https://examplehq.io")
        assert "ExampleHQ keeps teams in sync." in content.full_text
        assert "Pricing Login" not in content.full_text
        assert "tracking" not in content.full_text

    def test_tags(self):
        tags = parse_page(FULL_PAGE, "https://examplehq.io").tags
        assert tags[:3] == ["remote work", "teams", "product"]
        assert "examplehq" in tags
        assert "collaboration" in tags
        assert "ok" not in tags
        assert len(tags) <= 10

    def test_fallbacks(self):
        content = parse_page(BARE_PAGE, "https://invoicewizard.app")
        assert content.name == "Invoice Wizard"
        assert content.description.startswith("Invoice Wizard Create an invoice")
        assert "Site header" not in content.description
        assert content.creator_handle is None

    def test_untitled(self):
        assert parse_page("<html><body></body></html>", "https://x.io").name == "Untitled"

    def test_tag_cap(self):
        keywords = ",".join(f"keyword{i}" for i in range(20))
        assert len(derive_tags("Name", "Description", "https://example.com", meta_keywords=keywords)) == 10

    def test_website_og_type_ignored(self):
        assert "website" not in derive_tags("A", "B", "https://abc.com", og_type="website")


def pages(routes: dict[str, httpx.Response]):
    def handler(request: httpx.Request) -> httpx.Response:
        return routes.get(request.url.host + request.url.path.rstrip("/"), httpx.Response(404))

    return httpx.MockTransport(handler)


@pytest.fixture
def extractor(helper_config):
    return ContentExtractor(helper_config)


class TestFetch:
    @pytest.mark.asyncio
    async def test_fetch_page_content(self, extractor):
        await extractor.boot(transport=pages({"examplehq.io": httpx.Response(200, text=FULL_PAGE)}))
        content = await extractor.fetch_page_content("https://examplehq.io")
        await extractor.close()
        assert content.name == "ExampleHQ"
        assert content.url == "https://examplehq.io"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, fragment", [(403, "forbidden"), (401, "Authentication"), (500, "HTTP 500")])
    async def test_blocked(self, extractor, status, fragment):
        await extractor.boot(transport=pages({"blocked.io": httpx.Response(status)}))
        with pytest.raises(ExtractionBlockedError) as exc_info:
            await extractor.fetch_page_content("https://blocked.io")
        await extractor.close()
        assert fragment in exc_info.value.message
        assert exc_info.value.status_code == status
        assert exc_info.value.hint

    @pytest.mark.asyncio
    async def test_unreachable(self, extractor):
        def handler(request):
            raise httpx.ConnectError("name resolution failed", request=request)

        await extractor.boot(transport=httpx.MockTransport(handler))
        with pytest.raises(ExtractionUnreachableError):
            await extractor.fetch_page_content("https://nowhere.invalid")
        await extractor.close()

    @pytest.mark.asyncio
    async def test_redirect_limit(self, helper_config, env):
        env.setenv("EXTRACTOR_MAX_REDIRECTS", "2")
        extractor = ContentExtractor(helper_config)

        def handler(request):
            return httpx.Response(302, headers={"Location": str(request.url) + "loop/"})

        await extractor.boot(transport=httpx.MockTransport(handler))
        with pytest.raises(ExtractionUnreachableError):
            await extractor.fetch_page_content("https://loop.io")
        await extractor.close()

    @pytest.mark.asyncio
    async def test_invalid_url(self, extractor):
        with pytest.raises(InvalidURLError):
            await extractor.fetch_page_content("ftp://files.example.com")

    @pytest.mark.asyncio
    async def test_unencodable_host_is_invalid_url(self, extractor):
        await extractor.boot(transport=pages({}))
        with pytest.raises(InvalidURLError):
            await extractor.fetch_page_content("https://\u2603.com")
        with pytest.raises(InvalidURLError):
            await extractor._fetch_html("https://\u2603.com")
        await extractor.close()

    @pytest.mark.asyncio
    async def test_pricing_fallback_paths(self, extractor):
        pricing_page = '<html><body><div class="pricing-card">Pro $9/month</div></body></html>'
        await extractor.boot(transport=pages({
            "examplehq.io/pricing": httpx.Response(403),
            "examplehq.io/plans": httpx.Response(200, text=pricing_page),
        }))
        info = await extractor.fetch_pricing_info("https://examplehq.io")
        await extractor.close()
        assert info.has_pricing is True
        assert info.pricing_info == "Pro $9/month"

    @pytest.mark.asyncio
    async def test_pricing_nothing_found(self, extractor):
        await extractor.boot(transport=pages({}))
        info = await extractor.fetch_pricing_info("https://examplehq.io")
        await extractor.close()
        assert info.has_pricing is False
        assert info.pricing_info is None
