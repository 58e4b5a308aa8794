"""Tests for the website scraper provider."""

import httpx
import pytest

from models.enrichment import EnrichmentRequest, ProviderName
from services.enrichment.providers.website_scraper import WebsiteScraperProvider, resolve_language
from services.enrichment.schemas import SkipReason


@pytest.fixture
def scraper_config(make_config):
    def _make(**overrides):
        return make_config(website_scraper_enabled=True, **overrides)

    return _make


def _site(pages: dict[str, httpx.Response], requested: list[str] | None = None):
    """Serve `pages` keyed by full URL, 404 for everything else."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if requested is not None:
            requested.append(url)
        page = pages.get(url)
        if isinstance(page, Exception):
            raise page
        return page if page is not None else httpx.Response(404, text="Not found")

    return handler


class TestResolveLanguage:
    @pytest.mark.parametrize(
        "value,expected",
        [("German", "German"), ("german", "German"), ("de", "German"), ("de-DE", "German"), ("fra", "French")],
    )
    def test_resolves(self, value, expected):
        assert resolve_language(value) == expected

    @pytest.mark.parametrize("value", [None, "", "Klingon", "zz"])
    def test_unknown(self, value):
        assert resolve_language(value) is None


class TestPrioritizedPaths:
    def test_language_paths_first(self, scraper_config):
        paths = WebsiteScraperProvider(scraper_config()).get_prioritized_paths("German")

        assert paths[:5] == ["/impressum", "/kontakt", "/ueber-uns", "/about", "/contact"]
        assert "/contact-us" in paths
        assert len(paths) == len(set(paths))

    def test_defaults_without_language(self, scraper_config):
        provider = WebsiteScraperProvider(scraper_config(website_scraper_contact_paths=["/contact", "/team"]))
        assert provider.get_prioritized_paths(None) == ["/contact", "/team"]
        assert provider.get_prioritized_paths("Klingon") == ["/contact", "/team"]


class TestWebsiteScraperProvider:
    @pytest.mark.asyncio
    async def test_mailto_on_contact_page(self, scraper_config, mock_client):
        """Messy URL input, mailto with a query string, zero cost."""
        handler = _site(
            {
                "https://www.example.org/contact": httpx.Response(
                    200, text='<html><body><a href="mailto:partner@example.org?subject=hi">Write us</a></body></html>'
                )
            }
        )
        provider = WebsiteScraperProvider(scraper_config(), mock_client(handler))
        result = await provider.find_email(EnrichmentRequest(domain="https://www.example.org/path?x=1"))

        assert result.found
        assert result.email == "partner@example.org"
        assert result.emails == ["partner@example.org"]
        assert result.provider == ProviderName.WEBSITE_SCRAPER
        assert result.cost_estimate == 0.0

    @pytest.mark.asyncio
    async def test_stops_at_first_page_with_emails(self, scraper_config, mock_client):
        requested: list[str] = []
        handler = _site(
            {
                "https://creator.io/kontakt": httpx.Response(
                    200, text="<p>Mail: jane@creator.io or info (at) creator (dot) io</p>"
                )
            },
            requested,
        )
        cfg = scraper_config(website_scraper_contact_paths=["/kontakt", "/about"])
        result = await WebsiteScraperProvider(cfg, mock_client(handler)).find_email(
            EnrichmentRequest(domain="creator.io")
        )

        assert result.emails == ["jane@creator.io", "info@creator.io"]
        assert result.email == "info@creator.io"
        assert requested == ["https://www.creator.io/kontakt", "https://creator.io/kontakt"]

    @pytest.mark.asyncio
    async def test_homepage_structured_fallback(self, scraper_config, mock_client):
        handler = _site(
            {
                "https://www.creator.io/": httpx.Response(
                    200,
                    text="""
                    <p>someone@creator.io</p>
                    <script type="application/ld+json">{"email": "hello@creator.io"}</script>
                    """,
                )
            }
        )
        cfg = scraper_config(website_scraper_contact_paths=["/contact"])
        result = await WebsiteScraperProvider(cfg, mock_client(handler)).find_email(
            EnrichmentRequest(domain="creator.io")
        )

        assert result.emails == ["hello@creator.io"]

    @pytest.mark.asyncio
    async def test_skip_reasons(self, scraper_config, mock_client):
        """Every failed fetch is recorded with the reason it was skipped."""
        handler = _site(
            {
                "https://www.creator.io/contact": httpx.ReadTimeout("timed out"),
                "https://creator.io/contact": httpx.Response(500, text="oops"),
                "https://www.creator.io/": httpx.Response(200, text="   "),
                "https://creator.io/": httpx.Response(200, text="<p>No addresses here</p>"),
            }
        )
        cfg = scraper_config(website_scraper_contact_paths=["/contact"])
        outcome = await WebsiteScraperProvider(cfg, mock_client(handler)).scrape_domain("creator.io")

        assert outcome.emails == []
        assert [a.skip_reason for a in outcome.attempts] == [
            SkipReason.TIMEOUT,
            SkipReason.HTTP_ERROR,
            SkipReason.EMPTY_BODY,
            SkipReason.NO_EMAILS,
        ]
        assert outcome.skipped(SkipReason.HTTP_ERROR)[0].url == "https://creator.io/contact"

    @pytest.mark.asyncio
    async def test_unparseable_url_is_skipped_not_error(self, scraper_config, mock_client):
        """A domain that cannot form a valid URL skips every page and ends as not-found."""
        requested: list[str] = []
        cfg = scraper_config(website_scraper_contact_paths=["/contact"])
        provider = WebsiteScraperProvider(cfg, mock_client(_site({}, requested)))

        outcome = await provider.scrape_domain("creator.io:abc")
        result = await provider.find_email(EnrichmentRequest(domain="creator.io:abc"))

        assert [a.skip_reason for a in outcome.attempts] == [SkipReason.INVALID_URL] * 4
        assert requested == []
        assert not result.found
        assert result.error is None
        assert result.cost_estimate == 0.0

    @pytest.mark.asyncio
    async def test_connection_errors_are_not_found(self, scraper_config, mock_client):
        def handler(request):
            raise httpx.ConnectError("dns failure", request=request)

        cfg = scraper_config(website_scraper_contact_paths=["/contact"])
        result = await WebsiteScraperProvider(cfg, mock_client(handler)).find_email(
            EnrichmentRequest(domain="gone.io")
        )

        assert not result.found
        assert result.error is None
        assert result.cost_estimate == 0.0

    @pytest.mark.asyncio
    async def test_social_domain_is_not_found(self, scraper_config, mock_client):
        requested: list[str] = []
        provider = WebsiteScraperProvider(scraper_config(), mock_client(_site({}, requested)))
        result = await provider.find_email(EnrichmentRequest(domain="www.instagram.com/creator"))

        assert not result.found
        assert result.error is None
        assert requested == []

    @pytest.mark.asyncio
    async def test_empty_domain(self, scraper_config):
        result = await WebsiteScraperProvider(scraper_config()).find_email(EnrichmentRequest(domain="  "))
        assert result.error == "Domain is required for website scraping"

    @pytest.mark.asyncio
    async def test_disabled(self, make_config):
        provider = WebsiteScraperProvider(make_config())
        assert not provider.is_enabled()
        result = await provider.find_email(EnrichmentRequest(domain="creator.io"))
        assert result.error
