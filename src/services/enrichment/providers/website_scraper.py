"""
Website scraper provider: free fallback when the B2B databases have nothing.

Small blogs and niche sites are rarely in B2B databases, but many publish a
contact or legal-notice page. The scraper tries language-specific contact paths
first, then the configured universal paths, then falls back to the homepage's
structured data, meta tags and mailto links.

Found emails cost nothing at the provider level; credit consumption is the
caller's decision.
"""

import random

import httpx
import pycountry
from pydantic import BaseModel

from common.logging import get_logger
from models.enrichment import EnrichmentRequest, EnrichmentResponse, ProviderName
from services.enrichment.email_extractor import EmailExtractor, select_best_email
from services.enrichment.providers.base import BaseEnrichmentProvider
from services.enrichment.schemas import FetchResult, PageAttempt, SkipReason
from services.enrichment.utils import clean_domain, is_social_media_domain

logger = get_logger(__name__)

# User-Agents to rotate through (lower rejection)
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.6114.123 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:124.0) Gecko/20100101 Firefox/124.0",
]

BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,de;q=0.8,*;q=0.5",
}

# Contact page paths per onboarding language, tried before the configured defaults
LANGUAGE_CONTACT_PATHS: dict[str, list[str]] = {
    "English": ["/contact", "/contact-us", "/about", "/about-us", "/team", "/get-in-touch"],
    # Impressumspflicht: German sites must publish contact details
    "German": ["/impressum", "/kontakt", "/ueber-uns", "/about", "/contact"],
    "French": ["/contact", "/a-propos", "/mentions-legales", "/qui-sommes-nous", "/about"],
    "Spanish": ["/contacto", "/sobre-nosotros", "/aviso-legal", "/quienes-somos", "/contact"],
    "Portuguese": ["/contato", "/contacto", "/sobre", "/sobre-nos", "/contact"],
    "Italian": ["/contatti", "/chi-siamo", "/about", "/contact"],
    "Dutch": ["/contact", "/over-ons", "/about"],
    "Swedish": ["/kontakt", "/om-oss", "/about", "/contact"],
    "Danish": ["/kontakt", "/om-os", "/about", "/contact"],
    "Norwegian": ["/kontakt", "/om-oss", "/about", "/contact"],
    "Finnish": ["/yhteystiedot", "/meista", "/ota-yhteytta", "/contact"],
    "Polish": ["/kontakt", "/o-nas", "/about", "/contact"],
    "Czech": ["/kontakt", "/o-nas", "/about", "/contact"],
    # Japanese, Korean, Arabic and Hebrew business sites mostly use English paths
    "Japanese": ["/contact", "/company", "/about", "/inquiry"],
    "Korean": ["/contact", "/about", "/company"],
    "Arabic": ["/contact", "/contact-us", "/about", "/about-us"],
    "Hebrew": ["/contact", "/about", "/contact-us"],
}


def resolve_language(value: str | None) -> str | None:
    """Map "German", "german", "de" or "de-DE" to a key of LANGUAGE_CONTACT_PATHS."""
    if not value or not value.strip():
        return None

    by_lower = {name.lower(): name for name in LANGUAGE_CONTACT_PATHS}
    if value.strip().lower() in by_lower:
        return by_lower[value.strip().lower()]

    code = value.split(";")[0].strip().split("-")[0].split("_")[0].lower()
    language = None
    if len(code) == 2:
        language = pycountry.languages.get(alpha_2=code)
    elif len(code) == 3:
        language = pycountry.languages.get(alpha_3=code)
    if not language:
        return None

    name = language.name.split(";")[0].strip().lower()
    return by_lower.get(name)


class ScrapeOutcome(BaseModel):
    """Emails found for a domain plus every URL attempted on the way."""

    domain: str
    emails: list[str] = []
    attempts: list[PageAttempt] = []

    def skipped(self, reason: SkipReason) -> list[PageAttempt]:
        return [a for a in self.attempts if a.skip_reason == reason]


class WebsiteScraperProvider(BaseEnrichmentProvider):
    """
    Scrapes a site's contact pages for emails.

    Example:
        scraper = WebsiteScraperProvider()
        result = await scraper.find_email(EnrichmentRequest(domain="example.com", target_language="German"))
    """

    name = ProviderName.WEBSITE_SCRAPER

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.extractor = EmailExtractor()

    def is_enabled(self) -> bool:
        return self.cfg.providers.website_scraper.enabled

    def estimate_cost(self) -> float:
        return 0.0

    @property
    def timeout_s(self) -> float:
        return self.cfg.providers.website_scraper.timeout_ms / 1000.0

    async def find_email(self, request: EnrichmentRequest) -> EnrichmentResponse:
        if not self.is_enabled():
            return self.create_error_response("Website scraper provider is disabled")

        domain = clean_domain(request.domain)
        if not domain:
            return self.create_error_response("Domain is required for website scraping")

        if is_social_media_domain(domain):
            logger.info(f"[website_scraper] Skipping social media domain: {domain}")
            return self.create_not_found_response()

        logger.info(f"[website_scraper] Starting website scrape for domain: {domain}")
        try:
            outcome = await self.scrape_domain(domain, request.target_language)
        except Exception as e:
            logger.error(f"[website_scraper] Unhandled exception scraping {domain}: {e}", exc_info=True)
            return self.create_error_response(e, f"Failed to scrape website: {domain}")

        if not outcome.emails:
            logger.warning(f"[website_scraper] No emails found for domain: {domain}")
            return self.create_not_found_response()

        primary = select_best_email(outcome.emails, domain)
        logger.info(f"[website_scraper] Found {len(outcome.emails)} email(s) for {domain}, selected: {primary}")
        return self.create_success_response(primary, emails=outcome.emails)

    def get_prioritized_paths(self, target_language: str | None = None) -> list[str]:
        """Language-specific paths first, then the configured defaults, without duplicates."""
        paths: dict[str, None] = {}

        language = resolve_language(target_language)
        if language:
            paths.update(dict.fromkeys(LANGUAGE_CONTACT_PATHS[language]))
            logger.info(f"[website_scraper] Prioritizing {language} paths: {', '.join(LANGUAGE_CONTACT_PATHS[language])}")

        paths.update(dict.fromkeys(self.cfg.providers.website_scraper.contact_paths))
        return list(paths)

    async def scrape_domain(self, domain: str, target_language: str | None = None) -> ScrapeOutcome:
        """Contact pages in priority order, then homepage extras; stops at the first page with emails."""
        outcome = ScrapeOutcome(domain=domain)

        async with self.http(timeout=self.timeout_s, follow_redirects=True) as client:
            for path in self.get_prioritized_paths(target_language):
                emails = await self._scrape_page(client, domain, path, outcome, self.extractor.extract_all)
                if emails:
                    logger.info(f"[website_scraper] Found {len(emails)} email(s) on {path}")
                    outcome.emails = emails
                    break

            if not outcome.emails:
                outcome.emails = await self._scrape_page(client, domain, "/", outcome, self.extractor.extract_structured)

        for attempt in outcome.attempts:
            logger.debug(f"[website_scraper] {attempt.url}: {attempt.skip_reason or 'ok'} {attempt.error or ''}")
        return outcome

    async def _scrape_page(self, client: httpx.AsyncClient, domain: str, path: str, outcome: ScrapeOutcome, extract) -> list[str]:
        for url in (f"https://www.{domain}{path}", f"https://{domain}{path}"):
            fetched = await self.fetch_page(client, url)
            if not fetched.ok:
                outcome.attempts.append(PageAttempt(url=url, skip_reason=fetched.skip_reason, error=fetched.error))
                continue

            emails = extract(fetched.body)
            if emails:
                outcome.attempts.append(PageAttempt(url=url, emails=emails))
                return emails
            outcome.attempts.append(PageAttempt(url=url, skip_reason=SkipReason.NO_EMAILS))
        return []

    async def fetch_page(self, client: httpx.AsyncClient, url: str) -> FetchResult:
        """GET a page; failures come back as a FetchResult with a skip reason, never as exceptions."""
        headers = {**BASE_HEADERS, "User-Agent": random.choice(USER_AGENTS)}  # noqa: S311
        try:
            resp = await client.get(url, headers=headers, timeout=self.timeout_s, follow_redirects=True)
        except httpx.TimeoutException as e:
            return FetchResult(url=url, skip_reason=SkipReason.TIMEOUT, error=str(e) or "timeout")
        except httpx.RequestError as e:
            return FetchResult(url=url, skip_reason=SkipReason.REQUEST_ERROR, error=str(e))
        except httpx.InvalidURL as e:
            return FetchResult(url=url, skip_reason=SkipReason.INVALID_URL, error=str(e))

        if resp.status_code >= 400:
            return FetchResult(
                url=url, status_code=resp.status_code, skip_reason=SkipReason.HTTP_ERROR, error=f"HTTP error {resp.status_code}"
            )

        body = resp.text
        if not body or not body.strip():
            return FetchResult(url=url, status_code=resp.status_code, skip_reason=SkipReason.EMPTY_BODY)
        return FetchResult(url=url, status_code=resp.status_code, body=body)
