import httpx
import pytest

from common.config import Config
from services.enrichment.config import EnrichmentConfig


@pytest.fixture
def make_config():
    """Build an EnrichmentConfig with every provider off unless overridden."""

    def _make(**overrides) -> EnrichmentConfig:
        settings = {
            "apollo_enabled": False,
            "lusha_enabled": False,
            "website_scraper_enabled": False,
            **overrides,
        }
        return EnrichmentConfig.from_settings(Config(_env_file=None, **settings))

    return _make


@pytest.fixture
def mock_client():
    """Create an httpx.AsyncClient that answers every request with `handler`."""

    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
