"""Email enrichment providers."""

from services.enrichment.providers.apollo import ApolloProvider
from services.enrichment.providers.base import BaseEnrichmentProvider
from services.enrichment.providers.lusha import LushaProvider
from services.enrichment.providers.website_scraper import WebsiteScraperProvider

__all__ = [
    "BaseEnrichmentProvider",
    "ApolloProvider",
    "LushaProvider",
    "WebsiteScraperProvider",
]
