"""
Email enrichment service.

Orchestrates email lookups across the registered providers using the configured
strategy: sequential (primary first, fallback to the others) or parallel
(all providers at once, first success wins).

Example:
    service = get_enrichment_service()
    result = await service.find_email(EnrichmentRequest(domain="example.com", person_name="Jane Doe"))
    if result.found:
        print(result.email, result.provider)
"""

import asyncio
from collections.abc import Iterable
from functools import lru_cache

import httpx

from common.errors import EnrichmentConfigError
from common.logging import get_logger
from models.enrichment import EnrichmentRequest, EnrichmentResponse, ProviderName
from services.enrichment.config import (
    EnrichmentConfig,
    enrichment_config,
    get_effective_primary_provider,
    load_enrichment_config,
    validate_enrichment_config,
)
from services.enrichment.providers import (
    ApolloProvider,
    BaseEnrichmentProvider,
    LushaProvider,
    WebsiteScraperProvider,
)

logger = get_logger(__name__)


class EnrichmentService:
    """Registers enabled providers and applies the configured search strategy."""

    def __init__(
        self,
        cfg: EnrichmentConfig | None = None,
        providers: Iterable[BaseEnrichmentProvider] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.cfg = cfg or enrichment_config
        self._http_client = http_client
        self._custom_providers = list(providers) if providers is not None else None
        self._providers: dict[ProviderName, BaseEnrichmentProvider] = {}
        self.initialized = False
        self._initialize()

    def _initialize(self) -> None:
        self._providers.clear()

        candidates = self._custom_providers
        if candidates is None:
            candidates = [
                ApolloProvider(self.cfg, self._http_client),
                LushaProvider(self.cfg, self._http_client),
                WebsiteScraperProvider(self.cfg, self._http_client),
            ]

        for provider in candidates:
            if provider.is_enabled():
                self._providers[provider.name] = provider
                logger.info(f"[Enrichment] {provider.name.value} provider registered")

        try:
            validate_enrichment_config(self.cfg)
            self.initialized = True
        except EnrichmentConfigError as e:
            logger.error(f"[Enrichment] Configuration validation failed: {e}")
            self.initialized = False

    def reload(self, cfg: EnrichmentConfig | None = None) -> None:
        """Re-read configuration (from the environment unless given) and re-register providers."""
        self.cfg = cfg or load_enrichment_config()
        if self._custom_providers is not None:
            for provider in self._custom_providers:
                provider.cfg = self.cfg
        self._initialize()

    async def find_email(self, request: EnrichmentRequest) -> EnrichmentResponse:
        """Find an email with the configured strategy."""
        if not self.initialized or not self._providers:
            logger.error("[Enrichment] Service not initialized or no providers available")
            return EnrichmentResponse(
                provider=ProviderName.APOLLO,
                error="Enrichment service not properly configured",
                cost_estimate=0.0,
            )

        if self.cfg.strategy.parallel_search and len(self._providers) > 1:
            return await self._parallel_search(request)
        return await self._sequential_search(request)

    async def find_email_with_provider(
        self, provider_name: ProviderName | str, request: EnrichmentRequest
    ) -> EnrichmentResponse:
        """Bypass the strategy and use one provider."""
        try:
            name = ProviderName(provider_name)
        except ValueError:
            return EnrichmentResponse(
                provider=ProviderName.APOLLO,
                error=f"Provider '{provider_name}' is not available",
                cost_estimate=0.0,
            )

        provider = self._providers.get(name)
        if not provider:
            return EnrichmentResponse(
                provider=name,
                error=f"Provider '{name.value}' is not available",
                cost_estimate=0.0,
            )
        return await self._safe_find(provider, request)

    def get_available_providers(self) -> list[ProviderName]:
        return list(self._providers)

    def is_provider_available(self, provider_name: ProviderName | str) -> bool:
        try:
            return ProviderName(provider_name) in self._providers
        except ValueError:
            return False

    def get_primary_provider(self) -> ProviderName | None:
        """The configured primary if registered, otherwise the first registered provider."""
        if not self._providers:
            return None
        return get_effective_primary_provider(self.cfg, self._providers)

    def get_estimated_cost(self) -> float:
        """
        Display cost of one lookup.

        Sequential: the primary's cost. Parallel: every provider is queried, so the sum.
        """
        if self.cfg.strategy.parallel_search:
            return sum(p.estimate_cost() for p in self._providers.values())

        primary = self.get_primary_provider()
        return self._providers[primary].estimate_cost() if primary else 0.0

    async def _safe_find(self, provider: BaseEnrichmentProvider, request: EnrichmentRequest) -> EnrichmentResponse:
        try:
            return await provider.find_email(request)
        except Exception as e:
            logger.error(f"[Enrichment] {provider.name.value} raised {type(e).__name__}: {e!r}", exc_info=True)
            return EnrichmentResponse(provider=provider.name, error=str(e) or type(e).__name__, cost_estimate=0.0)

    async def _parallel_search(self, request: EnrichmentRequest) -> EnrichmentResponse:
        logger.info("[Enrichment] Starting parallel search across all providers")

        results = await asyncio.gather(*(self._safe_find(p, request) for p in self._providers.values()))

        for result in results:
            if result.found and result.email:
                logger.info(f"[Enrichment] Parallel search succeeded via {result.provider.value}")
                return result

        # Deterministic tie-break: the last registered provider's result
        logger.warning("[Enrichment] Parallel search: no providers found an email")
        return results[-1]

    async def _sequential_search(self, request: EnrichmentRequest) -> EnrichmentResponse:
        primary_name = self.get_primary_provider()
        if primary_name != self.cfg.strategy.primary:
            logger.warning(
                f"[Enrichment] Primary '{self.cfg.strategy.primary.value}' not available, using '{primary_name.value}'"
            )

        logger.info(f"[Enrichment] Searching with primary provider: {primary_name.value}")
        primary_result = await self._safe_find(self._providers[primary_name], request)

        if primary_result.found or not self.cfg.strategy.fallback_enabled:
            return primary_result

        for name, provider in self._providers.items():
            if name == primary_name:
                continue
            logger.info(f"[Enrichment] Primary failed, trying fallback: {name.value}")
            fallback_result = await self._safe_find(provider, request)
            if fallback_result.found:
                return fallback_result

        logger.warning("[Enrichment] All providers failed to find an email")
        return primary_result


@lru_cache(maxsize=1)
def get_enrichment_service() -> EnrichmentService:
    """Process-wide service built from the environment configuration."""
    return EnrichmentService()
