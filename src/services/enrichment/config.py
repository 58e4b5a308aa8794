"""
Enrichment configuration.

Builds an immutable configuration tree from the flat environment settings in
`common.config`. Providers and the service receive an `EnrichmentConfig` in their
constructors instead of reading the environment themselves.

Example:
    cfg = load_enrichment_config()
    validate_enrichment_config(cfg)
    service = EnrichmentService(cfg)
"""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from common.config import Config, config
from common.errors import EnrichmentConfigError
from common.logging import get_logger
from models.enrichment import ProviderName

logger = get_logger(__name__)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ProviderConfig(_Frozen):
    enabled: bool
    api_key: str | None = None
    base_url: str
    cost_per_lookup: float
    timeout_s: float = 30.0


class WebsiteScraperConfig(_Frozen):
    enabled: bool = True
    timeout_ms: int = 10_000
    contact_paths: tuple[str, ...] = ()
    cost_per_lookup: float = 0.0


class ProvidersConfig(_Frozen):
    apollo: ProviderConfig
    lusha: ProviderConfig
    website_scraper: WebsiteScraperConfig


class StrategyConfig(_Frozen):
    primary: ProviderName = ProviderName.APOLLO
    fallback_enabled: bool = True
    parallel_search: bool = False


class FeatureFlags(_Frozen):
    bulk_enrichment: bool = True
    phone_numbers: bool = False
    partial_profiles: bool = True


class EnrichmentConfig(_Frozen):
    providers: ProvidersConfig
    strategy: StrategyConfig = StrategyConfig()
    features: FeatureFlags = FeatureFlags()

    @classmethod
    def from_settings(cls, settings: Config) -> "EnrichmentConfig":
        return cls(
            providers=ProvidersConfig(
                apollo=ProviderConfig(
                    enabled=settings.apollo_enabled,
                    api_key=settings.apollo_api_key.get_secret_value() or None,
                    base_url=settings.apollo_base_url.rstrip("/"),
                    cost_per_lookup=settings.apollo_cost_per_lookup,
                    timeout_s=settings.provider_timeout_s,
                ),
                lusha=ProviderConfig(
                    enabled=settings.lusha_enabled,
                    api_key=settings.lusha_api_key.get_secret_value() or None,
                    base_url=settings.lusha_base_url.rstrip("/"),
                    cost_per_lookup=settings.lusha_cost_per_lookup,
                    timeout_s=settings.provider_timeout_s,
                ),
                website_scraper=WebsiteScraperConfig(
                    enabled=settings.website_scraper_enabled,
                    timeout_ms=settings.website_scraper_timeout_ms,
                    contact_paths=tuple(settings.website_scraper_contact_paths),
                    cost_per_lookup=0.0,
                ),
            ),
            strategy=StrategyConfig(
                primary=ProviderName(settings.primary_enrichment_provider),
                fallback_enabled=settings.enrichment_fallback,
                parallel_search=settings.enrichment_parallel,
            ),
            features=FeatureFlags(
                bulk_enrichment=settings.enrich_bulk,
                phone_numbers=settings.enrich_phone_numbers,
                partial_profiles=settings.enrich_partial_profiles,
            ),
        )


def load_enrichment_config(settings: Config | None = None) -> EnrichmentConfig:
    """Build the configuration tree; re-reads the environment unless settings are given."""
    return EnrichmentConfig.from_settings(settings or Config())


enrichment_config = EnrichmentConfig.from_settings(config)


def is_provider_enabled(cfg: EnrichmentConfig, provider: ProviderName) -> bool:
    return getattr(cfg.providers, provider.value).enabled


def get_enabled_providers(cfg: EnrichmentConfig) -> list[ProviderName]:
    """Enabled provider names in registration order."""
    return [name for name in ProviderName if is_provider_enabled(cfg, name)]


def get_effective_primary_provider(
    cfg: EnrichmentConfig, available: Iterable[ProviderName] | None = None
) -> ProviderName:
    """
    The configured primary if it is usable, otherwise the first usable provider.

    `available` narrows the candidates to providers actually registered (flag on and
    credentials present); by default every provider enabled in `cfg` is a candidate.
    """
    candidates = list(available) if available is not None else get_enabled_providers(cfg)
    if cfg.strategy.primary in candidates:
        return cfg.strategy.primary
    if not candidates:
        raise EnrichmentConfigError("No enrichment providers are enabled")
    return candidates[0]


def validate_enrichment_config(cfg: EnrichmentConfig) -> bool:
    """
    Check that at least one provider is enabled and log common misconfigurations.

    Raises:
        EnrichmentConfigError: If no provider is enabled.
    """
    enabled = get_enabled_providers(cfg)
    if not enabled:
        raise EnrichmentConfigError(
            "No enrichment providers enabled. Set APOLLO_ENABLED, LUSHA_ENABLED or WEBSITE_SCRAPER_ENABLED"
        )

    for name, provider_cfg in (("apollo", cfg.providers.apollo), ("lusha", cfg.providers.lusha)):
        if provider_cfg.enabled and not provider_cfg.api_key:
            logger.warning(f"[Enrichment] {name} enabled but {name.upper()}_API_KEY not set")

    if cfg.strategy.primary not in enabled:
        logger.warning(
            f"[Enrichment] Primary provider '{cfg.strategy.primary.value}' is not enabled. "
            f"Will use '{enabled[0].value}' instead."
        )

    logger.info(
        f"[Enrichment] Configured with providers: {', '.join(p.value for p in enabled)} | "
        f"Primary: {cfg.strategy.primary.value} | Fallback: {cfg.strategy.fallback_enabled} | "
        f"Parallel: {cfg.strategy.parallel_search}"
    )
    return True
