"""Multi-provider email enrichment."""

from services.enrichment.config import (
    EnrichmentConfig,
    enrichment_config,
    get_enabled_providers,
    load_enrichment_config,
    validate_enrichment_config,
)
from services.enrichment.service import EnrichmentService, get_enrichment_service

__all__ = [
    "EnrichmentConfig",
    "EnrichmentService",
    "enrichment_config",
    "get_enabled_providers",
    "get_enrichment_service",
    "load_enrichment_config",
    "validate_enrichment_config",
]
