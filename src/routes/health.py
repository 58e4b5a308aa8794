"""Health check and service info endpoints."""

from fastapi import APIRouter, Depends

from common.logging import get_logger
from services.enrichment import EnrichmentService, get_enrichment_service

logger = get_logger(__name__)
router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """Root endpoint with basic info."""
    return {
        "service": "CrewCast Email Enrichment API",
        "version": "0.1.0",
        "status": "running",
        "description": "Multi-provider email enrichment: Apollo, Lusha and website scraping",
        "endpoints": {
            "health": "/health",
            "providers": "/health/providers",
            "docs": "/docs",
            "enrich_email": "/api/enrich-email",
        },
        "example_request": {
            "domain": "example.com",
            "personName": "Jane Doe",
            "targetLanguage": "German",
        },
    }


@router.get("/health")
async def health_check():
    """Liveness probe."""
    return {"status": "healthy", "service": "email-enrichment"}


@router.get("/health/providers")
async def providers_check(service: EnrichmentService = Depends(get_enrichment_service)):
    """Registered providers, active strategy and the display cost of one lookup."""
    strategy = service.cfg.strategy
    primary = service.get_primary_provider()
    checks = {
        "status": "healthy" if service.initialized and service.get_available_providers() else "unhealthy",
        "providers": [p.value for p in service.get_available_providers()],
        "primary": primary.value if primary else None,
        "fallback_enabled": strategy.fallback_enabled,
        "parallel_search": strategy.parallel_search,
        "estimated_cost": service.get_estimated_cost(),
    }

    logger.info(f"Provider check result: {checks}")
    return checks
