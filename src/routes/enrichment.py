"""Email enrichment endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from common.logging import get_logger
from models.enrichment import EnrichmentRequest, EnrichmentResponse, ProviderName
from services.enrichment import EnrichmentService, get_enrichment_service

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["enrichment"])


class EnrichEmailRequest(EnrichmentRequest):
    """Lookup request; `provider` pins a single provider instead of the configured strategy."""

    provider: ProviderName | None = None


@router.post(
    "/enrich-email",
    response_model=EnrichmentResponse,
    response_model_by_alias=True,
)
async def enrich_email_endpoint(
    body: EnrichEmailRequest,
    service: EnrichmentService = Depends(get_enrichment_service),
):
    """
    Find a contact email for a domain.

    Provider-level failures come back as a 200 with `found: false` and `error` set;
    only a missing or unavailable provider is an HTTP error.

    Example request:
        ```json
        {
            "domain": "example.com",
            "personName": "Jane Doe",
            "targetLanguage": "German"
        }
        ```
    """
    if not service.initialized or not service.get_available_providers():
        raise HTTPException(status_code=503, detail="Enrichment service not properly configured")

    request = EnrichmentRequest(**body.model_dump(exclude={"provider"}))
    logger.debug(f"Enrichment request\n: {request.model_dump_json(indent=2, exclude_none=True)}")

    if body.provider:
        if not service.is_provider_available(body.provider):
            available = ", ".join(p.value for p in service.get_available_providers())
            raise HTTPException(
                status_code=400,
                detail=f"Provider '{body.provider.value}' is not available. Available: {available}",
            )
        result = await service.find_email_with_provider(body.provider, request)
    else:
        result = await service.find_email(request)

    logger.info(f"Enrichment completed for {request.domain}: status={result.status.value} provider={result.provider.value}")
    return result
