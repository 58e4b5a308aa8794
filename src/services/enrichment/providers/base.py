from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from common.logging import get_logger
from models.enrichment import EnrichmentRequest, EnrichmentResponse, ProviderName
from services.enrichment.config import EnrichmentConfig, enrichment_config

logger = get_logger(__name__)


class BaseEnrichmentProvider(ABC):
    """
    Common behaviour for all enrichment providers.

    Subclasses set `name` and implement `is_enabled`, `find_email` and `estimate_cost`.
    The response helpers keep every provider's output in the same shape:
        - error: no email, cost 0
        - not found: no email, the provider's per-lookup cost
        - success: email, the provider's per-lookup cost

    An `httpx.AsyncClient` may be injected (tests, connection reuse); otherwise
    a short-lived client is opened per call.
    """

    name: ProviderName

    def __init__(self, cfg: EnrichmentConfig | None = None, http_client: httpx.AsyncClient | None = None):
        self.cfg = cfg or enrichment_config
        self._http_client = http_client

    @abstractmethod
    def is_enabled(self) -> bool: ...

    @abstractmethod
    async def find_email(self, request: EnrichmentRequest) -> EnrichmentResponse: ...

    @abstractmethod
    def estimate_cost(self) -> float: ...

    @asynccontextmanager
    async def http(self, **client_kwargs) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(**client_kwargs) as client:
            yield client

    def create_error_response(self, error: Exception | str, context: str | None = None) -> EnrichmentResponse:
        message = str(error) if isinstance(error, Exception) else error
        logger.error(f"[{self.name.value}] {f'{context}: ' if context else ''}{message}")
        return EnrichmentResponse(provider=self.name, error=message, cost_estimate=0.0)

    def create_not_found_response(self, **partial) -> EnrichmentResponse:
        return EnrichmentResponse(provider=self.name, cost_estimate=self.estimate_cost(), **partial)

    def create_success_response(self, email: str, **additional) -> EnrichmentResponse:
        return EnrichmentResponse(email=email, provider=self.name, cost_estimate=self.estimate_cost(), **additional)
