import httpx

from common.errors import describe_http_status
from common.logging import get_logger
from models.enrichment import EnrichmentRequest, EnrichmentResponse, ProviderName
from services.enrichment.providers.base import BaseEnrichmentProvider
from services.enrichment.utils import clean_domain, is_social_media_domain

logger = get_logger(__name__)

APOLLO_SEARCH_ENDPOINT = "/v1/mixed_people/search"


class ApolloProvider(BaseEnrichmentProvider):
    """
    Finds emails with Apollo's People Search API.

    One POST per lookup: people at the domain, optionally narrowed by a name keyword,
    limited to the single best match.

    Example:
        apollo = ApolloProvider()
        result = await apollo.find_email(EnrichmentRequest(domain="techcrunch.com", person_name="John Smith"))
    """

    name = ProviderName.APOLLO

    @property
    def api_key(self) -> str | None:
        return self.cfg.providers.apollo.api_key

    def is_enabled(self) -> bool:
        return self.cfg.providers.apollo.enabled and bool(self.api_key)

    def estimate_cost(self) -> float:
        return self.cfg.providers.apollo.cost_per_lookup

    async def find_email(self, request: EnrichmentRequest) -> EnrichmentResponse:
        if not self.is_enabled():
            return self.create_error_response("Apollo provider is not enabled or API key is missing")

        if not request.domain:
            return self.create_error_response("Domain is required for Apollo search")

        domain = clean_domain(request.domain)
        if is_social_media_domain(domain):
            return self.create_error_response(
                f'Cannot search social media domain "{domain}". Need the creator\'s business domain.'
            )

        logger.info(f'[apollo] Searching for email: domain="{domain}", person="{request.person_name or "any"}"')

        provider_cfg = self.cfg.providers.apollo
        payload = self._build_search_payload(domain, request)
        try:
            async with self.http(timeout=provider_cfg.timeout_s) as client:
                resp = await client.post(
                    f"{provider_cfg.base_url}{APOLLO_SEARCH_ENDPOINT}",
                    json=payload,
                    headers={
                        "Content-Type": "application/json",
                        "Cache-Control": "no-cache",
                        "X-Api-Key": self.api_key or "",
                    },
                    timeout=provider_cfg.timeout_s,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            return self.create_error_response(
                describe_http_status(e.response.status_code),
                f"Apollo API returned {e.response.status_code}: {e.response.text[:500]}",
            )
        except httpx.RequestError as e:
            return self.create_error_response(f"Request failed: {e}", "Apollo API request failed")
        except ValueError:
            return self.create_error_response("Invalid JSON in response", "Apollo API request failed")

        people = data.get("people") if isinstance(data, dict) else None
        if not people:
            logger.warning(f"[apollo] No people found for domain: {domain}")
            return self.create_not_found_response()

        person = people[0] if isinstance(people, list) else None
        if not isinstance(person, dict):
            return self.create_error_response(
                "Unexpected response shape", f"Apollo people entry is not an object: {str(people)[:500]}"
            )

        if person.get("email"):
            logger.info(f"[apollo] Found email for {domain}")
            return self.create_success_response(
                person["email"],
                emails=[person["email"]],
                first_name=person.get("first_name"),
                last_name=person.get("last_name"),
                title=person.get("title"),
                linkedin_url=person.get("linkedin_url"),
            )

        # Apollo only reveals emails through a separate, credit-consuming endpoint
        logger.warning(f"[apollo] Person found but no email available for {domain}")
        return self.create_not_found_response(
            first_name=person.get("first_name"),
            last_name=person.get("last_name"),
            title=person.get("title"),
        )

    def _build_search_payload(self, domain: str, request: EnrichmentRequest) -> dict:
        payload: dict = {
            "q_organization_domains": domain,
            "page": 1,
            "per_page": 1,
        }

        person_name = request.person_name
        if not person_name:
            if request.first_name and request.last_name:
                person_name = f"{request.first_name} {request.last_name}"
            else:
                person_name = request.first_name or request.last_name

        if person_name and person_name.strip():
            payload["q_keywords"] = person_name.strip()

        return payload
