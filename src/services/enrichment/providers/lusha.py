"""
Lusha enrichment provider.

Search strategies, in order:
    1. Person API (direct lookup) by LinkedIn URL, known email, or first + last name + domain
    2. Prospecting API (domain only): company search -> contact search -> contact enrich

A definitive Person API error (bad key, rate limit, ...) is returned immediately;
a clean "not found" falls through to prospecting.
"""

from typing import Any

import httpx

from common.errors import describe_http_status
from common.logging import get_logger
from models.enrichment import EnrichedContact, EnrichmentRequest, EnrichmentResponse, ProviderName
from services.enrichment.providers.base import BaseEnrichmentProvider
from services.enrichment.utils import clean_domain, first_list, is_social_media_domain, parse_name

logger = get_logger(__name__)

LUSHA_PERSON_ENDPOINT = "/v2/person"
LUSHA_COMPANY_SEARCH_ENDPOINT = "/prospecting/company/search"
LUSHA_CONTACT_SEARCH_ENDPOINT = "/prospecting/contact/search"
LUSHA_CONTACT_ENRICH_ENDPOINT = "/prospecting/contact/enrich"

# Lusha rejects page sizes below 10
PAGE = {"page": 0, "size": 10}
MAX_BULK_CONTACTS = 100

# Decision makers for affiliate outreach
CONTACT_DEPARTMENTS = ["Marketing", "Sales", "Business Development"]
CONTACT_SENIORITY = [4, 3, 2]  # C-Level, VP, Director

LUSHA_ERROR_MESSAGES = {
    400: "Invalid request parameters",
    401: "Invalid API key",
    403: "Access forbidden - check your Lusha plan",
    404: "Person not found",
    429: "Rate limit exceeded",
    500: "Lusha server error",
}

COMPANY_LIST_KEYS = ("companies", "data", "results")
CONTACT_LIST_KEYS = ("data", "contacts")
ENRICHED_LIST_KEYS = ("contacts", "data")


def _values(items: Any, key: str) -> list[str]:
    """Flatten a list of strings or {key: value} objects into strings."""
    out: list[str] = []
    if not isinstance(items, list):
        return out
    for item in items:
        value = item if isinstance(item, str) else (item.get(key) if isinstance(item, dict) else None)
        if value and value not in out:
            out.append(value)
    return out


class LushaProvider(BaseEnrichmentProvider):
    """
    Finds emails with Lusha's Person and Prospecting APIs.

    Example:
        lusha = LushaProvider()
        # Person API
        await lusha.find_email(EnrichmentRequest(domain="example.com", first_name="Jane", last_name="Doe"))
        # Prospecting API, finds any decision maker at the company
        await lusha.find_email(EnrichmentRequest(domain="example.com"))
    """

    name = ProviderName.LUSHA

    @property
    def api_key(self) -> str | None:
        return self.cfg.providers.lusha.api_key

    def is_enabled(self) -> bool:
        return self.cfg.providers.lusha.enabled and bool(self.api_key)

    def estimate_cost(self) -> float:
        return self.cfg.providers.lusha.cost_per_lookup

    @property
    def _headers(self) -> dict[str, str]:
        return {"api_key": self.api_key or "", "Content-Type": "application/json"}

    async def find_email(self, request: EnrichmentRequest) -> EnrichmentResponse:
        if not self.is_enabled():
            return self.create_error_response("Lusha provider is not enabled or API key is missing")

        domain = clean_domain(request.domain)
        if domain and is_social_media_domain(domain):
            return self.create_error_response(
                f'Cannot search social media domain "{domain}". Need the creator\'s business domain.'
            )

        params = self.build_person_params(request)
        if params:
            logger.info(f'[lusha] Searching with Person API: domain="{domain or "unknown"}"')
            person_result = await self._search_person(params, domain)
            if person_result.found or person_result.error:
                return person_result

        if domain:
            logger.info(f'[lusha] Falling back to Prospecting API: domain="{domain}"')
            return await self._search_prospecting(domain)

        return self.create_error_response("Insufficient search parameters. Need at least a domain.")

    # Person API

    def build_person_params(self, request: EnrichmentRequest) -> dict[str, str] | None:
        """
        Query parameters for a direct lookup, or None when the request lacks the data.

        Accepted combinations, highest priority first:
            1. linkedin_url
            2. email (reverse lookup)
            3. first_name + last_name + a non-social domain
        """
        params: dict[str, str] = {}

        if request.linkedin_url:
            params["linkedinUrl"] = request.linkedin_url
        elif request.email:
            params["email"] = request.email
        else:
            first_name, last_name = request.first_name, request.last_name
            if not first_name and not last_name and request.person_name:
                first_name, last_name = parse_name(request.person_name)
                # "Dominic" alone gives no usable last name
                if len(last_name) < 2:
                    logger.info(f'[lusha] Cannot use Person API: name "{request.person_name}" has no valid last name')
                    return None

            domain = clean_domain(request.domain)
            if not (first_name and last_name and domain):
                return None
            if is_social_media_domain(domain):
                logger.info(f'[lusha] Cannot use Person API with social media domain "{domain}"')
                return None

            params.update({"firstName": first_name, "lastName": last_name, "companyDomain": domain})

        params["revealEmails"] = "true"
        if self.cfg.features.phone_numbers:
            params["revealPhones"] = "true"
        if self.cfg.features.partial_profiles:
            params["partialProfile"] = "true"
        return params

    async def _search_person(self, params: dict[str, str], domain: str) -> EnrichmentResponse:
        provider_cfg = self.cfg.providers.lusha
        try:
            async with self.http(timeout=provider_cfg.timeout_s) as client:
                resp = await client.get(
                    f"{provider_cfg.base_url}{LUSHA_PERSON_ENDPOINT}",
                    params=params,
                    headers=self._headers,
                    timeout=provider_cfg.timeout_s,
                )
                self._log_rate_limits(resp.headers)
                if resp.status_code == 404:
                    logger.warning(f"[lusha] [Person API] No person found for {domain}")
                    return self.create_not_found_response()
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            return self._handle_api_error(e.response)
        except httpx.RequestError as e:
            return self.create_error_response(f"Request failed: {e}", "Lusha Person API request failed")
        except ValueError:
            return self.create_error_response("Invalid JSON in response", "Lusha Person API request failed")

        if not isinstance(data, dict):
            data = {}
        # Some plans wrap the person under "data"
        person = data.get("data") if isinstance(data.get("data"), dict) else data

        emails = _values(person.get("emailAddresses"), "email")
        phones = _values(person.get("phoneNumbers"), "phone") if self.cfg.features.phone_numbers else []
        job_infos = person.get("jobInfos") or []
        if not isinstance(job_infos, list) or not all(isinstance(j, dict) for j in job_infos):
            return self.create_error_response(
                "Unexpected response shape", f"Lusha jobInfos is not a list of objects: {str(job_infos)[:500]}"
            )
        title = job_infos[0].get("title") if job_infos else person.get("jobTitle")

        if emails:
            logger.info(f"[lusha] [Person API] Found email for {domain}")
            contact = EnrichedContact(
                first_name=person.get("firstName"),
                last_name=person.get("lastName"),
                full_name=person.get("fullName"),
                title=title,
                linkedin_url=person.get("linkedinUrl"),
                emails=emails,
                phone_numbers=phones or None,
            )
            return self.create_success_response(
                emails[0],
                emails=emails,
                contacts=[contact],
                first_name=contact.first_name,
                last_name=contact.last_name,
                title=title,
                linkedin_url=contact.linkedin_url,
                phone_numbers=phones or None,
            )

        logger.warning(f"[lusha] [Person API] No email found for {domain}")
        return self.create_not_found_response(
            first_name=person.get("firstName"),
            last_name=person.get("lastName"),
            phone_numbers=phones or None,
        )

    # Prospecting API

    async def _search_prospecting(self, domain: str) -> EnrichmentResponse:
        provider_cfg = self.cfg.providers.lusha
        try:
            async with self.http(timeout=provider_cfg.timeout_s) as client:
                # Step 1: company by domain
                logger.info(f'[lusha] [Prospecting] Step 1: Searching for company with domain "{domain}"')
                company_resp = await self._post(
                    client,
                    LUSHA_COMPANY_SEARCH_ENDPOINT,
                    {"pages": PAGE, "filters": {"companies": {"include": {"domains": [domain]}}}},
                )
                if company_resp.is_error:
                    logger.warning(f"[lusha] [Prospecting] Company search failed: {company_resp.text[:500]}")
                    return self._handle_api_error(company_resp)

                company_raw = company_resp.json()
                logger.debug(f"[lusha] [Prospecting] Raw company response: {str(company_raw)[:500]}")
                companies = first_list(company_raw, COMPANY_LIST_KEYS)
                if not companies or not isinstance(companies[0], dict) or not companies[0].get("name"):
                    logger.warning(f'[lusha] [Prospecting] No company found for domain "{domain}"')
                    return self.create_not_found_response()

                company_name = companies[0]["name"]
                logger.info(f"[lusha] [Prospecting] Found company: {company_name} (ID: {companies[0].get('id')})")

                # Step 2: contacts at the company; the API filters by company name, not id
                logger.info(f"[lusha] [Prospecting] Step 2: Searching for contacts at {company_name}")
                contact_resp = await self._post(client, LUSHA_CONTACT_SEARCH_ENDPOINT, self._contact_search_body(company_name))
                if contact_resp.is_error:
                    logger.info("[lusha] [Prospecting] Retrying contact search with just company name")
                    contact_resp = await self._post(
                        client, LUSHA_CONTACT_SEARCH_ENDPOINT, self._contact_search_body(company_name, narrow=False)
                    )
                    if contact_resp.is_error:
                        logger.warning(f"[lusha] [Prospecting] Contact search failed: {contact_resp.text[:500]}")
                        return self._handle_api_error(contact_resp)

                contact_data = contact_resp.json()
                logger.debug(f"[lusha] [Prospecting] Raw contact response: {str(contact_data)[:500]}")

                # Step 3: reveal emails
                return await self._enrich_contacts(client, contact_data, domain, company_name)

        except httpx.RequestError as e:
            return self.create_error_response(f"Request failed: {e}", "Lusha Prospecting API request failed")
        except ValueError:
            return self.create_error_response("Invalid JSON in response", "Lusha Prospecting API request failed")

    def _contact_search_body(self, company_name: str, narrow: bool = True) -> dict:
        contact_include: dict[str, Any] = {"existing_data_points": ["work_email"]}
        if narrow:
            contact_include = {
                "departments": CONTACT_DEPARTMENTS,
                "seniority": CONTACT_SENIORITY,
                **contact_include,
            }
        return {
            "pages": PAGE,
            "filters": {
                "contacts": {"include": contact_include},
                "companies": {"include": {"names": [company_name]}},
            },
        }

    async def _enrich_contacts(
        self, client: httpx.AsyncClient, contact_data: Any, domain: str, company_name: str
    ) -> EnrichmentResponse:
        contacts = first_list(contact_data, CONTACT_LIST_KEYS)
        if not contacts:
            total = contact_data.get("totalResults") if isinstance(contact_data, dict) else None
            logger.warning(f"[lusha] [Prospecting] No contacts found for {company_name}. Total results: {total}")
            return self.create_not_found_response()

        request_id = contact_data.get("requestId") if isinstance(contact_data, dict) else None
        if not request_id:
            return self.create_error_response("Missing requestId from contact search")

        contact_ids = [c.get("contactId") or c.get("id") for c in contacts if isinstance(c, dict)]
        contact_ids = [cid for cid in contact_ids if cid]
        contact_ids = contact_ids[:MAX_BULK_CONTACTS] if self.cfg.features.bulk_enrichment else contact_ids[:1]
        if not contact_ids:
            return self.create_not_found_response()

        logger.info(f"[lusha] [Prospecting] Step 3: Enriching {len(contact_ids)} contacts using requestId: {request_id}")
        enrich_resp = await self._post(
            client, LUSHA_CONTACT_ENRICH_ENDPOINT, {"requestId": request_id, "contactIds": contact_ids}
        )
        if enrich_resp.is_error:
            logger.warning(f"[lusha] [Prospecting] Contact enrichment failed: {enrich_resp.text[:500]}")
            return self._handle_api_error(enrich_resp)

        enrich_raw = enrich_resp.json()
        logger.debug(f"[lusha] [Prospecting] Raw enrichment response: {str(enrich_raw)[:500]}")

        enriched, all_emails = self.parse_enriched_contacts(first_list(enrich_raw, ENRICHED_LIST_KEYS))
        return self.build_prospecting_response(enriched, all_emails, domain)

    @staticmethod
    def parse_enriched_contacts(records: list) -> tuple[list[EnrichedContact], list[str]]:
        """
        Turn enrich records into contacts plus the union of their emails.

        Records look like {"id", "isSuccess", "data": {"firstName", "emailAddresses": [{"email"}], ...}}
        but the contact fields may also sit at the top level. Failed records are skipped.
        """
        contacts: list[EnrichedContact] = []
        all_emails: list[str] = []

        for record in records:
            if not isinstance(record, dict) or record.get("isSuccess") is False:
                continue
            data = record.get("data") if isinstance(record.get("data"), dict) else record

            emails = _values(data.get("emailAddresses") or data.get("emails"), "email")
            if data.get("email") and data["email"] not in emails:
                emails.append(data["email"])
            phones = _values(data.get("phoneNumbers") or data.get("phones"), "phone")

            for email in emails:
                if email not in all_emails:
                    all_emails.append(email)

            contact = EnrichedContact(
                first_name=data.get("firstName"),
                last_name=data.get("lastName"),
                full_name=data.get("fullName") or data.get("name"),
                title=data.get("jobTitle"),
                linkedin_url=data.get("linkedinUrl"),
                emails=emails,
                phone_numbers=phones or None,
            )
            if contact.has_identity:
                contacts.append(contact)

        return contacts, all_emails

    def build_prospecting_response(
        self, contacts: list[EnrichedContact], all_emails: list[str], domain: str
    ) -> EnrichmentResponse:
        if not all_emails:
            logger.warning(f"[lusha] [Prospecting] No emails found after enrichment for {domain}")
            return self.create_not_found_response(contacts=contacts)

        primary_email = all_emails[0]
        # The headline name/title must belong to whoever owns the primary email
        primary = next((c for c in contacts if primary_email in c.emails), contacts[0] if contacts else None)

        first_name = last_name = None
        if primary:
            full_first, full_last = parse_name(primary.full_name)
            first_name = primary.first_name or full_first or None
            last_name = primary.last_name or full_last or None

        logger.info(
            f"[lusha] [Prospecting] Found {len(all_emails)} email(s) from {len(contacts)} contact(s) for {domain}"
        )
        return self.create_success_response(
            primary_email,
            emails=all_emails,
            contacts=contacts,
            first_name=first_name,
            last_name=last_name,
            title=primary.title if primary else None,
            linkedin_url=primary.linkedin_url if primary else None,
            phone_numbers=primary.phone_numbers if primary else None,
        )

    # Helpers

    async def _post(self, client: httpx.AsyncClient, endpoint: str, body: dict) -> httpx.Response:
        provider_cfg = self.cfg.providers.lusha
        return await client.post(
            f"{provider_cfg.base_url}{endpoint}",
            json=body,
            headers=self._headers,
            timeout=provider_cfg.timeout_s,
        )

    def _handle_api_error(self, response: httpx.Response) -> EnrichmentResponse:
        status = response.status_code
        return self.create_error_response(
            describe_http_status(status, LUSHA_ERROR_MESSAGES),
            f"Lusha API returned {status}: {response.text[:500]}",
        )

    def _log_rate_limits(self, headers: httpx.Headers) -> None:
        daily_left = headers.get("x-daily-requests-left")
        hourly_left = headers.get("x-hourly-requests-left")
        if daily_left or hourly_left:
            logger.info(f"[lusha] Rate limits - Daily: {daily_left or 'N/A'}, Hourly: {hourly_left or 'N/A'}")
