"""Request/response models for the email enrichment service."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel


class ProviderName(str, Enum):
    """Closed set of enrichment providers, in registration order."""

    APOLLO = "apollo"
    LUSHA = "lusha"
    WEBSITE_SCRAPER = "website_scraper"


class EmailStatus(str, Enum):
    """Email lookup status as stored alongside a saved affiliate."""

    NOT_SEARCHED = "not_searched"
    SEARCHING = "searching"
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EnrichmentRequest(_CamelModel):
    """
    Input for an email lookup.

    Providers use different subsets:
        - Apollo: domain + optional person name
        - Lusha: linkedin_url, email, or first/last name + domain; domain alone for prospecting
        - Website scraper: domain + optional target_language (orders contact page paths)
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    domain: str = Field(description="Company/website domain, may include scheme, www. or a path")
    person_name: str | None = Field(None, description="Full person name (split into first/last when needed)")
    first_name: str | None = Field(None, description="First name, overrides the person_name split")
    last_name: str | None = Field(None, description="Last name, overrides the person_name split")
    email: str | None = Field(None, description="Known email address for reverse lookup")
    linkedin_url: str | None = Field(None, description="LinkedIn profile URL for direct lookup")
    target_language: str | None = Field(None, description="Language name or ISO code used to order scraper paths")


class EnrichedContact(_CamelModel):
    """One person found during enrichment."""

    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None
    title: str | None = None
    linkedin_url: str | None = None
    emails: list[str] = Field(default_factory=list)
    phone_numbers: list[str] | None = None

    @property
    def has_identity(self) -> bool:
        """A contact is worth recording if it has an email or a name."""
        return bool(self.emails or self.first_name or self.full_name)


class EnrichmentResponse(_CamelModel):
    """
    Normalized result from any provider.

    `first_name`/`last_name`/`title`/`linkedin_url`/`phone_numbers` always describe the
    contact that owns `email`. `found` is kept in sync with `email`.
    """

    email: str | None = Field(None, description="Primary email address")
    emails: list[str] = Field(default_factory=list, description="All emails found, in priority order")
    contacts: list[EnrichedContact] = Field(default_factory=list, description="All contacts found")
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None
    linkedin_url: str | None = None
    phone_numbers: list[str] | None = None
    found: bool = False
    provider: ProviderName
    error: str | None = Field(None, description="Failure reason when the lookup errored")
    cost_estimate: float = Field(0.0, description="Provider cost of this call in USD")

    @model_validator(mode="after")
    def _sync_found(self) -> "EnrichmentResponse":
        self.found = self.email is not None
        return self

    @computed_field
    @property
    def status(self) -> EmailStatus:
        if self.error:
            return EmailStatus.ERROR
        if self.found and self.email:
            return EmailStatus.FOUND
        return EmailStatus.NOT_FOUND

    def to_email_results(self) -> dict | None:
        """Summary payload persisted with the affiliate; None when nothing was found."""
        if not self.found:
            return None
        return {
            "emails": self.emails or ([self.email] if self.email else []),
            "contacts": [c.model_dump(by_alias=True, exclude_none=True) for c in self.contacts],
            "firstName": self.first_name,
            "lastName": self.last_name,
            "title": self.title,
            "linkedinUrl": self.linkedin_url,
            "phoneNumbers": self.phone_numbers,
            "provider": self.provider.value,
        }
