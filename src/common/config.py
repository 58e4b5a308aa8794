import json
from typing import Annotated, Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_CONTACT_PATHS = [
    "/contact",
    "/contact-us",
    "/kontakt",
    "/impressum",
    "/about",
    "/about-us",
    "/team",
]


class Config(BaseSettings):
    # Apollo (B2B contact database)
    apollo_enabled: bool = True
    apollo_api_key: SecretStr = SecretStr("")
    apollo_base_url: str = "https://api.apollo.io"
    apollo_cost_per_lookup: float = 0.03

    # Lusha (B2B contact database, person + prospecting APIs)
    lusha_enabled: bool = False
    lusha_api_key: SecretStr = SecretStr("")
    lusha_base_url: str = "https://api.lusha.com"
    lusha_cost_per_lookup: float = 0.05

    # Website scraper (free fallback)
    website_scraper_enabled: bool = True
    website_scraper_timeout_ms: int = 10_000
    website_scraper_contact_paths: Annotated[list[str], NoDecode] = DEFAULT_CONTACT_PATHS

    # Strategy
    primary_enrichment_provider: Literal["apollo", "lusha", "website_scraper"] = "apollo"
    enrichment_fallback: bool = True
    enrichment_parallel: bool = False

    # Feature flags
    enrich_phone_numbers: bool = False
    enrich_bulk: bool = True
    enrich_partial_profiles: bool = True

    # Outbound B2B API calls
    provider_timeout_s: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("website_scraper_contact_paths", mode="before")
    @classmethod
    def _split_paths(cls, value):
        # Accept "/contact,/about" as well as a JSON list
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                value = json.loads(value)
            else:
                value = value.split(",")
        return [p.strip() if p.strip().startswith("/") else f"/{p.strip()}" for p in value if p and p.strip()]


config = Config()
