"""Tests for enrichment configuration loading and validation."""

import pytest

from common.config import Config
from common.errors import EnrichmentConfigError
from models.enrichment import ProviderName
from services.enrichment.config import (
    get_effective_primary_provider,
    get_enabled_providers,
    load_enrichment_config,
    validate_enrichment_config,
)


class TestFromSettings:
    def test_defaults(self):
        cfg = load_enrichment_config(Config(_env_file=None))

        assert cfg.providers.apollo.enabled is True
        assert cfg.providers.apollo.cost_per_lookup == 0.03
        assert cfg.providers.lusha.enabled is False
        assert cfg.providers.lusha.cost_per_lookup == 0.05
        assert cfg.providers.website_scraper.timeout_ms == 10_000
        assert cfg.providers.website_scraper.contact_paths[0] == "/contact"
        assert cfg.strategy.primary == ProviderName.APOLLO
        assert cfg.strategy.fallback_enabled is True
        assert cfg.strategy.parallel_search is False
        assert cfg.features.phone_numbers is False

    def test_api_key_and_base_url(self):
        cfg = load_enrichment_config(
            Config(_env_file=None, lusha_api_key="secret", lusha_base_url="https://lusha.test/")
        )
        assert cfg.providers.lusha.api_key == "secret"
        assert cfg.providers.lusha.base_url == "https://lusha.test"
        assert cfg.providers.apollo.api_key is None

    def test_contact_paths_from_env(self, monkeypatch):
        monkeypatch.setenv("WEBSITE_SCRAPER_CONTACT_PATHS", "contact, /about ,")
        cfg = load_enrichment_config(Config(_env_file=None))
        assert cfg.providers.website_scraper.contact_paths == ("/contact", "/about")

    def test_contact_paths_json_list(self, monkeypatch):
        monkeypatch.setenv("WEBSITE_SCRAPER_CONTACT_PATHS", '["/impressum", "team"]')
        cfg = load_enrichment_config(Config(_env_file=None))
        assert cfg.providers.website_scraper.contact_paths == ("/impressum", "/team")

    def test_strategy_from_env(self, monkeypatch):
        monkeypatch.setenv("PRIMARY_ENRICHMENT_PROVIDER", "lusha")
        monkeypatch.setenv("ENRICHMENT_PARALLEL", "true")
        cfg = load_enrichment_config()
        assert cfg.strategy.primary == ProviderName.LUSHA
        assert cfg.strategy.parallel_search is True


class TestValidation:
    def test_no_providers_raises(self, make_config):
        with pytest.raises(EnrichmentConfigError):
            validate_enrichment_config(make_config())

    def test_missing_key_is_only_a_warning(self, make_config):
        assert validate_enrichment_config(make_config(apollo_enabled=True)) is True

    def test_enabled_providers_in_registration_order(self, make_config):
        cfg = make_config(website_scraper_enabled=True, lusha_enabled=True, apollo_enabled=True)
        assert get_enabled_providers(cfg) == [ProviderName.APOLLO, ProviderName.LUSHA, ProviderName.WEBSITE_SCRAPER]


class TestEffectivePrimary:
    def test_configured_primary(self, make_config):
        cfg = make_config(lusha_enabled=True, apollo_enabled=True, primary_enrichment_provider="lusha")
        assert get_effective_primary_provider(cfg) == ProviderName.LUSHA

    def test_disabled_primary_falls_back(self, make_config):
        cfg = make_config(website_scraper_enabled=True, primary_enrichment_provider="lusha")
        assert get_effective_primary_provider(cfg) == ProviderName.WEBSITE_SCRAPER

    def test_nothing_enabled_raises(self, make_config):
        with pytest.raises(EnrichmentConfigError):
            get_effective_primary_provider(make_config())

    def test_narrowed_to_available(self, make_config):
        """An enabled primary without credentials is not available; the first available one wins."""
        cfg = make_config(apollo_enabled=True, website_scraper_enabled=True)
        assert get_effective_primary_provider(cfg, [ProviderName.WEBSITE_SCRAPER]) == ProviderName.WEBSITE_SCRAPER
        assert get_effective_primary_provider(cfg, [ProviderName.APOLLO, ProviderName.LUSHA]) == ProviderName.APOLLO

    def test_empty_available_raises(self, make_config):
        with pytest.raises(EnrichmentConfigError):
            get_effective_primary_provider(make_config(apollo_enabled=True), [])
