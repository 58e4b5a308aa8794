"""Tests for the Apollo provider."""

import json

import httpx
import pytest

from models.enrichment import EnrichmentRequest, ProviderName
from services.enrichment.providers.apollo import ApolloProvider


@pytest.fixture
def apollo_config(make_config):
    return make_config(apollo_enabled=True, apollo_api_key="test-key", apollo_base_url="https://apollo.test")


def _person(**overrides):
    person = {
        "first_name": "John",
        "last_name": "Smith",
        "title": "Head of Partnerships",
        "linkedin_url": "https://linkedin.com/in/jsmith",
        "email": "john@techcrunch.com",
    }
    person.update(overrides)
    return person


class TestApolloProvider:
    @pytest.mark.asyncio
    async def test_found(self, apollo_config, mock_client):
        """A person with an email is a success carrying the person's details."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"people": [_person()]})

        provider = ApolloProvider(apollo_config, mock_client(handler))
        result = await provider.find_email(
            EnrichmentRequest(domain="https://www.TechCrunch.com/about", person_name="John Smith")
        )

        assert result.found
        assert result.email == "john@techcrunch.com"
        assert result.emails == ["john@techcrunch.com"]
        assert result.first_name == "John"
        assert result.title == "Head of Partnerships"
        assert result.provider == ProviderName.APOLLO
        assert result.cost_estimate == 0.03
        assert seen["url"] == "https://apollo.test/v1/mixed_people/search"
        assert seen["key"] == "test-key"
        assert seen["body"] == {
            "q_organization_domains": "techcrunch.com",
            "page": 1,
            "per_page": 1,
            "q_keywords": "John Smith",
        }

    @pytest.mark.asyncio
    async def test_keywords_from_first_and_last_name(self, apollo_config, mock_client):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"people": []})

        provider = ApolloProvider(apollo_config, mock_client(handler))
        await provider.find_email(EnrichmentRequest(domain="acme.io", first_name="Ann", last_name="Lee"))

        assert seen["body"]["q_keywords"] == "Ann Lee"

    @pytest.mark.asyncio
    async def test_no_keywords_without_name(self, apollo_config, mock_client):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"people": []})

        await ApolloProvider(apollo_config, mock_client(handler)).find_email(EnrichmentRequest(domain="acme.io"))

        assert "q_keywords" not in seen["body"]

    @pytest.mark.asyncio
    async def test_no_people_is_not_found(self, apollo_config, mock_client):
        provider = ApolloProvider(apollo_config, mock_client(lambda r: httpx.Response(200, json={"people": []})))
        result = await provider.find_email(EnrichmentRequest(domain="acme.io"))

        assert not result.found
        assert result.error is None
        assert result.cost_estimate == 0.03

    @pytest.mark.asyncio
    async def test_person_without_email(self, apollo_config, mock_client):
        """Not found, but the person's name and title are still returned."""
        body = {"people": [_person(email=None)]}
        provider = ApolloProvider(apollo_config, mock_client(lambda r: httpx.Response(200, json=body)))
        result = await provider.find_email(EnrichmentRequest(domain="techcrunch.com"))

        assert not result.found
        assert result.first_name == "John"
        assert result.title == "Head of Partnerships"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_http_error(self, apollo_config, mock_client):
        provider = ApolloProvider(apollo_config, mock_client(lambda r: httpx.Response(401, text="unauthorized")))
        result = await provider.find_email(EnrichmentRequest(domain="acme.io"))

        assert not result.found
        assert result.error == "API error: 401"
        assert result.cost_estimate == 0.0

    @pytest.mark.asyncio
    async def test_transport_error(self, apollo_config, mock_client):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await ApolloProvider(apollo_config, mock_client(handler)).find_email(EnrichmentRequest(domain="acme.io"))

        assert result.error.startswith("Request failed")
        assert result.cost_estimate == 0.0

    @pytest.mark.asyncio
    async def test_social_domain_refused(self, apollo_config, mock_client):
        calls = []
        provider = ApolloProvider(apollo_config, mock_client(lambda r: calls.append(r) or httpx.Response(200)))
        result = await provider.find_email(EnrichmentRequest(domain="https://www.instagram.com/creator"))

        assert "social media domain" in result.error
        assert result.cost_estimate == 0.0
        assert calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"people": ["x"]}, {"people": {"email": "a@acme.io"}}])
    async def test_unexpected_people_shape(self, apollo_config, mock_client, body):
        """Malformed people entries become an error response instead of raising."""
        provider = ApolloProvider(apollo_config, mock_client(lambda r: httpx.Response(200, json=body)))
        result = await provider.find_email(EnrichmentRequest(domain="acme.io"))

        assert result.error == "Unexpected response shape"
        assert result.cost_estimate == 0.0
        assert not result.found

    @pytest.mark.asyncio
    async def test_missing_key_is_disabled(self, make_config):
        provider = ApolloProvider(make_config(apollo_enabled=True))

        assert not provider.is_enabled()
        result = await provider.find_email(EnrichmentRequest(domain="acme.io"))
        assert result.error == "Apollo provider is not enabled or API key is missing"
