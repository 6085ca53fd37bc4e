import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import anthropic
import httpx
import pytest

from backend.reasoning.generator import AnthropicEmailGenerator, TemplateEmailGenerator, strip_code_fence
from backend.reasoning.org_search import AnthropicOrganizationSearch
from backend.workflow.validation import validate_ai_generated_email


def llm_client(text: str) -> Mock:
    """Mock Anthropic client whose messages.create returns ``text``."""
    client = Mock()
    client.messages.create = AsyncMock(return_value=SimpleNamespace(content=[SimpleNamespace(text=text)]))
    return client


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


class TestAnthropicEmailGenerator:

    @pytest.mark.asyncio
    async def test_returns_parsed_json(self, coral_org, campaign):
        payload = {"subject": "Hello", "body": "Dear team", "tone": "friendly"}
        client = llm_client(f"```json\n{json.dumps(payload)}\n```")
        generator = AnthropicEmailGenerator(None, "test-model", client=client)

        result = await generator.generate_email(coral_org, campaign)

        assert result.success is True
        assert result.data == payload
        kwargs = client.messages.create.await_args.kwargs
        assert kwargs["model"] == "test-model"
        assert "Coral Reef Alliance" in kwargs["messages"][0]["content"]
        assert "Caribbean Reef Revival" in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_invalid_json(self, coral_org, campaign):
        generator = AnthropicEmailGenerator(None, "test-model", client=llm_client("Sorry, I can't help."))

        result = await generator.generate_email(coral_org, campaign)

        assert result.success is False
        assert result.error.startswith("Generator returned invalid JSON")

    @pytest.mark.asyncio
    async def test_api_error(self, coral_org, campaign):
        client = Mock()
        client.messages.create = AsyncMock(side_effect=anthropic.APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        ))
        generator = AnthropicEmailGenerator(None, "test-model", client=client)

        result = await generator.generate_email(coral_org, campaign)

        assert result.success is False
        assert result.error.startswith("Generation service error")


class TestTemplateEmailGenerator:

    @pytest.mark.asyncio
    async def test_output_passes_validation(self, coral_org, campaign):
        result = await TemplateEmailGenerator().generate_email(coral_org, campaign)

        assert validate_ai_generated_email(result.data).valid is True
        assert result.data["personalization_notes"][0] == "Referenced focus area: coral restoration"

    @pytest.mark.asyncio
    async def test_is_deterministic(self, coral_org, campaign):
        generator = TemplateEmailGenerator()

        first = await generator.generate_email(coral_org, campaign)
        second = await generator.generate_email(coral_org, campaign)

        assert first.data == second.data


class TestAnthropicOrganizationSearch:

    @pytest.mark.asyncio
    async def test_parses_organizations(self):
        items = [
            {"name": "Reef Renewal Foundation", "email": "hi@reefrenewal.org", "focus_areas": ["coral"]},
            {"name": ""},
            "not an object",
        ]
        search = AnthropicOrganizationSearch(None, "test-model", client=llm_client(json.dumps(items)))

        organizations = await search.search("coral reefs")

        assert [org.id for org in organizations] == ["live-reef-renewal-foundation"]
        assert organizations[0].focus_areas == ["coral"]

    @pytest.mark.asyncio
    async def test_non_list_response(self):
        search = AnthropicOrganizationSearch(None, "test-model", client=llm_client('{"name": "x"}'))

        assert await search.search("coral reefs") == []

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        search = AnthropicOrganizationSearch(None, "test-model", client=llm_client("not json"))

        with pytest.raises(json.JSONDecodeError):
            await search.search("coral reefs")
