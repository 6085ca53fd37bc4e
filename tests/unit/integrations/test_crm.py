import json

import httpx
import pytest

from backend.integrations.crm import HubSpotCrm, InMemoryCrm
from backend.workflow.schemas import CrmContact

HUBSPOT_CONTACT = {
    "id": "501",
    "properties": {
        "email": "info@coralreefalliance.org",
        "firstname": "Reef",
        "lastname": "Keeper",
        "company": "Coral Reef Alliance",
    },
    "createdAt": "2024-03-01T10:00:00Z",
    "updatedAt": "2024-03-02T10:00:00Z",
}


class TestInMemoryCrm:

    @pytest.mark.asyncio
    async def test_lookup_is_case_insensitive(self, crm):
        contact = await crm.get_contact_by_email("INFO@CoralReefAlliance.org")

        assert contact.id == "contact-1"

    @pytest.mark.asyncio
    async def test_create_if_not_exists(self, crm):
        existing = await crm.create_contact_if_not_exists(CrmContact(email="info@coralreefalliance.org"))
        created = await crm.create_contact_if_not_exists(CrmContact(email="hello@newreef.org"))

        assert existing.is_new is False
        assert existing.contact.id == "contact-1"
        assert created.is_new is True
        assert created.contact.id.startswith("contact-")
        assert await crm.get_contact_by_id(created.contact.id) is not None

    @pytest.mark.asyncio
    async def test_list_contacts_paginates(self):
        crm = InMemoryCrm([CrmContact(id=f"c{i}", email=f"c{i}@example.org") for i in range(5)])

        page = await crm.list_contacts(limit=2, offset=2)

        assert [c.id for c in page] == ["c2", "c3"]


class TestHubSpotCrm:

    @pytest.mark.asyncio
    async def test_get_contact_by_email(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"results": [HUBSPOT_CONTACT]})

        crm = HubSpotCrm("secret", transport=httpx.MockTransport(handler))

        contact = await crm.get_contact_by_email("info@coralreefalliance.org")

        assert contact.id == "501"
        assert contact.first_name == "Reef"
        assert contact.company == "Coral Reef Alliance"
        assert contact.created_at.year == 2024
        assert requests[0].url.path == "/crm/v3/objects/contacts/search"
        assert requests[0].headers["Authorization"] == "Bearer secret"
        body = json.loads(requests[0].content)
        assert body["filterGroups"][0]["filters"][0]["value"] == "info@coralreefalliance.org"

    @pytest.mark.asyncio
    async def test_get_contact_by_id_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "not found"})

        crm = HubSpotCrm("secret", transport=httpx.MockTransport(handler))

        assert await crm.get_contact_by_id("999") is None

    @pytest.mark.asyncio
    async def test_server_error_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        crm = HubSpotCrm("secret", transport=httpx.MockTransport(handler))

        with pytest.raises(httpx.HTTPStatusError):
            await crm.get_contact_by_id("501")

    @pytest.mark.asyncio
    async def test_create_contact_when_missing(self):
        """Test that a contact is created only after the search comes back empty."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, request.url.path))
            if request.url.path.endswith("/search"):
                return httpx.Response(200, json={"results": []})
            payload = json.loads(request.content)
            assert payload["properties"] == {"email": "hello@newreef.org", "company": "New Reef"}
            return httpx.Response(201, json={"id": "777", "properties": payload["properties"]})

        crm = HubSpotCrm("secret", transport=httpx.MockTransport(handler))

        result = await crm.create_contact_if_not_exists(CrmContact(email="hello@newreef.org", company="New Reef"))

        assert result.is_new is True
        assert result.contact.id == "777"
        assert calls == [
            ("POST", "/crm/v3/objects/contacts/search"),
            ("POST", "/crm/v3/objects/contacts"),
        ]

    @pytest.mark.asyncio
    async def test_list_contacts(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["limit"] == "10"
            return httpx.Response(200, json={"results": [HUBSPOT_CONTACT]})

        crm = HubSpotCrm("secret", transport=httpx.MockTransport(handler))

        contacts = await crm.list_contacts(limit=10)

        assert [c.email for c in contacts] == ["info@coralreefalliance.org"]
