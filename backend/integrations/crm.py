"""
CRM adapters.

HubSpot is reached over its v3 REST API with httpx. The adapter only reads
contacts and inserts new ones; it never updates an existing record.
"""
import logging
from typing import Optional

import httpx

from backend.integrations.interfaces import ContactLookupOrCreate, CrmAdapter
from backend.workflow.schemas import CrmContact, new_id

logger = logging.getLogger(__name__)

CONTACT_PROPERTIES = ["email", "firstname", "lastname", "company", "phone"]


class InMemoryCrm(CrmAdapter):
    """Process-local CRM used when no HubSpot key is configured."""

    def __init__(self, contacts: Optional[list[CrmContact]] = None):
        self.contacts: dict[str, CrmContact] = {}
        for contact in contacts or []:
            self.contacts[contact.id] = contact

    async def get_contact_by_email(self, email: str) -> Optional[CrmContact]:
        wanted = email.strip().lower()
        for contact in self.contacts.values():
            if contact.email.lower() == wanted:
                return contact.model_copy(deep=True)
        return None

    async def get_contact_by_id(self, contact_id: str) -> Optional[CrmContact]:
        contact = self.contacts.get(contact_id)
        return contact.model_copy(deep=True) if contact else None

    async def list_contacts(self, limit: int = 100, offset: int = 0) -> list[CrmContact]:
        contacts = list(self.contacts.values())[offset: offset + limit]
        return [c.model_copy(deep=True) for c in contacts]

    async def create_contact_if_not_exists(self, contact: CrmContact) -> ContactLookupOrCreate:
        existing = await self.get_contact_by_email(contact.email)
        if existing:
            return ContactLookupOrCreate(contact=existing, is_new=False)

        created = contact.model_copy(update={"id": contact.id or new_id("contact")}, deep=True)
        self.contacts[created.id] = created
        logger.info(f"Created CRM contact {created.id} for {created.email}")
        return ContactLookupOrCreate(contact=created.model_copy(deep=True), is_new=True)


class HubSpotCrm(CrmAdapter):
    """
    HubSpot contacts API client.

    Docs: https://developers.hubspot.com/docs/api/crm/contacts
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.hubapi.com",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=15.0,
            transport=self.transport,
        )

    @staticmethod
    def _to_contact(record: dict) -> CrmContact:
        props = record.get("properties", {}) or {}
        fields = {
            "id": str(record.get("id", "")),
            "email": props.get("email") or "",
            "first_name": props.get("firstname"),
            "last_name": props.get("lastname"),
            "company": props.get("company"),
            "phone": props.get("phone"),
            "properties": props,
        }
        if record.get("createdAt"):
            fields["created_at"] = record["createdAt"]
        if record.get("updatedAt"):
            fields["updated_at"] = record["updatedAt"]
        return CrmContact.model_validate(fields)

    async def get_contact_by_email(self, email: str) -> Optional[CrmContact]:
        payload = {
            "filterGroups": [
                {"filters": [{"propertyName": "email", "operator": "EQ", "value": email}]}
            ],
            "properties": CONTACT_PROPERTIES,
            "limit": 1,
        }
        async with self._client() as client:
            response = await client.post("/crm/v3/objects/contacts/search", json=payload)
            response.raise_for_status()
            results = response.json().get("results", [])
        return self._to_contact(results[0]) if results else None

    async def get_contact_by_id(self, contact_id: str) -> Optional[CrmContact]:
        async with self._client() as client:
            try:
                response = await client.get(
                    f"/crm/v3/objects/contacts/{contact_id}",
                    params={"properties": ",".join(CONTACT_PROPERTIES)},
                )
                response.raise_for_status()
                return self._to_contact(response.json())
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 404:
                    return None
                raise

    async def list_contacts(self, limit: int = 100, offset: int = 0) -> list[CrmContact]:
        params = {"limit": limit, "properties": ",".join(CONTACT_PROPERTIES)}
        if offset:
            params["after"] = str(offset)
        async with self._client() as client:
            response = await client.get("/crm/v3/objects/contacts", params=params)
            response.raise_for_status()
            return [self._to_contact(r) for r in response.json().get("results", [])]

    async def create_contact_if_not_exists(self, contact: CrmContact) -> ContactLookupOrCreate:
        existing = await self.get_contact_by_email(contact.email)
        if existing:
            return ContactLookupOrCreate(contact=existing, is_new=False)

        properties = {"email": contact.email}
        for key, value in (
            ("firstname", contact.first_name),
            ("lastname", contact.last_name),
            ("company", contact.company),
            ("phone", contact.phone),
        ):
            if value:
                properties[key] = value

        async with self._client() as client:
            response = await client.post("/crm/v3/objects/contacts", json={"properties": properties})
            response.raise_for_status()
            created = self._to_contact(response.json())

        logger.info(f"Created HubSpot contact {created.id} for {created.email}")
        return ContactLookupOrCreate(contact=created, is_new=True)
