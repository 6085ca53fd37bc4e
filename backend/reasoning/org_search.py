"""
Live organization search backed by Claude.

Best effort only: errors propagate to OrganizationSearch, which falls back
to the local registry.
"""
import json
import logging
import re
from typing import Optional

from anthropic import AsyncAnthropic
from pydantic import ValidationError

from backend.integrations.interfaces import OrganizationSearchProvider
from backend.reasoning.generator import strip_code_fence
from backend.reasoning.prompts import ORGANIZATION_SEARCH_SYSTEM, ORGANIZATION_SEARCH_USER
from backend.workflow.schemas import OrganizationProfile

logger = logging.getLogger(__name__)


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class AnthropicOrganizationSearch(OrganizationSearchProvider):

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        max_tokens: int = 2048,
        client: Optional[AsyncAnthropic] = None,
    ):
        self.client = client or AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    async def search(self, query: str) -> list[OrganizationProfile]:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=ORGANIZATION_SEARCH_SYSTEM,
            messages=[{"role": "user", "content": ORGANIZATION_SEARCH_USER.format(brief=query[:3000])}],
        )
        items = json.loads(strip_code_fence(response.content[0].text))
        if not isinstance(items, list):
            logger.warning("Live search response was not a JSON array")
            return []

        organizations = []
        for item in items:
            if not isinstance(item, dict) or not item.get("name"):
                continue
            try:
                organizations.append(OrganizationProfile(
                    id=f"live-{_slug(item['name'])}",
                    name=item["name"],
                    email=item.get("email") or "",
                    domain=item.get("domain") or "",
                    geography=item.get("geography") or "",
                    focus_areas=item.get("focus_areas") or [],
                    fit_rationale=item.get("fit_rationale") or "",
                ))
            except ValidationError as e:
                logger.debug(f"Skipping malformed live search result '{item.get('name')}': {e}")
        return organizations
