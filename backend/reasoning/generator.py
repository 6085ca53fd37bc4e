"""
Outreach email generation.

The Anthropic generator asks Claude for a JSON email; its output is handed
back untouched and validated by the workflow. The template generator is a
deterministic stand-in for running without an API key.
"""
import json
import logging
from typing import Optional

import anthropic
from anthropic import AsyncAnthropic

from backend.integrations.interfaces import EmailGenerationService, GenerationResult
from backend.reasoning.prompts import EMAIL_GENERATION_SYSTEM, EMAIL_GENERATION_USER
from backend.workflow.schemas import OrganizationProfile, OutreachCampaign

logger = logging.getLogger(__name__)


def strip_code_fence(text: str) -> str:
    text = text.strip()
    # Handle potential markdown wrapping
    if text.startswith("```"):
        text = text.split("\n", 1)[1].rsplit("```", 1)[0].strip()
    return text


class AnthropicEmailGenerator(EmailGenerationService):
    """Drafts outreach emails with Claude."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        max_tokens: int = 1024,
        client: Optional[AsyncAnthropic] = None,
    ):
        self.client = client or AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    async def generate_email(
        self, org: OrganizationProfile, campaign: OutreachCampaign
    ) -> GenerationResult:
        prompt = EMAIL_GENERATION_USER.format(
            campaign_name=campaign.name,
            campaign_description=campaign.description[:3000],  # Keep within token budget
            org_name=org.name,
            geography=org.geography or "Unknown",
            focus_areas=", ".join(org.focus_areas) or "Unknown",
            fit_rationale=org.fit_rationale or "Not provided",
        )

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=EMAIL_GENERATION_SYSTEM,
                messages=[{"role": "user", "content": prompt}],
            )
            data = json.loads(strip_code_fence(response.content[0].text))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse LLM JSON for '{org.name}': {e}")
            return GenerationResult(success=False, error=f"Generator returned invalid JSON: {e}")
        except anthropic.APIError as e:
            logger.error(f"LLM email generation error for '{org.name}': {e}")
            return GenerationResult(success=False, error=f"Generation service error: {e}")

        return GenerationResult(success=True, data=data)


class TemplateEmailGenerator(EmailGenerationService):
    """Fills a fixed template. Same inputs always give the same email."""

    async def generate_email(
        self, org: OrganizationProfile, campaign: OutreachCampaign
    ) -> GenerationResult:
        focus = org.focus_areas[0] if org.focus_areas else "environmental work"
        notes = [f"Referenced focus area: {focus}"]
        if org.geography:
            notes.append(f"Referenced geography: {org.geography}")

        body = (
            f"Dear {org.name} team,\n\n"
            f"We are reaching out about {campaign.name}. "
            f"{campaign.description.strip() or 'We are planning a new environmental campaign.'}\n\n"
            f"Your work on {focus}"
            + (f" across {org.geography}" if org.geography else "")
            + " makes you a natural partner for this effort, and we would value your perspective.\n\n"
            "Would you be open to a short introductory call in the coming weeks?\n\n"
            "Best regards,\nThe Campaign Team"
        )

        return GenerationResult(
            success=True,
            data={
                "subject": f"Partnership on {campaign.name}",
                "body": body,
                "tone": "professional",
                "target_org_name": org.name,
                "personalization_notes": notes,
                "confidence": 0.6,
                "validation_errors": [],
            },
        )
