"""
Intent classification for campaign briefs.

Every dimension is a lexicon vote: count the keyword hits per category and
take the winner, falling back to a fixed default when nothing matches.
"""
import logging
from typing import Optional

from backend.analysis.entity_extractor import contains_word
from backend.analysis.geography import Geocoder, GazetteerGeocoder, LocationInfo
from backend.analysis.lexicons import DEFAULT_LEXICONS, Lexicons
from backend.analysis.models import BriefIntent, Localization

logger = logging.getLogger(__name__)

DEFAULT_GOAL = "partnership"
DEFAULT_PROJECT_TYPE = "conservation"
DEFAULT_DOMAIN = "forest"
DEFAULT_URGENCY = "medium"
DEFAULT_TIMELINE = "short-term"

_SCOPE_BY_LEVEL = {
    "city": "local",
    "district": "local",
    "state": "regional",
    "country": "national",
}


def vote(text: str, categories: dict[str, list[str]], default: str) -> str:
    """Category with the most substring hits; the earliest category wins ties."""
    best, best_score = default, 0
    for category, patterns in categories.items():
        score = sum(1 for pattern in patterns if pattern in text)
        if score > best_score:
            best, best_score = category, score
    return best


def first_match(text: str, tiers: dict[str, list[str]], default: Optional[str]) -> Optional[str]:
    """First tier (in declaration order) with any substring hit."""
    for tier, patterns in tiers.items():
        if any(pattern in text for pattern in patterns):
            return tier
    return default


class IntentClassifier:
    """Classifies goal, project type, domain, urgency, timeline and scope."""

    def __init__(self, geocoder: Optional[Geocoder] = None, lexicons: Lexicons = DEFAULT_LEXICONS):
        self.geocoder = geocoder or GazetteerGeocoder(remote_enabled=False)
        self.lexicons = lexicons

    async def analyze_intent(self, text: str) -> BriefIntent:
        lower = text.lower()

        primary_goal = vote(lower, self.lexicons.goals, DEFAULT_GOAL)
        urgency = first_match(lower, self.lexicons.urgency_levels, DEFAULT_URGENCY)
        timeline = first_match(lower, self.lexicons.timelines, DEFAULT_TIMELINE)
        localization, level = await self.localize(text)

        intent = BriefIntent(
            primary_goal=primary_goal,
            project_type=vote(lower, self.lexicons.project_types, DEFAULT_PROJECT_TYPE),
            environmental_domain=vote(lower, self.lexicons.environmental_domains, DEFAULT_DOMAIN),
            urgency=urgency,
            timeline=timeline,
            localization=localization,
            scope=self.detect_scope(lower, level),
            confidence=self.calculate_confidence(text),
        )
        logger.info(
            f"Detected intent: goal={intent.primary_goal}, project={intent.project_type}, "
            f"domain={intent.environmental_domain}, urgency={intent.urgency}, "
            f"timeline={intent.timeline}, confidence={intent.confidence}"
        )
        return intent

    async def localize(self, text: str) -> tuple[Localization, Optional[str]]:
        """Best-confidence location from the geocoder, or an empty localization."""
        locations = await self.geocoder.extract_locations(text)
        if not locations:
            return Localization(), None

        best: LocationInfo = locations[0]
        for location in locations[1:]:
            if location.confidence > best.confidence:
                best = location

        localization = Localization(
            country=best.country or "",
            state=best.state or "",
            district=best.district or "",
            city=best.city or "",
            region=best.state or "",
            coordinates=str(best.coordinates) if best.coordinates else "",
            confidence=best.confidence,
        )
        logger.debug(f"Geographic localization: {localization}")
        return localization, best.administrative_level

    def detect_scope(self, lower: str, level: Optional[str]) -> Optional[str]:
        for scope, words in self.lexicons.scopes.items():
            if any(contains_word(lower, word) for word in words):
                return scope
        return _SCOPE_BY_LEVEL.get(level) if level else None

    def calculate_confidence(self, text: str) -> int:
        confidence = 50
        if len(text) > 50:
            confidence += 10
        if len(text) > 150:
            confidence += 10

        lower = text.lower()
        indicators = sum(1 for word in self.lexicons.specific_indicators if word in lower)
        confidence += 5 * min(indicators, 4)

        if "." in text and len(text.split(".")) > 2:
            confidence += 5
        if any(c.isdigit() for c in text):
            confidence += 5

        return min(confidence, 100)
