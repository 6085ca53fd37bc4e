"""
Candidate matching: rank registry organizations against an analysed brief.

Scoring is a deterministic weighted sum of lexical signals. The basic phase
compares brief keywords and place names with each organization's focus areas,
name and geography; the contextual phase adds intent, entity, tone,
geographic-entity and scope alignment.

An organization is only relevant when it has topical evidence (a focus
keyword hit, a focus-area phrase or name mention, or entity overlap).
Without it the score is 0 and the organization is dropped, however well its
geography or tone happens to fit.
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from pydantic import BaseModel

from backend.analysis.entity_extractor import contains_term, contains_word
from backend.analysis.lexicons import DEFAULT_LEXICONS, Lexicons
from backend.analysis.models import BriefAnalysis, BriefEntities, BriefIntent, BriefTone, ProcessedBrief
from backend.workflow.schemas import OrganizationProfile

logger = logging.getLogger(__name__)

_WORD = re.compile(r"[a-z][a-z'\-]*")

MAX_SIGNAL = 5


class MatchWeights(BaseModel):
    focus: float = 20.0
    domain: float = 15.0
    geography: float = 10.0
    organization_type: float = 5.0
    intent: float = 20.0
    entity: float = 15.0
    tone: float = 10.0
    geographic_fit: float = 10.0
    scope: float = 5.0


@dataclass(frozen=True)
class ScoreBreakdown:
    focus_hits: int = 0
    domain_matches: int = 0
    geography: int = 0
    organization_type: int = 0
    intent: int = 0
    entity: int = 0
    tone: int = 0
    geographic_fit: int = 0
    scope: int = 0
    total: float = 0.0

    @property
    def relevant(self) -> bool:
        return self.focus_hits + self.domain_matches + self.entity > 0


@dataclass(frozen=True)
class RankedOrganization:
    organization: OrganizationProfile
    score: float
    breakdown: ScoreBreakdown


class CandidateMatcher:
    """Ranks organizations for a brief. Pure and deterministic."""

    def __init__(
        self,
        lexicons: Lexicons = DEFAULT_LEXICONS,
        weights: Optional[MatchWeights] = None,
        max_results: int = 12,
        max_keywords: int = 12,
    ):
        self.lexicons = lexicons
        self.weights = weights or MatchWeights()
        self.max_results = max_results
        self.max_keywords = max_keywords

    # ──────────────────────────────────────────────
    # Ranking
    # ──────────────────────────────────────────────

    def rank(
        self, analysis: BriefAnalysis, registry: Sequence[OrganizationProfile]
    ) -> list[RankedOrganization]:
        if analysis.is_empty:
            return []

        keywords = self.extract_keywords(analysis.processed)
        logger.info(f"Matching keywords: {', '.join(keywords)}")

        ranked = []
        for org in registry:
            breakdown = self.score(org, analysis, keywords)
            if breakdown.total > 0:
                stamped = org.model_copy(update={"selected_for_outreach": False}, deep=True)
                ranked.append(RankedOrganization(stamped, breakdown.total, breakdown))

        # list.sort is stable, so equal scores keep registry order
        ranked.sort(key=lambda r: r.score, reverse=True)
        ranked = ranked[: self.max_results]
        logger.info(f"Ranked {len(ranked)} of {len(registry)} organizations")
        return ranked

    def match(
        self, analysis: BriefAnalysis, registry: Sequence[OrganizationProfile]
    ) -> list[OrganizationProfile]:
        return [r.organization for r in self.rank(analysis, registry)]

    def score(
        self, org: OrganizationProfile, analysis: BriefAnalysis, keywords: list[str]
    ) -> ScoreBreakdown:
        text = analysis.processed.cleaned_text.lower()
        name = org.name.lower()
        focus = " ".join(org.focus_areas).lower()

        focus_hits = sum(1 for keyword in keywords if keyword in focus)
        domain_matches = self.domain_matches(text, org)
        geography = self.geography_match(text, self.brief_places(analysis.entities, analysis.intent), org)
        organization_type = self.organization_type_match(text, name)

        intent = self.intent_alignment(name, focus, analysis.intent)
        entity = self.entity_overlap(name, focus, analysis.entities)
        tone = self.tone_compatibility(name, focus, analysis.tone)
        geographic_fit = self.geographic_entity_fit(org, analysis.entities.locations)
        scope = self.scope_alignment(org, analysis.intent.scope)

        breakdown = ScoreBreakdown(
            focus_hits=focus_hits,
            domain_matches=domain_matches,
            geography=geography,
            organization_type=organization_type,
            intent=intent,
            entity=entity,
            tone=tone,
            geographic_fit=geographic_fit,
            scope=scope,
        )
        if not breakdown.relevant:
            return breakdown

        w = self.weights
        total = (
            focus_hits * w.focus
            + domain_matches * w.domain
            + geography * w.geography
            + organization_type * w.organization_type
            + intent * w.intent
            + entity * w.entity
            + tone * w.tone
            + geographic_fit * w.geographic_fit
            + scope * w.scope
        )
        return ScoreBreakdown(**{**breakdown.__dict__, "total": total})

    # ──────────────────────────────────────────────
    # Keywords
    # ──────────────────────────────────────────────

    def extract_keywords(self, processed: ProcessedBrief) -> list[str]:
        stopwords = set(self.lexicons.stopwords)
        keywords: list[str] = []

        for chunk in (*processed.sentences, *processed.list_items, *processed.paragraphs):
            for token in _WORD.findall(chunk.lower()):
                word = token.strip("'-")
                if len(word) > 3 and word not in stopwords:
                    keywords.append(word)

        text = processed.cleaned_text.lower()
        for terms in self.lexicons.domain_keywords.values():
            keywords += [term for term in terms if contains_term(text, term)]
        keywords += [term for term in self.lexicons.contextual_keywords if contains_term(text, term)]

        return list(dict.fromkeys(keywords))[: self.max_keywords]

    # ──────────────────────────────────────────────
    # Basic signals
    # ──────────────────────────────────────────────

    @staticmethod
    def domain_matches(text: str, org: OrganizationProfile) -> int:
        matches = 3 if org.name.lower() in text else 0
        matches += sum(2 for area in org.focus_areas if area.lower() in text)
        return matches

    def brief_places(self, entities: BriefEntities, intent: BriefIntent) -> list[str]:
        """Recognised place names from the brief, normalised to registry spelling."""
        known = set(self.lexicons.regions) | set(self.lexicons.countries)
        candidates = [loc.lower() for loc in entities.locations if loc.lower() in known]
        loc = intent.localization
        candidates += [v.lower() for v in (loc.country, loc.state, loc.city) if v]

        aliases = self.lexicons.geography_aliases
        return list(dict.fromkeys(aliases.get(place, place) for place in candidates))

    @staticmethod
    def geography_match(text: str, places: list[str], org: OrganizationProfile) -> int:
        terms = [t.strip() for t in org.geography.lower().split(",") if t.strip()]
        if not terms:
            return 0
        for place in places:
            if any(place == term or place in term for term in terms):
                return 1
        if "global" in terms and (places or contains_word(text, "global") or contains_word(text, "worldwide")):
            return 1
        return 0

    def organization_type_match(self, text: str, name: str) -> int:
        for word in self.lexicons.organization_type_words:
            if contains_word(text, word) and contains_word(name, word):
                return 1
        return 0

    # ──────────────────────────────────────────────
    # Contextual signals
    # ──────────────────────────────────────────────

    def intent_alignment(self, name: str, focus: str, intent: BriefIntent) -> int:
        table = self.lexicons.intent_alignment.get(intent.primary_goal)
        if not table:
            return 0
        score = 0
        if any(word in name for word in table.get("name", [])):
            score += 3
        if any(word in focus for word in table.get("focus", [])):
            score += 2
        return min(score, MAX_SIGNAL)

    @staticmethod
    def entity_overlap(name: str, focus: str, entities: BriefEntities) -> int:
        score = 3 * sum(1 for org in entities.organizations if org.lower() in name)
        score += 2 * sum(1 for cause in entities.causes if cause.lower() in focus)
        score += sum(1 for activity in entities.activities if activity.lower() in focus)
        return min(score, MAX_SIGNAL)

    def tone_compatibility(self, name: str, focus: str, tone: BriefTone) -> int:
        score = 2
        if any(word in name for word in self.lexicons.formal_organization_words):
            if tone.formality == "formal":
                score += 2
            elif tone.formality == "casual":
                score -= 1
        if any(word in focus for word in self.lexicons.advocacy_focus_words) and tone.emotional_language:
            score += 1
        if any(word in focus for word in self.lexicons.research_focus_words):
            if tone.sentiment == "neutral":
                score += 2
            elif tone.sentiment == "negative":
                score -= 1
        return max(0, min(score, MAX_SIGNAL))

    @staticmethod
    def geographic_entity_fit(org: OrganizationProfile, locations: Sequence[str]) -> int:
        if not locations:
            return 1
        geography = org.geography.lower()
        score = 0
        for location in locations:
            loc = location.lower()
            if "global" in geography and ("global" in loc or "world" in loc):
                score += 3
            elif "usa" in geography and ("usa" in loc or "america" in loc):
                score += 3
            elif loc in geography:
                score += 2
        return min(score, MAX_SIGNAL)

    @staticmethod
    def scope_alignment(org: OrganizationProfile, scope: Optional[str]) -> int:
        geography = org.geography.lower()
        if scope == "global":
            if "global" in geography:
                return 5
            if "international" in geography:
                return 4
            return 2
        if scope == "national":
            if "usa" in geography or "country" in geography:
                return 5
            if "national" in geography:
                return 4
            return 2
        if scope == "regional":
            if "regional" in geography or "state" in geography:
                return 5
            return 3
        if scope == "local":
            if "local" in geography or "community" in geography:
                return 5
            return 2
        return 3
