"""
Gap analysis: what a brief is missing and how to improve it.

Consumes the entity, intent and tone results for a brief and produces the
missing-information list, improvement suggestions, completeness and clarity
scores, and up to three priority improvements.
"""
import logging

from backend.analysis.lexicons import DEFAULT_LEXICONS, Lexicons
from backend.analysis.models import BriefEntities, BriefGaps, BriefIntent, BriefTone
from backend.analysis.tone_analyzer import split_sentences

logger = logging.getLogger(__name__)

MAX_PRIORITIES = 3


def _mentions(text: str, *terms: str) -> bool:
    return any(term in text for term in terms)


class GapAnalyzer:

    def __init__(self, lexicons: Lexicons = DEFAULT_LEXICONS):
        self.lexicons = lexicons

    def analyze_gaps(
        self,
        text: str,
        entities: BriefEntities,
        intent: BriefIntent,
        tone: BriefTone,
    ) -> BriefGaps:
        missing = self.identify_missing_information(text, entities, intent)
        suggestions = self.generate_suggestions(text, entities, intent, tone)
        completeness = self.calculate_completeness(text, entities, intent)
        clarity = self.calculate_clarity(text, entities)

        gaps = BriefGaps(
            missing_information=tuple(missing),
            suggested_additions=tuple(suggestions),
            completeness_score=completeness,
            clarity_score=clarity,
            priority_improvements=tuple(
                self.prioritize(missing, suggestions, completeness, clarity)
            ),
        )
        logger.info(
            f"Gap analysis: completeness={completeness}, clarity={clarity}, "
            f"missing={len(gaps.missing_information)}"
        )
        return gaps

    def identify_missing_information(
        self, text: str, entities: BriefEntities, intent: BriefIntent
    ) -> list[str]:
        lower = text.lower()
        missing = []

        if intent.primary_goal == "funding":
            if not _mentions(lower, "budget", "amount", "$"):
                missing.append("Specific funding amount or budget range")
            if not _mentions(lower, "purpose", "use of funds"):
                missing.append("How funds will be used")
        elif intent.primary_goal == "partnership":
            if not entities.organizations:
                missing.append("Specific organizations or types of partners sought")
            if not _mentions(lower, "role", "responsibility"):
                missing.append("Clear definition of partnership roles")
        elif intent.primary_goal == "implementation":
            if not _mentions(lower, "timeline", "schedule"):
                missing.append("Implementation timeline and milestones")
            if not _mentions(lower, "resources", "equipment"):
                missing.append("Required resources and equipment")
            if not _mentions(lower, "team", "personnel"):
                missing.append("Implementation team and personnel needs")
        elif intent.primary_goal == "research":
            if not _mentions(lower, "methodology", "approach"):
                missing.append("Research methodology or approach")
            if not _mentions(lower, "outcome", "deliverable"):
                missing.append("Expected research outcomes")

        if intent.localization.confidence < 30 and not entities.locations:
            missing.append("Specific geographic location or region")

        if intent.timeline == "short-term" and not _mentions(lower, "deadline", "date"):
            missing.append("Specific timeline or deadline")

        if not _mentions(lower, "email", "contact", "phone"):
            missing.append("Contact information for follow-up")

        return missing

    def generate_suggestions(
        self, text: str, entities: BriefEntities, intent: BriefIntent, tone: BriefTone
    ) -> list[str]:
        lower = text.lower()
        suggestions = []

        if len(text) < 100:
            suggestions.append("Add more detail about your project or needs")
        if len(text) > 500:
            suggestions.append("Consider making the brief more concise and focused")

        if not entities.causes:
            suggestions.append("Specify the environmental or social cause you're addressing")
        if not entities.activities:
            suggestions.append("Describe specific activities or actions needed")
        if not entities.metrics:
            suggestions.append("Include measurable goals or success metrics")

        if intent.primary_goal == "funding":
            suggestions.append("Be specific about funding amount and intended use")
        if intent.primary_goal == "implementation":
            suggestions.append("Clearly specify implementation timeline and resource requirements")

        if tone.sentiment == "negative" and tone.emotional_language:
            suggestions.append("Consider a more positive, solution-focused tone")
        if tone.formality == "casual" and intent.primary_goal == "funding":
            suggestions.append("Use more formal language for funding requests")
        if intent.urgency == "critical" and "why" not in lower:
            suggestions.append("Explain why this is urgent or time-sensitive")

        sentences = split_sentences(text)
        if len(sentences) < 3:
            suggestions.append("Structure your brief with multiple sentences for clarity")
        if len(sentences) > 10:
            suggestions.append("Consider using bullet points for better readability")

        return suggestions

    def calculate_completeness(self, text: str, entities: BriefEntities, intent: BriefIntent) -> int:
        score = 40
        for threshold in (50, 100, 200):
            if len(text) > threshold:
                score += 10

        for category in (
            entities.organizations,
            entities.locations,
            entities.causes,
            entities.activities,
            entities.metrics,
        ):
            if category:
                score += 5

        lower = text.lower()
        if intent.primary_goal == "funding" and _mentions(lower, "budget", "$"):
            score += 10
        elif intent.primary_goal == "implementation" and _mentions(lower, "timeline", "resources"):
            score += 10
        elif intent.primary_goal == "partnership" and entities.organizations:
            score += 10

        return min(score, 100)

    def calculate_clarity(self, text: str, entities: BriefEntities) -> int:
        score = 50
        sentences = split_sentences(text)
        if 3 <= len(sentences) <= 8:
            score += 10
        if sentences:
            avg_words = sum(len(s.split()) for s in sentences) / len(sentences)
            if 10 <= avg_words <= 20:
                score += 10

        for category in (entities.causes, entities.activities, entities.metrics):
            if category:
                score += 10

        lower = text.lower()
        vague = sum(1 for word in self.lexicons.vague_words if word in lower)
        if vague == 0:
            score += 10
        elif vague <= 2:
            score += 5

        return min(score, 100)

    @staticmethod
    def prioritize(
        missing: list[str], suggestions: list[str], completeness: int, clarity: int
    ) -> list[str]:
        priorities = []
        if completeness < 50:
            priorities.append("Add more specific details to improve completeness")
        if clarity < 50:
            priorities.append("Improve clarity with more specific language")

        priorities += [
            m for m in missing
            if _mentions(m.lower(), "funding", "timeline", "contact")
        ]
        priorities += [
            s for s in suggestions
            if _mentions(s.lower(), "specific", "measurable", "clear")
        ][:2]

        deduped = list(dict.fromkeys(priorities))
        return deduped[:MAX_PRIORITIES]
