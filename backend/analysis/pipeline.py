"""
Brief analysis pipeline.

Runs a raw brief through normalization, then entity, intent and tone
extraction on the cleaned text, and finally gap analysis over all three.
"""
import logging
from typing import Optional

from backend.analysis.brief_processor import BriefProcessor
from backend.analysis.entity_extractor import EntityExtractor
from backend.analysis.gap_analyzer import GapAnalyzer
from backend.analysis.geography import Geocoder
from backend.analysis.intent_analyzer import IntentClassifier
from backend.analysis.lexicons import DEFAULT_LEXICONS, Lexicons
from backend.analysis.models import BriefAnalysis
from backend.analysis.tone_analyzer import ToneAnalyzer

logger = logging.getLogger(__name__)


class BriefAnalyzer:
    """Orchestrates the analysis stages for a single brief."""

    def __init__(self, geocoder: Optional[Geocoder] = None, lexicons: Lexicons = DEFAULT_LEXICONS):
        self.lexicons = lexicons
        self.processor = BriefProcessor(lexicons)
        self.entity_extractor = EntityExtractor(lexicons)
        self.intent_classifier = IntentClassifier(geocoder=geocoder, lexicons=lexicons)
        self.tone_analyzer = ToneAnalyzer(lexicons)
        self.gap_analyzer = GapAnalyzer(lexicons)

    async def analyze(self, brief: str) -> BriefAnalysis:
        processed = self.processor.process_brief(brief)
        text = processed.cleaned_text

        entities = self.entity_extractor.extract_entities(text)
        intent = await self.intent_classifier.analyze_intent(text)
        tone = self.tone_analyzer.analyze_tone(text)
        gaps = self.gap_analyzer.analyze_gaps(text, entities, intent, tone)

        if processed.quality.issues:
            logger.info(f"Brief quality issues: {', '.join(processed.quality.issues)}")

        return BriefAnalysis(
            processed=processed,
            entities=entities,
            intent=intent,
            tone=tone,
            gaps=gaps,
        )
