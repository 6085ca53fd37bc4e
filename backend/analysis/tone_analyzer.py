"""
Tone analysis: sentiment, formality, urgency cues and emotional language.
"""
import logging
import re

from backend.analysis.entity_extractor import contains_word
from backend.analysis.lexicons import DEFAULT_LEXICONS, Lexicons
from backend.analysis.models import BriefTone

logger = logging.getLogger(__name__)

_CONTRACTION = re.compile(r"\b\w+'t\b|\b\w+'re\b|\b\w+'ve\b|\b\w+'ll\b", re.I)
_SHOUTING = re.compile(r"[A-Z]{4,}")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")

DOMINANCE_RATIO = 1.5
EMOTIONAL_THRESHOLD = 2


def split_sentences(text: str) -> list[str]:
    return [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def _word_count(text: str, words: list[str]) -> int:
    total = 0
    for word in words:
        total += len(re.findall(r"\b" + re.escape(word) + r"\b", text))
    return total


def _dominant(first: int, second: int) -> int:
    """1 if first dominates, -1 if second dominates, else 0."""
    if first > second * DOMINANCE_RATIO:
        return 1
    if second > first * DOMINANCE_RATIO:
        return -1
    return 0


class ToneAnalyzer:

    def __init__(self, lexicons: Lexicons = DEFAULT_LEXICONS):
        self.lexicons = lexicons

    def analyze_tone(self, text: str) -> BriefTone:
        sentiment = self.analyze_sentiment(text)
        formality = self.analyze_formality(text)
        tone = BriefTone(
            sentiment=sentiment,
            formality=formality,
            urgency_indicators=self.extract_urgency_indicators(text),
            emotional_language=self.detect_emotional_language(text),
            confidence=self.calculate_confidence(sentiment, formality, text),
        )
        logger.info(
            f"Detected tone: sentiment={tone.sentiment}, formality={tone.formality}, "
            f"emotional={tone.emotional_language}"
        )
        return tone

    def analyze_sentiment(self, text: str) -> str:
        lower = text.lower()
        positive = _word_count(lower, self.lexicons.positive_words)
        negative = _word_count(lower, self.lexicons.negative_words)
        return {1: "positive", -1: "negative", 0: "neutral"}[_dominant(positive, negative)]

    def analyze_formality(self, text: str) -> str:
        lower = text.lower()
        formal = sum(1 for word in self.lexicons.formal_indicators if contains_word(lower, word))
        casual = sum(1 for word in self.lexicons.casual_indicators if contains_word(lower, word))
        casual += len(_CONTRACTION.findall(lower))

        sentences = split_sentences(text)
        if sentences:
            avg_words = sum(len(s.split()) for s in sentences) / len(sentences)
            if avg_words > 15:
                formal += 2
            elif avg_words < 8:
                casual += 2

        return {1: "formal", -1: "casual", 0: "semi-formal"}[_dominant(formal, casual)]

    def extract_urgency_indicators(self, text: str) -> tuple[str, ...]:
        lower = text.lower()
        indicators = []
        for level, phrases in self.lexicons.tone_urgency_levels.items():
            indicators += [f"{level}: {phrase}" for phrase in phrases if phrase in lower]
        return tuple(indicators)

    def detect_emotional_language(self, text: str) -> bool:
        lower = text.lower()
        count = sum(1 for word in self.lexicons.emotional_words if word in lower)
        count += 2 * sum(1 for phrase in self.lexicons.emotional_phrases if phrase in lower)
        count += text.count("!")
        count += 2 * len(_SHOUTING.findall(text))
        return count >= EMOTIONAL_THRESHOLD

    def calculate_confidence(self, sentiment: str, formality: str, text: str) -> int:
        confidence = 60
        if len(text) > 100:
            confidence += 10
        if len(text) > 200:
            confidence += 10
        if sentiment != "neutral":
            confidence += 10
        if formality != "semi-formal":
            confidence += 10
        if len(split_sentences(text)) >= 3:
            confidence += 5

        words = text.lower().split()
        if words and len(set(words)) / len(words) > 0.7:
            confidence += 5

        return min(confidence, 100)
