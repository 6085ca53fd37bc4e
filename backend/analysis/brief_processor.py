"""
Brief text normalization, structure detection, and quality scoring.

Cleans copy-paste artifacts out of a raw campaign brief, splits it into
typed segments (sentences, list items, headings, paragraphs), classifies
the overall layout, and produces a 0-100 quality score with the issues
that cost points.
"""
import logging
import re
from typing import Optional

from backend.analysis.lexicons import DEFAULT_LEXICONS, Lexicons
from backend.analysis.models import (
    BriefFormat,
    BriefQuality,
    BriefStructure,
    ProcessedBrief,
    SegmentType,
    TextSegment,
)

logger = logging.getLogger(__name__)

_ARTIFACTS = {
    "\u00a0": " ",
    "\u2013": "-",
    "\u2014": "-",
    "\u201c": '"',
    "\u201d": '"',
    "\u201e": '"',
    "\u2018": "'",
    "\u2019": "'",
    "\u2026": "...",
}

# Word characters, whitespace, sentence punctuation, brackets and quotes, plus
# list markers and the characters the metric/contact extractors rely on.
_DISALLOWED_CHARS = re.compile(r"[^\w\s.,!?;:()\[\]{}\"'\-*•$%&@/]")

_BULLET_LINE = re.compile(r"^[•\-*]\s+")
_NUMBERED_LINE = re.compile(r"^\d+[.)]\s+")
_SENTENCE = re.compile(r"[^.!?]+[.!?]+")

MIN_FRAGMENT_LENGTH = 5
MAX_AVG_SENTENCE_WORDS = 25


def clean_text(text: str) -> str:
    """Normalize whitespace, punctuation spacing and stray characters."""
    for artifact, replacement in _ARTIFACTS.items():
        text = text.replace(artifact, replacement)

    text = _DISALLOWED_CHARS.sub("", text)

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[^\S\n]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)

    text = re.sub(r" +([.,!?;:])", r"\1", text)
    text = re.sub(r"([,;:!?])(?=[A-Za-z])", r"\1 ", text)
    text = re.sub(r"([(\[{]) +", r"\1", text)
    text = re.sub(r" +([)\]}])", r"\1", text)

    text = text.strip()
    text = re.sub(r"([.!?]) *([A-Z])", r"\1 \2", text)
    return text


def _is_heading(line: str) -> bool:
    return (
        3 <= len(line) <= 50
        and line == line.upper()
        and any(c.isalpha() for c in line)
    )


def _split_sentences(line: str, offset: int) -> list[TextSegment]:
    segments = []
    consumed = 0
    for match in _SENTENCE.finditer(line):
        consumed = match.end()
        segment = _make_segment(match.group(), offset + match.start(), SegmentType.SENTENCE)
        if segment:
            segments.append(segment)

    # Trailing text without terminal punctuation
    if consumed < len(line):
        segment = _make_segment(line[consumed:], offset + consumed, SegmentType.SENTENCE)
        if segment:
            segments.append(segment)
    return segments


def _make_segment(raw: str, start: int, segment_type: SegmentType) -> Optional[TextSegment]:
    stripped = raw.strip()
    if len(stripped) <= MIN_FRAGMENT_LENGTH:
        return None
    lead = len(raw) - len(raw.lstrip())
    return TextSegment(
        text=stripped,
        type=segment_type,
        start_index=start + lead,
        end_index=start + lead + len(stripped),
    )


def segment_text(cleaned: str) -> tuple[list[TextSegment], list[str]]:
    """
    Walk the cleaned text line by line.

    Returns the line-level segments (plus one paragraph segment per prose
    block) and the list of prose paragraphs.
    """
    segments: list[TextSegment] = []
    paragraphs: list[str] = []

    position = 0
    for block in cleaned.split("\n\n"):
        block_start = cleaned.find(block, position) if block else position
        position = block_start + len(block)

        prose_lines = []
        line_start = block_start
        for line in block.split("\n"):
            stripped = line.strip()
            if stripped:
                if _BULLET_LINE.match(stripped):
                    segments.append(TextSegment(stripped, SegmentType.BULLET, line_start, line_start + len(line)))
                elif _NUMBERED_LINE.match(stripped):
                    segments.append(TextSegment(stripped, SegmentType.NUMBERED, line_start, line_start + len(line)))
                elif _is_heading(stripped):
                    segments.append(TextSegment(stripped, SegmentType.HEADING, line_start, line_start + len(line)))
                else:
                    segments.extend(_split_sentences(line, line_start))
                    prose_lines.append(stripped)
            line_start += len(line) + 1

        if prose_lines:
            paragraph = " ".join(prose_lines)
            paragraphs.append(paragraph)
            segments.append(TextSegment(paragraph, SegmentType.PARAGRAPH, block_start, position))

    return segments, paragraphs


def analyze_structure(segments: list[TextSegment], paragraphs: list[str]) -> BriefStructure:
    has_bullets = any(s.type == SegmentType.BULLET for s in segments)
    has_numbered = any(s.type == SegmentType.NUMBERED for s in segments)
    has_paragraphs = len(paragraphs) > 1
    has_list = has_bullets or has_numbered

    if has_list and has_paragraphs:
        estimated = BriefFormat.MIXED
    elif has_list:
        estimated = BriefFormat.LIST
    elif has_paragraphs:
        estimated = BriefFormat.PARAGRAPH
    else:
        estimated = BriefFormat.UNKNOWN

    return BriefStructure(
        has_bullet_points=has_bullets,
        has_numbered_list=has_numbered,
        has_multiple_paragraphs=has_paragraphs,
        estimated_format=estimated,
    )


class BriefProcessor:
    """Turns a raw brief into a ProcessedBrief."""

    def __init__(self, lexicons: Lexicons = DEFAULT_LEXICONS):
        self.lexicons = lexicons

    def process_brief(self, text: str) -> ProcessedBrief:
        text = text or ""
        cleaned = clean_text(text)
        segments, paragraphs = segment_text(cleaned)

        sentences = [s.text for s in segments if s.type == SegmentType.SENTENCE]
        has_list_or_heading = any(
            s.type in (SegmentType.BULLET, SegmentType.NUMBERED, SegmentType.HEADING)
            for s in segments
        )
        if cleaned and not sentences and not has_list_or_heading:
            synthetic = TextSegment(cleaned, SegmentType.SENTENCE, 0, len(cleaned))
            segments.insert(0, synthetic)
            sentences = [cleaned]

        structure = analyze_structure(segments, paragraphs)
        word_count = len(cleaned.split())
        quality = self.assess_quality(cleaned, word_count, sentences, structure)

        processed = ProcessedBrief(
            original_text=text,
            cleaned_text=cleaned,
            sentences=tuple(sentences),
            paragraphs=tuple(paragraphs),
            segments=tuple(segments),
            word_count=word_count,
            structure=structure,
            quality=quality,
        )
        logger.info(
            f"Processed brief: {word_count} words, format={structure.estimated_format.value}, "
            f"quality={quality.score}"
        )
        return processed

    def assess_quality(
        self,
        cleaned: str,
        word_count: int,
        sentences: list[str],
        structure: BriefStructure,
    ) -> BriefQuality:
        score = 100
        issues: list[str] = []
        suggestions: list[str] = []
        lower = cleaned.lower()

        if word_count < 10:
            issues.append("Brief is too short (less than 10 words)")
            suggestions.append("Add more details about your needs and goals")
            score -= 30
        elif word_count < 25:
            issues.append("Brief is quite short")
            suggestions.append("Consider adding more context about your requirements")
            score -= 15
        elif word_count > 500:
            issues.append("Brief is very long")
            suggestions.append("Consider focusing on the most important points")
            score -= 10

        if structure.estimated_format == BriefFormat.UNKNOWN:
            issues.append("Text structure is unclear")
            suggestions.append("Use clear sentences or bullet points")
            score -= 20

        if not any(word in lower for word in self.lexicons.key_information_words):
            issues.append("Missing key information (budget, timeline, goals, or needs)")
            suggestions.append("Include specific goals, timeline, or budget information")
            score -= 25

        if not any(word in lower for word in self.lexicons.actionable_words):
            issues.append("No clear action or request identified")
            suggestions.append("Specify what kind of help or partnership you're seeking")
            score -= 15

        if sentences:
            avg_words = sum(len(s.split()) for s in sentences) / len(sentences)
            if avg_words > MAX_AVG_SENTENCE_WORDS:
                issues.append("Sentences are too long")
                suggestions.append("Break long sentences into shorter, clearer ones")
                score -= 10

        return BriefQuality(score=max(0, score), issues=tuple(issues), suggestions=tuple(suggestions))
