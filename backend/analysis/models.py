"""
Immutable value types produced by the brief analysis stages.
"""
import enum
from dataclasses import dataclass, field
from typing import Optional


class SegmentType(str, enum.Enum):
    SENTENCE = "sentence"
    PARAGRAPH = "paragraph"
    BULLET = "bullet"
    NUMBERED = "numbered"
    HEADING = "heading"


class BriefFormat(str, enum.Enum):
    PARAGRAPH = "paragraph"
    LIST = "list"
    MIXED = "mixed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TextSegment:
    text: str
    type: SegmentType
    start_index: int
    end_index: int


@dataclass(frozen=True)
class BriefStructure:
    has_bullet_points: bool = False
    has_numbered_list: bool = False
    has_multiple_paragraphs: bool = False
    estimated_format: BriefFormat = BriefFormat.UNKNOWN


@dataclass(frozen=True)
class BriefQuality:
    score: int
    issues: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProcessedBrief:
    """A cleaned, segmented brief. Never mutated after construction."""
    original_text: str
    cleaned_text: str
    sentences: tuple[str, ...]
    paragraphs: tuple[str, ...]
    segments: tuple[TextSegment, ...]
    word_count: int
    structure: BriefStructure
    quality: BriefQuality

    @property
    def list_items(self) -> tuple[str, ...]:
        return tuple(
            s.text for s in self.segments
            if s.type in (SegmentType.BULLET, SegmentType.NUMBERED)
        )


@dataclass(frozen=True)
class BriefEntities:
    organizations: tuple[str, ...] = ()
    locations: tuple[str, ...] = ()
    causes: tuple[str, ...] = ()
    activities: tuple[str, ...] = ()
    metrics: tuple[str, ...] = ()


@dataclass(frozen=True)
class Localization:
    country: str = ""
    state: str = ""
    district: str = ""
    city: str = ""
    region: str = ""
    coordinates: str = ""
    confidence: int = 0


@dataclass(frozen=True)
class BriefIntent:
    primary_goal: str
    project_type: str
    environmental_domain: str
    urgency: str
    timeline: str
    localization: Localization = field(default_factory=Localization)
    scope: Optional[str] = None
    confidence: int = 0


@dataclass(frozen=True)
class BriefTone:
    sentiment: str
    formality: str
    urgency_indicators: tuple[str, ...] = ()
    emotional_language: bool = False
    confidence: int = 0


@dataclass(frozen=True)
class BriefGaps:
    missing_information: tuple[str, ...] = ()
    suggested_additions: tuple[str, ...] = ()
    completeness_score: int = 0
    clarity_score: int = 0
    priority_improvements: tuple[str, ...] = ()


@dataclass(frozen=True)
class BriefAnalysis:
    """Everything the analysers learned about one brief."""
    processed: ProcessedBrief
    entities: BriefEntities
    intent: BriefIntent
    tone: BriefTone
    gaps: BriefGaps

    @property
    def is_empty(self) -> bool:
        return self.processed.word_count == 0
