"""
Lexical entity extraction for campaign briefs.

Pulls organizations, locations, causes, activities and metrics out of brief
text using the lexicon tables plus a handful of regular expressions. No
disambiguation: the same term may land in more than one category.
"""
import logging
import re
from typing import Iterable

from backend.analysis.lexicons import DEFAULT_LEXICONS, Lexicons
from backend.analysis.models import BriefEntities

logger = logging.getLogger(__name__)

_NUMBER = r"\d[\d,]*(?:\.\d+)?"

METRIC_PATTERNS = [
    re.compile(rf"\b{_NUMBER}\s*(?:acres|hectares|km|kilometers|miles|sq\s*km|square\s*kilometers)\b", re.I),
    re.compile(rf"\${_NUMBER}(?:\s*(?:k|m|million|thousand|billion)\b)?", re.I),
    re.compile(rf"\b{_NUMBER}\s*(?:dollars|usd|euros|eur|pounds|gbp)\b", re.I),
    re.compile(rf"\b{_NUMBER}\s*(?:people|volunteers|participants|members|staff)\b", re.I),
    re.compile(rf"\b{_NUMBER}\s*(?:years|months|weeks|days)\b", re.I),
    re.compile(rf"\b{_NUMBER}\s*%"),
    re.compile(rf"\b{_NUMBER}\s*(?:trees|species|animals|plants)\b", re.I),
]
_BARE_NUMBER = re.compile(r"\b\d[\d,]*\b")
_CAPITALIZED_RUN = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")
_TOKEN_STRIP = ".,!?;:()[]{}\"'"


def contains_term(text: str, term: str) -> bool:
    """Case-insensitive hit for a term starting on a word boundary."""
    return re.search(r"\b" + re.escape(term.lower()), text) is not None


def contains_word(text: str, term: str) -> bool:
    """Case-insensitive whole-word hit."""
    return re.search(r"\b" + re.escape(term.lower()) + r"\b", text) is not None


def dedupe(items: Iterable[str]) -> tuple[str, ...]:
    """Drop case-insensitive duplicates, keeping first-seen order and form."""
    seen = set()
    result = []
    for item in items:
        key = item.lower()
        if key not in seen:
            seen.add(key)
            result.append(item)
    return tuple(result)


class EntityExtractor:
    """Extracts typed entity lists from brief text."""

    def __init__(self, lexicons: Lexicons = DEFAULT_LEXICONS):
        self.lexicons = lexicons

    def extract_entities(self, text: str) -> BriefEntities:
        entities = BriefEntities(
            organizations=self.extract_organizations(text),
            locations=self.extract_locations(text),
            causes=self._lexicon_hits(text, self.lexicons.causes),
            activities=self._lexicon_hits(text, self.lexicons.activities),
            metrics=self.extract_metrics(text),
        )
        logger.debug(f"Extracted entities: {entities}")
        return entities

    def extract_organizations(self, text: str) -> tuple[str, ...]:
        lower = text.lower()
        organizations = [org for org in self.lexicons.known_organizations if contains_word(lower, org)]

        stopwords = set(self.lexicons.stopwords)
        suffixes = set(self.lexicons.organization_suffixes)
        tokens = [t.strip(_TOKEN_STRIP) for t in lower.split()]
        for i, token in enumerate(tokens):
            if i == 0 or not (token in suffixes or token.rstrip("s") in suffixes):
                continue
            previous = tokens[i - 1]
            if previous and previous not in stopwords:
                organizations.append(f"{previous} {token}")

        return dedupe(organizations)

    def extract_locations(self, text: str) -> tuple[str, ...]:
        lower = text.lower()
        locations = [r for r in self.lexicons.regions if contains_word(lower, r)]
        locations += [c for c in self.lexicons.countries if contains_word(lower, c)]
        locations += [g for g in self.lexicons.geographic_indicators if contains_word(lower, g)]

        common = set(self.lexicons.common_capitalized_words)
        for match in _CAPITALIZED_RUN.finditer(text):
            words = [w for w in match.group().split() if w not in common]
            phrase = " ".join(words)
            if len(phrase) > 3:
                locations.append(phrase)

        return dedupe(locations)

    def extract_metrics(self, text: str) -> tuple[str, ...]:
        metrics = []
        for pattern in METRIC_PATTERNS:
            metrics.extend(m.group().strip() for m in pattern.finditer(text))

        for match in _BARE_NUMBER.finditer(text):
            value = match.group().replace(",", "")
            if value and int(value) > 10:
                metrics.append(match.group())

        lower = text.lower()
        metrics += [w for w in self.lexicons.metric_words if contains_term(lower, w)]
        return dedupe(metrics)

    @staticmethod
    def _lexicon_hits(text: str, categories: dict[str, list[str]]) -> tuple[str, ...]:
        lower = text.lower()
        hits = []
        for terms in categories.values():
            hits += [term for term in terms if contains_term(lower, term)]
        return dedupe(hits)
