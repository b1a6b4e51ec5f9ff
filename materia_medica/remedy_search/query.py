"""Query evaluation, deduplication and grouping of matched sections."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from .parser import SourceCorpus


class QueryMode(str, Enum):
    AND = "AND"
    OR = "OR"
    PHRASE = "PHRASE"

    @classmethod
    def parse(cls, value: str | None) -> QueryMode | None:
        if value is None:
            return None
        try:
            return cls(value.strip())
        except ValueError:
            return None


@dataclass(frozen=True)
class Query:
    """A search request against one source.

    ``mode`` is ``None`` when the caller sent no recognizable mode; such a
    query matches nothing.
    """

    raw_text: str
    mode: QueryMode | None
    source_id: str

    @classmethod
    def build(cls, word: str, source_id: str, mode: str | QueryMode | None) -> Query:
        resolved = mode if isinstance(mode, QueryMode) else QueryMode.parse(mode)
        return cls(raw_text=word, mode=resolved, source_id=source_id)

    @property
    def terms(self) -> list[str]:
        return self.raw_text.lower().split()

    @property
    def phrase(self) -> str:
        return self.raw_text.strip().lower()


@dataclass(frozen=True)
class SearchHit:
    section: str
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"section": self.section, "text": self.text}


GroupedResult = dict[str, list[SearchHit]]
MatchKey = tuple[str, str, str]


def matches(text: str, query: Query) -> bool:
    """Case-insensitive substring test; no word boundaries are applied."""
    haystack = text.lower()
    if query.mode is QueryMode.AND:
        terms = query.terms
        return bool(terms) and all(term in haystack for term in terms)
    if query.mode is QueryMode.OR:
        return any(term in haystack for term in query.terms)
    if query.mode is QueryMode.PHRASE:
        phrase = query.phrase
        return bool(phrase) and phrase in haystack
    return False


def aggregate(corpus: SourceCorpus, query: Query) -> GroupedResult:
    grouped: GroupedResult = {}
    seen: set[MatchKey] = set()
    for remedy, section in corpus.entries:
        if not matches(section.content, query):
            continue
        key = (corpus.source_id, remedy, section.heading)
        if key in seen:
            continue
        seen.add(key)
        grouped.setdefault(remedy, []).append(
            SearchHit(section=section.heading, text=section.content)
        )
    return grouped


def serialize_result(result: Mapping[str, list[SearchHit]]) -> dict[str, list[dict[str, str]]]:
    return {remedy: [hit.to_dict() for hit in hits] for remedy, hits in result.items()}
