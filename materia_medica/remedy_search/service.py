"""Search entry point tying sources, parsers and the corpus registry together."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from .manifest import SourceSpec, load_manifest, resolve_data_root, resolve_manifest_path
from .parser import SourceCorpus, parse_directory
from .query import GroupedResult, Query, QueryMode, aggregate
from .registry import CorpusRegistry

logger = logging.getLogger(__name__)


class RemedySearchService:
    """Answers searches against the configured books.

    HTML books are small and re-parsed on every request. DOCX books are
    parsed once and served from ``registry`` afterwards.
    """

    def __init__(
        self,
        data_root: Path,
        sources: Mapping[str, SourceSpec],
        registry: CorpusRegistry | None = None,
    ) -> None:
        self.data_root = data_root
        self.sources = dict(sources)
        self.registry = registry or CorpusRegistry()

    def load_corpus(self, spec: SourceSpec) -> SourceCorpus:
        return parse_directory(
            spec.source_id,
            spec.resolve_directory(self.data_root),
            spec.suffix,
            spec.format,
        )

    def get_corpus(self, source_id: str) -> SourceCorpus:
        spec = self.sources.get(source_id)
        if spec is None:
            raise KeyError(source_id)
        if not spec.cached:
            return self.load_corpus(spec)
        return self.registry.get_or_load(source_id, lambda: self.load_corpus(spec))

    def search(
        self,
        word: str | None,
        book: str | None,
        mode: str | QueryMode | None,
    ) -> GroupedResult:
        if not word or not word.strip() or not book:
            return {}
        if book not in self.sources:
            logger.debug("Ignoring search against unknown source %r", book)
            return {}
        query = Query.build(word, book, mode)
        corpus = self.get_corpus(book)
        result = aggregate(corpus, query)
        logger.debug(
            "Search %r (%s) in %s: %d remedies",
            word,
            query.mode.value if query.mode else "none",
            book,
            len(result),
        )
        return result


def build_service(
    data_root: str | Path | None = None,
    manifest_path: str | Path | None = None,
) -> RemedySearchService:
    root = resolve_data_root(data_root)
    sources = load_manifest(resolve_manifest_path(manifest_path))
    return RemedySearchService(root, sources)
