"""In-memory corpus registry with single-flight loading."""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future

from .parser import SourceCorpus

logger = logging.getLogger(__name__)

CorpusLoader = Callable[[], SourceCorpus]


class CorpusRegistry:
    """Process-lifetime store of parsed corpora for expensive sources.

    The first ``get_or_load`` for a source runs its loader; callers arriving
    while that load is in flight wait on the same future instead of parsing
    again. A failed load is not stored, so the next call retries it. Stored
    corpora are never refreshed: the documents behind them are treated as
    immutable for the life of the process.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._corpora: dict[str, SourceCorpus] = {}
        self._pending: dict[str, Future[SourceCorpus]] = {}

    def __contains__(self, source_id: object) -> bool:
        with self._lock:
            return source_id in self._corpora

    def loaded_sources(self) -> list[str]:
        with self._lock:
            return list(self._corpora)

    def get_or_load(self, source_id: str, loader: CorpusLoader) -> SourceCorpus:
        with self._lock:
            corpus = self._corpora.get(source_id)
            if corpus is not None:
                return corpus
            pending = self._pending.get(source_id)
            owner = pending is None
            if pending is None:
                pending = Future()
                self._pending[source_id] = pending
        if not owner:
            logger.debug("Waiting for in-flight load of %s", source_id)
            return pending.result()
        try:
            corpus = loader()
        except BaseException as exc:
            with self._lock:
                self._pending.pop(source_id, None)
            pending.set_exception(exc)
            raise
        with self._lock:
            self._corpora[source_id] = corpus
            self._pending.pop(source_id, None)
        pending.set_result(corpus)
        logger.info(
            "Cached %s: %d remedies, %d sections",
            source_id,
            len(corpus.records),
            corpus.section_count,
        )
        return corpus

    def clear(self) -> None:
        with self._lock:
            self._corpora.clear()
