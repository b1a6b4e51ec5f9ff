"""
Remedy Search - FastAPI Application

POST /search  - Search one book and return matches grouped by remedy.
GET  /sources - List the configured books and whether they are cached.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel

from .parser import DocumentDecodeError
from .query import serialize_result
from .renderer import highlight_result
from .service import RemedySearchService, build_service

logger = logging.getLogger(__name__)


class SearchRequest(BaseModel):
    """Search payload. Missing or null fields yield an empty result, not a 422."""

    word: str | None = None
    book: str | None = None
    mode: str | None = None
    highlight: bool = False


class SourceInfo(BaseModel):
    source_id: str
    format: str
    cached: bool
    loaded: bool


def get_service(request: Request) -> RemedySearchService:
    return request.app.state.service


def create_app(service: RemedySearchService | None = None) -> FastAPI:
    app = FastAPI(title="Materia Medica Remedy Search")
    app.state.service = service or build_service()

    @app.post("/search")
    def search(payload: SearchRequest, request: Request) -> dict[str, list[dict[str, str]]]:
        # Runs in a worker thread; concurrent DOCX loads coalesce in the registry.
        current = get_service(request)
        try:
            result = current.search(payload.word, payload.book, payload.mode)
        except DocumentDecodeError as exc:
            logger.error("Search in %s failed: %s", payload.book, exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        if payload.highlight:
            result = highlight_result(result, payload.word or "", payload.mode)
        return serialize_result(result)

    @app.get("/sources", response_model=list[SourceInfo])
    def list_sources(request: Request) -> list[dict[str, Any]]:
        current = get_service(request)
        loaded = set(current.registry.loaded_sources())
        return [
            {
                "source_id": spec.source_id,
                "format": spec.format,
                "cached": spec.cached,
                "loaded": spec.source_id in loaded,
            }
            for spec in current.sources.values()
        ]

    return app
