"""Remedy search package."""
from __future__ import annotations

from . import manifest, normalize, parser, query, registry, renderer, service
from .service import RemedySearchService, build_service

__all__ = [
    "parser",
    "normalize",
    "registry",
    "manifest",
    "query",
    "renderer",
    "service",
    "RemedySearchService",
    "build_service",
]
