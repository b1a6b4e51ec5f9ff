"""Source table management utilities."""
from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .parser import PARSERS

logger = logging.getLogger(__name__)

DEFAULT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_DATA_ROOT = DEFAULT_ROOT / "data"


class ManifestError(ValueError):
    """Raised when a source table file is malformed."""


@dataclass(frozen=True)
class SourceSpec:
    """Where one book's documents live and how they are parsed."""

    source_id: str
    directory: str
    suffix: str
    format: str
    cached: bool = False

    def resolve_directory(self, data_root: Path) -> Path:
        return data_root / self.directory


DEFAULT_SOURCES: dict[str, SourceSpec] = {
    spec.source_id: spec
    for spec in (
        SourceSpec("allen", "allenhandbook", ".htm", "centered-title"),
        SourceSpec("hering", "hering", ".htm", "bracketed-header"),
        SourceSpec("boericke", "boericke", ".docx", "dashed-header", cached=True),
        SourceSpec("clarke", "clarke", ".docx", "colon-header", cached=True),
    )
}


def resolve_data_root(value: str | Path | None = None) -> Path:
    if value:
        return Path(value).expanduser().resolve()
    env_value = os.environ.get("REMEDY_DATA_ROOT")
    if env_value:
        return Path(env_value).expanduser().resolve()
    return DEFAULT_DATA_ROOT


def resolve_manifest_path(value: str | Path | None = None) -> Path | None:
    if value:
        return Path(value).expanduser().resolve()
    env_value = os.environ.get("REMEDY_MANIFEST")
    if env_value:
        return Path(env_value).expanduser().resolve()
    return None


def build_source(source_id: str, entry: Mapping[str, Any]) -> SourceSpec:
    base = DEFAULT_SOURCES.get(source_id)
    directory = entry.get("directory", base.directory if base else None)
    if not directory:
        raise ManifestError(f"source {source_id!r} has no directory")
    format_name = str(entry.get("format", base.format if base else ""))
    if format_name not in PARSERS:
        raise ManifestError(f"source {source_id!r} has unknown format {format_name!r}")
    suffix = str(entry.get("suffix", base.suffix if base else ""))
    if not suffix:
        raise ManifestError(f"source {source_id!r} has no suffix")
    if not suffix.startswith("."):
        suffix = f".{suffix}"
    cached = bool(entry.get("cached", base.cached if base else False))
    return SourceSpec(
        source_id=source_id,
        directory=str(directory),
        suffix=suffix,
        format=format_name,
        cached=cached,
    )


def load_manifest(path: Path | None) -> dict[str, SourceSpec]:
    """Return the default source table, overridden by ``path`` when it exists."""
    sources = dict(DEFAULT_SOURCES)
    if path is None:
        return sources
    if not path.exists():
        logger.warning("Source manifest %s not found; using defaults", path)
        return sources
    with path.open("r", encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ManifestError(f"invalid source manifest {path}: {exc}") from exc
    entries = data.get("sources") if isinstance(data, Mapping) else None
    if not isinstance(entries, Mapping):
        raise ManifestError(f"source manifest {path} has no 'sources' mapping")
    for source_id, entry in entries.items():
        if not isinstance(entry, Mapping):
            raise ManifestError(f"source {source_id!r} must be an object")
        sources[str(source_id)] = build_source(str(source_id), entry)
    return sources
