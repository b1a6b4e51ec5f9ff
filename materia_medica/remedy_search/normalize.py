"""Text normalization helpers."""
from __future__ import annotations

import re

WHITESPACE_RE = re.compile(r"[\s\u00a0]+")
MARKUP_TAG_RE = re.compile(r"<[^>]+>")
LINE_BREAK_RE = re.compile(r"\r?\n")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs (non-breaking spaces included) and trim."""
    return WHITESPACE_RE.sub(" ", text).strip()


def strip_markup(raw: str) -> str:
    """Drop every ``<...>`` span, leaving the surrounding text glued together."""
    return MARKUP_TAG_RE.sub("", raw)


def split_lines(text: str) -> list[str]:
    lines: list[str] = []
    for raw_line in LINE_BREAK_RE.split(text):
        cleaned = normalize_text(raw_line)
        if cleaned:
            lines.append(cleaned)
    return lines
