"""Rendering utilities for search results."""
from __future__ import annotations

import re
from collections.abc import Mapping

from .query import QueryMode, SearchHit

HIGHLIGHT_PREFIX = '<span class="highlight">'
HIGHLIGHT_SUFFIX = "</span>"


def highlight(
    text: str,
    word: str,
    mode: str | QueryMode | None,
    *,
    prefix: str = HIGHLIGHT_PREFIX,
    suffix: str = HIGHLIGHT_SUFFIX,
) -> str:
    """Wrap query terms found in ``text``, ignoring case.

    PHRASE mode wraps the whole phrase only. Other modes wrap each term in its
    own pass over the already wrapped text, so overlapping terms can nest.
    """
    resolved = mode if isinstance(mode, QueryMode) else QueryMode.parse(mode)
    if resolved is QueryMode.PHRASE:
        phrase = word.strip()
        return wrap_all(text, phrase, prefix, suffix) if phrase else text
    result = text
    for term in word.split():
        result = wrap_all(result, term, prefix, suffix)
    return result


def wrap_all(text: str, term: str, prefix: str, suffix: str) -> str:
    pattern = re.compile(re.escape(term), re.IGNORECASE)
    return pattern.sub(lambda match: f"{prefix}{match.group(0)}{suffix}", text)


def highlight_result(
    result: Mapping[str, list[SearchHit]],
    word: str,
    mode: str | QueryMode | None,
) -> dict[str, list[SearchHit]]:
    return {
        remedy: [
            SearchHit(section=hit.section, text=highlight(hit.text, word, mode))
            for hit in hits
        ]
        for remedy, hits in result.items()
    }


def render_markdown(
    result: Mapping[str, list[SearchHit]],
    word: str,
    mode: str | QueryMode | None,
    *,
    source_id: str | None = None,
) -> str:
    resolved = mode if isinstance(mode, QueryMode) else QueryMode.parse(mode)
    mode_label = resolved.value if resolved else "none"
    title = f'# Results for "{word.strip()}" ({mode_label})'
    if source_id:
        title = f'# Results for "{word.strip()}" in {source_id} ({mode_label})'
    lines = [title, ""]
    if not result:
        lines.append("_No matches found._")
        lines.append("")
        return "\n".join(lines)
    section_total = sum(len(hits) for hits in result.values())
    lines.append(f"**Remedies:** {len(result)} | **Sections:** {section_total}")
    lines.append("")
    for remedy, hits in result.items():
        lines.append(f"## {remedy}")
        lines.append("")
        for hit in hits:
            lines.append(f"### {hit.section}")
            lines.append("")
            lines.append(highlight(hit.text, word, resolved, prefix="**", suffix="**"))
            lines.append("")
    return "\n".join(lines)
