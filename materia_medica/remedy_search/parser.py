"""Parsing utilities for extracting remedy sections from reference books."""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup
from docx import Document

from .normalize import normalize_text, split_lines, strip_markup

logger = logging.getLogger(__name__)

UNKNOWN_REMEDY = "Unknown Medicine"
DEFAULT_SECTION = "General"

BOOK_MARKER = "hand book of materia medica"
MAX_TITLE_LENGTH = 30

CENTERED_HEADING_RE = re.compile(r"^([A-Za-z\s]+)\s*:-")
BRACKETED_HEADING_RE = re.compile(r"^([A-Z ,]+)\.\s*\[\d+\]")
TITLE_RE = re.compile(r"<title>([^.]+)\.", re.IGNORECASE)
DASHED_REMEDY_RE = re.compile(r"^[A-Z\s]+$")
DASHED_HEADING_RE = re.compile(r"^([A-Z][a-z]+)\.--\s*(.*)$")
COLON_REMEDY_RE = re.compile(r"^[A-Z][a-z]+(?: [A-Z][a-z]+){0,3}$")
COLON_HEADING_RE = re.compile(r"^([A-Z][A-Za-z]*(?:\s+[A-Za-z]+)*):\s*(.*)$")


class DocumentDecodeError(RuntimeError):
    """Raised when a source document cannot be read or decoded."""


@dataclass(frozen=True)
class Section:
    heading: str
    content: str


@dataclass(frozen=True)
class RemedyRecord:
    """All sections discovered for one remedy name within a source."""

    remedy: str
    sections: tuple[Section, ...] = ()


@dataclass(frozen=True)
class SourceCorpus:
    """Parsed sections of every document of a source.

    ``entries`` keeps each ``(remedy, Section)`` pair in discovery order across
    documents; ``records`` is the same data merged by remedy name.
    """

    source_id: str
    records: tuple[RemedyRecord, ...] = ()
    document_count: int = 0
    entries: tuple[tuple[str, Section], ...] = ()

    @property
    def section_count(self) -> int:
        return sum(len(record.sections) for record in self.records)

    def to_dicts(self) -> list[dict[str, Any]]:
        return [
            {
                "source": self.source_id,
                "remedy": record.remedy,
                "sections": [
                    {"section": section.heading, "text": section.content}
                    for section in record.sections
                ],
            }
            for record in self.records
        ]


@dataclass(frozen=True)
class Paragraph:
    """A decoded markup paragraph reduced to normalized text."""

    text: str
    centered: bool = False


class SectionAccumulator:
    """Collects ``(remedy, Section)`` entries from a single pass over a document.

    At most one section is open at a time. Opening a new section flushes the
    previous one; ``finish`` flushes whatever is still open at end of input.
    """

    def __init__(self) -> None:
        self.entries: list[tuple[str, Section]] = []
        self._remedy: str | None = None
        self._heading: str | None = None
        self._parts: list[str] = []

    @property
    def is_open(self) -> bool:
        return self._heading is not None

    def open(self, remedy: str, heading: str, text: str) -> None:
        self.flush()
        self._remedy = remedy
        self._heading = heading
        self._parts = [text] if text else []

    def append(self, text: str) -> bool:
        if not self.is_open:
            return False
        if text:
            self._parts.append(text)
        return True

    def flush(self) -> None:
        if self._heading is None or self._remedy is None:
            return
        section = Section(heading=self._heading, content=" ".join(self._parts))
        self.entries.append((self._remedy, section))
        self._remedy = None
        self._heading = None
        self._parts = []

    def finish(self) -> list[tuple[str, Section]]:
        self.flush()
        return self.entries


class FormatParser:
    """Turns one decoded document into an ordered list of ``(remedy, Section)``."""

    format_name = ""

    def decode(self, path: Path) -> Any:
        raise NotImplementedError

    def parse(self, document: Any) -> list[tuple[str, Section]]:
        raise NotImplementedError


class CenteredTitleParser(FormatParser):
    """HTML books whose remedy name is a short centered paragraph.

    The remedy is the first centered paragraph after the book's title page
    marker that ends with a period and is shorter than ``MAX_TITLE_LENGTH``.
    Sections start at paragraphs shaped like ``Mind :-``.
    """

    format_name = "centered-title"

    def decode(self, path: Path) -> list[Paragraph]:
        return decode_paragraphs(read_markup(path))

    def parse(self, document: Sequence[Paragraph]) -> list[tuple[str, Section]]:
        remedy = detect_centered_remedy(document)
        accumulator = SectionAccumulator()
        for paragraph in document:
            match = CENTERED_HEADING_RE.match(paragraph.text)
            if match:
                accumulator.open(remedy, match.group(1).strip(), paragraph.text)
            else:
                accumulator.append(paragraph.text)
        return accumulator.finish()


class BracketedHeaderParser(FormatParser):
    """HTML books with ``MIND. [1]`` style headings and the remedy in ``<title>``."""

    format_name = "bracketed-header"

    def decode(self, path: Path) -> str:
        return read_markup(path)

    def parse(self, document: str) -> list[tuple[str, Section]]:
        remedy = detect_title_remedy(document)
        accumulator = SectionAccumulator()
        for line in split_lines(strip_markup(document)):
            match = BRACKETED_HEADING_RE.match(line)
            if match:
                accumulator.open(remedy, match.group(1).strip(), line)
            else:
                accumulator.append(line)
        return accumulator.finish()


class DashedHeaderParser(FormatParser):
    """DOCX books with upper-case remedy lines and ``Mind.--`` headings.

    The line after a remedy name carries the common name and is skipped.
    Text under a remedy before its first heading lands in ``General``.
    """

    format_name = "dashed-header"

    def decode(self, path: Path) -> list[str]:
        return decode_docx_lines(path)

    def parse(self, document: Sequence[str]) -> list[tuple[str, Section]]:
        accumulator = SectionAccumulator()
        remedy: str | None = None
        skip_next = False
        for line in document:
            if skip_next:
                skip_next = False
                continue
            if DASHED_REMEDY_RE.match(line) and len(line) > 3:
                accumulator.flush()
                remedy = line
                skip_next = True
                continue
            if remedy is None:
                continue
            match = DASHED_HEADING_RE.match(line)
            if match:
                accumulator.open(remedy, match.group(1), match.group(2).strip())
            elif not accumulator.append(line):
                accumulator.open(remedy, DEFAULT_SECTION, line)
        return accumulator.finish()


class ColonHeaderParser(FormatParser):
    """DOCX books with title-case remedy lines and ``Mind: ...`` subheadings."""

    format_name = "colon-header"

    def decode(self, path: Path) -> list[str]:
        return decode_docx_lines(path)

    def parse(self, document: Sequence[str]) -> list[tuple[str, Section]]:
        accumulator = SectionAccumulator()
        remedy: str | None = None
        for line in document:
            if COLON_REMEDY_RE.match(line):
                accumulator.flush()
                remedy = line
                continue
            if remedy is None:
                continue
            match = COLON_HEADING_RE.match(line)
            if match:
                accumulator.open(remedy, match.group(1).strip(), match.group(2).strip())
            else:
                # Lines before the remedy's first subheading are dropped.
                accumulator.append(line)
        return accumulator.finish()


PARSERS: dict[str, FormatParser] = {
    parser.format_name: parser
    for parser in (
        CenteredTitleParser(),
        BracketedHeaderParser(),
        DashedHeaderParser(),
        ColonHeaderParser(),
    )
}


def get_parser(format_name: str) -> FormatParser:
    try:
        return PARSERS[format_name]
    except KeyError:
        raise ValueError(f"unknown document format: {format_name}") from None


def detect_centered_remedy(paragraphs: Iterable[Paragraph]) -> str:
    book_found = False
    for paragraph in paragraphs:
        if not paragraph.centered:
            continue
        if BOOK_MARKER in paragraph.text.lower():
            book_found = True
            continue
        if book_found and paragraph.text.endswith(".") and len(paragraph.text) < MAX_TITLE_LENGTH:
            return paragraph.text
    return UNKNOWN_REMEDY


def detect_title_remedy(markup: str) -> str:
    match = TITLE_RE.search(markup)
    if match:
        return match.group(1).strip() + "."
    return UNKNOWN_REMEDY


def read_markup(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise DocumentDecodeError(f"failed to read {path}: {exc}") from exc


def decode_paragraphs(markup: str) -> list[Paragraph]:
    soup = BeautifulSoup(markup, "lxml")
    paragraphs: list[Paragraph] = []
    for tag in soup.find_all("p"):
        align = str(tag.get("align") or "")
        paragraphs.append(
            Paragraph(
                text=normalize_text(tag.get_text()),
                centered=align.lower() == "center",
            )
        )
    return paragraphs


def decode_docx_lines(path: Path) -> list[str]:
    try:
        document = Document(str(path))
    except Exception as exc:
        raise DocumentDecodeError(f"failed to read DOCX {path}: {exc}") from exc
    lines: list[str] = []
    for paragraph in document.paragraphs:
        text = normalize_text(paragraph.text)
        if text:
            lines.append(text)
    return lines


def build_corpus(
    source_id: str,
    entries: Iterable[tuple[str, Section]],
    *,
    document_count: int = 0,
) -> SourceCorpus:
    """Group entries by remedy name, keeping first-discovery order."""
    ordered = tuple(entries)
    grouped: dict[str, list[Section]] = {}
    for remedy, section in ordered:
        grouped.setdefault(remedy, []).append(section)
    records = tuple(
        RemedyRecord(remedy=remedy, sections=tuple(sections))
        for remedy, sections in grouped.items()
    )
    return SourceCorpus(
        source_id=source_id,
        records=records,
        document_count=document_count,
        entries=ordered,
    )


def extract_corpus(
    source_id: str,
    parser: FormatParser,
    documents: Iterable[Any],
) -> SourceCorpus:
    entries: list[tuple[str, Section]] = []
    document_count = 0
    for document in documents:
        entries.extend(parser.parse(document))
        document_count += 1
    return build_corpus(source_id, entries, document_count=document_count)


def iter_source_files(directory: Path, suffix: str) -> Iterator[Path]:
    if not directory.is_dir():
        raise DocumentDecodeError(f"source directory not found: {directory}")
    wanted = suffix.lower()
    for path in sorted(directory.iterdir()):
        if not path.is_file():
            continue
        if path.name.startswith("~$"):
            continue
        if path.suffix.lower() == wanted:
            yield path


def parse_directory(
    source_id: str,
    directory: Path,
    suffix: str,
    format_name: str,
) -> SourceCorpus:
    parser = get_parser(format_name)

    def documents() -> Iterator[Any]:
        for file_path in iter_source_files(directory, suffix):
            logger.debug("Decoding %s as %s", file_path, format_name)
            yield parser.decode(file_path)

    corpus = extract_corpus(source_id, parser, documents())
    logger.debug(
        "Parsed %s: %d documents, %d remedies, %d sections",
        source_id,
        corpus.document_count,
        len(corpus.records),
        corpus.section_count,
    )
    return corpus
