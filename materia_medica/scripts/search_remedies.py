#!/usr/bin/env python3
"""CLI entrypoint for the materia medica remedy search."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TextIO

from materia_medica.remedy_search import manifest, parser, query, renderer, service

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000

logger = logging.getLogger("materia_medica.remedy_search.cli")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def resolve_host(value: str | None) -> str:
    return value or os.environ.get("REMEDY_HOST") or DEFAULT_HOST


def resolve_port(value: int | None) -> int:
    if value is not None:
        return value
    env_value = os.environ.get("REMEDY_PORT")
    if env_value:
        try:
            return int(env_value)
        except ValueError:
            logger.debug("Invalid REMEDY_PORT value: %s", env_value)
    return DEFAULT_PORT


def build_search_service(args: argparse.Namespace) -> service.RemedySearchService:
    try:
        return service.build_service(args.data_root, args.manifest)
    except manifest.ManifestError as exc:
        raise SystemExit(f"Invalid source manifest: {exc}") from exc


def require_source(search_service: service.RemedySearchService, source_id: str) -> None:
    if source_id not in search_service.sources:
        known = ", ".join(sorted(search_service.sources))
        raise SystemExit(f"Unknown book: {source_id} (known: {known})")


def command_search(args: argparse.Namespace) -> None:
    search_service = build_search_service(args)
    require_source(search_service, args.book)
    try:
        result = search_service.search(args.word, args.book, args.mode)
    except parser.DocumentDecodeError as exc:
        logger.error("Search failed: %s", exc)
        raise SystemExit(f"Failed to read {args.book}: {exc}") from exc
    if args.json:
        print(json.dumps(query.serialize_result(result), ensure_ascii=False, indent=2))
        return
    print(renderer.render_markdown(result, args.word, args.mode, source_id=args.book))


def command_extract(args: argparse.Namespace) -> None:
    search_service = build_search_service(args)
    require_source(search_service, args.book)
    try:
        corpus = search_service.get_corpus(args.book)
    except parser.DocumentDecodeError as exc:
        logger.error("Extraction failed: %s", exc)
        raise SystemExit(f"Failed to read {args.book}: {exc}") from exc
    records = corpus.to_dicts()
    if args.output:
        output_path = Path(args.output).expanduser().resolve()
        write_jsonl(output_path, records)
        logger.info(
            "Wrote %d remedies (%d sections) from %d documents to %s",
            len(corpus.records),
            corpus.section_count,
            corpus.document_count,
            output_path,
        )
    else:
        write_records(sys.stdout, records)


def command_check(args: argparse.Namespace) -> None:
    search_service = build_search_service(args)
    statuses = []
    for source_id, spec in search_service.sources.items():
        directory = spec.resolve_directory(search_service.data_root)
        if not directory.is_dir():
            statuses.append((source_id, spec.format, "missing", 0, 0, 0))
            continue
        try:
            corpus = search_service.get_corpus(source_id)
        except parser.DocumentDecodeError as exc:
            logger.error("Failed to parse %s: %s", source_id, exc)
            statuses.append((source_id, spec.format, "error", 0, 0, 0))
            continue
        statuses.append(
            (
                source_id,
                spec.format,
                "ok",
                corpus.document_count,
                len(corpus.records),
                corpus.section_count,
            )
        )
    print_status_table(statuses, search_service.data_root)


def command_serve(args: argparse.Namespace) -> None:
    import uvicorn

    from materia_medica.remedy_search.api import create_app

    search_service = build_search_service(args)
    host = resolve_host(args.host)
    port = resolve_port(args.port)
    logger.info("Serving %d books from %s", len(search_service.sources), search_service.data_root)
    uvicorn.run(create_app(search_service), host=host, port=port)


def write_records(stream: TextIO, items: Iterable[dict[str, Any]]) -> None:
    for item in items:
        stream.write(json.dumps(item, ensure_ascii=False))
        stream.write("\n")


def write_jsonl(path: Path, items: Iterable[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        write_records(fh, items)


def print_status_table(
    statuses: list[tuple[str, str, str, int, int, int]],
    data_root: Path,
) -> None:
    print(
        "Book".ljust(12),
        "Format".ljust(18),
        "Status".ljust(10),
        "Documents".ljust(10),
        "Remedies".ljust(10),
        "Sections",
    )
    print("-" * 75)
    for source_id, format_name, status, documents, remedies, sections in statuses:
        print(
            source_id.ljust(12),
            format_name.ljust(18),
            status.ljust(10),
            str(documents).ljust(10),
            str(remedies).ljust(10),
            str(sections),
        )
    print("\nData root:", data_root)


def build_parser() -> argparse.ArgumentParser:
    parser_obj = argparse.ArgumentParser(description="Search materia medica books by remedy")
    parser_obj.add_argument(
        "--data-root",
        help="Directory holding one folder per book (overrides REMEDY_DATA_ROOT)",
    )
    parser_obj.add_argument(
        "--manifest",
        help="JSON file overriding the book table (overrides REMEDY_MANIFEST)",
    )
    parser_obj.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser_obj.add_subparsers(dest="command")

    search_parser = subparsers.add_parser("search", help="Search one book")
    search_parser.add_argument("word", help="Search text")
    search_parser.add_argument("--book", required=True, help="Book identifier, e.g. allen")
    search_parser.add_argument(
        "--mode",
        default=query.QueryMode.OR.value,
        choices=[mode.value for mode in query.QueryMode],
        help="How search terms combine (default: OR)",
    )
    search_parser.add_argument("--json", action="store_true", help="Print JSON instead of Markdown")
    search_parser.set_defaults(func=command_search)

    extract_parser = subparsers.add_parser("extract", help="Dump a book's parsed sections")
    extract_parser.add_argument("--book", required=True, help="Book identifier, e.g. allen")
    extract_parser.add_argument("--output", help="JSON lines output file (default: stdout)")
    extract_parser.set_defaults(func=command_extract)

    check_parser = subparsers.add_parser("check", help="Parse every book and report counts")
    check_parser.set_defaults(func=command_check)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP search API")
    serve_parser.add_argument("--host", help="Bind address (overrides REMEDY_HOST)")
    serve_parser.add_argument("--port", type=int, help="Bind port (overrides REMEDY_PORT)")
    serve_parser.set_defaults(func=command_serve)

    return parser_obj


def main(argv: list[str] | None = None) -> None:
    parser_obj = build_parser()
    args = parser_obj.parse_args(argv)
    if not getattr(args, "command", None):
        parser_obj.print_help()
        return
    configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
