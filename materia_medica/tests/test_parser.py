from __future__ import annotations

from pathlib import Path

import pytest

from materia_medica.remedy_search import parser
from materia_medica.remedy_search.parser import Paragraph, Section


def test_dashed_header_example_yields_single_section() -> None:
    lines = [
        "BELLADONNA",
        "Atropa belladonna",
        "Mind.--Great excitement; delirium.",
        "Violent, wild.",
    ]
    entries = parser.DashedHeaderParser().parse(lines)
    assert entries == [
        ("BELLADONNA", Section("Mind", "Great excitement; delirium. Violent, wild."))
    ]


def test_dashed_header_opens_general_section_and_flushes_on_new_remedy() -> None:
    lines = [
        "Preface text before any remedy.",
        "ACONITUM",
        "Monkshood",
        "Acts on the mind and nerves.",
        "Sudden and violent.",
        "Head.--Bursting pain.",
        "APIS",
        "Honey bee",
        "Skin.--Swelling and stinging.",
    ]
    entries = parser.DashedHeaderParser().parse(lines)
    assert entries == [
        ("ACONITUM", Section("General", "Acts on the mind and nerves. Sudden and violent.")),
        ("ACONITUM", Section("Head", "Bursting pain.")),
        ("APIS", Section("Skin", "Swelling and stinging.")),
    ]


def test_dashed_header_skips_subtitle_even_when_it_looks_like_a_heading() -> None:
    lines = ["SULPHUR", "Mind.--This line is the subtitle slot.", "Skin.--Itching."]
    entries = parser.DashedHeaderParser().parse(lines)
    assert entries == [("SULPHUR", Section("Skin", "Itching."))]


def test_dashed_header_short_upper_case_line_is_not_a_remedy() -> None:
    lines = ["NUX", "Mind.--Irritable."]
    assert parser.DashedHeaderParser().parse(lines) == []


def test_colon_header_drops_lines_before_first_subheading() -> None:
    lines = [
        "Nux Vomica",
        "Poison nut, a remedy of irritability.",
        "Mind: Irritable, oversensitive to noise.",
        "Worse in the morning.",
        "Stomach: Nausea after eating.",
        "Sepia",
        "Introductory text for sepia.",
        "Mind: Indifferent to loved ones.",
    ]
    entries = parser.ColonHeaderParser().parse(lines)
    assert entries == [
        ("Nux Vomica", Section("Mind", "Irritable, oversensitive to noise. Worse in the morning.")),
        ("Nux Vomica", Section("Stomach", "Nausea after eating.")),
        ("Sepia", Section("Mind", "Indifferent to loved ones.")),
    ]


def test_colon_header_requires_open_remedy() -> None:
    lines = ["Mind: Orphaned subheading.", "more text"]
    assert parser.ColonHeaderParser().parse(lines) == []


def test_colon_header_remedy_pattern_allows_up_to_four_words() -> None:
    lines = [
        "Arsenicum Album Of The Ancients",
        "Mind: Ignored because no remedy is open.",
        "Rhus Toxicodendron",
        "Skin: Vesicular eruption.",
    ]
    entries = parser.ColonHeaderParser().parse(lines)
    assert entries == [("Rhus Toxicodendron", Section("Skin", "Vesicular eruption."))]


def test_centered_title_detects_remedy_after_book_marker() -> None:
    paragraphs = [
        Paragraph("Preface.", centered=True),
        Paragraph("A HAND BOOK OF MATERIA MEDICA", centered=True),
        Paragraph("This title is far too long to be a remedy name.", centered=True),
        Paragraph("APIS MELLIFICA.", centered=True),
        Paragraph("BRYONIA.", centered=True),
        Paragraph("Mind :- Whining mood."),
        Paragraph("Jealous."),
        Paragraph("Skin :- Stinging pains."),
    ]
    entries = parser.CenteredTitleParser().parse(paragraphs)
    assert entries == [
        ("APIS MELLIFICA.", Section("Mind", "Mind :- Whining mood. Jealous.")),
        ("APIS MELLIFICA.", Section("Skin", "Skin :- Stinging pains.")),
    ]


def test_centered_title_defaults_to_unknown_medicine() -> None:
    paragraphs = [
        Paragraph("CALCAREA.", centered=True),
        Paragraph("Intro before any heading is dropped."),
        Paragraph("Head :- Cold sweat."),
    ]
    entries = parser.CenteredTitleParser().parse(paragraphs)
    assert entries == [(parser.UNKNOWN_REMEDY, Section("Head", "Head :- Cold sweat."))]


def test_bracketed_header_reads_title_and_flushes_last_section() -> None:
    markup = (
        "<html><head><title>Pulsatilla. Guiding Symptoms</title></head><body>\n"
        "<p>Opening remarks.</p>\n"
        "<b>MIND.</b> [1]\n"
        "Weeps easily.\n"
        "<b>EYES, EARS.</b>  [12]\n"
        "Styes on the lids.\n"
        "</body></html>"
    )
    entries = parser.BracketedHeaderParser().parse(markup)
    assert entries == [
        ("Pulsatilla.", Section("MIND", "MIND. [1] Weeps easily.")),
        ("Pulsatilla.", Section("EYES, EARS", "EYES, EARS. [12] Styes on the lids.")),
    ]


def test_bracketed_header_without_title_uses_unknown_medicine() -> None:
    entries = parser.BracketedHeaderParser().parse("<body>\nSLEEP. [3]\n</body>")
    assert entries == [(parser.UNKNOWN_REMEDY, Section("SLEEP", "SLEEP. [3]"))]


def test_decode_paragraphs_marks_centered_case_insensitively() -> None:
    markup = (
        '<p align="CENTER">One</p><p align="center">Two</p>'
        '<p align="left">Three</p><p>Four&nbsp;\n five</p>'
    )
    paragraphs = parser.decode_paragraphs(markup)
    assert paragraphs == [
        Paragraph("One", centered=True),
        Paragraph("Two", centered=True),
        Paragraph("Three", centered=False),
        Paragraph("Four five", centered=False),
    ]


def test_decode_docx_lines_skips_blank_paragraphs(tmp_path: Path, docx_writer) -> None:
    lines = ["BELLADONNA", "   ", "Mind.--Heat\u00a0 and  redness."]
    path = docx_writer(tmp_path / "book.docx", lines)
    assert parser.decode_docx_lines(path) == ["BELLADONNA", "Mind.--Heat and redness."]


def test_decode_docx_lines_raises_on_corrupt_archive(tmp_path: Path) -> None:
    path = tmp_path / "broken.docx"
    path.write_bytes(b"this is not a zip archive")
    with pytest.raises(parser.DocumentDecodeError):
        parser.decode_docx_lines(path)


def test_iter_source_files_filters_and_sorts(tmp_path: Path) -> None:
    (tmp_path / "b.HTM").write_text("", encoding="utf-8")
    (tmp_path / "a.htm").write_text("", encoding="utf-8")
    (tmp_path / "c.txt").write_text("", encoding="utf-8")
    (tmp_path / "~$lock.htm").write_text("", encoding="utf-8")
    (tmp_path / "nested.htm").mkdir()
    names = [path.name for path in parser.iter_source_files(tmp_path, ".htm")]
    assert names == ["a.htm", "b.HTM"]


def test_iter_source_files_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(parser.DocumentDecodeError):
        list(parser.iter_source_files(tmp_path / "missing", ".htm"))


def test_get_parser_rejects_unknown_format() -> None:
    with pytest.raises(ValueError):
        parser.get_parser("plain-text")


def test_parse_directory_merges_remedies_across_documents(data_root: Path) -> None:
    corpus = parser.parse_directory(
        "allen", data_root / "allenhandbook", ".htm", "centered-title"
    )
    assert corpus.source_id == "allen"
    assert corpus.document_count == 2
    assert [record.remedy for record in corpus.records] == ["ACONITUM NAPELLUS."]
    record = corpus.records[0]
    assert [section.heading for section in record.sections] == ["Mind", "Head", "Mind", "Sleep"]
    assert record.sections[0].content == (
        "Mind :- Great fear and anxiety; worse in cold, wet weather. Restless tossing about."
    )


def test_parse_directory_docx_sources(data_root: Path) -> None:
    boericke = parser.parse_directory("boericke", data_root / "boericke", ".docx", "dashed-header")
    assert [record.remedy for record in boericke.records] == ["BELLADONNA", "ACONITUM"]
    aconitum = boericke.records[1]
    assert [section.heading for section in aconitum.sections] == ["General", "Mind"]

    clarke = parser.parse_directory("clarke", data_root / "clarke", ".docx", "colon-header")
    assert [record.remedy for record in clarke.records] == ["Nux Vomica", "Sepia"]
    assert clarke.section_count == 3


def test_build_corpus_keeps_first_discovery_order() -> None:
    entries = [
        ("B", Section("Mind", "one")),
        ("A", Section("Head", "two")),
        ("B", Section("Skin", "three")),
    ]
    corpus = parser.build_corpus("book", entries)
    assert [record.remedy for record in corpus.records] == ["B", "A"]
    assert corpus.to_dicts()[0] == {
        "source": "book",
        "remedy": "B",
        "sections": [
            {"section": "Mind", "text": "one"},
            {"section": "Skin", "text": "three"},
        ],
    }


def test_build_corpus_keeps_entries_in_discovery_order() -> None:
    entries = [
        ("B", Section("Mind", "one")),
        ("A", Section("Head", "two")),
        ("B", Section("Skin", "three")),
    ]
    corpus = parser.build_corpus("book", entries)
    assert [remedy for remedy, _ in corpus.entries] == ["B", "A", "B"]
    assert corpus.section_count == 3


def test_read_markup_replaces_invalid_bytes(tmp_path: Path) -> None:
    path = tmp_path / "broken.htm"
    path.write_bytes(b"<p>fe\xffar</p>")
    assert parser.read_markup(path) == "<p>fe\ufffdar</p>"
