from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

import pytest
from docx import Document

from materia_medica.remedy_search import manifest, service

ALLEN_ACONITE = """<html><head><title>Aconite</title></head><body>
<p align="CENTER">A HAND BOOK OF MATERIA MEDICA</p>
<p align="CENTER">By T. F. Allen</p>
<p align="CENTER">ACONITUM NAPELLUS.</p>
<p>Mind :- Great fear and anxiety; worse in cold, wet weather.</p>
<p>Restless&nbsp;tossing   about.</p>
<p></p>
<p>Head :- Fulness and heaviness; fear of falling.</p>
</body></html>
"""

ALLEN_ACONITE_SUPPLEMENT = """<html><body>
<p align="center">Hand Book of Materia Medica and Therapeutics</p>
<p align="center">ACONITUM NAPELLUS.</p>
<p>Mind :- Fear of death, predicts the day.</p>
<p>Sleep :- Anxious dreams with fear.</p>
</body></html>
"""

HERING_BELLADONNA = """<html>
<head><title>Belladonna. Guiding Symptoms</title></head>
<body>
<p>BELLADONNA.</p>
<b>MIND.</b> [1]
Furious delirium; wants to escape.
<i>Sees ghosts</i>, worse at night.
<b>HEAD, SCALP.</b> [2]
Throbbing headache, worse from light.
</body>
</html>
"""

BOERICKE_LINES = [
    "BELLADONNA",
    "Atropa belladonna",
    "Mind.--Great excitement; delirium.",
    "Violent, wild.",
    "ACONITUM",
    "Monkshood",
    "Acts on the mind and nerves.",
    "Mind.--Fear of death; worse in cold dry wind.",
]

CLARKE_LINES = [
    "Introductory notes on the remedies",
    "Nux Vomica",
    "Poison nut, a remedy of irritability.",
    "Mind: Irritable, oversensitive to noise.",
    "Worse in the morning.",
    "Stomach: Nausea after eating.",
    "Sepia",
    "Mind: Indifferent to loved ones; irritable.",
]


def write_docx(path: Path, lines: Iterable[str]) -> Path:
    document = Document()
    for line in lines:
        document.add_paragraph(line)
    path.parent.mkdir(parents=True, exist_ok=True)
    document.save(str(path))
    return path


@pytest.fixture()
def docx_writer() -> Callable[[Path, Iterable[str]], Path]:
    return write_docx


@pytest.fixture()
def data_root(tmp_path: Path) -> Path:
    root = tmp_path / "data"
    allen = root / "allenhandbook"
    allen.mkdir(parents=True)
    (allen / "aconite.htm").write_text(ALLEN_ACONITE, encoding="utf-8")
    (allen / "aconite_2.htm").write_text(ALLEN_ACONITE_SUPPLEMENT, encoding="utf-8")
    (allen / "notes.txt").write_text("Mind :- ignored", encoding="utf-8")
    hering = root / "hering"
    hering.mkdir()
    (hering / "belladonna.htm").write_text(HERING_BELLADONNA, encoding="utf-8")
    write_docx(root / "boericke" / "boericke.docx", BOERICKE_LINES)
    write_docx(root / "clarke" / "clarke.docx", CLARKE_LINES)
    return root


@pytest.fixture()
def search_service(data_root: Path) -> service.RemedySearchService:
    return service.RemedySearchService(data_root, manifest.DEFAULT_SOURCES)
