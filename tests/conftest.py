from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from packforge.config import PipelineSettings

WORK_PAGES = range(11, 21)
PAGE_COUNT = 30


def _filler_lines(page_number: int) -> list[str]:
    return [
        f"Der alte Fluss Nummer {page_number} fliesst langsam durch das stille gruene Tal.",
        f"Ein kleiner Vogel {page_number} singt leise im hohen Baum neben dem Ufer.",
        f"Die Wolken ziehen {page_number} Mal langsam ueber den blauen Himmel im Norden.",
        f"Im Wald {page_number} wachsen viele hohe Tannen und kleine gruene Straeucher.",
        f"Der Wind {page_number} weht sanft ueber die weiten Felder und Wiesen im Land.",
    ]


def _work_lines(page_number: int) -> list[str]:
    hour = page_number % 12 + 8
    return [
        f"Ich habe am Montag um {hour}:30 eine Besprechung mit dem Chef im Büro {page_number}.",
        f"Mein Kollege aus der Abteilung {page_number} hat heute ein neues Projekt für das Team.",
        f"Wir sprechen am Freitag mit der Firma über den Vertrag und das Gehalt von {page_number}00 Euro.",
    ]


def build_page_texts(page_count: int = PAGE_COUNT, work_pages: range = WORK_PAGES) -> list[str]:
    pages: list[str] = []
    for page_number in range(1, page_count + 1):
        lines = _filler_lines(page_number)
        if page_number in work_pages:
            lines = _work_lines(page_number) + lines[:2]
        pages.append("\n".join(lines))
    return pages


@pytest.fixture
def write_pages(tmp_path: Path) -> Callable[..., Path]:
    """Write form-feed separated pages to a .txt source."""

    def _write(pages: list[str], name: str = "source.txt") -> Path:
        path = tmp_path / name
        path.write_text("\f".join(pages), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def work_document(write_pages: Callable[..., Path]) -> Path:
    """Thirty pages of nature prose with workplace dialogue on pages 11-20."""

    return write_pages(build_page_texts(), name="work-book.txt")


@pytest.fixture
def settings(tmp_path: Path) -> PipelineSettings:
    return PipelineSettings(
        cache_dir=tmp_path / "cache",
        profiles_dir=tmp_path / "profiles",
        window_size_pages=10,
    )


@pytest.fixture
def page_texts() -> list[str]:
    return build_page_texts()
