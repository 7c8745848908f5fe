from __future__ import annotations

from packforge.ingestion.models import PageText
from packforge.text.front_matter import detect_front_matter, heading_ratio, punctuation_density


def _page(number: int, text: str) -> PageText:
    return PageText(page_number=number, text=text, char_count=len(text))


def _content(number: int) -> PageText:
    lines = [
        f"Am Morgen {number} gehen wir langsam durch die ruhige Stadt zum Markt.",
        f"Die Sonne {number} scheint hell und die Strassen sind noch fast leer.",
        f"Viele Leute {number} trinken einen Kaffee und lesen dabei die Zeitung.",
        f"Danach {number} fahren wir mit dem Rad am Fluss entlang nach Hause.",
    ]
    return _page(number, "\n".join(lines))


def test_toc_and_copyright_pages_are_skipped_with_evidence() -> None:
    pages = [
        _page(1, "Inhaltsverzeichnis\nKapitel 1\nKapitel 2\nKapitel 3\nAnhang"),
        _page(2, "Copyright 2021\nISBN 978-3-16-148410-0\nAlle Rechte vorbehalten"),
        _content(3),
        _content(4),
        _content(5),
    ]

    result = detect_front_matter(pages)

    assert result.skip_until_page_index == 2
    assert result.evidence.front_matter_pages == [0, 1]
    assert result.evidence.first_content_page == 2
    assert result.evidence.reasons[0].startswith("Page 1: contains front matter keywords")


def test_document_without_front_matter_is_not_skipped() -> None:
    pages = [_content(number) for number in range(1, 6)]

    result = detect_front_matter(pages)

    assert result.skip_until_page_index == 0
    assert result.evidence.front_matter_pages == []


def test_skip_is_capped_by_max_pages() -> None:
    pages = [_page(number, f"Kapitel {number}\nInhalt\nAnhang") for number in range(1, 11)]

    result = detect_front_matter(pages, max_pages=4)

    assert result.evidence.front_matter_pages == [0, 1, 2, 3]
    assert result.skip_until_page_index == 4


def test_page_metrics() -> None:
    headings = _page(1, "Kapitel 1\nKapitel 2\nEin ganz normaler Satz mit genug Zeichen am Ende.")

    assert heading_ratio(headings) == 2 / 3
    assert heading_ratio(_page(2, "")) == 0.0
    assert punctuation_density(_page(3, "Eins. Zwei. Drei.")) > 100
    assert punctuation_density(_page(4, "")) == 0.0
