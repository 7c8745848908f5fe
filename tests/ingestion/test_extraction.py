from __future__ import annotations

from pathlib import Path

import pymupdf
import pytest

from packforge.errors import ErrorKind, PipelineError
from packforge.ingestion.extractor import (
    MIN_CHARS_PER_PAGE,
    MIN_TOTAL_CHARS,
    DocumentExtractor,
    build_default_extractor,
    build_extraction,
)
from packforge.ingestion.models import RawPages


def _bucket(length: int, index: int = 0) -> str:
    prefix = f"Seite{index} "
    return (prefix + "x" * length)[:length]


def test_extraction_accepts_document_exactly_at_thresholds() -> None:
    raw = RawPages(page_texts=[_bucket(250, i) for i in range(8)], page_count=8)

    result = build_extraction(raw)

    assert result.total_chars == MIN_TOTAL_CHARS
    assert result.avg_chars_per_page == MIN_CHARS_PER_PAGE
    assert result.page_count == 8
    assert [page.page_number for page in result.pages] == list(range(1, 9))
    assert result.method == "text"
    assert result.warnings == []


def test_extraction_rejects_total_one_below_threshold() -> None:
    texts = [_bucket(250, i) for i in range(7)] + [_bucket(249, 7)]

    with pytest.raises(PipelineError) as excinfo:
        build_extraction(RawPages(page_texts=texts, page_count=8))

    assert excinfo.value.kind is ErrorKind.SCAN_UNSUPPORTED
    assert excinfo.value.details["totalChars"] == 1999


def test_extraction_rejects_low_average_even_with_enough_total() -> None:
    texts = [_bucket(249, i) for i in range(9)]

    with pytest.raises(PipelineError) as excinfo:
        build_extraction(RawPages(page_texts=texts, page_count=9))

    assert excinfo.value.kind is ErrorKind.SCAN_UNSUPPORTED
    assert excinfo.value.details["avgCharsPerPage"] == 249


def test_extraction_with_no_text_reports_scan_or_missing_ocr() -> None:
    raw = RawPages(page_texts=["", "  \n"], page_count=2)

    with pytest.raises(PipelineError) as scan:
        build_extraction(raw)
    with pytest.raises(PipelineError) as ocr:
        build_extraction(raw, ocr_enabled=True)

    assert scan.value.kind is ErrorKind.SCAN_UNSUPPORTED
    assert ocr.value.kind is ErrorKind.OCR_NOT_IMPLEMENTED


def test_extraction_keeps_blank_pages_in_position_and_warns() -> None:
    texts = [_bucket(400, 0), "", _bucket(400, 2), _bucket(400, 3), _bucket(400, 4), _bucket(400, 5)]

    result = build_extraction(RawPages(page_texts=texts, page_count=6))

    assert [page.page_number for page in result.pages] == [1, 2, 3, 4, 5, 6]
    assert result.pages[1].text == ""
    assert result.warnings and "all 6 pages" in result.warnings[0]


def test_extractor_reads_pdf_pages_in_order(tmp_path: Path) -> None:
    pdf_path = tmp_path / "lesson.pdf"
    doc = pymupdf.open()
    for page_number in range(1, 5):
        page = doc.new_page()
        for line in range(8):
            page.insert_text(
                (72, 72 + line * 14),
                f"Seite {page_number} Zeile {line}: Wir lesen einen ruhigen Text ohne Ende.",
                fontsize=9,
            )
    doc.save(str(pdf_path))
    doc.close()

    result = build_default_extractor().extract(pdf_path)

    assert result.page_count == 4
    assert "Seite 1 Zeile 0" in result.pages[0].text
    assert "Seite 4 Zeile 7" in result.pages[3].text
    assert result.total_chars >= MIN_TOTAL_CHARS


def test_extractor_rejects_unknown_format(tmp_path: Path) -> None:
    binary = tmp_path / "archive.bin"
    binary.write_bytes(b"\x00\x01\x02binary")

    with pytest.raises(PipelineError) as excinfo:
        build_default_extractor().extract(binary)

    assert excinfo.value.kind is ErrorKind.UNSUPPORTED_DOCUMENT


def test_extractor_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(PipelineError) as excinfo:
        build_default_extractor().extract(tmp_path / "missing.pdf")

    assert excinfo.value.kind is ErrorKind.EXTRACTION_FAILED


def test_register_adapter_rejects_empty_name() -> None:
    with pytest.raises(ValueError):
        DocumentExtractor().register_adapter("", object())  # type: ignore[arg-type]
