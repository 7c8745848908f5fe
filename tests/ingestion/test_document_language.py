from __future__ import annotations

from packforge.ingestion import language_detection
from packforge.ingestion.language_detection import detect_document_language, detect_language
from packforge.ingestion.models import PageText


class _Result:
    def __init__(self, name: str) -> None:
        self.name = name


class _StubDetector:
    def __init__(self, detected_name: str | None) -> None:
        self._detected_name = detected_name
        self.samples: list[str] = []

    def detect_language_of(self, text: str):
        self.samples.append(text)
        if self._detected_name is None:
            return None
        return _Result(self._detected_name)


def test_detects_english(monkeypatch) -> None:
    stub = _StubDetector("ENGLISH")
    monkeypatch.setattr(language_detection, "_get_detector", lambda: stub)

    assert detect_language("We have a meeting with the manager on Monday.") == "en"


def test_detects_german(monkeypatch) -> None:
    stub = _StubDetector("GERMAN")
    monkeypatch.setattr(language_detection, "_get_detector", lambda: stub)

    assert detect_language("Wir haben am Montag eine Besprechung im Büro.") == "de"


def test_inconclusive_detection_falls_back_to_german(monkeypatch) -> None:
    stub = _StubDetector(None)
    monkeypatch.setattr(language_detection, "_get_detector", lambda: stub)

    assert detect_language("1234 5678") == "de"


def test_empty_text_skips_detector(monkeypatch) -> None:
    stub = _StubDetector("ENGLISH")
    monkeypatch.setattr(language_detection, "_get_detector", lambda: stub)

    assert detect_language("") == "de"
    assert detect_language("   \n ") == "de"
    assert stub.samples == []


def test_sample_is_truncated(monkeypatch) -> None:
    stub = _StubDetector("GERMAN")
    monkeypatch.setattr(language_detection, "_get_detector", lambda: stub)

    detect_language("a" * 5000, sample_chars=100)

    assert len(stub.samples[0]) == 100


def _page(number: int, text: str) -> PageText:
    return PageText(page_number=number, text=text, char_count=len(text))


def test_document_sample_uses_first_non_blank_pages(monkeypatch) -> None:
    stub = _StubDetector("ENGLISH")
    monkeypatch.setattr(language_detection, "_get_detector", lambda: stub)
    pages = [_page(1, "Cover"), _page(2, "")] + [_page(n, f"Page {n} text") for n in range(3, 9)]

    assert detect_document_language(pages) == "en"
    assert stub.samples == ["Cover\nPage 3 text\nPage 4 text\nPage 5 text"]


def test_blank_document_defaults_to_german(monkeypatch) -> None:
    stub = _StubDetector("ENGLISH")
    monkeypatch.setattr(language_detection, "_get_detector", lambda: stub)

    assert detect_document_language([_page(1, ""), _page(2, "")]) == "de"
    assert stub.samples == []
