"""Canonical data structures shared by extraction, caching and normalization."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

ExtractionMethod = Literal["text", "ocr"]


@dataclass(frozen=True, slots=True)
class PageText:
    """Text of one physical page; ``page_number`` is 1-based and absolute."""

    page_number: int
    text: str
    char_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"pageNumber": self.page_number, "text": self.text, "charCount": self.char_count}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PageText":
        return cls(
            page_number=int(data["pageNumber"]),
            text=str(data["text"]),
            char_count=int(data["charCount"]),
        )


@dataclass(slots=True)
class RawPages:
    """Unvalidated page buckets returned by a format adapter."""

    page_texts: list[str]
    page_count: int


@dataclass(slots=True)
class ExtractionResult:
    """Validated extraction output consumed by the rest of the pipeline."""

    pages: list[PageText]
    method: ExtractionMethod
    warnings: list[str] = field(default_factory=list)
    page_count: int = 0
    total_chars: int = 0
    avg_chars_per_page: float = 0.0


@dataclass(slots=True)
class CachedExtraction:
    """Persisted extraction keyed by source id and content/version hash."""

    cache_key: str
    source_id: str
    source_path: str
    extracted_at: str
    extraction_version: str
    pages: list[PageText]
    page_count: int
    total_chars: int
    avg_chars_per_page: float
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cacheKey": self.cache_key,
            "sourceId": self.source_id,
            "sourcePath": self.source_path,
            "extractedAt": self.extracted_at,
            "extractionVersion": self.extraction_version,
            "pages": [page.to_dict() for page in self.pages],
            "pageCount": self.page_count,
            "totalChars": self.total_chars,
            "avgCharsPerPage": self.avg_chars_per_page,
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CachedExtraction":
        return cls(
            cache_key=str(data["cacheKey"]),
            source_id=str(data["sourceId"]),
            source_path=str(data["sourcePath"]),
            extracted_at=str(data["extractedAt"]),
            extraction_version=str(data["extractionVersion"]),
            pages=[PageText.from_dict(page) for page in data["pages"]],
            page_count=int(data["pageCount"]),
            total_chars=int(data["totalChars"]),
            avg_chars_per_page=float(data["avgCharsPerPage"]),
            warnings=[str(warning) for warning in data.get("warnings", [])],
        )

    def to_extraction(self) -> ExtractionResult:
        return ExtractionResult(
            pages=list(self.pages),
            method="text",
            warnings=list(self.warnings),
            page_count=self.page_count,
            total_chars=self.total_chars,
            avg_chars_per_page=self.avg_chars_per_page,
        )
