"""Text-first document extraction with scanned-document detection."""

from __future__ import annotations

import logging
from pathlib import Path

from packforge.errors import ErrorKind, PipelineError
from packforge.ingestion.adapters import build_default_adapters
from packforge.ingestion.adapters.base import DocumentAdapter
from packforge.ingestion.models import ExtractionResult, PageText, RawPages

logger = logging.getLogger(__name__)

MIN_TOTAL_CHARS = 2000
MIN_CHARS_PER_PAGE = 250


class DocumentExtractor:
    """Resolve the right adapter and return validated per-page text."""

    def __init__(self, sniff_bytes: int = 4096) -> None:
        self._sniff_bytes = sniff_bytes
        self._adapter_map: dict[str, DocumentAdapter] = {}

    @property
    def adapter_map(self) -> dict[str, DocumentAdapter]:
        """Registered adapters keyed by adapter name."""

        return dict(self._adapter_map)

    def register_adapter(self, name: str, adapter: DocumentAdapter) -> None:
        """Register an adapter implementation by key."""

        if not name:
            raise ValueError("Adapter name cannot be empty")
        self._adapter_map[name] = adapter

    def extract(self, path: str | Path, *, ocr_enabled: bool = False) -> ExtractionResult:
        """Extract per-page text, failing fast on image-only documents."""

        source = Path(path)
        raw_bytes = self._read_bytes(source)
        sniffed = raw_bytes[: self._sniff_bytes]

        for adapter in self._adapter_map.values():
            if adapter.supports(source, sniffed):
                try:
                    raw_pages = adapter.read_pages(source)
                except Exception as exc:  # pragma: no cover - wrapper branch
                    raise PipelineError(
                        ErrorKind.EXTRACTION_FAILED,
                        f"Failed to extract text from {source}: {exc}",
                    ) from exc
                return build_extraction(raw_pages, ocr_enabled=ocr_enabled)

        raise PipelineError(
            ErrorKind.UNSUPPORTED_DOCUMENT,
            f"No adapter registered for file content (path={source})",
        )

    def _read_bytes(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise PipelineError(
                ErrorKind.EXTRACTION_FAILED,
                f"Failed to read source file: {exc}",
            ) from exc


def build_extraction(raw_pages: RawPages, *, ocr_enabled: bool = False) -> ExtractionResult:
    """Validate adapter output against the text-density thresholds."""

    warnings: list[str] = []
    non_empty = [text for text in raw_pages.page_texts if text.strip()]

    if not non_empty:
        if not ocr_enabled:
            raise PipelineError(
                ErrorKind.SCAN_UNSUPPORTED,
                "Document appears to be scanned/image-only. No text could be extracted. "
                "Enable OCR (not yet implemented) or export the document as searchable text.",
            )
        raise PipelineError(
            ErrorKind.OCR_NOT_IMPLEMENTED,
            "OCR support is not yet implemented. Use a text-based document.",
        )

    total_pages = max(raw_pages.page_count, len(raw_pages.page_texts))
    pages: list[PageText] = []
    for index in range(total_pages):
        bucket = raw_pages.page_texts[index] if index < len(raw_pages.page_texts) else ""
        pages.append(PageText(page_number=index + 1, text=bucket.strip(), char_count=len(bucket)))

    total_chars = sum(page.char_count for page in pages)
    avg_chars_per_page = total_chars / total_pages if total_pages > 0 else 0.0

    if total_chars < MIN_TOTAL_CHARS or avg_chars_per_page < MIN_CHARS_PER_PAGE:
        details = {"totalChars": total_chars, "avgCharsPerPage": avg_chars_per_page}
        if not ocr_enabled:
            raise PipelineError(
                ErrorKind.SCAN_UNSUPPORTED,
                f"Document appears to be scanned/image-only. Extracted only {total_chars} characters "
                f"(minimum {MIN_TOTAL_CHARS}) with {avg_chars_per_page:.0f} chars/page average "
                f"(minimum {MIN_CHARS_PER_PAGE}).",
                details,
            )
        raise PipelineError(
            ErrorKind.OCR_NOT_IMPLEMENTED,
            "Low text density detected and OCR support is not yet implemented.",
            details,
        )

    if len(non_empty) < raw_pages.page_count:
        warnings.append(
            f"Could not extract per-page text for all {raw_pages.page_count} pages. Using available text."
        )

    logger.info("Extracted %d page(s), %d characters", total_pages, total_chars)
    return ExtractionResult(
        pages=pages,
        method="text",
        warnings=warnings,
        page_count=total_pages,
        total_chars=total_chars,
        avg_chars_per_page=avg_chars_per_page,
    )


def build_default_extractor() -> DocumentExtractor:
    extractor = DocumentExtractor()
    for name, adapter in build_default_adapters().items():
        extractor.register_adapter(name, adapter)
    return extractor
