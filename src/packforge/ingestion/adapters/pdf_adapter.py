"""PDF adapter producing one text bucket per physical page."""

from __future__ import annotations

import logging
from pathlib import Path

import pymupdf

from packforge.ingestion.models import RawPages

logger = logging.getLogger(__name__)

_PDF_MAGIC = b"%PDF-"


class PDFAdapter:
    """Read embedded page text in stable physical order."""

    def supports(self, path: Path, sniffed_bytes: bytes | None = None) -> bool:
        if path.suffix.lower() == ".pdf":
            return True
        if sniffed_bytes is None:
            return False
        return sniffed_bytes.startswith(_PDF_MAGIC)

    def read_pages(self, path: Path) -> RawPages:
        with pymupdf.open(path) as doc:
            page_texts = [page.get_text("text") for page in doc]
            page_count = doc.page_count

        logger.debug("Read %d page(s) from %s", page_count, path)
        return RawPages(page_texts=page_texts, page_count=page_count)
