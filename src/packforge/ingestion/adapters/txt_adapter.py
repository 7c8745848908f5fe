"""Plain-text adapter with encoding detection and form-feed page breaks."""

from __future__ import annotations

from pathlib import Path
import re

from charset_normalizer import from_bytes

from packforge.ingestion.models import RawPages

_PAGE_BREAK_RE = re.compile(r"\f+")


class TXTAdapter:
    """Read text exports where pages are separated by form feeds."""

    def supports(self, path: Path, sniffed_bytes: bytes | None = None) -> bool:
        if path.suffix.lower() == ".txt":
            return True
        if sniffed_bytes is None:
            return False

        if path.suffix.lower() in {".pdf", ".epub", ".zip"}:
            return False

        prefix = sniffed_bytes.lstrip()
        if prefix.startswith((b"%PDF-", b"PK\x03\x04")):
            return False

        return b"\x00" not in sniffed_bytes

    def read_pages(self, path: Path) -> RawPages:
        raw = path.read_bytes()
        text = raw.decode(self._detect_encoding(raw))
        page_texts = [chunk for chunk in _PAGE_BREAK_RE.split(text) if chunk.strip()]
        return RawPages(page_texts=page_texts, page_count=max(len(page_texts), 1))

    def _detect_encoding(self, raw: bytes) -> str:
        if not raw:
            return "utf-8"

        best = from_bytes(raw).best()
        if best and best.encoding:
            return best.encoding

        for fallback in ("utf-8", "cp1252"):
            try:
                raw.decode(fallback)
                return fallback
            except UnicodeDecodeError:
                continue
        raise ValueError("Could not detect TXT encoding")
