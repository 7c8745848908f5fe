"""Shared adapter contract for per-format page readers."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from packforge.ingestion.models import RawPages


@runtime_checkable
class DocumentAdapter(Protocol):
    """Protocol that every format adapter must implement."""

    def supports(self, path: Path, sniffed_bytes: bytes | None = None) -> bool:
        """Return True when this adapter can read the given file."""

    def read_pages(self, path: Path) -> RawPages:
        """Return raw per-page text buckets in physical page order."""
