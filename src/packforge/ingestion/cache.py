"""Content-addressed persistence for extraction results.

Entries live at ``<root>/<source_id>/<cache_key>.json``. Writes are not
locked: concurrent runs against the same key race and the last writer wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import hashlib
import json
import logging
from pathlib import Path

from packforge.ingestion.extractor import DocumentExtractor, build_default_extractor
from packforge.ingestion.models import CachedExtraction, ExtractionResult

logger = logging.getLogger(__name__)

# Bump to invalidate every cached extraction.
EXTRACTION_VERSION = "1.1.0"


def compute_cache_key(raw_bytes: bytes, version: str = EXTRACTION_VERSION) -> str:
    """Return ``<sha256(bytes)[:16]>-<sha256(version)[:8]>``."""

    file_hash = hashlib.sha256(raw_bytes).hexdigest()[:16]
    version_hash = hashlib.sha256(version.encode("utf-8")).hexdigest()[:8]
    return f"{file_hash}-{version_hash}"


@dataclass(slots=True)
class CacheOutcome:
    """Extraction plus the cache bookkeeping that produced it."""

    extraction: ExtractionResult
    cache_key: str
    cache_path: Path | None
    from_cache: bool


class ExtractionCache:
    """Skip re-extraction of documents whose bytes and extractor version are unchanged."""

    def __init__(
        self,
        root: str | Path,
        extractor: DocumentExtractor | None = None,
        *,
        version: str = EXTRACTION_VERSION,
    ) -> None:
        self._root = Path(root)
        self._extractor = extractor or build_default_extractor()
        self._version = version

    @property
    def root(self) -> Path:
        return self._root

    @property
    def version(self) -> str:
        return self._version

    def cache_path(self, source_id: str, cache_key: str) -> Path:
        return self._root / source_id / f"{cache_key}.json"

    def load(self, source_id: str, cache_key: str) -> CachedExtraction | None:
        """Return the cached entry, or None on miss, corruption or version mismatch."""

        path = self.cache_path(source_id, cache_key)
        if not path.exists():
            return None

        try:
            cached = CachedExtraction.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Failed to load extraction cache %s: %s", path, exc)
            return None

        if cached.extraction_version != self._version:
            logger.warning(
                "Cache version mismatch (%s vs %s), will re-extract",
                cached.extraction_version,
                self._version,
            )
            return None
        return cached

    def save(
        self,
        source_id: str,
        cache_key: str,
        source_path: str | Path,
        extraction: ExtractionResult,
    ) -> Path:
        """Write an entry, creating parent directories and overwriting silently."""

        path = self.cache_path(source_id, cache_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        entry = CachedExtraction(
            cache_key=cache_key,
            source_id=source_id,
            source_path=str(source_path),
            extracted_at=datetime.now(timezone.utc).isoformat(),
            extraction_version=self._version,
            pages=list(extraction.pages),
            page_count=extraction.page_count,
            total_chars=extraction.total_chars,
            avg_chars_per_page=extraction.avg_chars_per_page,
            warnings=list(extraction.warnings),
        )
        path.write_text(json.dumps(entry.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        return path

    def extract_and_cache(
        self,
        path: str | Path,
        source_id: str,
        *,
        use_cache: bool = True,
        cache_key: str | None = None,
        ocr_enabled: bool = False,
    ) -> CacheOutcome:
        """Return cached pages on hit; otherwise extract and persist.

        Only successful extractions are stored, so *ocr_enabled* only matters on a miss.
        """

        source = Path(path)
        key = cache_key or compute_cache_key(source.read_bytes(), self._version)

        if use_cache:
            cached = self.load(source_id, key)
            if cached is not None:
                logger.info(
                    "Using cached extraction (%d pages, %d chars)",
                    cached.page_count,
                    cached.total_chars,
                )
                return CacheOutcome(
                    extraction=cached.to_extraction(),
                    cache_key=key,
                    cache_path=self.cache_path(source_id, key),
                    from_cache=True,
                )

        extraction = self._extractor.extract(source, ocr_enabled=ocr_enabled)
        if not use_cache:
            return CacheOutcome(extraction=extraction, cache_key=key, cache_path=None, from_cache=False)

        cache_path = self.save(source_id, key, source, extraction)
        logger.info("Cached extraction: %s", cache_path)
        return CacheOutcome(extraction=extraction, cache_key=key, cache_path=cache_path, from_cache=False)
