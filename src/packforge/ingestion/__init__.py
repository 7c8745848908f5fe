"""Ingestion package interfaces."""

from .cache import EXTRACTION_VERSION, CacheOutcome, ExtractionCache, compute_cache_key
from .extractor import DocumentExtractor, build_default_extractor
from .models import CachedExtraction, ExtractionResult, PageText

__all__ = [
    "EXTRACTION_VERSION",
    "CacheOutcome",
    "CachedExtraction",
    "DocumentExtractor",
    "ExtractionCache",
    "ExtractionResult",
    "PageText",
    "build_default_extractor",
    "compute_cache_key",
]
