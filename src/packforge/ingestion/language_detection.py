"""Pick the study language of a source document from its opening pages.

Only German and English course books are handled. Anything lingua cannot
confidently call English is treated as German.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
import logging

from packforge.ingestion.models import PageText

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "de"
SAMPLE_PAGES = 5
SAMPLE_CHARS = 3000


@lru_cache(maxsize=1)
def _get_detector():
    from lingua import Language, LanguageDetectorBuilder

    return (
        LanguageDetectorBuilder.from_languages(Language.GERMAN, Language.ENGLISH)
        .with_minimum_relative_distance(0.1)
        .build()
    )


def detect_language(text: str, *, sample_chars: int = SAMPLE_CHARS) -> str:
    sample = text[:sample_chars].strip()
    if not sample:
        return DEFAULT_LANGUAGE

    result = _get_detector().detect_language_of(sample)
    if result is not None and result.name == "ENGLISH":
        return "en"
    return DEFAULT_LANGUAGE


def detect_document_language(pages: Sequence[PageText], *, sample_pages: int = SAMPLE_PAGES) -> str:
    """Detect over the first *sample_pages* pages, skipping blank ones."""

    sampled = [page.text for page in pages[:sample_pages] if page.text]
    language = detect_language("\n".join(sampled))
    logger.info("Detected document language %s from %d page(s)", language, len(sampled))
    return language
