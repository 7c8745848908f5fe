"""Detect leading non-content pages (TOC, copyright, prefaces)."""

from __future__ import annotations

from dataclasses import dataclass, field

from packforge.ingestion.models import PageText
from packforge.text.predicates import (
    PAGE_SHORT_HEADING_CHARS,
    is_heading_like,
    sentence_punctuation_count,
)

DEFAULT_MAX_PAGES = 40

FRONT_MATTER_KEYWORDS = (
    "Inhalt",
    "Table of Contents",
    "Contents",
    "Kapitel",
    "Chapter",
    "Einleitung",
    "Introduction",
    "Vorwort",
    "Preface",
    "ISBN",
    "OER",
    "Copyright",
    "Library of Congress",
    "Manufactured in",
    "Contributors",
    "Produced by",
    "Second Edition",
    "Creative Commons",
)
_KEYWORDS_LOWER = tuple(keyword.lower() for keyword in FRONT_MATTER_KEYWORDS)


@dataclass(slots=True)
class FrontMatterEvidence:
    front_matter_pages: list[int] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)
    first_content_page: int = 0


@dataclass(slots=True)
class FrontMatterResult:
    """``skip_until_page_index`` is the 0-based index of the first page to keep."""

    skip_until_page_index: int
    evidence: FrontMatterEvidence


def heading_ratio(page: PageText) -> float:
    lines = [line.strip() for line in page.text.split("\n")]
    lines = [line for line in lines if line]
    if not lines:
        return 0.0
    headings = [line for line in lines if is_heading_like(line, short_limit=PAGE_SHORT_HEADING_CHARS)]
    return len(headings) / len(lines)


def punctuation_density(page: PageText) -> float:
    """Sentence-ending marks per 1000 characters."""

    if not page.text:
        return 0.0
    return sentence_punctuation_count(page.text) / len(page.text) * 1000


def has_front_matter_keywords(page: PageText) -> bool:
    lowered = page.text.lower()
    return any(keyword in lowered for keyword in _KEYWORDS_LOWER)


def looks_like_content(page: PageText) -> bool:
    return len(page.text) > 200 and heading_ratio(page) < 0.4 and punctuation_density(page) > 5


def detect_front_matter(pages: list[PageText], max_pages: int = DEFAULT_MAX_PAGES) -> FrontMatterResult:
    """Score leading pages and decide how many to skip, with auditable evidence."""

    front_matter_pages: list[int] = []
    reasons: list[str] = []
    first_content_page = -1

    for index in range(min(max_pages, len(pages))):
        page = pages[index]
        score = 0
        page_reasons: list[str] = []

        if has_front_matter_keywords(page):
            score += 2
            page_reasons.append("contains front matter keywords")

        ratio = heading_ratio(page)
        if ratio > 0.6:
            score += 2
            page_reasons.append(f"high heading ratio ({ratio * 100:.0f}%)")

        density = punctuation_density(page)
        if density < 3:
            score += 1
            page_reasons.append(f"low sentence density ({density:.1f} per 1000 chars)")

        if score >= 2:
            front_matter_pages.append(index)
            reasons.append(f"Page {index + 1}: {', '.join(page_reasons)}")

        if (
            first_content_page == -1
            and looks_like_content(page)
            and index + 1 < len(pages)
            and looks_like_content(pages[index + 1])
        ):
            first_content_page = index

    skip_until = 0
    if front_matter_pages:
        skip_until = first_content_page if first_content_page >= 0 else max(front_matter_pages) + 1
    skip_until = min(skip_until, max_pages)

    return FrontMatterResult(
        skip_until_page_index=skip_until,
        evidence=FrontMatterEvidence(
            front_matter_pages=front_matter_pages,
            reasons=reasons,
            first_content_page=first_content_page if first_content_page >= 0 else skip_until,
        ),
    )
