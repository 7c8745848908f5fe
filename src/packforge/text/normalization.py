"""Clean extracted page text before segmentation.

Removes repeated headers/footers, joins hyphenated line breaks, strips page
numbers and collapses whitespace. Every step taken is appended to an ordered
``actions`` log for the run report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import math
import re

from packforge.ingestion.models import PageText

HEADER_FOOTER_PAGE_RATIO = 0.6
HEADER_FOOTER_MAX_LINE_CHARS = 100

_BARE_INTEGER_RE = re.compile(r"^\d+$")
_HYPHEN_BREAK_RE = re.compile(r"([a-zA-ZäöüÄÖÜß])-[ \t]*\n[ \t]*([a-zA-ZäöüÄÖÜß])")
_PAGE_NUMBER_LINE_RE = re.compile(r"^[ \t]*\d+[ \t]*$\n?", re.MULTILINE)
_PAGE_LABEL_RE = re.compile(r"\b(Page|Seite)\s+\d+", re.IGNORECASE)
_INLINE_SPACE_RE = re.compile(r"[ \t]+")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


@dataclass(slots=True)
class NormalizationResult:
    normalized_text: str
    actions: list[str] = field(default_factory=list)
    header_footer_lines: list[str] = field(default_factory=list)


def _page_lines(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def detect_header_footer_lines(pages: list[PageText]) -> list[str]:
    """Return lower-cased short lines that recur on at least 60% of pages (minimum 2)."""

    if len(pages) <= 1:
        return []

    counts: dict[str, int] = {}
    for page in pages:
        seen_in_page: set[str] = set()
        for line in _page_lines(page.text):
            if len(line) >= HEADER_FOOTER_MAX_LINE_CHARS or _BARE_INTEGER_RE.match(line):
                continue
            key = line.lower()
            if key in seen_in_page:
                continue
            seen_in_page.add(key)
            counts[key] = counts.get(key, 0) + 1

    threshold = max(2, math.ceil(len(pages) * HEADER_FOOTER_PAGE_RATIO))
    return [line for line, count in counts.items() if count >= threshold]


def remove_lines(text: str, lines_to_remove: list[str] | tuple[str, ...]) -> str:
    if not lines_to_remove:
        return text
    targets = set(lines_to_remove)
    return "\n".join(line for line in text.split("\n") if line.strip().lower() not in targets)


def dehyphenate(text: str) -> str:
    return _HYPHEN_BREAK_RE.sub(r"\1\2", text)


def remove_page_numbers(text: str) -> str:
    text = _PAGE_NUMBER_LINE_RE.sub("", text)
    return _PAGE_LABEL_RE.sub("", text)


def collapse_whitespace(text: str) -> str:
    text = _INLINE_SPACE_RE.sub(" ", text)
    return _EXCESS_NEWLINES_RE.sub("\n\n", text).strip()


def _clean(text: str, actions: list[str]) -> str:
    dehyphenated = dehyphenate(text)
    if len(dehyphenated) != len(text):
        actions.append("De-hyphenated line breaks")

    cleaned = remove_page_numbers(dehyphenated)
    actions.append("Removed page numbers")

    cleaned = collapse_whitespace(cleaned)
    actions.append("Collapsed whitespace")
    return cleaned


def normalize_page(
    page: PageText,
    header_footer_lines: list[str] | tuple[str, ...] = (),
) -> NormalizationResult:
    """Single-page mode: no cross-page detection, optional precomputed header/footer removal."""

    actions: list[str] = []
    text = page.text
    if header_footer_lines:
        text = remove_lines(text, header_footer_lines)
    return NormalizationResult(
        normalized_text=_clean(text, actions),
        actions=actions,
        header_footer_lines=list(header_footer_lines),
    )


def normalize_document(pages: list[PageText]) -> NormalizationResult:
    """Whole-document mode: detect headers/footers across pages and join pages."""

    actions: list[str] = []
    header_footer_lines = detect_header_footer_lines(pages)
    text = "\n\n".join(page.text for page in pages)

    if header_footer_lines:
        text = remove_lines(text, header_footer_lines)
        actions.append(
            f"Removed {len(header_footer_lines)} header/footer line(s) appearing on >60% of pages"
        )

    return NormalizationResult(
        normalized_text=_clean(text, actions),
        actions=actions,
        header_footer_lines=header_footer_lines,
    )


def normalize_pages(pages: list[PageText]) -> tuple[list[PageText], NormalizationResult]:
    """Normalize page by page, keeping page numbers, after detecting headers/footers across pages."""

    header_footer_lines = detect_header_footer_lines(pages)
    actions: list[str] = []
    if header_footer_lines:
        actions.append(
            f"Removed {len(header_footer_lines)} header/footer line(s) appearing on >60% of pages"
        )

    normalized: list[PageText] = []
    for page in pages:
        result = normalize_page(page, header_footer_lines)
        for action in result.actions:
            if action not in actions:
                actions.append(action)
        normalized.append(
            PageText(
                page_number=page.page_number,
                text=result.normalized_text,
                char_count=len(result.normalized_text),
            )
        )

    combined = "\n".join(page.text for page in normalized)
    return normalized, NormalizationResult(
        normalized_text=combined,
        actions=actions,
        header_footer_lines=header_footer_lines,
    )
