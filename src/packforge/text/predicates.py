"""Shared text predicates used by front matter, segmentation, scoring and quality checks.

Every stage that classifies headings, concreteness or scenario tokens goes
through these helpers so the classification is identical everywhere.
"""

from __future__ import annotations

from functools import lru_cache
import re

_UMLAUT_MAP = str.maketrans({
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "ß": "ss",
    "Ä": "ae",
    "Ö": "oe",
    "Ü": "ue",
})
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")

_SENTENCE_PUNCT_RE = re.compile(r"[.!?]")
_TERMINAL_PUNCT_RE = re.compile(r"[.!?]$")
_UPPER_LETTER_RE = re.compile(r"[A-ZÄÖÜ]")
_TITLE_CASE_RE = re.compile(r"^[A-ZÄÖÜ][a-zäöüß]")
_CHAPTER_PREFIX_RE = re.compile(
    r"^(Chapter|Kapitel|Table of Contents|Inhalt|INTRODUCTION|EINLEITUNG)",
    re.IGNORECASE,
)

_DIGIT_RE = re.compile(r"\d")
_CURRENCY_RE = re.compile(r"[€$£]")
_TIME_RE = re.compile(r"\d{1,2}:\d{2}")
WEEKDAYS = (
    "montag",
    "dienstag",
    "mittwoch",
    "donnerstag",
    "freitag",
    "samstag",
    "sonntag",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# Maximum normalized characters allowed between consecutive words of a phrase.
PHRASE_GAP_CHARS = 50

SCORER_SHORT_HEADING_CHARS = 35
PAGE_SHORT_HEADING_CHARS = 40


def normalize_for_matching(text: str) -> str:
    """Lower-case, map umlauts, strip punctuation and collapse whitespace."""

    normalized = text.lower().translate(_UMLAUT_MAP)
    normalized = _PUNCTUATION_RE.sub(" ", normalized)
    return _WHITESPACE_RE.sub(" ", normalized).strip()


@lru_cache(maxsize=4096)
def _prepare_token(token: str) -> tuple[str, ...]:
    return tuple(word for word in normalize_for_matching(token).split(" ") if word)


@lru_cache(maxsize=4096)
def _word_pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(word)}\b")


def matches_token(normalized_text: str, token: str) -> bool:
    """Check a scenario token against text already passed through ``normalize_for_matching``.

    Single words match on word boundaries. Phrases match when every word
    appears left to right with at most ``PHRASE_GAP_CHARS`` characters between
    the end of one word and the start of the next.
    """

    words = _prepare_token(token)
    if not words:
        return False
    if len(words) == 1:
        return _word_pattern(words[0]).search(normalized_text) is not None

    search_start = 0
    for position, word in enumerate(words):
        index = normalized_text.find(word, search_start)
        if index == -1:
            return False
        if position > 0 and index - search_start > PHRASE_GAP_CHARS:
            return False
        search_start = index + len(word)
    return True


def is_all_caps(text: str) -> bool:
    return text == text.upper() and len(text) > 3 and _UPPER_LETTER_RE.search(text) is not None


def is_heading_like(text: str, *, short_limit: int = SCORER_SHORT_HEADING_CHARS) -> bool:
    """Return True for short unpunctuated lines, ALL CAPS, short Title Case or chapter labels."""

    trimmed = text.strip()
    if not trimmed:
        return False

    if len(trimmed) < short_limit and not _SENTENCE_PUNCT_RE.search(trimmed):
        return True
    if is_all_caps(trimmed):
        return True
    if len(trimmed) < 60 and _TITLE_CASE_RE.match(trimmed) and not _TERMINAL_PUNCT_RE.search(trimmed):
        return True
    return _CHAPTER_PREFIX_RE.match(trimmed) is not None


def count_concreteness_markers(text: str) -> int:
    """Count digit, currency, HH:MM time and weekday markers, each at most once."""

    count = 0
    if _DIGIT_RE.search(text):
        count += 1
    if _CURRENCY_RE.search(text):
        count += 1
    if _TIME_RE.search(text):
        count += 1
    lowered = text.lower()
    if any(weekday in lowered for weekday in WEEKDAYS):
        count += 1
    return count


def has_concreteness_marker(text: str) -> bool:
    return count_concreteness_markers(text) > 0


def sentence_punctuation_count(text: str) -> int:
    return len(_SENTENCE_PUNCT_RE.findall(text))
