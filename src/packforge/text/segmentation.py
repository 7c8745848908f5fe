"""Split normalized text into short, typed, exactly-deduplicated candidate utterances."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import math
import re
from typing import Literal

from packforge.ingestion.models import PageText

CandidateType = Literal["dialogue", "question", "imperative", "sentence", "other"]

MIN_CANDIDATE_LENGTH = 10
MAX_CANDIDATE_LENGTH = 200
DUPLICATE_THRESHOLD = 0.25
REQUIRED_COUNT_RATIO = 0.8

_SPLIT_RE = re.compile(r"(?<=[.!?])\s+|(?<=\n\n)|(?<=[\"'„“”‘’])\s*|(?=\n)")
_ALNUM_RE = re.compile(r"[a-zA-ZäöüÄÖÜß0-9]")
_SYMBOL_RE = re.compile(r"[^\w\s]")

_DIALOGUE_START_RE = re.compile(r"^[\"'„“‘]")
_DIALOGUE_END_RE = re.compile(r"[\"'“”’]$")
_QUESTION_WORD_RE = re.compile(
    r"^(Wer|Was|Wo|Wann|Warum|Wie|Welche|Welcher|Welches|Who|What|Where|When|Why|How|Which)\b",
    re.IGNORECASE,
)
_IMPERATIVE_RE = re.compile(
    r"^(Bitte|Kann|Können|Soll|Sollen|Muss|Müssen|Darf|Dürfen|Zeig|Zeige|Gib|Geben|"
    r"Mach|Machen|Geh|Gehen|Komm|Kommen|Please)\b",
    re.IGNORECASE,
)
_SENTENCE_START_RE = re.compile(r"^[A-ZÄÖÜ]")
_SENTENCE_END_RE = re.compile(r"[.!]$")


@dataclass(frozen=True, slots=True)
class Candidate:
    """One candidate utterance; ``page_index`` is 0-based in the original document."""

    id: str
    text: str
    char_count: int
    type: CandidateType
    page_index: int | None = None
    raw_text: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "text": self.text,
            "charCount": self.char_count,
            "type": self.type,
            "pageIndex": self.page_index,
            "rawText": self.raw_text,
        }


@dataclass(slots=True)
class SegmentationStats:
    total: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    avg_length: float = 0.0
    duplicate_count: int = 0
    duplicate_ratio: float = 0.0


@dataclass(slots=True)
class SegmentationResult:
    candidates: list[Candidate]
    stats: SegmentationStats


def is_garbage(text: str) -> bool:
    """Reject segments that are mostly symbols rather than language."""

    trimmed = text.strip()
    if len(trimmed) < MIN_CANDIDATE_LENGTH:
        return True
    if len(_ALNUM_RE.findall(trimmed)) / len(trimmed) < 0.6:
        return True
    return len(_SYMBOL_RE.findall(trimmed)) > len(trimmed) * 0.4


def determine_type(text: str) -> CandidateType:
    trimmed = text.strip()
    if _DIALOGUE_START_RE.search(trimmed) or _DIALOGUE_END_RE.search(trimmed):
        return "dialogue"
    if trimmed.endswith("?") or _QUESTION_WORD_RE.search(trimmed):
        return "question"
    if _IMPERATIVE_RE.search(trimmed):
        return "imperative"
    if _SENTENCE_START_RE.search(trimmed) and _SENTENCE_END_RE.search(trimmed):
        return "sentence"
    return "other"


def split_segments(text: str) -> list[str]:
    segments = (segment.strip() for segment in _SPLIT_RE.split(text))
    return [s for s in segments if MIN_CANDIDATE_LENGTH <= len(s) <= MAX_CANDIDATE_LENGTH]


class _Collector:
    """Accumulates candidates across pages with shared id and duplicate state."""

    def __init__(self) -> None:
        self.candidates: list[Candidate] = []
        self.seen: dict[str, int] = {}

    def add(self, segment: str, page_index: int | None) -> None:
        if is_garbage(segment):
            return

        key = segment.lower().strip()
        self.seen[key] = self.seen.get(key, 0) + 1
        if self.seen[key] > 1:
            return

        self.candidates.append(
            Candidate(
                id=f"c{len(self.candidates) + 1:03d}",
                text=segment,
                char_count=len(segment),
                type=determine_type(segment),
                page_index=page_index,
                raw_text=segment,
            )
        )

    def result(self) -> SegmentationResult:
        by_type: dict[str, int] = {}
        for candidate in self.candidates:
            by_type[candidate.type] = by_type.get(candidate.type, 0) + 1

        total = len(self.candidates)
        duplicate_count = sum(1 for count in self.seen.values() if count > 1)
        return SegmentationResult(
            candidates=self.candidates,
            stats=SegmentationStats(
                total=total,
                by_type=by_type,
                avg_length=sum(c.char_count for c in self.candidates) / total if total else 0.0,
                duplicate_count=duplicate_count,
                duplicate_ratio=duplicate_count / total if total else 0.0,
            ),
        )


def segment_text(text: str) -> SegmentationResult:
    """Segment whole-document text; candidates carry no page index."""

    collector = _Collector()
    for segment in split_segments(text):
        collector.add(segment, None)
    return collector.result()


def segment_pages(pages: list[PageText]) -> SegmentationResult:
    """Segment page by page so each candidate keeps its absolute 0-based page index."""

    collector = _Collector()
    for page in pages:
        if not page.text.strip():
            continue
        for segment in split_segments(page.text):
            collector.add(segment, page.page_number - 1)
    return collector.result()


def assign_page_indices(
    candidates: list[Candidate],
    text: str,
    page_count: int,
    *,
    page_offset: int = 0,
) -> list[Candidate]:
    """Back-infer page indices from character offsets using an average page length.

    ``page_count`` is the number of pages *text* was built from; results are
    shifted by ``page_offset``. Best effort only: attribution assumes pages of
    equal length.
    """

    if page_count <= 0:
        return list(candidates)

    avg_chars_per_page = len(text) / page_count
    assigned: list[Candidate] = []
    cursor = 0

    for candidate in candidates:
        position = text.find(candidate.text, cursor)
        if position >= 0:
            anchor = position
            cursor = position + len(candidate.text)
        else:
            anchor = cursor
            cursor += len(candidate.text)

        relative = math.floor(anchor / avg_chars_per_page) if avg_chars_per_page > 0 else 0
        page_index = min(relative, page_count - 1) + page_offset
        assigned.append(replace(candidate, page_index=page_index))

    return assigned


def validate_segmentation(result: SegmentationResult, required_count: int) -> list[str]:
    """Return human-readable problems with candidate supply and duplicate health."""

    errors: list[str] = []
    minimum = math.floor(required_count * REQUIRED_COUNT_RATIO)
    if len(result.candidates) < minimum:
        errors.append(
            f"Insufficient candidates: {len(result.candidates)} found, need at least {minimum} "
            f"(required: {required_count})"
        )

    if result.stats.duplicate_ratio > DUPLICATE_THRESHOLD:
        errors.append(
            f"Too many duplicates: {result.stats.duplicate_ratio * 100:.1f}% "
            f"({result.stats.duplicate_count} duplicates, threshold: {DUPLICATE_THRESHOLD * 100:.0f}%)"
        )
    return errors
