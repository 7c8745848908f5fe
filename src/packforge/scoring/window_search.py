"""Exhaustive sliding-window search over page ranges for one scenario."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from concurrent.futures import ThreadPoolExecutor
import logging

from packforge.ingestion.models import PageText
from packforge.scoring.models import ScoreBreakdown, ScoredCandidate, Window, WindowSearchResult
from packforge.scoring.scorer import is_qualified, score_candidate
from packforge.text.segmentation import Candidate

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE_PAGES = 25
DEFAULT_TOP_WINDOWS = 3


def count_anchor_hits(text: str, anchors: Sequence[str]) -> int:
    """Number of anchors that occur in *text* (case-insensitive substring)."""

    lowered = text.lower()
    return sum(1 for anchor in anchors if anchor.lower() in lowered)


class _ScoreMemo:
    """Scores each candidate once per search; windows overlap heavily."""

    def __init__(
        self,
        tokens: Sequence[str],
        strong_tokens: Collection[str],
        language: str,
        min_scenario_hits: int,
    ) -> None:
        self._tokens = tokens
        self._strong_tokens = strong_tokens
        self._language = language
        self._min_scenario_hits = min_scenario_hits
        self._scores: dict[str, ScoreBreakdown] = {}

    def prime(self, candidates: Sequence[Candidate]) -> None:
        for candidate in candidates:
            self.score(candidate)

    def score(self, candidate: Candidate) -> ScoreBreakdown:
        cached = self._scores.get(candidate.id)
        if cached is None:
            cached = score_candidate(
                candidate,
                self._tokens,
                language=self._language,
                min_scenario_hits=self._min_scenario_hits,
                strong_tokens=self._strong_tokens,
            )
            self._scores[candidate.id] = cached
        return cached


def _build_window(
    pages: Sequence[PageText],
    candidates: Sequence[Candidate],
    offset: int,
    window_size_pages: int,
    memo: _ScoreMemo,
    anchors: Sequence[str],
    min_scenario_hits: int,
) -> Window:
    first_page = pages[offset]
    last_page = pages[offset + window_size_pages - 1]
    low = first_page.page_number - 1
    high = last_page.page_number - 1

    scored = tuple(
        ScoredCandidate(candidate=candidate, score=memo.score(candidate))
        for candidate in candidates
        if candidate.page_index is not None and low <= candidate.page_index <= high
    )

    qualified = sum(1 for item in scored if is_qualified(item.score, min_scenario_hits))
    token_hits = sum(item.score.scenario_token_hits for item in scored)
    anchor_hits = 0
    if anchors:
        anchor_hits = count_anchor_hits(" ".join(item.text for item in scored), anchors)
    average = sum(item.score.total_score for item in scored) / len(scored) if scored else 0.0

    return Window(
        start_page=first_page.page_number,
        end_page=last_page.page_number,
        candidate_count=len(scored),
        qualified_candidates=qualified,
        total_token_hits=token_hits,
        anchor_hits=anchor_hits,
        average_score=average,
        candidates=scored,
    )


def rank_windows(windows: Sequence[Window], *, use_anchors: bool) -> list[Window]:
    """Stable descending sort; equal windows keep their offset order."""

    return sorted(windows, key=lambda window: window.ranking_key(use_anchors=use_anchors))


def find_best_windows(
    pages: Sequence[PageText],
    candidates: Sequence[Candidate],
    tokens: Sequence[str],
    *,
    anchors: Sequence[str] = (),
    window_size_pages: int = DEFAULT_WINDOW_SIZE_PAGES,
    min_scenario_hits: int = 2,
    language: str = "de",
    top_n: int = DEFAULT_TOP_WINDOWS,
    strong_tokens: Collection[str] = (),
    max_workers: int | None = None,
) -> WindowSearchResult:
    """Score every contiguous run of ``window_size_pages`` pages and rank the runs.

    Offsets walk positions in *pages*; each window covers the absolute page
    numbers of its first and last page, so candidates keep their original
    page indices even when pages were dropped upstream.
    """

    if window_size_pages < 1:
        raise ValueError("window_size_pages must be >= 1")

    offsets = range(len(pages) - window_size_pages + 1)
    if not offsets:
        logger.info(
            "Window search skipped: %s page(s) is fewer than window size %s",
            len(pages),
            window_size_pages,
        )
        return WindowSearchResult(best_window=None)

    memo = _ScoreMemo(tokens, strong_tokens, language, min_scenario_hits)
    memo.prime(candidates)

    def build(offset: int) -> Window:
        return _build_window(pages, candidates, offset, window_size_pages, memo, anchors, min_scenario_hits)

    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            windows = list(executor.map(build, offsets))
    else:
        windows = [build(offset) for offset in offsets]

    ranked = rank_windows(windows, use_anchors=bool(anchors))
    return WindowSearchResult(
        best_window=ranked[0],
        top_windows=ranked[:top_n],
        all_windows=ranked,
    )
