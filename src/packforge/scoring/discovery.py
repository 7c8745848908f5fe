"""Rank every catalog scenario by how much evidence a document carries for it."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
import logging

from packforge.errors import ErrorKind, PipelineError
from packforge.ingestion.models import PageText
from packforge.scoring.catalog import ScenarioCatalog
from packforge.scoring.models import ScenarioDiscoveryResult, ScenarioStats
from packforge.scoring.scorer import is_qualified, score_candidate
from packforge.scoring.window_search import DEFAULT_WINDOW_SIZE_PAGES, find_best_windows
from packforge.text.segmentation import Candidate

logger = logging.getLogger(__name__)

TOP_MATCHED_TOKENS = 20
MAX_RECOMMENDED = 3
MIN_CANDIDATES_FOR_RECOMMENDATION = 5


def _scenario_stats(
    scenario: str,
    pages: Sequence[PageText],
    candidates: Sequence[Candidate],
    catalog: ScenarioCatalog,
    *,
    language: str,
    min_scenario_hits: int,
    window_size_pages: int,
) -> ScenarioStats:
    dictionary = catalog.get(scenario)
    scores = [
        score_candidate(
            candidate,
            dictionary.tokens,
            language=language,
            min_scenario_hits=min_scenario_hits,
            strong_tokens=dictionary.strong_tokens,
        )
        for candidate in candidates
    ]

    token_counts: Counter[str] = Counter()
    for score in scores:
        token_counts.update(score.matched_tokens)

    best_window = None
    if candidates and pages:
        search = find_best_windows(
            pages,
            candidates,
            dictionary.tokens,
            window_size_pages=window_size_pages,
            min_scenario_hits=min_scenario_hits,
            language=language,
            top_n=1,
            strong_tokens=dictionary.strong_tokens,
        )
        if search.best_window is not None:
            best_window = search.best_window.summary()

    return ScenarioStats(
        scenario=scenario,
        total_token_hits=sum(score.scenario_token_hits for score in scores),
        candidates_with_any_hit=sum(1 for score in scores if score.scenario_token_hits > 0),
        candidates_with_min_hits=sum(1 for score in scores if is_qualified(score, min_scenario_hits)),
        top_matched_tokens=token_counts.most_common(TOP_MATCHED_TOKENS),
        best_window=best_window,
    )


def discover_scenarios(
    pages: Sequence[PageText],
    candidates: Sequence[Candidate],
    catalog: ScenarioCatalog,
    *,
    language: str = "de",
    min_scenario_hits: int = 2,
    window_size_pages: int = DEFAULT_WINDOW_SIZE_PAGES,
) -> ScenarioDiscoveryResult:
    """Score all candidates against every scenario; anchors are not used here."""

    stats = [
        _scenario_stats(
            scenario,
            pages,
            candidates,
            catalog,
            language=language,
            min_scenario_hits=min_scenario_hits,
            window_size_pages=window_size_pages,
        )
        for scenario in catalog.names
    ]
    stats.sort(key=lambda item: -item.total_token_hits)

    recommended = [
        item.scenario
        for item in stats
        if item.total_token_hits > 0 and item.candidates_with_min_hits >= MIN_CANDIDATES_FOR_RECOMMENDATION
    ][:MAX_RECOMMENDED]

    logger.info(
        "Scenario discovery ranked %s scenario(s); recommended: %s",
        len(stats),
        ", ".join(recommended) or "none",
    )
    return ScenarioDiscoveryResult(
        scenarios=stats,
        ranked_scenarios=[item.scenario for item in stats],
        recommended_scenarios=recommended,
    )


def choose_scenario(result: ScenarioDiscoveryResult, preferred: Sequence[str] = ()) -> str:
    """Pick the first preferred scenario that was recommended, else the top recommendation."""

    if not result.recommended_scenarios:
        raise PipelineError(
            ErrorKind.NO_SCENARIO_FOUND,
            "No scenario has enough evidence in this document; pass an explicit scenario",
            {"scenarioRanking": result.ranking()},
        )

    for scenario in preferred:
        if scenario in result.recommended_scenarios:
            logger.info("Using profile-preferred scenario %s", scenario)
            return scenario

    if preferred:
        logger.info("No profile-preferred scenario was recommended; falling back to top ranking")
    return result.recommended_scenarios[0]
