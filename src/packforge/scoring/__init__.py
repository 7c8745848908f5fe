"""Scenario scoring, window search, discovery and quality gating."""

from .catalog import ScenarioCatalog, ScenarioDictionary, load_default_catalog, load_stopwords
from .discovery import choose_scenario, discover_scenarios
from .models import (
    ScenarioDiscoveryResult,
    ScenarioStats,
    ScoreBreakdown,
    ScoredCandidate,
    Window,
    WindowSearchResult,
    WindowSummary,
)
from .quality import QualityReport, assert_quality, check_candidate_quality, is_dialogue_like
from .scorer import is_qualified, score_candidate
from .window_search import find_best_windows

__all__ = [
    "QualityReport",
    "ScenarioCatalog",
    "ScenarioDictionary",
    "ScenarioDiscoveryResult",
    "ScenarioStats",
    "ScoreBreakdown",
    "ScoredCandidate",
    "Window",
    "WindowSearchResult",
    "WindowSummary",
    "assert_quality",
    "check_candidate_quality",
    "choose_scenario",
    "discover_scenarios",
    "find_best_windows",
    "is_dialogue_like",
    "is_qualified",
    "load_default_catalog",
    "load_stopwords",
    "score_candidate",
]
