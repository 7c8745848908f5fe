"""Scoring and search result types."""

from __future__ import annotations

from dataclasses import dataclass, field

from packforge.text.segmentation import Candidate


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    """Score of one candidate for one scenario, with an ordered audit trail."""

    total_score: float
    scenario_token_hits: int
    strong_token_hits: int
    dialogue_bonus: float
    concreteness_bonus: float
    heading_penalty: float
    length_penalty: float
    matched_tokens: tuple[str, ...] = ()
    reasons: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "totalScore": self.total_score,
            "scenarioTokenHits": self.scenario_token_hits,
            "strongTokenHits": self.strong_token_hits,
            "dialogueBonus": self.dialogue_bonus,
            "concretenessBonus": self.concreteness_bonus,
            "headingPenalty": self.heading_penalty,
            "lengthPenalty": self.length_penalty,
            "matchedTokens": list(self.matched_tokens),
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True, slots=True)
class ScoredCandidate:
    """A candidate with the score attached for a specific scoring pass."""

    candidate: Candidate
    score: ScoreBreakdown

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def text(self) -> str:
        return self.candidate.text

    @property
    def page_index(self) -> int | None:
        return self.candidate.page_index

    def to_dict(self) -> dict[str, object]:
        payload = self.candidate.to_dict()
        payload["score"] = self.score.to_dict()
        return payload


@dataclass(frozen=True, slots=True)
class WindowSummary:
    start_page: int
    end_page: int
    qualified_candidates: int
    total_token_hits: int
    anchor_hits: int = 0
    average_score: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "startPage": self.start_page,
            "endPage": self.end_page,
            "qualifiedCandidates": self.qualified_candidates,
            "totalTokenHits": self.total_token_hits,
            "anchorHits": self.anchor_hits,
            "averageScore": self.average_score,
        }


@dataclass(frozen=True, slots=True)
class Window:
    """Aggregate of one contiguous page range; pages are 1-indexed and inclusive."""

    start_page: int
    end_page: int
    candidate_count: int
    qualified_candidates: int
    total_token_hits: int
    anchor_hits: int
    average_score: float
    candidates: tuple[ScoredCandidate, ...] = ()

    def ranking_key(self, *, use_anchors: bool) -> tuple[float, ...]:
        """Descending lexicographic key; smaller sorts first."""

        anchor_term = -self.anchor_hits if use_anchors else 0
        return (anchor_term, -self.qualified_candidates, -self.total_token_hits, -self.average_score)

    def summary(self) -> WindowSummary:
        return WindowSummary(
            start_page=self.start_page,
            end_page=self.end_page,
            qualified_candidates=self.qualified_candidates,
            total_token_hits=self.total_token_hits,
            anchor_hits=self.anchor_hits,
            average_score=self.average_score,
        )


@dataclass(slots=True)
class WindowSearchResult:
    best_window: Window | None
    top_windows: list[Window] = field(default_factory=list)
    all_windows: list[Window] = field(default_factory=list)


@dataclass(slots=True)
class ScenarioStats:
    scenario: str
    total_token_hits: int
    candidates_with_any_hit: int
    candidates_with_min_hits: int
    top_matched_tokens: list[tuple[str, int]] = field(default_factory=list)
    best_window: WindowSummary | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "scenario": self.scenario,
            "totalTokenHits": self.total_token_hits,
            "candidatesWithAnyHit": self.candidates_with_any_hit,
            "candidatesWithMinHits": self.candidates_with_min_hits,
            "topMatchedTokens": [{"token": t, "count": c} for t, c in self.top_matched_tokens],
            "bestWindow": self.best_window.to_dict() if self.best_window else None,
        }


@dataclass(slots=True)
class ScenarioDiscoveryResult:
    scenarios: list[ScenarioStats]
    ranked_scenarios: list[str]
    recommended_scenarios: list[str]

    def ranking(self, limit: int = 5) -> list[dict[str, object]]:
        return [stats.to_dict() for stats in self.scenarios[:limit]]
