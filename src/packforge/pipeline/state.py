"""Typed inputs, intermediate state and outputs of a pipeline run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from packforge.ingestion.models import ExtractionResult, PageText
from packforge.profiles import IngestionProfile
from packforge.scoring.models import ScenarioDiscoveryResult, ScoredCandidate, WindowSearchResult
from packforge.scoring.quality import QualityReport
from packforge.text.front_matter import FrontMatterResult
from packforge.text.normalization import NormalizationResult
from packforge.text.segmentation import Candidate, SegmentationResult

AUTO_SCENARIO = "auto"
DEFAULT_PACKS = 10
DEFAULT_PROMPTS_PER_PACK = 12


@dataclass(frozen=True, slots=True)
class PipelineRequest:
    """One run's parameters; ``None`` means "use the profile, then the settings"."""

    source_path: Path
    source_id: str
    level: str
    workspace: str = "de"
    scenario: str = AUTO_SCENARIO
    packs: int = DEFAULT_PACKS
    prompts_per_pack: int = DEFAULT_PROMPTS_PER_PACK
    window_size_pages: int | None = None
    min_scenario_hits: int | None = None
    language: str | None = None
    skip_front_matter: bool = True
    seed: str | None = None
    use_cache: bool = True
    ocr_enabled: bool = False
    profile_path: Path | None = None

    @property
    def required_count(self) -> int:
        return self.packs * self.prompts_per_pack


@dataclass(frozen=True, slots=True)
class RejectedCandidate:
    text_hash: str
    text: str
    reason: str
    page_index: int | None

    def to_dict(self) -> dict[str, object]:
        return {
            "textHash": self.text_hash,
            "text": self.text,
            "reason": self.reason,
            "pageIndex": self.page_index,
        }


@dataclass(frozen=True, slots=True)
class PackSelection:
    index: int
    candidates: tuple[ScoredCandidate, ...]
    quality: QualityReport

    def to_dict(self) -> dict[str, object]:
        return {
            "index": self.index,
            "candidates": [candidate.to_dict() for candidate in self.candidates],
            "quality": self.quality.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class PipelineState:
    """Immutable snapshot handed from stage to stage; stages return updated copies."""

    request: PipelineRequest
    profile: IngestionProfile | None = None
    window_size_pages: int = 25
    min_scenario_hits: int = 2
    document_hash: str | None = None
    cache_key: str | None = None
    from_cache: bool = False
    extraction: ExtractionResult | None = None
    language: str | None = None
    front_matter: FrontMatterResult | None = None
    pages: tuple[PageText, ...] = ()
    normalized_pages: tuple[PageText, ...] = ()
    normalization: NormalizationResult | None = None
    page_aware: bool = True
    segmentation: SegmentationResult | None = None
    candidates: tuple[Candidate, ...] = ()
    discovery: ScenarioDiscoveryResult | None = None
    scenario: str | None = None
    window_search: WindowSearchResult | None = None
    pool: tuple[ScoredCandidate, ...] = ()
    rejected: tuple[RejectedCandidate, ...] = ()
    quality: QualityReport | None = None
    seed: str | None = None
    packs: tuple[PackSelection, ...] = ()
    warnings: tuple[str, ...] = ()
    completed_stages: tuple[str, ...] = ()


MAX_REPORTED_REJECTIONS = 100


@dataclass(slots=True)
class PipelineResult:
    """Hand-off to pack assembly: chosen scenario, window and ordered scored candidates."""

    source_id: str
    document_hash: str
    cache_key: str
    from_cache: bool
    language: str
    scenario: str
    seed: str
    skip_until_page_index: int
    state: PipelineState
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def from_state(cls, state: PipelineState) -> "PipelineResult":
        front_matter = state.front_matter
        return cls(
            source_id=state.request.source_id,
            document_hash=state.document_hash or "",
            cache_key=state.cache_key or "",
            from_cache=state.from_cache,
            language=state.language or "",
            scenario=state.scenario or "",
            seed=state.seed or "",
            skip_until_page_index=front_matter.skip_until_page_index if front_matter else 0,
            state=state,
            warnings=list(state.warnings),
        )

    def to_dict(self) -> dict[str, object]:
        state = self.state
        search = state.window_search
        extraction = state.extraction
        front_matter = state.front_matter
        return {
            "sourceId": self.source_id,
            "documentHash": self.document_hash,
            "cacheKey": self.cache_key,
            "fromCache": self.from_cache,
            "language": self.language,
            "scenario": self.scenario,
            "seed": self.seed,
            "extraction": {
                "pageCount": extraction.page_count if extraction else 0,
                "totalChars": extraction.total_chars if extraction else 0,
                "avgCharsPerPage": extraction.avg_chars_per_page if extraction else 0.0,
            },
            "frontMatter": {
                "skipUntilPageIndex": self.skip_until_page_index,
                "frontMatterPages": list(front_matter.evidence.front_matter_pages) if front_matter else [],
                "reasons": list(front_matter.evidence.reasons) if front_matter else [],
            },
            "normalizationActions": list(state.normalization.actions) if state.normalization else [],
            "scenarioRanking": state.discovery.ranking() if state.discovery else [],
            "bestWindow": search.best_window.summary().to_dict() if search and search.best_window else None,
            "topWindows": [window.summary().to_dict() for window in search.top_windows] if search else [],
            "candidates": [candidate.to_dict() for candidate in state.pool],
            "packs": [pack.to_dict() for pack in state.packs],
            "rejectedCandidates": [item.to_dict() for item in state.rejected[:MAX_REPORTED_REJECTIONS]],
            "rejectedCount": len(state.rejected),
            "quality": state.quality.to_dict() if state.quality else None,
            "warnings": list(self.warnings),
        }
