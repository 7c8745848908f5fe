"""Pipeline stages in execution order.

Each stage takes the current ``PipelineState`` plus shared resources and
returns an updated copy. Stage boundaries are the only checkpoints: a stage
either completes or raises ``PipelineError``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
import hashlib
import logging
import math

from packforge.config import PipelineSettings
from packforge.errors import ErrorKind, PipelineError
from packforge.ingestion.cache import ExtractionCache, compute_cache_key
from packforge.ingestion.language_detection import detect_document_language
from packforge.pipeline.state import AUTO_SCENARIO, PackSelection, PipelineState, RejectedCandidate
from packforge.profiles import IngestionProfile, is_preferred_page, should_reject_candidate, should_skip_page
from packforge.scoring.catalog import ScenarioCatalog
from packforge.scoring.discovery import choose_scenario, discover_scenarios
from packforge.scoring.models import ScoredCandidate
from packforge.scoring.quality import (
    QualityReport,
    assert_quality,
    check_candidate_quality,
    contains_denylisted_phrase,
    is_dialogue_like,
)
from packforge.scoring.window_search import find_best_windows
from packforge.selection.rng import SeededRandom, assign_packs, derive_seed, document_hash
from packforge.text.front_matter import FrontMatterEvidence, FrontMatterResult, detect_front_matter
from packforge.text.normalization import normalize_document, normalize_pages
from packforge.text.segmentation import (
    assign_page_indices,
    segment_pages,
    segment_text,
    validate_segmentation,
)

logger = logging.getLogger(__name__)

TOP_WINDOWS = 5
MIN_POOL_RATIO = 0.8
PER_PAGE_TEXT_MIN_CHARS = 100
_REJECTED_TEXT_CHARS = 100


@dataclass(frozen=True, slots=True)
class StageContext:
    """Process-wide collaborators shared by every stage of a run."""

    settings: PipelineSettings
    catalog: ScenarioCatalog
    cache: ExtractionCache


Stage = Callable[[PipelineState, StageContext], PipelineState]


def _evidence_details(state: PipelineState) -> dict[str, object]:
    search = state.window_search
    return {
        "scenario": state.scenario,
        "scenarioRanking": state.discovery.ranking() if state.discovery else [],
        "bestWindow": search.best_window.summary().to_dict() if search and search.best_window else None,
    }


def extract_stage(state: PipelineState, context: StageContext) -> PipelineState:
    request = state.request
    try:
        raw_bytes = request.source_path.read_bytes()
    except OSError as exc:
        raise PipelineError(
            ErrorKind.EXTRACTION_FAILED,
            f"Failed to read source file: {exc}",
            {"source": str(request.source_path)},
        ) from exc

    cache_key = compute_cache_key(raw_bytes, context.cache.version)
    outcome = context.cache.extract_and_cache(
        request.source_path,
        request.source_id,
        use_cache=request.use_cache,
        cache_key=cache_key,
        ocr_enabled=request.ocr_enabled,
    )
    extraction = outcome.extraction
    logger.info(
        "Extracted %s characters from %s page(s)%s",
        extraction.total_chars,
        extraction.page_count,
        " (cached)" if outcome.from_cache else "",
    )

    language = request.language or (state.profile.language if state.profile else None)
    if language is None:
        language = detect_document_language(extraction.pages)

    return replace(
        state,
        document_hash=document_hash(raw_bytes),
        cache_key=outcome.cache_key,
        from_cache=outcome.from_cache,
        extraction=extraction,
        language=language,
        pages=tuple(extraction.pages),
        warnings=state.warnings + tuple(extraction.warnings),
    )


def front_matter_stage(state: PipelineState, context: StageContext) -> PipelineState:
    if not state.request.skip_front_matter:
        return replace(state, front_matter=FrontMatterResult(0, FrontMatterEvidence()))

    result = detect_front_matter(list(state.pages), context.settings.front_matter_max_pages)
    skip = result.skip_until_page_index
    if skip > 0:
        logger.info("Skipping %s front matter page(s)", skip)
    else:
        logger.info("No front matter detected")
    return replace(state, front_matter=result, pages=state.pages[skip:])


def page_filter_stage(state: PipelineState, context: StageContext) -> PipelineState:
    profile = state.profile
    if profile is None:
        return state

    pages = tuple(page for page in state.pages if not should_skip_page(page.page_number - 1, profile))
    if len(pages) < len(state.pages):
        logger.info("Profile skipped %s page(s)", len(state.pages) - len(pages))

    preferred = tuple(page for page in pages if is_preferred_page(page.page_number - 1, profile))
    if preferred and len(preferred) < len(pages):
        logger.info("Profile restricted search to %s preferred page(s)", len(preferred))
        pages = preferred
    return replace(state, pages=pages)


def normalize_stage(state: PipelineState, context: StageContext) -> PipelineState:
    pages = list(state.pages)
    page_aware = len(pages) > 1 and any(len(page.text.strip()) > PER_PAGE_TEXT_MIN_CHARS for page in pages)

    if page_aware:
        normalized_pages, result = normalize_pages(pages)
    else:
        result = normalize_document(pages)
        normalized_pages = []
    logger.info("Normalized %s page(s) (%s)", len(pages), "per page" if page_aware else "whole document")

    return replace(
        state,
        normalization=result,
        normalized_pages=tuple(normalized_pages),
        page_aware=page_aware,
    )


def segment_stage(state: PipelineState, context: StageContext) -> PipelineState:
    if state.page_aware:
        segmentation = segment_pages(list(state.normalized_pages))
        candidates = segmentation.candidates
    else:
        text = state.normalization.normalized_text if state.normalization else ""
        segmentation = segment_text(text)
        offset = state.pages[0].page_number - 1 if state.pages else 0
        candidates = assign_page_indices(segmentation.candidates, text, len(state.pages), page_offset=offset)

    warnings = state.warnings
    for problem in validate_segmentation(segmentation, state.request.required_count):
        logger.warning("Segmentation: %s", problem)
        warnings += (problem,)

    logger.info("Found %s candidate(s)", len(candidates))
    return replace(state, segmentation=segmentation, candidates=tuple(candidates), warnings=warnings)


def discover_stage(state: PipelineState, context: StageContext) -> PipelineState:
    requested = state.request.scenario
    if requested != AUTO_SCENARIO:
        if requested not in context.catalog:
            raise PipelineError(
                ErrorKind.UNKNOWN_SCENARIO,
                f"Unknown scenario {requested!r}",
                {"knownScenarios": list(context.catalog.names)},
            )
        return replace(state, scenario=requested)

    discovery = discover_scenarios(
        list(state.pages),
        list(state.candidates),
        context.catalog,
        language=state.language or "de",
        min_scenario_hits=state.min_scenario_hits,
        window_size_pages=state.window_size_pages,
    )
    preferred = state.profile.default_scenarios if state.profile else ()
    scenario = choose_scenario(discovery, preferred)
    logger.info("Chose scenario %s (top ranked: %s)", scenario, ", ".join(discovery.ranked_scenarios[:5]))
    return replace(state, discovery=discovery, scenario=scenario)


def window_search_stage(state: PipelineState, context: StageContext) -> PipelineState:
    dictionary = context.catalog.get(state.scenario or "")
    anchors = state.profile.anchors if state.profile else ()

    search = find_best_windows(
        list(state.pages),
        list(state.candidates),
        dictionary.tokens,
        anchors=anchors,
        window_size_pages=state.window_size_pages,
        min_scenario_hits=state.min_scenario_hits,
        language=state.language or "de",
        top_n=TOP_WINDOWS,
        strong_tokens=dictionary.strong_tokens,
    )
    state = replace(state, window_search=search)

    best = search.best_window
    if best is None:
        raise PipelineError(
            ErrorKind.NO_WINDOW_FOUND,
            f"No suitable window found for scenario {state.scenario!r}: "
            f"{len(state.pages)} page(s) for a {state.window_size_pages}-page window",
            _evidence_details(state),
        )

    warnings = state.warnings
    if anchors:
        if best.anchor_hits == 0:
            message = f"Best window has 0 anchor hits (profile anchors: {', '.join(anchors)})"
            logger.warning("%s", message)
            warnings += (message,)
        else:
            logger.info("Anchor hits: %s/%s", best.anchor_hits, len(anchors))

    logger.info(
        "Best window: pages %s-%s, %s qualified candidate(s)",
        best.start_page,
        best.end_page,
        best.qualified_candidates,
    )
    return replace(state, warnings=warnings)


def rejection_reason(
    candidate: ScoredCandidate,
    profile: IngestionProfile | None,
    denylist: Sequence[str],
) -> str | None:
    if profile is not None and should_reject_candidate(candidate.text, profile):
        return "Rejected by profile rejectSections"
    if not is_dialogue_like(candidate.candidate):
        return "Not dialogue-like (heading/front matter)"
    if contains_denylisted_phrase(candidate.text, denylist):
        return "Contains denylisted phrase"
    return None


def filter_candidates(
    candidates: Sequence[ScoredCandidate],
    profile: IngestionProfile | None,
    denylist: Sequence[str],
) -> tuple[list[ScoredCandidate], list[RejectedCandidate]]:
    """Split window candidates into a pool ordered by score (stable) and recorded rejections."""

    pool: list[ScoredCandidate] = []
    rejected: list[RejectedCandidate] = []
    for candidate in candidates:
        reason = rejection_reason(candidate, profile, denylist)
        if reason is None:
            pool.append(candidate)
            continue
        rejected.append(
            RejectedCandidate(
                text_hash=hashlib.sha256(candidate.text.encode("utf-8")).hexdigest()[:8],
                text=candidate.text[:_REJECTED_TEXT_CHARS],
                reason=reason,
                page_index=candidate.page_index,
            )
        )

    pool.sort(key=lambda item: -item.score.total_score)
    return pool, rejected


def candidate_filter_stage(state: PipelineState, context: StageContext) -> PipelineState:
    best = state.window_search.best_window if state.window_search else None
    if best is None:
        return state

    pool, rejected = filter_candidates(best.candidates, state.profile, context.catalog.denylist)
    logger.info("Kept %s candidate(s), rejected %s", len(pool), len(rejected))

    state = replace(state, pool=tuple(pool), rejected=tuple(rejected))
    minimum = math.ceil(state.request.required_count * MIN_POOL_RATIO)
    if len(pool) < minimum:
        details = _evidence_details(state)
        details.update({"available": len(pool), "minimumRequired": minimum})
        raise PipelineError(
            ErrorKind.INSUFFICIENT_CANDIDATES,
            f"Insufficient qualified candidates for scenario {state.scenario!r}: "
            f"{len(pool)} (need at least {minimum}); try another scenario, window size or mine more tokens",
            details,
        )
    return state


def _gate(candidates: list[ScoredCandidate], state: PipelineState, context: StageContext) -> QualityReport:
    dictionary = context.catalog.get(state.scenario or "")
    return check_candidate_quality(
        [item.candidate for item in candidates],
        dictionary.name,
        dictionary.tokens,
        denylist=context.catalog.denylist,
    )


def quality_gate_stage(state: PipelineState, context: StageContext) -> PipelineState:
    report = _gate(list(state.pool), state, context)
    assert_quality(report)
    return replace(state, quality=report, warnings=state.warnings + tuple(report.warnings))


def select_stage(state: PipelineState, context: StageContext) -> PipelineState:
    request = state.request
    seed = derive_seed(
        state.document_hash or "",
        request.workspace,
        request.scenario,
        request.level,
        explicit_seed=request.seed,
    )
    rng = SeededRandom(seed)
    groups = assign_packs(list(state.pool), request.packs, request.prompts_per_pack, rng)

    packs: list[PackSelection] = []
    for index, group in enumerate(groups, start=1):
        report = _gate(group, state, context)
        assert_quality(report, context=f"pack {index}")
        packs.append(PackSelection(index=index, candidates=tuple(group), quality=report))

    warnings = state.warnings
    if len(packs) < request.packs:
        message = f"Only {len(packs)} of {request.packs} pack(s) could be filled"
        logger.warning("%s", message)
        warnings += (message,)

    logger.info("Selected %s pack(s) with seed %s", len(packs), seed)
    return replace(state, seed=seed, packs=tuple(packs), warnings=warnings)


STAGES: tuple[tuple[str, Stage], ...] = (
    ("extract", extract_stage),
    ("front_matter", front_matter_stage),
    ("page_filter", page_filter_stage),
    ("normalize", normalize_stage),
    ("segment", segment_stage),
    ("discover", discover_stage),
    ("window_search", window_search_stage),
    ("candidate_filter", candidate_filter_stage),
    ("quality_gate", quality_gate_stage),
    ("select", select_stage),
)
STAGE_NAMES = tuple(name for name, _ in STAGES)
