"""Run the ordered stage list against one request."""

from __future__ import annotations

from dataclasses import replace
import logging
import re
from pathlib import Path

from packforge.config import PipelineSettings
from packforge.ingestion.cache import ExtractionCache
from packforge.pipeline.stages import STAGE_NAMES, STAGES, Stage, StageContext
from packforge.pipeline.state import PipelineRequest, PipelineResult, PipelineState
from packforge.profiles import IngestionProfile, load_profile, load_profile_from_path
from packforge.scoring.catalog import ScenarioCatalog, load_default_catalog

logger = logging.getLogger(__name__)

_SOURCE_ID_RE = re.compile(r"[^a-zA-Z0-9]")


def default_source_id(path: str | Path) -> str:
    return _SOURCE_ID_RE.sub("-", Path(path).stem)


class Pipeline:
    """Deterministic extraction-and-selection pipeline.

    Collaborators are created once and shared by every run: the scenario
    catalog is immutable and the cache only touches files under its root.
    """

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        *,
        catalog: ScenarioCatalog | None = None,
        cache: ExtractionCache | None = None,
        stages: tuple[tuple[str, Stage], ...] = STAGES,
    ) -> None:
        self._settings = settings or PipelineSettings()
        if catalog is None:
            scenarios_file = self._settings.scenarios_file
            catalog = ScenarioCatalog.from_file(scenarios_file) if scenarios_file else load_default_catalog()
        self._context = StageContext(
            settings=self._settings,
            catalog=catalog,
            cache=cache or ExtractionCache(self._settings.cache_dir),
        )
        self._stages = stages

    @property
    def settings(self) -> PipelineSettings:
        return self._settings

    @property
    def catalog(self) -> ScenarioCatalog:
        return self._context.catalog

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._stages)

    def _load_profile(self, request: PipelineRequest) -> IngestionProfile | None:
        if request.profile_path is not None:
            profile = load_profile_from_path(request.profile_path)
            logger.info("Loaded profile from %s", request.profile_path)
            return profile

        profile = load_profile(request.source_id, self._settings.profiles_dir)
        if profile is None:
            logger.info("No profile for source %s, using defaults", request.source_id)
        return profile

    def initial_state(self, request: PipelineRequest) -> PipelineState:
        """Resolve per-run parameters: request flags, then profile, then settings."""

        profile = self._load_profile(request)
        window_size = request.window_size_pages or (profile.window_size_pages if profile else None)
        min_hits = request.min_scenario_hits or (profile.min_scenario_hits if profile else None)
        return PipelineState(
            request=request,
            profile=profile,
            window_size_pages=window_size or self._settings.window_size_pages,
            min_scenario_hits=min_hits or self._settings.min_scenario_hits,
        )

    def run(self, request: PipelineRequest, *, until: str | None = None) -> PipelineState:
        """Run stages in order, stopping after ``until`` when given."""

        if until is not None and until not in self.stage_names:
            raise ValueError(f"Unknown stage {until!r}; expected one of: {', '.join(self.stage_names)}")

        state = self.initial_state(request)
        for name, stage in self._stages:
            logger.info("Stage %s", name)
            state = stage(state, self._context)
            state = replace(state, completed_stages=state.completed_stages + (name,))
            if name == until:
                break
        return state

    def execute(self, request: PipelineRequest) -> PipelineResult:
        return PipelineResult.from_state(self.run(request))
