"""Explicit ordered stage pipeline from source document to selected packs."""

from .runner import Pipeline, default_source_id
from .stages import STAGE_NAMES, STAGES, StageContext
from .state import PackSelection, PipelineRequest, PipelineResult, PipelineState, RejectedCandidate

__all__ = [
    "STAGES",
    "STAGE_NAMES",
    "PackSelection",
    "Pipeline",
    "PipelineRequest",
    "PipelineResult",
    "PipelineState",
    "RejectedCandidate",
    "StageContext",
    "default_source_id",
]
