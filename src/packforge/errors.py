"""Pipeline error taxonomy with stable machine-readable kinds."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ErrorKind(Enum):
    SCAN_UNSUPPORTED = "scan_unsupported"
    OCR_NOT_IMPLEMENTED = "ocr_not_implemented"
    UNSUPPORTED_DOCUMENT = "unsupported_document"
    EXTRACTION_FAILED = "extraction_failed"
    INVALID_PROFILE = "invalid_profile"
    NO_SCENARIO_FOUND = "no_scenario_found"
    UNKNOWN_SCENARIO = "unknown_scenario"
    NO_WINDOW_FOUND = "no_window_found"
    INSUFFICIENT_CANDIDATES = "insufficient_candidates"
    QUALITY_GATE_FAILED = "quality_gate_failed"


@dataclass(slots=True)
class PipelineError(Exception):
    """Fatal pipeline failure that calling tooling can branch on via ``kind``."""

    kind: ErrorKind
    message: str
    details: dict[str, object] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"

    def to_dict(self) -> dict[str, object]:
        return {"kind": self.kind.value, "message": self.message, "details": self.details}
