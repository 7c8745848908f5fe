"""Hard and soft quality rules for candidate pools and packs."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import logging
import re

from packforge.errors import ErrorKind, PipelineError
from packforge.text.predicates import (
    has_concreteness_marker,
    is_all_caps,
    matches_token,
    normalize_for_matching,
)
from packforge.text.segmentation import Candidate

logger = logging.getLogger(__name__)

MIN_CONCRETE_CANDIDATES = 2
MIN_TOKEN_RATIO = 0.8
MIN_TOKENS_PER_CANDIDATE = 2

MIN_DIALOGUE_CHARS = 12
MAX_DIALOGUE_CHARS = 140
_CAPS_HEADING_MAX_CHARS = 50
_NUMBERED_ITEM_RE = re.compile(r"^\d+\.\s")
_PREVIEW_CHARS = 50


@dataclass(slots=True)
class QualityStats:
    candidates_with_scenario_tokens: int = 0
    candidates_with_concreteness: int = 0
    candidates_with_banned_phrases: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "candidatesWithScenarioTokens": self.candidates_with_scenario_tokens,
            "candidatesWithConcreteness": self.candidates_with_concreteness,
            "candidatesWithBannedPhrases": self.candidates_with_banned_phrases,
        }


@dataclass(slots=True)
class QualityReport:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: QualityStats = field(default_factory=QualityStats)

    def to_dict(self) -> dict[str, object]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "stats": self.stats.to_dict(),
        }


def contains_denylisted_phrase(text: str, denylist: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(phrase.lower() in lowered for phrase in denylist)


def count_scenario_tokens(text: str, tokens: Sequence[str]) -> int:
    """Number of scenario tokens present, matched the same way ``count_token_hits`` matches them."""

    normalized = normalize_for_matching(text)
    return sum(1 for token in tokens if matches_token(normalized, token))


def is_dialogue_like(candidate: Candidate) -> bool:
    """Reject headings, list items and segments outside the spoken-utterance length band."""

    text = candidate.text.strip()
    if not MIN_DIALOGUE_CHARS <= len(text) <= MAX_DIALOGUE_CHARS:
        return False
    if is_all_caps(text) and len(text) < _CAPS_HEADING_MAX_CHARS:
        return False
    return not _NUMBERED_ITEM_RE.match(text)


def _preview(text: str) -> str:
    return f'"{text[:_PREVIEW_CHARS]}..."'


def check_candidate_quality(
    candidates: Sequence[Candidate],
    scenario: str,
    tokens: Sequence[str],
    *,
    denylist: Sequence[str],
) -> QualityReport:
    """Evaluate a candidate set against the gate.

    Hard rules: no denylisted template phrase anywhere, and at least
    ``MIN_CONCRETE_CANDIDATES`` candidates with a concreteness marker.
    Soft rule: ``MIN_TOKEN_RATIO`` of candidates carry at least
    ``MIN_TOKENS_PER_CANDIDATE`` scenario tokens.
    """

    errors: list[str] = []
    warnings: list[str] = []
    stats = QualityStats()

    for candidate in candidates:
        if contains_denylisted_phrase(candidate.text, denylist):
            stats.candidates_with_banned_phrases += 1
            errors.append(f"Candidate {candidate.id} contains denylisted phrase: {_preview(candidate.text)}")

        token_count = count_scenario_tokens(candidate.text, tokens)
        if token_count >= MIN_TOKENS_PER_CANDIDATE:
            stats.candidates_with_scenario_tokens += 1
        elif token_count == 0 and tokens:
            warnings.append(f"Candidate {candidate.id} has no {scenario} tokens: {_preview(candidate.text)}")

        if has_concreteness_marker(candidate.text):
            stats.candidates_with_concreteness += 1

    if stats.candidates_with_concreteness < MIN_CONCRETE_CANDIDATES:
        errors.append(
            f"Only {stats.candidates_with_concreteness} candidate(s) have concreteness markers "
            f"(required: {MIN_CONCRETE_CANDIDATES})"
        )

    if tokens and candidates:
        ratio = stats.candidates_with_scenario_tokens / len(candidates)
        if ratio < MIN_TOKEN_RATIO:
            warnings.append(
                f"Only {ratio * 100:.1f}% of candidates have {MIN_TOKENS_PER_CANDIDATE}+ {scenario} tokens "
                f"(recommended: {MIN_TOKEN_RATIO * 100:.0f}%+, found: "
                f"{stats.candidates_with_scenario_tokens}/{len(candidates)})"
            )

    for warning in warnings:
        logger.warning("Quality warning: %s", warning)

    return QualityReport(valid=not errors, errors=errors, warnings=warnings, stats=stats)


def assert_quality(report: QualityReport, *, context: str = "candidate pool") -> None:
    """Raise ``quality_gate_failed`` listing every violated hard rule."""

    if report.valid:
        return
    raise PipelineError(
        ErrorKind.QUALITY_GATE_FAILED,
        f"Quality gate failed for {context}: " + "; ".join(report.errors),
        {"errors": list(report.errors), "warnings": list(report.warnings), "stats": report.stats.to_dict()},
    )
