"""Scenario-aware scoring of a single candidate."""

from __future__ import annotations

from collections.abc import Collection, Sequence
import re

from packforge.scoring.models import ScoreBreakdown
from packforge.text.predicates import (
    count_concreteness_markers,
    is_heading_like,
    matches_token,
    normalize_for_matching,
)
from packforge.text.segmentation import Candidate

TOKEN_HIT_POINTS = 5
STRONG_TOKEN_POINTS = 3
SPEAKER_LINE_BONUS = 3
QUESTION_BONUS = 2
PRONOUN_BONUS = 2
HEADING_PENALTY = -5
LENGTH_PENALTY = -3
MIN_SCORED_LENGTH = 35
MAX_SCORED_LENGTH = 200

_PRONOUNS = {
    "de": ("ich", "wir", "sie", "du", "ihr", "er", "es"),
    "en": ("i", "we", "you", "he", "she", "they", "it"),
}
_PRONOUN_RES = {
    language: re.compile(r"\b(" + "|".join(words) + r")\b", re.IGNORECASE)
    for language, words in _PRONOUNS.items()
}


def count_token_hits(
    text: str,
    tokens: Sequence[str],
    strong_tokens: Collection[str] = (),
) -> tuple[int, int, list[str]]:
    """Return (hits, strong hits, matched tokens in dictionary order)."""

    normalized = normalize_for_matching(text)
    matched = [token for token in tokens if matches_token(normalized, token)]
    strong_hits = sum(1 for token in matched if token in strong_tokens)
    return len(matched), strong_hits, matched


def is_qualified(score: ScoreBreakdown, min_scenario_hits: int) -> bool:
    """Enough token hits, or a single hit backed by a strong token."""

    return score.scenario_token_hits >= min_scenario_hits or (
        score.scenario_token_hits >= 1 and score.strong_token_hits > 0
    )


def _dialogue_bonus(text: str, language: str) -> tuple[int, str | None]:
    if ":" in text:
        return SPEAKER_LINE_BONUS, "dialogue pattern (speaker line)"
    if "?" in text:
        return QUESTION_BONUS, "question pattern"
    pronoun_re = _PRONOUN_RES.get(language, _PRONOUN_RES["en"])
    if pronoun_re.search(text):
        return PRONOUN_BONUS, "pronoun usage (dialogue-like)"
    return 0, None


def score_candidate(
    candidate: Candidate,
    tokens: Sequence[str],
    *,
    language: str = "de",
    min_scenario_hits: int = 2,
    strong_tokens: Collection[str] = (),
) -> ScoreBreakdown:
    """Score a candidate against one scenario dictionary.

    ``min_scenario_hits`` does not affect the score; it is accepted so every
    call site passes the same parameters.
    """

    del min_scenario_hits
    reasons: list[str] = []
    text = candidate.text

    hits, strong_hits, matched = count_token_hits(text, tokens, strong_tokens)
    total = hits * TOKEN_HIT_POINTS + strong_hits * STRONG_TOKEN_POINTS
    if hits > 0:
        reasons.append(f"{hits} scenario token(s)")
        if strong_hits > 0:
            reasons.append(f"{strong_hits} strong token(s)")

    dialogue_bonus, dialogue_reason = _dialogue_bonus(text, language)
    total += dialogue_bonus
    if dialogue_reason:
        reasons.append(dialogue_reason)

    concreteness = count_concreteness_markers(text)
    total += concreteness
    if concreteness > 0:
        reasons.append(f"{concreteness} concreteness marker(s)")

    heading_penalty = 0
    if is_heading_like(text):
        heading_penalty = HEADING_PENALTY
        total += heading_penalty
        reasons.append("heading-like (penalty)")

    length_penalty = 0
    if candidate.char_count < MIN_SCORED_LENGTH:
        length_penalty = LENGTH_PENALTY
        reasons.append("too short (penalty)")
    elif candidate.char_count > MAX_SCORED_LENGTH:
        length_penalty = LENGTH_PENALTY
        reasons.append("too long (penalty)")
    total += length_penalty

    return ScoreBreakdown(
        total_score=float(total),
        scenario_token_hits=hits,
        strong_token_hits=strong_hits,
        dialogue_bonus=float(dialogue_bonus),
        concreteness_bonus=float(concreteness),
        heading_penalty=float(heading_penalty),
        length_penalty=float(length_penalty),
        matched_tokens=tuple(matched),
        reasons=tuple(reasons),
    )
