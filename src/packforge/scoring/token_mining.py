"""Mine n-gram suggestions for scenario dictionaries from window candidates.

Dev-time helper: output is reviewed by a human before any token is added to
the catalog. Deterministic for a fixed candidate list.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
import logging
import math
import re
from typing import Literal

from razdel import tokenize

from packforge.text.predicates import (
    count_concreteness_markers,
    is_heading_like,
    matches_token,
    normalize_for_matching,
)
from packforge.text.segmentation import Candidate

logger = logging.getLogger(__name__)

TokenStrength = Literal["strong", "medium", "weak"]

DEFAULT_MAX_PHRASE_LEN = 3
DEFAULT_MIN_FREQ = 5
DEFAULT_TOP_N = 50
MIN_SUGGESTION_SCORE = 2.0
STRONG_SCORE = 7.0
MEDIUM_SCORE = 4.0
MIN_TOKEN_CHARS = 3
MAX_EXAMPLES = 3
_EXAMPLE_CHARS = 150

_DIALOGUE_MARKER_RE = re.compile(r"[\"'„“«]|:\s*[A-ZÄÖÜ]|[?!]")
_NUMERIC_RE = re.compile(r"^\d+$")


@dataclass(frozen=True, slots=True)
class TokenSuggestion:
    token: str
    frequency: int
    score: float
    dialogue_bonus: float
    concreteness_bonus: float
    heading_penalty: float
    phrase_bonus: float
    strength: TokenStrength
    reason: str
    examples: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "token": self.token,
            "frequency": self.frequency,
            "score": round(self.score, 4),
            "dialogueBonus": self.dialogue_bonus,
            "concretenessBonus": self.concreteness_bonus,
            "headingPenalty": self.heading_penalty,
            "phraseBonus": self.phrase_bonus,
            "strength": self.strength,
            "reason": self.reason,
            "examples": list(self.examples),
        }


@dataclass(slots=True)
class _TokenEvidence:
    count: int = 0
    texts: list[str] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)


def _words(text: str) -> list[str]:
    normalized = normalize_for_matching(text)
    return [token.text for token in tokenize(normalized) if token.text.strip()]


def extract_ngrams(text: str, n: int) -> list[str]:
    words = _words(text)
    ngrams = (" ".join(words[i : i + n]) for i in range(len(words) - n + 1))
    return [ngram for ngram in ngrams if len(ngram) >= MIN_TOKEN_CHARS]


def should_exclude_token(
    token: str,
    *,
    stopwords: Collection[str],
    existing_tokens: Collection[str],
    denylist: Sequence[str],
) -> bool:
    """Stopwords, short or numeric tokens, denylisted phrases and known tokens are excluded.

    ``existing_tokens`` must already be passed through ``normalize_for_matching``.
    """

    normalized = normalize_for_matching(token)
    if normalized in stopwords or token.lower() in stopwords:
        return True
    if len(normalized) < MIN_TOKEN_CHARS or _NUMERIC_RE.match(normalized):
        return True
    lowered = token.lower()
    if any(phrase.lower() in lowered for phrase in denylist):
        return True
    return normalized in existing_tokens


def determine_strength(score: float) -> TokenStrength:
    if score >= STRONG_SCORE:
        return "strong"
    if score >= MEDIUM_SCORE:
        return "medium"
    return "weak"


def determine_reason(dialogue_bonus: float, concreteness_bonus: float, phrase_bonus: float, frequency: int) -> str:
    if dialogue_bonus > 0 and frequency >= 5:
        return "freq+dialogue"
    if phrase_bonus > 0:
        return "phrase"
    if concreteness_bonus > 0:
        return "concreteness"
    return "freq"


def _score_token(token: str, evidence: _TokenEvidence) -> TokenSuggestion:
    containing = [text for text in evidence.texts if matches_token(normalize_for_matching(text), token)]

    dialogue_bonus = 2.0 if any(_DIALOGUE_MARKER_RE.search(text) for text in containing) else 0.0
    concreteness_bonus = 1.5 if any(count_concreteness_markers(text) for text in containing) else 0.0
    heading_penalty = 3.0 if any(is_heading_like(text) for text in containing) else 0.0
    phrase_bonus = 1.0 if len(token.split()) >= 2 else 0.0

    raw = math.log(evidence.count + 1) * 2 + dialogue_bonus + concreteness_bonus - heading_penalty + phrase_bonus
    score = max(0.0, raw)
    return TokenSuggestion(
        token=token,
        frequency=evidence.count,
        score=score,
        dialogue_bonus=dialogue_bonus,
        concreteness_bonus=concreteness_bonus,
        heading_penalty=heading_penalty,
        phrase_bonus=phrase_bonus,
        strength=determine_strength(score),
        reason=determine_reason(dialogue_bonus, concreteness_bonus, phrase_bonus, evidence.count),
        examples=tuple(evidence.examples),
    )


def mine_tokens(
    candidates: Sequence[Candidate],
    *,
    existing_tokens: Sequence[str],
    stopwords: Collection[str],
    denylist: Sequence[str] = (),
    max_phrase_len: int = DEFAULT_MAX_PHRASE_LEN,
    min_freq: int = DEFAULT_MIN_FREQ,
    top_n: int = DEFAULT_TOP_N,
) -> list[TokenSuggestion]:
    """Return the ``top_n`` highest-scoring n-grams seen at least ``min_freq`` times."""

    known = {normalize_for_matching(token) for token in existing_tokens}
    evidence: dict[str, _TokenEvidence] = {}

    for candidate in candidates:
        for n in range(1, max_phrase_len + 1):
            for ngram in extract_ngrams(candidate.text, n):
                if should_exclude_token(ngram, stopwords=stopwords, existing_tokens=known, denylist=denylist):
                    continue
                entry = evidence.setdefault(ngram, _TokenEvidence())
                entry.count += 1
                entry.texts.append(candidate.text)
                example = candidate.text[:_EXAMPLE_CHARS]
                if len(entry.examples) < MAX_EXAMPLES and example not in entry.examples:
                    entry.examples.append(example)

    suggestions = [
        _score_token(token, entry) for token, entry in evidence.items() if entry.count >= min_freq
    ]
    suggestions.sort(key=lambda item: -item.score)
    logger.info(
        "Mined %s token(s) from %s candidate(s); keeping top %s",
        len(suggestions),
        len(candidates),
        top_n,
    )
    return suggestions[:top_n]


def suggest_additions(
    suggestions: Sequence[TokenSuggestion],
    *,
    min_score: float = MIN_SUGGESTION_SCORE,
) -> list[TokenSuggestion]:
    return [item for item in suggestions if item.score >= min_score]
