"""32-bit seeded PRNG (mulberry32) and pack assignment built on it.

All arithmetic is done on Python ints masked to 32 bits, so output is
identical on every platform. This is the only source of ordering randomness
in the pipeline.
"""

from __future__ import annotations

from collections.abc import Sequence
import hashlib
from typing import TypeVar

T = TypeVar("T")

DEFAULT_SEED_STATE = 12345
_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def _parse_seed(seed: str) -> int:
    """Leading hex digits of the first 8 characters; 0 or no digits fall back to the default."""

    prefix = seed[:8]
    digits = ""
    for char in prefix:
        if char not in "0123456789abcdefABCDEF":
            break
        digits += char
    value = int(digits, 16) if digits else 0
    return value or DEFAULT_SEED_STATE


class SeededRandom:
    def __init__(self, seed: str) -> None:
        self.seed = seed
        self._state = _parse_seed(seed)

    def next(self) -> float:
        """Return a float in [0, 1)."""

        self._state = (self._state + _INCREMENT) & _MASK32
        s = self._state
        t = _imul(s ^ (s >> 15), s | 1)
        t = ((t + _imul(t ^ (t >> 7), t | 61)) & _MASK32) ^ t
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("Cannot choose from an empty sequence")
        return items[int(self.next() * len(items))]

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Fisher-Yates on a copy; the input is left untouched."""

        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = int(self.next() * (i + 1))
            result[i], result[j] = result[j], result[i]
        return result


def document_hash(raw_bytes: bytes) -> str:
    return hashlib.sha256(raw_bytes).hexdigest()


def derive_seed(
    doc_hash: str,
    workspace: str,
    scenario: str,
    level: str,
    *,
    explicit_seed: str | None = None,
) -> str:
    """16 hex chars of SHA-256 over the document hash prefix and run parameters."""

    if explicit_seed:
        return explicit_seed
    seed_input = f"{doc_hash[:16]}-{workspace}-{scenario}-{level}"
    return hashlib.sha256(seed_input.encode("utf-8")).hexdigest()[:16]


def assign_packs(candidates: Sequence[T], packs: int, prompts_per_pack: int, rng: SeededRandom) -> list[list[T]]:
    """Slice the pool into consecutive full groups and shuffle each with the shared RNG.

    Only as many packs as the pool can fill completely are produced.
    """

    if packs < 1 or prompts_per_pack < 1:
        raise ValueError("packs and prompts_per_pack must be >= 1")

    count = min(packs, len(candidates) // prompts_per_pack)
    groups: list[list[T]] = []
    for index in range(count):
        start = index * prompts_per_pack
        groups.append(rng.shuffle(candidates[start : start + prompts_per_pack]))
    return groups
