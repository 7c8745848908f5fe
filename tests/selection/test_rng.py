from __future__ import annotations

import hashlib

import pytest

from packforge.selection.rng import (
    DEFAULT_SEED_STATE,
    SeededRandom,
    assign_packs,
    derive_seed,
    document_hash,
)


def test_same_seed_same_stream() -> None:
    first = SeededRandom("a3f09c1d")
    second = SeededRandom("a3f09c1d")

    values = [first.next() for _ in range(50)]

    assert values == [second.next() for _ in range(50)]
    assert all(0.0 <= value < 1.0 for value in values)
    assert values != [SeededRandom("a3f09c1e").next() for _ in range(50)]


def test_first_value_matches_reference_mulberry32() -> None:
    assert SeededRandom("00000001").next() == pytest.approx(0.6270739405881613)


def test_zero_or_non_hex_seed_falls_back_to_default_state() -> None:
    fallback = [SeededRandom(format(DEFAULT_SEED_STATE, "x")).next() for _ in range(1)]

    assert [SeededRandom("00000000").next()] == fallback
    assert [SeededRandom("zzzz").next()] == fallback
    assert [SeededRandom("").next()] == fallback


def test_only_leading_hex_of_first_eight_chars_is_used() -> None:
    assert SeededRandom("abc-xyz").next() == SeededRandom("abc").next()
    assert SeededRandom("12345678ffff").next() == SeededRandom("12345678").next()


def test_shuffle_is_a_permutation_and_leaves_input_untouched() -> None:
    items = list(range(20))

    shuffled = SeededRandom("deadbeef").shuffle(items)

    assert sorted(shuffled) == items
    assert items == list(range(20))
    assert shuffled == SeededRandom("deadbeef").shuffle(items)
    assert SeededRandom("deadbeef").shuffle([]) == []


def test_choice() -> None:
    rng = SeededRandom("cafebabe")

    assert rng.choice(["only"]) == "only"
    with pytest.raises(IndexError):
        rng.choice([])


def test_derive_seed_is_stable_and_parameter_sensitive() -> None:
    doc = document_hash(b"%PDF-1.7 example bytes")
    seed = derive_seed(doc, "de", "work", "A1")

    expected = hashlib.sha256(f"{doc[:16]}-de-work-A1".encode("utf-8")).hexdigest()[:16]
    assert seed == expected
    assert len(seed) == 16
    assert derive_seed(doc, "de", "work", "A2") != seed
    assert derive_seed(doc, "de", "work", "A1", explicit_seed="manual") == "manual"


def test_assign_packs_fills_only_complete_groups() -> None:
    pool = [f"c{i:03d}" for i in range(1, 27)]

    groups = assign_packs(pool, 3, 12, SeededRandom("0badf00d"))

    assert len(groups) == 2
    assert sorted(groups[0]) == pool[:12]
    assert sorted(groups[1]) == pool[12:24]
    assert assign_packs(pool, 3, 12, SeededRandom("0badf00d")) == groups


def test_assign_packs_caps_at_requested_packs() -> None:
    pool = list(range(100))

    groups = assign_packs(pool, 2, 10, SeededRandom("1"))

    assert [sorted(group) for group in groups] == [list(range(10)), list(range(10, 20))]


def test_assign_packs_validates_arguments() -> None:
    with pytest.raises(ValueError):
        assign_packs([1, 2], 0, 1, SeededRandom("1"))
    with pytest.raises(ValueError):
        assign_packs([1, 2], 1, 0, SeededRandom("1"))
