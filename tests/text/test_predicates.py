from __future__ import annotations

import pytest

from packforge.text.predicates import (
    count_concreteness_markers,
    has_concreteness_marker,
    is_all_caps,
    is_heading_like,
    matches_token,
    normalize_for_matching,
)


def test_normalize_maps_umlauts_and_is_idempotent() -> None:
    assert normalize_for_matching("Büro") == "buero"
    assert normalize_for_matching("Straße, GRÖßE!") == "strasse groesse"
    once = normalize_for_matching("  Vorstellungsgespräch:   Wann?  ")
    assert once == "vorstellungsgespraech wann"
    assert normalize_for_matching(once) == once


def test_umlaut_and_transliterated_forms_match_each_other() -> None:
    assert matches_token(normalize_for_matching("Ich gehe ins Buero."), "büro")
    assert matches_token(normalize_for_matching("Ich gehe ins Büro."), "buero")


def test_single_word_tokens_respect_word_boundaries() -> None:
    text = normalize_for_matching("Das Teamwork im Betrieb ist gut.")

    assert not matches_token(text, "team")
    assert matches_token(normalize_for_matching("Unser Team ist klein."), "team")


def test_phrase_tokens_allow_bounded_gaps_in_order() -> None:
    near = normalize_for_matching("Ich möchte einen Termin beim Arzt vereinbaren.")
    far = normalize_for_matching("Termin " + "sehr " * 15 + "vereinbaren")
    reversed_order = normalize_for_matching("Vereinbaren wir einen Termin.")

    assert matches_token(near, "termin vereinbaren")
    assert not matches_token(far, "termin vereinbaren")
    assert not matches_token(reversed_order, "termin vereinbaren")


def test_empty_token_never_matches() -> None:
    assert not matches_token("irgendein text", "!!!")


@pytest.mark.parametrize(
    "line",
    [
        "Kapitel 3",
        "EINLEITUNG UND ÜBERSICHT.",
        "Die Arbeit im Team",
        "Chapter 7: The Office.",
    ],
)
def test_heading_like_lines(line: str) -> None:
    assert is_heading_like(line)


@pytest.mark.parametrize(
    "line",
    [
        "Ich habe morgen um 9:30 eine Besprechung.",
        "Wo ist das Büro?",
        "",
    ],
)
def test_not_heading_like_lines(line: str) -> None:
    assert not is_heading_like(line)


def test_is_all_caps_requires_letters_and_length() -> None:
    assert is_all_caps("KAPITEL")
    assert not is_all_caps("ABC")
    assert not is_all_caps("12345")
    assert not is_all_caps("Kapitel")


def test_concreteness_markers_count_each_kind_once() -> None:
    assert count_concreteness_markers("Am Montag um 9:30 kostet es 12 €.") == 4
    assert count_concreteness_markers("Zimmer 12 und 14") == 1
    assert count_concreteness_markers("Ein ganz normaler Satz.") == 0
    assert has_concreteness_marker("Bis Freitag!")
