from __future__ import annotations

import json
from pathlib import Path

import pytest

from packforge.errors import ErrorKind, PipelineError
from packforge.pipeline import STAGE_NAMES, Pipeline, PipelineRequest, default_source_id
from packforge.selection.rng import derive_seed, document_hash


def _request(source: Path, **overrides) -> PipelineRequest:
    values = dict(
        source_path=source,
        source_id=default_source_id(source),
        level="A1",
        packs=2,
        prompts_per_pack=4,
        language="de",
    )
    values.update(overrides)
    return PipelineRequest(**values)


def test_default_source_id_replaces_non_alphanumerics() -> None:
    assert default_source_id(Path("books/Deutsch im Büro_A1.pdf")) == "Deutsch-im-B-ro-A1"


def test_work_document_end_to_end(settings, work_document: Path) -> None:
    result = Pipeline(settings).execute(_request(work_document))
    payload = result.to_dict()

    assert result.scenario == "work"
    assert payload["scenarioRanking"][0]["scenario"] == "work"
    best = payload["bestWindow"]
    assert (best["startPage"], best["endPage"]) == (11, 20)
    assert 10 <= best["endPage"] - best["startPage"] + 1 <= 15
    assert best["qualifiedCandidates"] >= 8
    assert payload["frontMatter"]["skipUntilPageIndex"] == 0
    assert payload["extraction"]["pageCount"] == 30
    assert payload["fromCache"] is False
    assert payload["quality"]["valid"] is True
    assert len(payload["candidates"]) == 50
    scores = [item["score"]["totalScore"] for item in payload["candidates"]]
    assert scores == sorted(scores, reverse=True)
    assert all(10 <= item["pageIndex"] <= 19 for item in payload["candidates"])

    assert [pack["index"] for pack in payload["packs"]] == [1, 2]
    assert all(len(pack["candidates"]) == 4 for pack in payload["packs"])
    assert all(pack["quality"]["valid"] for pack in payload["packs"])
    first_pack_ids = {item["id"] for item in payload["packs"][0]["candidates"]}
    assert first_pack_ids == {item["id"] for item in payload["candidates"][:4]}
    json.dumps(payload)


def test_runs_are_deterministic_and_second_run_hits_cache(settings, work_document: Path) -> None:
    pipeline = Pipeline(settings)

    first = pipeline.execute(_request(work_document))
    second = pipeline.execute(_request(work_document))

    assert second.from_cache is True
    assert first.seed == second.seed
    assert first.to_dict()["packs"] == second.to_dict()["packs"]
    assert first.to_dict()["candidates"] == second.to_dict()["candidates"]


def test_seed_is_derived_from_document_and_request(settings, work_document: Path) -> None:
    result = Pipeline(settings).execute(_request(work_document))

    expected = derive_seed(document_hash(work_document.read_bytes()), "de", "auto", "A1")
    assert result.seed == expected
    assert result.document_hash == document_hash(work_document.read_bytes())


def test_explicit_seed_wins(settings, work_document: Path) -> None:
    result = Pipeline(settings).execute(_request(work_document, seed="00c0ffee", use_cache=False))

    assert result.seed == "00c0ffee"
    assert result.from_cache is False


def test_partial_run_stops_after_named_stage(settings, work_document: Path) -> None:
    state = Pipeline(settings).run(_request(work_document), until="segment")

    assert state.completed_stages == STAGE_NAMES[: STAGE_NAMES.index("segment") + 1]
    assert state.page_aware is True
    assert len(state.candidates) == 30 * 5
    assert state.scenario is None
    assert state.packs == ()


def test_unknown_stage_name_is_rejected(settings, work_document: Path) -> None:
    with pytest.raises(ValueError, match="Unknown stage"):
        Pipeline(settings).run(_request(work_document), until="publish")


def test_unknown_explicit_scenario(settings, work_document: Path) -> None:
    with pytest.raises(PipelineError) as excinfo:
        Pipeline(settings).execute(_request(work_document, scenario="space_travel"))

    assert excinfo.value.kind is ErrorKind.UNKNOWN_SCENARIO
    assert "work" in excinfo.value.details["knownScenarios"]


def test_explicit_scenario_skips_discovery(settings, work_document: Path) -> None:
    state = Pipeline(settings).run(_request(work_document, scenario="work"), until="window_search")

    assert state.discovery is None
    assert state.scenario == "work"
    assert state.window_search.best_window.start_page == 11


def test_window_larger_than_document(settings, work_document: Path) -> None:
    with pytest.raises(PipelineError) as excinfo:
        Pipeline(settings).execute(_request(work_document, window_size_pages=40))

    assert excinfo.value.kind is ErrorKind.NO_WINDOW_FOUND
    assert excinfo.value.details["scenario"] == "work"
    assert excinfo.value.details["bestWindow"] is None


def test_insufficient_candidates_reports_evidence(settings, work_document: Path) -> None:
    with pytest.raises(PipelineError) as excinfo:
        Pipeline(settings).execute(_request(work_document, packs=10, prompts_per_pack=12))

    error = excinfo.value
    assert error.kind is ErrorKind.INSUFFICIENT_CANDIDATES
    assert error.details["available"] == 50
    assert error.details["minimumRequired"] == 96
    assert error.details["bestWindow"]["startPage"] == 11
    assert error.details["scenarioRanking"][0]["scenario"] == "work"


def test_front_matter_pages_are_skipped(settings, write_pages, page_texts: list[str]) -> None:
    page_texts[0] = "Inhalt\nKapitel 1 Im Büro\nKapitel 2 Im Restaurant\nKapitel 3 Beim Arzt\nKapitel 4 Auf Reisen"
    source = write_pages(page_texts, name="with-toc.txt")

    result = Pipeline(settings).execute(_request(source))
    payload = result.to_dict()

    assert payload["frontMatter"]["skipUntilPageIndex"] == 1
    assert payload["frontMatter"]["frontMatterPages"] == [0]
    assert payload["bestWindow"]["startPage"] == 11


def test_disabling_front_matter_detection(settings, write_pages, page_texts: list[str]) -> None:
    page_texts[0] = "Inhalt\nKapitel 1 Im Büro\nKapitel 2 Im Restaurant\nKapitel 3 Beim Arzt\nKapitel 4 Auf Reisen"
    source = write_pages(page_texts, name="with-toc.txt")

    state = Pipeline(settings).run(_request(source, skip_front_matter=False), until="front_matter")

    assert state.front_matter.skip_until_page_index == 0
    assert len(state.pages) == 30


def test_profile_controls_pages_anchors_and_rejections(settings, work_document: Path) -> None:
    settings.profiles_dir.mkdir(parents=True)
    profile = {
        "sourceId": "work-book",
        "language": "de",
        "defaultScenarios": ["work"],
        "anchors": ["Abteilung 15"],
        "skipPages": {"ranges": ["0-4"]},
        "rejectSections": ["Kollege"],
    }
    (settings.profiles_dir / "work-book.json").write_text(json.dumps(profile), encoding="utf-8")

    result = Pipeline(settings).execute(_request(work_document, language=None))
    payload = result.to_dict()

    assert result.language == "de"
    assert payload["bestWindow"]["anchorHits"] == 1
    assert (payload["bestWindow"]["startPage"], payload["bestWindow"]["endPage"]) == (11, 20)
    assert payload["rejectedCount"] == 10
    assert {item["reason"] for item in payload["rejectedCandidates"]} == {"Rejected by profile rejectSections"}
    assert all(len(item["textHash"]) == 8 for item in payload["rejectedCandidates"])
    assert len(payload["candidates"]) == 40
    assert not any("Kollege" in item["text"] for item in payload["candidates"])


def test_request_flags_override_profile(settings, work_document: Path) -> None:
    settings.profiles_dir.mkdir(parents=True)
    profile = {
        "sourceId": "work-book",
        "language": "de",
        "defaultScenarios": [],
        "anchors": [],
        "windowSizePages": 5,
    }
    (settings.profiles_dir / "work-book.json").write_text(json.dumps(profile), encoding="utf-8")
    pipeline = Pipeline(settings)

    from_profile = pipeline.initial_state(_request(work_document))
    from_request = pipeline.initial_state(_request(work_document, window_size_pages=12))

    assert from_profile.window_size_pages == 5
    assert from_request.window_size_pages == 12
    assert from_profile.min_scenario_hits == settings.min_scenario_hits


def test_explicit_missing_profile_fails(settings, work_document: Path, tmp_path: Path) -> None:
    with pytest.raises(PipelineError) as excinfo:
        Pipeline(settings).execute(_request(work_document, profile_path=tmp_path / "nope.json"))

    assert excinfo.value.kind is ErrorKind.INVALID_PROFILE


def test_missing_source_file(settings, tmp_path: Path) -> None:
    with pytest.raises(PipelineError) as excinfo:
        Pipeline(settings).execute(_request(tmp_path / "gone.pdf"))

    assert excinfo.value.kind is ErrorKind.EXTRACTION_FAILED


def test_scanned_document_fails_fast(settings, write_pages) -> None:
    source = write_pages(["Nur ein Titel."] * 10, name="scan.txt")

    with pytest.raises(PipelineError) as excinfo:
        Pipeline(settings).execute(_request(source))

    assert excinfo.value.kind is ErrorKind.SCAN_UNSUPPORTED


def test_scanned_document_with_ocr_requested(settings, write_pages) -> None:
    source = write_pages(["Nur ein Titel."] * 10, name="scan.txt")

    with pytest.raises(PipelineError) as excinfo:
        Pipeline(settings).execute(_request(source, ocr_enabled=True))

    assert excinfo.value.kind is ErrorKind.OCR_NOT_IMPLEMENTED
