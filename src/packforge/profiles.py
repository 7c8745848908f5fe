"""Per-source ingestion profiles: page eligibility, anchors and rejections."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any

from packforge.errors import ErrorKind, PipelineError

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("de", "en")


@dataclass(frozen=True, slots=True)
class IngestionProfile:
    """Read-only profile; page indices and ranges are 0-based and inclusive."""

    source_id: str
    language: str
    default_scenarios: tuple[str, ...]
    anchors: tuple[str, ...]
    skip_pages: tuple[int, ...] = ()
    skip_ranges: tuple[tuple[int, int], ...] = ()
    prefer_page_ranges: tuple[tuple[int, int], ...] = ()
    window_size_pages: int | None = None
    min_scenario_hits: int | None = None
    reject_sections: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        skip: object = list(self.skip_pages)
        if self.skip_ranges:
            skip = {"ranges": [f"{start}-{end}" for start, end in self.skip_ranges]}
        return {
            "sourceId": self.source_id,
            "language": self.language,
            "defaultScenarios": list(self.default_scenarios),
            "anchors": list(self.anchors),
            "skipPages": skip,
            "preferPageRanges": [f"{start}-{end}" for start, end in self.prefer_page_ranges],
            "windowSizePages": self.window_size_pages,
            "minScenarioHits": self.min_scenario_hits,
            "rejectSections": list(self.reject_sections),
        }


def _invalid(message: str, source: str | Path) -> PipelineError:
    return PipelineError(ErrorKind.INVALID_PROFILE, f"Invalid profile {source}: {message}", {"profile": str(source)})


def parse_page_range(value: str) -> tuple[int, int]:
    """Parse ``"a-b"`` into an inclusive pair; raises ``ValueError`` on malformed input."""

    start_raw, separator, end_raw = value.strip().partition("-")
    if not separator:
        raise ValueError(f"Page range must look like 'a-b', got {value!r}")
    start, end = int(start_raw), int(end_raw)
    if start < 0 or end < start:
        raise ValueError(f"Page range {value!r} is empty or negative")
    return start, end


def _string_list(data: Mapping[str, Any], key: str, source: str | Path, *, required: bool) -> tuple[str, ...]:
    value = data.get(key)
    if value is None and not required:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise _invalid(f"'{key}' must be a list of strings", source)
    return tuple(value)


def _optional_positive_int(data: Mapping[str, Any], key: str, source: str | Path) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise _invalid(f"'{key}' must be a positive integer", source)
    return value


def _ranges(values: Sequence[str], key: str, source: str | Path) -> tuple[tuple[int, int], ...]:
    try:
        return tuple(parse_page_range(value) for value in values)
    except ValueError as exc:
        raise _invalid(f"'{key}': {exc}", source) from exc


def profile_from_dict(data: Mapping[str, Any], *, source: str | Path = "<memory>") -> IngestionProfile:
    if not isinstance(data, Mapping):
        raise _invalid("top-level JSON value must be an object", source)

    source_id = data.get("sourceId") or data.get("pdfId")
    if not isinstance(source_id, str) or not source_id:
        raise _invalid("missing required field 'sourceId'", source)

    language = data.get("language")
    if language not in SUPPORTED_LANGUAGES:
        raise _invalid("'language' must be 'de' or 'en'", source)

    default_scenarios = _string_list(data, "defaultScenarios", source, required=True)
    anchors = _string_list(data, "anchors", source, required=True)

    skip_pages: tuple[int, ...] = ()
    skip_ranges: tuple[tuple[int, int], ...] = ()
    raw_skip = data.get("skipPages")
    if isinstance(raw_skip, list):
        if not all(isinstance(item, int) and not isinstance(item, bool) for item in raw_skip):
            raise _invalid("'skipPages' must list integer page indices", source)
        skip_pages = tuple(raw_skip)
    elif isinstance(raw_skip, Mapping):
        skip_ranges = _ranges(_string_list(raw_skip, "ranges", source, required=True), "skipPages", source)
    elif raw_skip is not None:
        raise _invalid("'skipPages' must be a list or {'ranges': [...]}", source)

    prefer = _ranges(_string_list(data, "preferPageRanges", source, required=False), "preferPageRanges", source)

    return IngestionProfile(
        source_id=source_id,
        language=language,
        default_scenarios=default_scenarios,
        anchors=anchors,
        skip_pages=skip_pages,
        skip_ranges=skip_ranges,
        prefer_page_ranges=prefer,
        window_size_pages=_optional_positive_int(data, "windowSizePages", source),
        min_scenario_hits=_optional_positive_int(data, "minScenarioHits", source),
        reject_sections=_string_list(data, "rejectSections", source, required=False),
    )


def load_profile_from_path(path: str | Path) -> IngestionProfile:
    profile_path = Path(path)
    if not profile_path.is_file():
        raise PipelineError(
            ErrorKind.INVALID_PROFILE,
            f"Profile not found: {profile_path}",
            {"profile": str(profile_path)},
        )
    try:
        data = json.loads(profile_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise _invalid(str(exc), profile_path) from exc
    return profile_from_dict(data, source=profile_path)


def load_profile(source_id: str, profiles_dir: str | Path) -> IngestionProfile | None:
    """Load ``<profiles_dir>/<source_id>.json``; a missing file means no profile."""

    path = Path(profiles_dir) / f"{source_id}.json"
    if not path.exists():
        logger.debug("No ingestion profile at %s", path)
        return None
    return load_profile_from_path(path)


def _in_ranges(page_index: int, ranges: Sequence[tuple[int, int]]) -> bool:
    return any(start <= page_index <= end for start, end in ranges)


def should_skip_page(page_index: int, profile: IngestionProfile) -> bool:
    return page_index in profile.skip_pages or _in_ranges(page_index, profile.skip_ranges)


def is_preferred_page(page_index: int, profile: IngestionProfile) -> bool:
    if not profile.prefer_page_ranges:
        return True
    return _in_ranges(page_index, profile.prefer_page_ranges)


def should_reject_candidate(text: str, profile: IngestionProfile) -> bool:
    lowered = text.lower()
    return any(section.lower() in lowered for section in profile.reject_sections)
