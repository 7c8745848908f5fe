"""Runtime configuration for the extraction pipeline."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping


DEFAULT_CACHE_DIR = ".packforge-cache"
DEFAULT_PROFILES_DIR = "profiles"
DEFAULT_WINDOW_SIZE_PAGES = 25
DEFAULT_MIN_SCENARIO_HITS = 2
DEFAULT_FRONT_MATTER_MAX_PAGES = 40


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    try:
        value = int(raw_value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw_value!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


@dataclass(frozen=True, slots=True)
class PipelineSettings:
    """Validated pipeline settings; CLI flags and profiles override these per run."""

    cache_dir: Path = Path(DEFAULT_CACHE_DIR)
    profiles_dir: Path = Path(DEFAULT_PROFILES_DIR)
    scenarios_file: Path | None = None
    window_size_pages: int = DEFAULT_WINDOW_SIZE_PAGES
    min_scenario_hits: int = DEFAULT_MIN_SCENARIO_HITS
    front_matter_max_pages: int = DEFAULT_FRONT_MATTER_MAX_PAGES

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PipelineSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        cache_dir_raw = source.get("PACKFORGE_CACHE_DIR", DEFAULT_CACHE_DIR).strip()
        if not cache_dir_raw:
            raise ValueError("PACKFORGE_CACHE_DIR cannot be empty")

        profiles_dir_raw = source.get("PACKFORGE_PROFILES_DIR", DEFAULT_PROFILES_DIR).strip()
        if not profiles_dir_raw:
            raise ValueError("PACKFORGE_PROFILES_DIR cannot be empty")

        scenarios_file_raw = source.get("PACKFORGE_SCENARIOS_FILE", "").strip()

        window_size_pages = _parse_positive_int(
            name="PACKFORGE_WINDOW_SIZE",
            raw_value=source.get("PACKFORGE_WINDOW_SIZE", str(DEFAULT_WINDOW_SIZE_PAGES)).strip(),
        )
        min_scenario_hits = _parse_positive_int(
            name="PACKFORGE_MIN_SCENARIO_HITS",
            raw_value=source.get("PACKFORGE_MIN_SCENARIO_HITS", str(DEFAULT_MIN_SCENARIO_HITS)).strip(),
        )
        front_matter_max_pages = _parse_positive_int(
            name="PACKFORGE_FRONT_MATTER_MAX_PAGES",
            raw_value=source.get("PACKFORGE_FRONT_MATTER_MAX_PAGES", str(DEFAULT_FRONT_MATTER_MAX_PAGES)).strip(),
            minimum=0,
        )

        return cls(
            cache_dir=Path(cache_dir_raw),
            profiles_dir=Path(profiles_dir_raw),
            scenarios_file=Path(scenarios_file_raw) if scenarios_file_raw else None,
            window_size_pages=window_size_pages,
            min_scenario_hits=min_scenario_hits,
            front_matter_max_pages=front_matter_max_pages,
        )
