"""Scenario token dictionaries, denylists and stopwords loaded once per process."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from packforge.text.predicates import normalize_for_matching

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEFAULT_CATALOG_PATH = _DATA_DIR / "scenarios.json"
_STOPWORDS_DIR = _DATA_DIR / "stopwords"


@dataclass(frozen=True, slots=True)
class ScenarioDictionary:
    """Tokens (single words and phrases) for one scenario plus its strong subset."""

    name: str
    tokens: tuple[str, ...]
    strong_tokens: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ScenarioCatalog:
    """Immutable scenario configuration passed by reference to every stage."""

    scenarios: Mapping[str, ScenarioDictionary]
    denylist: tuple[str, ...]
    mining_denylist: tuple[str, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.scenarios)

    def __contains__(self, name: object) -> bool:
        return name in self.scenarios

    def get(self, name: str) -> ScenarioDictionary:
        try:
            return self.scenarios[name]
        except KeyError:
            raise KeyError(f"Unknown scenario: {name}") from None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScenarioCatalog":
        raw_scenarios = data.get("scenarios")
        if not isinstance(raw_scenarios, Mapping) or not raw_scenarios:
            raise ValueError("Scenario catalog must define a non-empty 'scenarios' object")

        scenarios: dict[str, ScenarioDictionary] = {}
        for name, entry in raw_scenarios.items():
            tokens = entry.get("tokens") if isinstance(entry, Mapping) else None
            if not isinstance(tokens, list) or not all(isinstance(t, str) for t in tokens):
                raise ValueError(f"Scenario '{name}' must define a 'tokens' list of strings")
            strong = entry.get("strongTokens", [])
            if not isinstance(strong, list) or not all(isinstance(t, str) for t in strong):
                raise ValueError(f"Scenario '{name}' has an invalid 'strongTokens' list")
            scenarios[name] = ScenarioDictionary(
                name=name,
                tokens=tuple(dict.fromkeys(tokens)),
                strong_tokens=tuple(dict.fromkeys(strong)),
            )

        denylist = tuple(str(phrase) for phrase in data.get("denylist", []))
        mining = tuple(str(phrase) for phrase in data.get("miningDenylist", []))
        return cls(
            scenarios=MappingProxyType(scenarios),
            denylist=denylist,
            mining_denylist=denylist + mining,
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "ScenarioCatalog":
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))


@lru_cache(maxsize=1)
def load_default_catalog() -> ScenarioCatalog:
    return ScenarioCatalog.from_file(DEFAULT_CATALOG_PATH)


@lru_cache(maxsize=4)
def load_stopwords(language: str) -> frozenset[str]:
    """Return normalized stopwords for *language*, or an empty set when none ship."""

    path = _STOPWORDS_DIR / f"{language}.txt"
    if not path.exists():
        return frozenset()

    words: set[str] = set()
    for line in path.read_text(encoding="utf-8").splitlines():
        word = line.strip().lower()
        if word:
            words.add(word)
            words.add(normalize_for_matching(word))
    return frozenset(words)
