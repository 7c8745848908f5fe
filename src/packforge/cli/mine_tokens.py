"""CLI entrypoint: mine scenario token suggestions from a document's best window."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from dotenv import load_dotenv

load_dotenv()

from packforge.cli.extract_candidates import _positive_int
from packforge.config import PipelineSettings
from packforge.errors import PipelineError
from packforge.pipeline import Pipeline, PipelineRequest, default_source_id
from packforge.pipeline.stages import filter_candidates
from packforge.pipeline.state import AUTO_SCENARIO
from packforge.scoring.catalog import load_stopwords
from packforge.scoring.token_mining import (
    DEFAULT_MAX_PHRASE_LEN,
    DEFAULT_MIN_FREQ,
    DEFAULT_TOP_N,
    mine_tokens,
    suggest_additions,
)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s", stream=sys.stderr)
    parser = argparse.ArgumentParser(description="Suggest new scenario tokens from a document window")
    parser.add_argument("--source", required=True, help="PDF or plain-text source document")
    parser.add_argument("--source-id", default=None, help="Stable id for cache and profile lookup")
    parser.add_argument("--profile", default=None, help="Explicit ingestion profile JSON path")
    parser.add_argument("--scenario", default=AUTO_SCENARIO, help="Scenario name or 'auto' for discovery")
    parser.add_argument("--language", choices=("de", "en"), default=None, help="Document language")
    parser.add_argument("--window-size", type=_positive_int, default=None, help="Window size in pages")
    parser.add_argument("--min-hits", type=_positive_int, default=None, help="Minimum scenario token hits")
    parser.add_argument("--top-n", type=_positive_int, default=DEFAULT_TOP_N, help="Maximum suggestions returned")
    parser.add_argument("--min-freq", type=_positive_int, default=DEFAULT_MIN_FREQ, help="Minimum n-gram frequency")
    parser.add_argument("--max-phrase-len", type=_positive_int, default=DEFAULT_MAX_PHRASE_LEN, help="Longest n-gram")
    parser.add_argument("--no-front-matter", action="store_true", help="Disable front-matter skipping")
    parser.add_argument("--no-cache", action="store_true", help="Bypass the extraction cache")
    parser.add_argument("--ocr", action="store_true", help="Request OCR for image-only documents")
    args = parser.parse_args(argv)

    source = Path(args.source)
    request = PipelineRequest(
        source_path=source,
        source_id=args.source_id or default_source_id(source),
        level="mining",
        scenario=args.scenario,
        window_size_pages=args.window_size,
        min_scenario_hits=args.min_hits,
        language=args.language,
        skip_front_matter=not args.no_front_matter,
        use_cache=not args.no_cache,
        ocr_enabled=args.ocr,
        profile_path=Path(args.profile) if args.profile else None,
    )

    try:
        pipeline = Pipeline(PipelineSettings.from_env())
        state = pipeline.run(request, until="window_search")
    except (PipelineError, ValueError) as exc:
        error = exc.to_dict() if isinstance(exc, PipelineError) else {"kind": "configuration", "message": str(exc)}
        print(json.dumps({"source": str(source), "error": error}, ensure_ascii=True, indent=2))
        return 1

    catalog = pipeline.catalog
    dictionary = catalog.get(state.scenario or "")
    best = state.window_search.best_window if state.window_search else None
    pool, _ = filter_candidates(best.candidates if best else (), state.profile, catalog.denylist)

    suggestions = mine_tokens(
        [item.candidate for item in pool],
        existing_tokens=dictionary.tokens,
        stopwords=load_stopwords(state.language or "de"),
        denylist=catalog.mining_denylist,
        max_phrase_len=args.max_phrase_len,
        min_freq=args.min_freq,
        top_n=args.top_n,
    )

    payload = {
        "source": str(source),
        "scenario": dictionary.name,
        "window": best.summary().to_dict() if best else None,
        "candidates": len(pool),
        "tokens": [item.to_dict() for item in suggestions],
        "suggestedAdditions": [item.to_dict() for item in suggest_additions(suggestions)],
    }
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
