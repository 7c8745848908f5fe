"""CLI entrypoint: run the extraction pipeline for one document and print JSON."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from dotenv import load_dotenv

load_dotenv()

from packforge.config import PipelineSettings
from packforge.errors import PipelineError
from packforge.pipeline import STAGE_NAMES, Pipeline, PipelineRequest, PipelineResult, default_source_id
from packforge.pipeline.state import AUTO_SCENARIO, DEFAULT_PACKS, DEFAULT_PROMPTS_PER_PACK


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract, score and select scenario candidates from a document")
    parser.add_argument("--source", required=True, help="PDF or plain-text source document")
    parser.add_argument("--source-id", default=None, help="Stable id for cache and profile lookup")
    parser.add_argument("--profile", default=None, help="Explicit ingestion profile JSON path")
    parser.add_argument("--scenario", default=AUTO_SCENARIO, help="Scenario name or 'auto' for discovery")
    parser.add_argument("--workspace", default="de", help="Target workspace (seed input)")
    parser.add_argument("--level", required=True, help="Learner level, e.g. A1 (seed input)")
    parser.add_argument("--packs", type=_positive_int, default=DEFAULT_PACKS, help="Number of packs to fill")
    parser.add_argument(
        "--prompts-per-pack",
        type=_positive_int,
        default=DEFAULT_PROMPTS_PER_PACK,
        help="Candidates per pack",
    )
    parser.add_argument("--window-size", type=_positive_int, default=None, help="Window size in pages")
    parser.add_argument("--min-hits", type=_positive_int, default=None, help="Minimum scenario token hits")
    parser.add_argument("--no-front-matter", action="store_true", help="Disable front-matter skipping")
    parser.add_argument("--seed", default=None, help="Explicit seed string overriding the derived seed")
    parser.add_argument("--no-cache", action="store_true", help="Bypass the extraction cache")
    parser.add_argument("--ocr", action="store_true", help="Request OCR for image-only documents")
    parser.add_argument("--language", choices=("de", "en"), default=None, help="Document language")
    parser.add_argument("--until", choices=STAGE_NAMES, default=None, help="Stop after this stage")
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s", stream=sys.stderr)
    args = _build_parser().parse_args(argv)

    source = Path(args.source)
    request = PipelineRequest(
        source_path=source,
        source_id=args.source_id or default_source_id(source),
        level=args.level,
        workspace=args.workspace,
        scenario=args.scenario,
        packs=args.packs,
        prompts_per_pack=args.prompts_per_pack,
        window_size_pages=args.window_size,
        min_scenario_hits=args.min_hits,
        language=args.language,
        skip_front_matter=not args.no_front_matter,
        seed=args.seed,
        use_cache=not args.no_cache,
        ocr_enabled=args.ocr,
        profile_path=Path(args.profile) if args.profile else None,
    )

    try:
        pipeline = Pipeline(PipelineSettings.from_env())
        state = pipeline.run(request, until=args.until)
    except PipelineError as exc:
        payload = {"source": str(source), "error": exc.to_dict()}
        print(json.dumps(payload, ensure_ascii=True, indent=2))
        return 1
    except ValueError as exc:
        payload = {"source": str(source), "error": {"kind": "configuration", "message": str(exc), "details": {}}}
        print(json.dumps(payload, ensure_ascii=True, indent=2))
        return 1

    payload = PipelineResult.from_state(state).to_dict()
    payload["completedStages"] = list(state.completed_stages)
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
