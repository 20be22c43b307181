"""Command-line planner.

CLI: swa-compress-plan
Reads candidate assets (and optional explicit requests) from JSON files and
prints the compression plan as JSON.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from . import __version__
from .assets import Asset, ExplicitRequest
from .config import PlannerSettings
from .planner import CompressionPlanner
from .telemetry import PlannerTracer

EXIT_OK = 0
EXIT_PLAN_FAILED = 1
EXIT_BAD_INPUT = 2


def _build_parser(settings: PlannerSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swa-compress-plan",
        description="Plan which static assets to compress and where to write them.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--candidates",
        type=Path,
        required=True,
        help="JSON file holding a list of candidate assets.",
    )
    parser.add_argument(
        "--explicit",
        type=Path,
        default=None,
        help="JSON file holding a list of {identity, tag} explicit requests.",
    )
    parser.add_argument(
        "--include",
        default=settings.include_patterns,
        help="';'-delimited include globs (default: $SWA_COMPRESS_INCLUDE).",
    )
    parser.add_argument(
        "--exclude",
        default=settings.exclude_patterns,
        help="';'-delimited exclude globs (default: $SWA_COMPRESS_EXCLUDE).",
    )
    parser.add_argument(
        "--formats",
        default=settings.formats,
        help="';'-delimited format tokens, e.g. 'gzip;brotli' (default: %(default)s).",
    )
    parser.add_argument(
        "--output-root",
        default=settings.output_root,
        help="Directory compressed files are written under (default: $SWA_COMPRESS_OUTPUT_ROOT).",
    )
    parser.add_argument(
        "--as-candidates",
        action="store_true",
        help="Print the assets the plan produces instead of the jobs.",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
    )
    parser.add_argument(
        "--trace",
        default=settings.trace_exporter,
        choices=["none", "stdout", "otlp"],
    )
    return parser


def _load_list(path: Path) -> list[Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        msg = f"{path}: expected a JSON list, got {type(data).__name__}"
        raise ValueError(msg)
    return data


def load_candidates(path: Path) -> list[Asset]:
    """Read candidate assets from a JSON list."""
    return [Asset.model_validate(item) for item in _load_list(path)]


def load_requests(path: Path) -> list[ExplicitRequest]:
    """Read explicit requests from a JSON list."""
    return [ExplicitRequest.model_validate(item) for item in _load_list(path)]


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for ``swa-compress-plan``. Returns the process exit code."""
    try:
        settings = PlannerSettings.from_env()
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT

    args = _build_parser(settings).parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        candidates = load_candidates(args.candidates)
        requests = load_requests(args.explicit) if args.explicit else []
    except (OSError, ValueError, ValidationError) as exc:
        print(f"Input error: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT

    tracer = PlannerTracer.from_settings(dataclasses.replace(settings, trace_exporter=args.trace))
    try:
        result = CompressionPlanner(tracer=tracer).plan(
            candidates,
            requests,
            include_patterns=args.include,
            exclude_patterns=args.exclude,
            formats=args.formats,
            output_root=args.output_root,
        )
    finally:
        tracer.shutdown()

    if args.as_candidates:
        payload: Any = [asset.model_dump() for asset in result.produced_assets()]
    else:
        payload = result.to_dict()
    print(json.dumps(payload, indent=2))

    if not result.success:
        for err in result.errors:
            print(f"error: {err.message}", file=sys.stderr)
        return EXIT_PLAN_FAILED
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
