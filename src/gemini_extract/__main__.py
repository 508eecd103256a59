"""CLI entry point for text extraction.

Usage:
    python -m gemini_extract FILE [FILE ...] --output-dir DIR
    python -m gemini_extract report.pptx --output-dir out --env-file .env.local -v
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys

from gemini_extract.config import check_environment, resolve_config
from gemini_extract.core.types import BatchExtractionSummary, SourceFile
from gemini_extract.exceptions import ConfigurationError
from gemini_extract.orchestrator import create_orchestrator

# ruff: noqa: T201

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract text from documents with Gemini",
        prog="python -m gemini_extract",
    )
    parser.add_argument("files", nargs="+", type=Path, help="Files to extract")
    parser.add_argument(
        "--output-dir",
        type=Path,
        required=True,
        help="Directory that receives one artifact per file",
    )
    parser.add_argument(
        "--env-file", type=Path, default=None, help="Optional .env file to load"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


async def main_async(
    files: list[Path], output_dir: Path, env_file: Path | None
) -> BatchExtractionSummary:
    config = resolve_config(use_env_file=env_file)
    log.debug("GEMINI_* environment: %s", check_environment())
    orchestrator = create_orchestrator(config)
    sources = [SourceFile.from_path(path) for path in files]
    return await orchestrator.extract_files(sources, output_dir)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    missing = [str(path) for path in args.files if not path.is_file()]
    if missing:
        print(f"File(s) not found: {', '.join(missing)}", file=sys.stderr)
        return 2

    try:
        summary = asyncio.run(main_async(args.files, args.output_dir, args.env_file))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    print(summary.describe())
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
