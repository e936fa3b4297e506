"""Command-line entry point for contact sheet generation."""

import argparse
import logging
from pathlib import Path

from .core import config as sheet_config
from .core import scanner
from .core.errors import ConfigError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thumbsheet",
        description="Create a thumbnail contact sheet next to each video file.",
    )
    parser.add_argument(
        "paths",
        type=Path,
        nargs="+",
        help="Video files or directories (scanned recursively)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help=f"JSON settings file (default: ./{sheet_config.DEFAULT_CONFIG_NAME} if present)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Worker processes for directories with many pending videos",
    )
    parser.add_argument(
        "--no-shuffle",
        action="store_true",
        help="Process videos in path order instead of random order",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report orphans and pending videos without changing anything",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def resolve_config(config_path: Path | None) -> sheet_config.SheetConfig:
    if config_path is None:
        default = Path.cwd() / sheet_config.DEFAULT_CONFIG_NAME
        config_path = default if default.is_file() else None
    return sheet_config.load_config(config_path)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = resolve_config(args.config)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    overrides = {}
    if args.workers is not None:
        if args.workers < 1:
            parser.error("--workers must be at least 1")
        overrides["workers"] = args.workers
    if args.no_shuffle:
        overrides["shuffle"] = False
    if overrides:
        config = config.model_copy(update=overrides)

    summary = scanner.process_paths(args.paths, config, dry_run=args.dry_run)
    return 1 if summary.errors else 0
