"""Directory scanning, orphan cleanup and per-video processing."""

from __future__ import annotations

import logging
import random
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Sequence

from . import ProcessingOutcome, RunSummary
from . import pipeline, sheet_builder
from .config import SheetConfig
from .errors import SheetError
from ..utils import file_tools

logger = logging.getLogger(__name__)

PARALLEL_THRESHOLD = 10


def find_videos(root: Path, extensions: Iterable[str]) -> list[Path]:
    """All files below root with a recognized video extension."""

    return file_tools.list_files_with_extensions(root, extensions)


def find_orphaned_sheets(root: Path, config: SheetConfig) -> list[Path]:
    """Sheets whose `<dir>/<stem>` has no matching video (case-insensitive)."""

    video_keys = {file_tools.base_key(p) for p in find_videos(root, config.video_extensions)}
    sheets = file_tools.list_files_with_extensions(root, [config.sheet_extension])
    return [sheet for sheet in sheets if file_tools.base_key(sheet) not in video_keys]


def clean_orphaned_sheets(root: Path, config: SheetConfig) -> list[Path]:
    """Delete orphaned sheets under root and return what was removed."""

    logger.info("Checking for orphaned sheets in %s", root)
    removed: list[Path] = []
    for sheet in find_orphaned_sheets(root, config):
        try:
            sheet.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.warning("Could not delete orphan %s: %s", sheet, exc)
            continue
        logger.info("Deleted orphan: %s", sheet.name)
        removed.append(sheet)
    logger.info("Orphaned sheets removed: %s", len(removed))
    return removed


def pending_videos(videos: Iterable[Path], config: SheetConfig) -> list[Path]:
    """Videos without a sheet next to them."""

    return [v for v in videos if not file_tools.sheet_path_for(v, config.sheet_extension).exists()]


def process_video(video_path: Path, config: SheetConfig, temp_root: Path | None = None) -> ProcessingOutcome:
    """Build and save one sheet, never raising for per-video failures.

    The sheet path is checked before the build and again right before the
    write, so a sheet finished meanwhile by another process is kept.
    """

    sheet_path = file_tools.sheet_path_for(video_path, config.sheet_extension)
    if sheet_path.exists():
        logger.info("Skipped (already exists): %s", video_path.name)
        return ProcessingOutcome(video_path, sheet_path, ProcessingOutcome.SKIPPED)

    started = time.perf_counter()
    try:
        build = pipeline.create_thumbnail_sheet(video_path, config, temp_root=temp_root)
        if sheet_path.exists():
            logger.info("Skipped (created by another process): %s", video_path.name)
            return ProcessingOutcome(
                video_path, sheet_path, ProcessingOutcome.RACED, time.perf_counter() - started
            )
        sheet_builder.save_sheet(build.image, sheet_path)
    except (SheetError, OSError) as exc:
        logger.error("Failed %s: %s", video_path.name, exc)
        return ProcessingOutcome(
            video_path, sheet_path, ProcessingOutcome.FAILED, time.perf_counter() - started, str(exc)
        )
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected failure while processing %s", video_path.name)
        return ProcessingOutcome(
            video_path, sheet_path, ProcessingOutcome.FAILED, time.perf_counter() - started, str(exc)
        )

    elapsed = time.perf_counter() - started
    logger.info("Saved %s (%.2fs)", sheet_path.name, elapsed)
    return ProcessingOutcome(video_path, sheet_path, ProcessingOutcome.CREATED, elapsed)


def process_batch(videos: Sequence[Path], config: SheetConfig) -> list[ProcessingOutcome]:
    """Run videos one after another, or across worker processes for larger batches."""

    total = len(videos)
    if config.workers > 1 and total >= PARALLEL_THRESHOLD:
        return _process_parallel(videos, config)

    outcomes: list[ProcessingOutcome] = []
    for current, video in enumerate(videos, start=1):
        logger.info("[%s/%s - %s%%] %s", current, total, current * 100 // total, video.name)
        outcomes.append(process_video(video, config))
    return outcomes


def _process_parallel(videos: Sequence[Path], config: SheetConfig) -> list[ProcessingOutcome]:
    workers = min(config.workers, len(videos))
    logger.info("Processing %s videos across %s worker processes", len(videos), workers)
    outcomes: list[ProcessingOutcome] = []
    with ProcessPoolExecutor(
        max_workers=workers,
        initializer=_init_worker,
        initargs=(logging.getLogger().level,),
    ) as pool:
        futures = {pool.submit(process_video, video, config): video for video in videos}
        for done, future in enumerate(as_completed(futures), start=1):
            video = futures[future]
            try:
                outcome = future.result()
            except Exception as exc:
                # a worker that dies (BrokenProcessPool) fails every video still queued on the pool
                logger.exception("Worker failed while processing %s", video.name)
                outcome = ProcessingOutcome(
                    video,
                    file_tools.sheet_path_for(video, config.sheet_extension),
                    ProcessingOutcome.FAILED,
                    error=str(exc) or type(exc).__name__,
                )
            logger.info("[%s/%s] %s: %s", done, len(videos), video.name, outcome.status)
            outcomes.append(outcome)
    return outcomes


def _init_worker(level: int) -> None:
    from ..main import configure_logging

    configure_logging(level)


def process_directory(root: Path, config: SheetConfig, dry_run: bool = False) -> RunSummary:
    """Clean orphans, then build sheets for every video under root that lacks one."""

    summary = RunSummary()
    if dry_run:
        for orphan in find_orphaned_sheets(root, config):
            logger.info("Would delete orphan: %s", orphan)
    else:
        summary.orphans_removed = len(clean_orphaned_sheets(root, config))

    logger.info("Scanning %s", root)
    videos = find_videos(root, config.video_extensions)
    pending = pending_videos(videos, config)
    summary.skipped += len(videos) - len(pending)
    logger.info(
        "Found %s videos: %s already have sheets, %s to process",
        len(videos),
        len(videos) - len(pending),
        len(pending),
    )
    if not pending:
        logger.info("Nothing to do")
        return summary

    if config.shuffle:
        random.shuffle(pending)

    if dry_run:
        for video in pending:
            logger.info("Would process: %s", video)
        return summary

    for outcome in process_batch(pending, config):
        summary.record(outcome)
    return summary


def process_paths(paths: Iterable[Path], config: SheetConfig, dry_run: bool = False) -> RunSummary:
    """Handle each CLI path as a directory tree or a single video."""

    summary = RunSummary()
    for path in paths:
        if path.is_dir():
            summary.merge(process_directory(path, config, dry_run=dry_run))
        elif path.is_file():
            if dry_run:
                logger.info("Would process: %s", path)
                continue
            summary.record(process_video(path, config))
        else:
            logger.error("Path not found: %s", path)
            summary.errors += 1

    logger.info(
        "Created: %s | Skipped: %s | Errors: %s | Orphans removed: %s",
        summary.created,
        summary.skipped,
        summary.errors,
        summary.orphans_removed,
    )
    return summary
