"""Single-video sheet pipeline: probe, layout, extract, composite."""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
from pathlib import Path

from . import SheetBuild
from . import frame_extractor, layout, sampler, sheet_builder, video_loader
from .config import SheetConfig

logger = logging.getLogger(__name__)

TEMP_DIR_PREFIX = "thumbsheet-"
STALE_TEMP_AGE_SECONDS = 3600


def cleanup_stale_temp_dirs(
    temp_root: Path | None = None,
    prefix: str = TEMP_DIR_PREFIX,
    max_age_seconds: float = STALE_TEMP_AGE_SECONDS,
) -> list[Path]:
    """Remove leftovers of crashed runs; failures are ignored.

    Only directories untouched for `max_age_seconds` are removed, so the
    working directory of a concurrent build is left alone.
    """

    root = Path(temp_root or tempfile.gettempdir())
    cutoff = time.time() - max_age_seconds
    removed: list[Path] = []
    try:
        candidates = list(root.glob(f"{prefix}*"))
    except OSError:
        return removed
    for candidate in candidates:
        try:
            if not candidate.is_dir() or candidate.stat().st_mtime > cutoff:
                continue
        except OSError:
            continue
        shutil.rmtree(candidate, ignore_errors=True)
        if not candidate.exists():
            removed.append(candidate)
    if removed:
        logger.debug("Removed %s stale temp directories", len(removed))
    return removed


def create_thumbnail_sheet(video_path: Path, config: SheetConfig, temp_root: Path | None = None) -> SheetBuild:
    """Build the contact sheet for one video in memory.

    Raises ProbeError, ConfigError or ExtractionError; the temporary frame
    directory is removed on every exit path.
    """

    metadata = video_loader.load_metadata(video_path)
    geometry = layout.compute_geometry(metadata.width, metadata.height, config)
    logger.debug(
        "Layout for %s: %sx%s grid, %sx%s cells, sheet %sx%s",
        video_path.name,
        geometry.columns,
        geometry.rows,
        geometry.thumb_width,
        geometry.thumb_height,
        geometry.sheet_width,
        geometry.sheet_height,
    )
    samples = sampler.build_samples(metadata.duration_seconds, geometry.total_frames, config.start_skip_fraction)
    ffmpeg_binary = video_loader.resolve_ffmpeg_binary(config)

    cleanup_stale_temp_dirs(temp_root, max_age_seconds=config.stale_temp_age_seconds)
    with tempfile.TemporaryDirectory(
        prefix=TEMP_DIR_PREFIX,
        dir=str(temp_root) if temp_root else None,
        ignore_cleanup_errors=True,
    ) as tmp:
        extracted = frame_extractor.extract_frames(
            video_path,
            samples,
            geometry.thumb_width,
            geometry.thumb_height,
            Path(tmp),
            ffmpeg_binary,
            timeout=config.extract_timeout_seconds,
            workers=config.extract_workers,
        )
        logger.info("Compositing sheet for %s", video_path.name)
        build = sheet_builder.compose_sheet(geometry, metadata, extracted, config)

    if build.degraded:
        logger.warning(
            "Sheet for %s is incomplete: %s of %s frames drawn",
            video_path.name,
            len(build.drawn_indices),
            geometry.total_frames,
        )
    return build
