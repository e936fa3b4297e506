"""Video probing and decoder discovery."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from moviepy.config import FFMPEG_BINARY
from moviepy.video.io.ffmpeg_reader import ffmpeg_parse_infos

from . import VideoMetadata
from .config import SheetConfig
from .errors import ExtractionError, ProbeError
from .layout import FALLBACK_SIZE
from ..utils import validators

logger = logging.getLogger(__name__)

ROTATED_DEGREES = (90, 270)


def load_metadata(video_path: Path) -> VideoMetadata:
    """Probe duration, size and codec of the primary video stream."""

    validated_path = validators.validate_video_path(video_path)

    try:
        infos = ffmpeg_parse_infos(str(validated_path))
    except Exception as exc:  # moviepy raises IOError and friends for unreadable input
        raise ProbeError(validated_path, reason=f"Could not read metadata: {exc}") from exc

    if not infos.get("video_found", True):
        raise ProbeError(validated_path, reason="No video stream")

    duration = float(infos.get("duration") or 0.0)
    if duration <= 0:
        raise ProbeError(validated_path, reason="Unknown or zero duration")

    size = infos.get("video_size") or (0, 0)
    width, height = int(size[0] or 0), int(size[1] or 0)
    rotation = int(infos.get("video_rotation") or 0) % 360
    if rotation in ROTATED_DEGREES:
        width, height = height, width
    if width <= 0 or height <= 0:
        logger.debug("No frame size reported for %s, assuming %sx%s", validated_path, *FALLBACK_SIZE)
        width, height = FALLBACK_SIZE

    codec_name = str(infos.get("video_codec_name") or "unknown")
    file_size = validated_path.stat().st_size

    logger.debug(
        "Probed %s -> %sx%s, %.2fs, %s, %s bytes",
        validated_path,
        width,
        height,
        duration,
        codec_name,
        file_size,
    )
    return VideoMetadata(
        path=validated_path,
        duration_seconds=duration,
        width=width,
        height=height,
        codec_name=codec_name,
        file_size=file_size,
    )


def resolve_ffmpeg_binary(config: SheetConfig) -> str:
    """Return the decoder executable: configured path first, then moviepy's.

    A configured directory is searched for an ``ffmpeg`` executable.
    """

    configured = config.ffmpeg_binary
    if configured:
        candidate = Path(configured)
        if candidate.is_dir():
            name = "ffmpeg.exe" if os.name == "nt" else "ffmpeg"
            candidate = candidate / name
        return str(candidate)

    if not FFMPEG_BINARY:
        raise ExtractionError("ffmpeg not found. Install ffmpeg or set 'ffmpeg_binary' in the config.")
    return FFMPEG_BINARY
