"""Frame extraction with one ffmpeg process per capture point.

Each sample is decoded by its own short-lived process that seeks, grabs a
single frame, scales it to the cell size and writes a JPEG named after the
sample index. A failed seek costs only that cell; the compositor leaves it
blank. Only a decoder that cannot be started at all fails the whole build.
"""

from __future__ import annotations

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Sequence

from . import FrameSample
from .errors import ExtractionError

logger = logging.getLogger(__name__)

FRAME_NAME = "frame_{index:04d}.jpg"
FRAME_QSCALE = 5
STDERR_TAIL = 400


def frame_path(output_dir: Path, index: int) -> Path:
    return output_dir / FRAME_NAME.format(index=index)


def build_command(
    ffmpeg_binary: str,
    video_path: Path,
    timestamp: float,
    width: int,
    height: int,
    out_path: Path,
) -> list[str]:
    """Assemble the decoder invocation for one frame (input seeking)."""

    return [
        ffmpeg_binary,
        "-hide_banner",
        "-loglevel",
        "error",
        "-nostdin",
        "-ss",
        f"{timestamp:.3f}",
        "-i",
        str(video_path),
        "-frames:v",
        "1",
        "-vf",
        f"scale={width}:{height},format=yuvj420p",
        "-q:v",
        str(FRAME_QSCALE),
        "-y",
        str(out_path),
    ]


def extract_frames(
    video_path: Path,
    samples: Sequence[FrameSample],
    width: int,
    height: int,
    output_dir: Path,
    ffmpeg_binary: str,
    timeout: float | None = None,
    workers: int = 1,
) -> list[FrameSample]:
    """Decode every sample into `output_dir`, setting `path` where a frame landed.

    Raises ExtractionError if the decoder binary cannot be launched.
    """

    logger.info("Extracting %s frames from %s", len(samples), video_path.name)

    def _run(sample: FrameSample) -> FrameSample:
        return _extract_one(video_path, sample, width, height, output_dir, ffmpeg_binary, timeout)

    if workers > 1 and len(samples) > 1:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ffmpeg") as pool:
            results = list(pool.map(_run, samples))
    else:
        results = [_run(sample) for sample in samples]

    results.sort(key=lambda s: s.index)
    missing = [s.index for s in results if s.path is None]
    if missing:
        logger.warning("%s of %s frames missing for %s: %s", len(missing), len(results), video_path.name, missing)
    return results


def _extract_one(
    video_path: Path,
    sample: FrameSample,
    width: int,
    height: int,
    output_dir: Path,
    ffmpeg_binary: str,
    timeout: float | None,
) -> FrameSample:
    out_path = frame_path(output_dir, sample.index)
    command = build_command(ffmpeg_binary, video_path, sample.timestamp, width, height, out_path)
    result = FrameSample(index=sample.index, timestamp=sample.timestamp)

    try:
        completed = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        raise ExtractionError(f"Could not start decoder '{ffmpeg_binary}': {exc}") from exc
    except PermissionError as exc:
        raise ExtractionError(f"Decoder '{ffmpeg_binary}' is not executable: {exc}") from exc
    except subprocess.TimeoutExpired:
        logger.warning("Frame %s at %.2fs timed out after %ss", sample.index, sample.timestamp, timeout)
        return result

    if completed.returncode != 0:
        stderr = (completed.stderr or b"").decode("utf-8", errors="replace").strip()
        logger.warning(
            "Frame %s at %.2fs failed (exit %s): %s",
            sample.index,
            sample.timestamp,
            completed.returncode,
            stderr[-STDERR_TAIL:],
        )
        return result

    if not out_path.exists() or out_path.stat().st_size == 0:
        logger.debug("Frame %s at %.2fs produced no output", sample.index, sample.timestamp)
        return result

    result.path = out_path
    return result
