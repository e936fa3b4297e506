"""Capture timestamp selection."""

from __future__ import annotations

import logging

import numpy as np

from . import FrameSample

logger = logging.getLogger(__name__)


def compute_sample_times(duration: float, total_frames: int, start_skip_fraction: float) -> list[float]:
    """Spread `total_frames` capture points evenly over the trimmed duration.

    The same fraction of the video is skipped at both ends, and samples sit
    strictly inside the remaining span: the span is divided into
    ``total_frames + 1`` intervals and one sample is taken at each inner
    boundary. Near-identical timestamps on very short clips are kept.
    """

    if total_frames < 1:
        raise ValueError("total_frames must be at least 1")
    if not 0 <= start_skip_fraction < 0.5:
        raise ValueError("start_skip_fraction must be in [0, 0.5)")
    if duration <= 0:
        raise ValueError("duration must be positive")

    skip = duration * start_skip_fraction
    effective = duration - 2 * skip
    interval = effective / (total_frames + 1)
    times = skip + interval * np.arange(1, total_frames + 1, dtype=float)
    logger.debug("Sampling %s frames every %.3fs after skipping %.3fs", total_frames, interval, skip)
    return times.tolist()


def build_samples(duration: float, total_frames: int, start_skip_fraction: float) -> list[FrameSample]:
    times = compute_sample_times(duration, total_frames, start_skip_fraction)
    return [FrameSample(index=idx, timestamp=ts) for idx, ts in enumerate(times)]
