import subprocess
from pathlib import Path

import pytest

from thumbsheet.core import FrameSample, frame_extractor
from thumbsheet.core.errors import ExtractionError
from thumbsheet.core.frame_extractor import build_command, extract_frames


def _samples(count):
    return [FrameSample(index=i, timestamp=10.0 * (i + 1)) for i in range(count)]


def test_build_command_seeks_and_scales():
    command = build_command("ffmpeg", Path("in.mp4"), 34.15384, 695, 391, Path("/tmp/x/frame_0000.jpg"))

    assert command[0] == "ffmpeg"
    assert command[command.index("-ss") + 1] == "34.154"
    assert command.index("-ss") < command.index("-i")
    assert command[command.index("-i") + 1] == "in.mp4"
    assert command[command.index("-frames:v") + 1] == "1"
    assert command[command.index("-vf") + 1].startswith("scale=695:391")
    assert command[-1] == str(Path("/tmp/x/frame_0000.jpg"))


def test_missing_output_is_a_soft_failure(tmp_path, fake_decoder):
    fake_decoder.skip_indices = {24}

    results = extract_frames(Path("clip.mp4"), _samples(25), 64, 36, tmp_path, "ffmpeg")

    assert len(fake_decoder.calls) == 25
    assert [s.index for s in results] == list(range(25))
    assert all(s.path is not None for s in results[:24])
    assert results[24].path is None
    assert results[0].path == tmp_path / "frame_0000.jpg"


def test_non_zero_exit_only_loses_that_frame(tmp_path, fake_decoder, caplog):
    fake_decoder.fail_indices = {2}

    results = extract_frames(Path("clip.mp4"), _samples(4), 64, 36, tmp_path, "ffmpeg")

    assert [s.index for s in results if s.path is None] == [2]
    assert "seek failed" in caplog.text


def test_timeout_is_a_soft_failure(tmp_path, monkeypatch):
    def _timeout(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs.get("timeout"))

    monkeypatch.setattr(frame_extractor.subprocess, "run", _timeout)

    results = extract_frames(Path("clip.mp4"), _samples(2), 64, 36, tmp_path, "ffmpeg", timeout=0.1)

    assert [s.path for s in results] == [None, None]


def test_unlaunchable_decoder_is_a_hard_failure(tmp_path, monkeypatch):
    def _missing(command, **kwargs):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr(frame_extractor.subprocess, "run", _missing)

    with pytest.raises(ExtractionError):
        extract_frames(Path("clip.mp4"), _samples(3), 64, 36, tmp_path, "/nowhere/ffmpeg")


def test_parallel_extraction_keeps_index_order(tmp_path, fake_decoder):
    results = extract_frames(Path("clip.mp4"), _samples(9), 32, 18, tmp_path, "ffmpeg", workers=4)

    assert [s.index for s in results] == list(range(9))
    assert all(s.path == tmp_path / f"frame_{s.index:04d}.jpg" for s in results)
    assert len(fake_decoder.calls) == 9
