import subprocess
from pathlib import Path

import pytest
from PIL import Image

from thumbsheet.core import VideoMetadata
from thumbsheet.core import frame_extractor, video_loader
from thumbsheet.core.config import GridPreset, SheetConfig

FRAME_COLOR = (200, 30, 30)


class FakeDecoder:
    """Stands in for subprocess.run and writes a solid frame per call."""

    def __init__(self):
        self.calls: list[list[str]] = []
        self.skip_indices: set[int] = set()
        self.fail_indices: set[int] = set()

    def __call__(self, command, **kwargs):
        self.calls.append(list(command))
        out_path = Path(command[-1])
        index = int(out_path.stem.split("_")[-1])
        if index in self.fail_indices:
            return subprocess.CompletedProcess(command, 1, stdout=None, stderr=b"seek failed")
        if index not in self.skip_indices:
            scale = command[command.index("-vf") + 1].split(",")[0]
            width, height = (int(v) for v in scale[len("scale="):].split(":"))
            Image.new("RGB", (width, height), FRAME_COLOR).save(out_path, format="JPEG")
        return subprocess.CompletedProcess(command, 0, stdout=None, stderr=b"")


@pytest.fixture
def fake_decoder(monkeypatch):
    decoder = FakeDecoder()
    monkeypatch.setattr(frame_extractor.subprocess, "run", decoder)
    monkeypatch.setattr(video_loader, "resolve_ffmpeg_binary", lambda config: "ffmpeg")
    return decoder


@pytest.fixture
def small_config():
    return SheetConfig(
        sheet_width=320,
        title_font_size=12,
        detail_font_size=10,
        horizontal_video=GridPreset(columns=5, rows=5),
        vertical_video=GridPreset(columns=3, rows=4),
        shuffle=False,
    )


def make_metadata(path: Path, width: int = 1920, height: int = 1080, duration: float = 600.0) -> VideoMetadata:
    return VideoMetadata(
        path=path,
        duration_seconds=duration,
        width=width,
        height=height,
        codec_name="h264",
        file_size=5 * 1024 * 1024,
    )


@pytest.fixture
def fake_probe(monkeypatch):
    """Probe that reports a 600s 1080p video for any existing path."""

    probed: list[Path] = []

    def _load(video_path):
        if not Path(video_path).exists():
            from thumbsheet.core.errors import ProbeError

            raise ProbeError(video_path, reason="File not found")
        probed.append(video_path)
        return make_metadata(Path(video_path))

    monkeypatch.setattr(video_loader, "load_metadata", _load)
    return probed


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "videos" / "clip.mp4"
    path.parent.mkdir()
    path.write_bytes(b"\x00" * 16)
    return path
