from pathlib import Path

import pytest
from PIL import Image

from conftest import FRAME_COLOR, make_metadata
from thumbsheet.core import FrameSample
from thumbsheet.core.errors import SheetWriteError
from thumbsheet.core.layout import compute_geometry
from thumbsheet.core.sheet_builder import (
    cell_origin,
    compose_sheet,
    format_clock,
    format_details,
    format_file_size,
    format_timestamp,
    save_sheet,
)


def _frames(tmp_path, geometry, indices):
    samples = []
    for index in range(geometry.total_frames):
        sample = FrameSample(index=index, timestamp=30.0 * (index + 1))
        if index in indices:
            sample.path = tmp_path / f"frame_{index:04d}.jpg"
            Image.new("RGB", (geometry.thumb_width, geometry.thumb_height), FRAME_COLOR).save(sample.path)
        samples.append(sample)
    return samples


def _center(geometry, config, index):
    x, y = cell_origin(index, geometry, config.sheet_margin, config.thumbnail_padding)
    return x + geometry.thumb_width // 2, y + geometry.thumb_height // 2


def test_file_size_formatting():
    assert format_file_size(5 * 1024 * 1024) == "5MB"
    assert format_file_size(int(700.6 * 1024 * 1024)) == "701MB"
    assert format_file_size(1536 * 1024 * 1024) == "1.5GB"


def test_timestamp_formatting_switches_at_one_hour():
    assert format_timestamp(65.9) == "01:05"
    assert format_timestamp(3599) == "59:59"
    assert format_timestamp(3725) == "01:02:05"
    assert format_clock(600) == "00:10:00"


def test_detail_line():
    metadata = make_metadata(Path("clip.mp4"))
    assert format_details(metadata) == "5MB | 1920x1080 | 00:10:00 | H264"


def test_cell_origin_follows_row_major_order(small_config):
    geometry = compute_geometry(1920, 1080, small_config)
    margin, padding = small_config.sheet_margin, small_config.thumbnail_padding

    assert cell_origin(0, geometry, margin, padding) == (margin, margin + geometry.header_height)
    assert cell_origin(7, geometry, margin, padding) == (
        margin + 2 * (geometry.thumb_width + padding),
        margin + geometry.header_height + geometry.thumb_height + padding,
    )


def test_missing_frame_leaves_blank_cell(tmp_path, small_config):
    geometry = compute_geometry(1920, 1080, small_config)
    samples = _frames(tmp_path, geometry, set(range(24)))

    build = compose_sheet(geometry, make_metadata(Path("clip.mp4")), samples, small_config)

    assert build.image.size == (geometry.sheet_width, geometry.sheet_height)
    assert build.drawn_indices == list(range(24))
    assert build.missing_indices == [24]
    assert build.degraded
    assert build.image.getpixel(_center(geometry, small_config, 24)) == small_config.background_color
    red, green, blue, _ = build.image.getpixel(_center(geometry, small_config, 0))
    assert red > 150 and green < 80 and blue < 80


def test_timestamp_badge_darkens_bottom_right_corner(tmp_path, small_config):
    config = small_config.model_copy(update={"sheet_width": 1200})
    geometry = compute_geometry(1920, 1080, config)
    samples = _frames(tmp_path, geometry, {0})

    build = compose_sheet(geometry, make_metadata(Path("clip.mp4")), samples, config)

    x, y = cell_origin(0, geometry, config.sheet_margin, config.thumbnail_padding)
    corner = build.image.getpixel((x + geometry.thumb_width - 1, y + geometry.thumb_height - 1))
    assert corner[0] < 120


def test_zero_frames_still_returns_a_sheet(small_config):
    geometry = compute_geometry(1920, 1080, small_config)
    samples = [FrameSample(index=i, timestamp=float(i + 1)) for i in range(geometry.total_frames)]

    build = compose_sheet(geometry, make_metadata(Path("clip.mp4")), samples, small_config)

    assert build.image is not None
    assert build.drawn_indices == []
    assert len(build.missing_indices) == geometry.total_frames


def test_unreadable_frame_is_skipped(tmp_path, small_config):
    geometry = compute_geometry(1920, 1080, small_config)
    samples = _frames(tmp_path, geometry, {0, 1})
    samples[1].path.write_bytes(b"not a jpeg")

    build = compose_sheet(geometry, make_metadata(Path("clip.mp4")), samples, small_config)

    assert build.drawn_indices == [0]
    assert 1 in build.missing_indices


def test_save_sheet_writes_jpeg_without_leftovers(tmp_path):
    target = tmp_path / "out" / "clip.jpg"

    save_sheet(Image.new("RGBA", (40, 30), (1, 2, 3, 255)), target)

    with Image.open(target) as saved:
        assert saved.format == "JPEG"
        assert saved.size == (40, 30)
    assert sorted(p.name for p in target.parent.iterdir()) == ["clip.jpg"]


def test_save_sheet_rejects_unknown_extension(tmp_path):
    with pytest.raises(SheetWriteError):
        save_sheet(Image.new("RGBA", (4, 4)), tmp_path / "clip.unknownext")


def test_save_sheet_wraps_pillow_mode_errors(tmp_path):
    target = tmp_path / "out" / "clip.eps"

    with pytest.raises(SheetWriteError):
        save_sheet(Image.new("RGBA", (4, 4)), target)

    assert list(target.parent.iterdir()) == []
