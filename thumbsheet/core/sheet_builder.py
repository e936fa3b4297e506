"""Contact sheet composition using Pillow."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Iterable

from PIL import Image, ImageDraw, ImageFont

from . import FrameSample, GridGeometry, SheetBuild, VideoMetadata
from .config import SheetConfig
from .errors import SheetWriteError
from ..utils import file_tools

logger = logging.getLogger(__name__)

SHEET_QUALITY = 85
DETAIL_OFFSET = 5
BADGE_COLOR = (0, 0, 0, int(255 * 0.7))
BADGE_TEXT_COLOR = (255, 255, 255, 255)
BADGE_PADDING_RATIO = 0.3
QUALITY_FORMATS = {"JPEG", "WEBP"}

KNOWN_FONT_FILES = {
    "courier new": ("cour.ttf", "courbd.ttf"),
    "arial": ("arial.ttf", "arialbd.ttf"),
    "dejavu sans": ("DejaVuSans.ttf", "DejaVuSans-Bold.ttf"),
    "dejavu sans mono": ("DejaVuSansMono.ttf", "DejaVuSansMono-Bold.ttf"),
}
FALLBACK_FONTS = (
    ("DejaVuSansMono.ttf", "DejaVuSansMono-Bold.ttf"),
    ("/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf", "/usr/share/fonts/truetype/dejavu/DejaVuSansMono-Bold.ttf"),
    ("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
    ("/Library/Fonts/Arial Unicode.ttf", "/Library/Fonts/Arial Unicode.ttf"),
)


def format_file_size(size_bytes: int) -> str:
    """Megabytes without decimals, or gigabytes with one once past 1024 MB."""

    megabytes = size_bytes / 1024 / 1024
    if megabytes >= 1024:
        return f"{megabytes / 1024:.1f}GB"
    return f"{megabytes:.0f}MB"


def format_clock(seconds: float) -> str:
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_timestamp(seconds: float) -> str:
    """HH:MM:SS from the first hour on, MM:SS before it."""

    if seconds >= 3600:
        return format_clock(seconds)
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def format_details(metadata: VideoMetadata) -> str:
    return " | ".join(
        [
            format_file_size(metadata.file_size),
            f"{metadata.width}x{metadata.height}",
            format_clock(metadata.duration_seconds),
            metadata.codec_name.upper(),
        ]
    )


def _font_candidates(family: str, bold: bool) -> list[str]:
    compact = family.replace(" ", "")
    regular = [family, f"{family}.ttf", f"{compact}.ttf", f"{compact.lower()}.ttf"]
    known = KNOWN_FONT_FILES.get(family.strip().lower())
    if known:
        regular.insert(0, known[0])
    if not bold:
        return regular
    bolded = [f"{family} Bold.ttf", f"{compact}-Bold.ttf", f"{compact}bd.ttf"]
    if known:
        bolded.insert(0, known[1])
    return bolded + regular


@lru_cache(maxsize=32)
def load_font(family: str, size: int, bold: bool = False) -> ImageFont.ImageFont:
    """Load a TrueType font by family, then fall back to bundled choices."""

    for candidate in _font_candidates(family, bold):
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    for regular, bolded in FALLBACK_FONTS:
        try:
            return ImageFont.truetype(bolded if bold else regular, size)
        except OSError:
            continue
    logger.warning("Font %r not found, falling back to Pillow's default font", family)
    return ImageFont.load_default(size=size)


def cell_origin(index: int, geometry: GridGeometry, margin: int, padding: int) -> tuple[int, int]:
    """Top-left corner of cell `index` in row-major order."""

    row, col = divmod(index, geometry.columns)
    x = margin + col * (geometry.thumb_width + padding)
    y = margin + geometry.header_height + row * (geometry.thumb_height + padding)
    return x, y


def compose_sheet(
    geometry: GridGeometry,
    metadata: VideoMetadata,
    samples: Iterable[FrameSample],
    config: SheetConfig,
) -> SheetBuild:
    """Draw header and frame grid; cells without a frame stay background."""

    margin = config.sheet_margin
    padding = config.thumbnail_padding
    sheet = Image.new("RGBA", (geometry.sheet_width, geometry.sheet_height), config.background_color)
    draw = ImageDraw.Draw(sheet)

    title_font = load_font(config.title_font_family, geometry.title_font_size)
    detail_font = load_font(config.detail_font_family, geometry.detail_font_size)
    timestamp_font = load_font(config.detail_font_family, geometry.timestamp_font_size, bold=True)

    draw.text((margin, margin), metadata.path.name, font=title_font, fill=config.title_font_color)
    draw.text(
        (margin, margin + geometry.title_font_size + DETAIL_OFFSET),
        format_details(metadata),
        font=detail_font,
        fill=config.detail_font_color,
    )

    # Badges go on their own layer so the translucent fill blends with the frame.
    badge_layer = Image.new("RGBA", sheet.size, (0, 0, 0, 0))
    badge_draw = ImageDraw.Draw(badge_layer)
    cell_size = (geometry.thumb_width, geometry.thumb_height)

    drawn: list[int] = []
    missing: list[int] = []
    for sample in sorted(samples, key=lambda s: s.index):
        if sample.index >= geometry.total_frames:
            continue
        if sample.path is None:
            missing.append(sample.index)
            continue
        try:
            with Image.open(sample.path) as raw:
                frame = raw.convert("RGBA")
        except (OSError, ValueError) as exc:
            logger.warning("Skipping unreadable frame %s (%s): %s", sample.index, sample.path, exc)
            missing.append(sample.index)
            continue
        if frame.size != cell_size:
            frame = frame.resize(cell_size)

        x, y = cell_origin(sample.index, geometry, margin, padding)
        sheet.paste(frame, (x, y))
        _draw_timestamp(badge_draw, sample.timestamp, timestamp_font, geometry.timestamp_font_size, x, y, cell_size)
        drawn.append(sample.index)

    sheet = Image.alpha_composite(sheet, badge_layer)
    logger.debug("Composited %s/%s frames for %s", len(drawn), geometry.total_frames, metadata.path.name)
    return SheetBuild(image=sheet, geometry=geometry, metadata=metadata, drawn_indices=drawn, missing_indices=missing)


def _draw_timestamp(
    draw: ImageDraw.ImageDraw,
    seconds: float,
    font: ImageFont.ImageFont,
    font_size: int,
    x: int,
    y: int,
    cell_size: tuple[int, int],
) -> None:
    text = format_timestamp(seconds)
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    text_w, text_h = right - left, bottom - top
    pad = int(font_size * BADGE_PADDING_RATIO)
    box_right = x + cell_size[0]
    box_bottom = y + cell_size[1]
    box_left = box_right - text_w - 2 * pad
    box_top = box_bottom - text_h - 2 * pad
    draw.rectangle((box_left, box_top, box_right - 1, box_bottom - 1), fill=BADGE_COLOR)
    draw.text((box_left + pad - left, box_top + pad - top), text, font=font, fill=BADGE_TEXT_COLOR)


def save_sheet(image: Image.Image, path: Path) -> Path:
    """Write the sheet through a sibling temp file, then swap it into place."""

    image_format = Image.registered_extensions().get(path.suffix.lower())
    if image_format is None:
        raise SheetWriteError(f"Unsupported sheet file type: {path.suffix}")

    output = image.convert("RGB") if image_format == "JPEG" else image
    params = {"quality": SHEET_QUALITY} if image_format in QUALITY_FORMATS else {}
    partial = file_tools.partial_path_for(path)
    try:
        file_tools.ensure_directory(path.parent)
        output.save(partial, format=image_format, **params)
        os.replace(partial, path)
    except (OSError, ValueError) as exc:
        try:
            partial.unlink(missing_ok=True)
        except OSError:
            logger.debug("Could not remove partial sheet %s", partial)
        raise SheetWriteError(f"Could not write sheet {path}: {exc}") from exc

    logger.info("Wrote sheet to %s", path)
    return path
