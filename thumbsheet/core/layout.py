"""Grid geometry for a contact sheet."""

from __future__ import annotations

import logging
from typing import Optional

from . import GridGeometry
from .config import GridPreset, SheetConfig
from .errors import ConfigError

logger = logging.getLogger(__name__)

FALLBACK_SIZE = (1920, 1080)
PORTRAIT_RATIO = 1.1
HEADER_GAP = 10
TIMESTAMP_FONT_RATIO = 0.1


def select_grid_preset(width: int, height: int, config: SheetConfig) -> GridPreset:
    """Pick the vertical preset only for clearly portrait video."""

    if height > width * PORTRAIT_RATIO:
        return config.vertical_video
    return config.horizontal_video


def compute_geometry(width: Optional[int], height: Optional[int], config: SheetConfig) -> GridGeometry:
    """Derive cell and sheet sizes from video dimensions and config."""

    if not width or not height or width <= 0 or height <= 0:
        logger.debug("Unknown video size %sx%s, assuming %sx%s", width, height, *FALLBACK_SIZE)
        width, height = FALLBACK_SIZE

    preset = select_grid_preset(width, height, config)
    columns, rows = preset.columns, preset.rows
    margin = config.sheet_margin
    padding = config.thumbnail_padding

    available = config.sheet_width - 2 * margin - (columns - 1) * padding
    thumb_width = available // columns
    if thumb_width < 1:
        raise ConfigError(
            f"Sheet width {config.sheet_width}px leaves no room for {columns} columns "
            f"(margin {margin}px, padding {padding}px)"
        )
    thumb_height = round(thumb_width * height / width)
    if thumb_height < 1:
        raise ConfigError(f"Video aspect {width}x{height} gives a zero-height thumbnail at {thumb_width}px wide")

    header_height = config.title_font_size + config.detail_font_size + HEADER_GAP
    sheet_height = 2 * margin + header_height + rows * thumb_height + (rows - 1) * padding

    return GridGeometry(
        columns=columns,
        rows=rows,
        thumb_width=thumb_width,
        thumb_height=thumb_height,
        header_height=header_height,
        sheet_width=config.sheet_width,
        sheet_height=sheet_height,
        title_font_size=config.title_font_size,
        detail_font_size=config.detail_font_size,
        timestamp_font_size=max(1, int(thumb_height * TIMESTAMP_FONT_RATIO)),
    )
