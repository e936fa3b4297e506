"""Sheet configuration model and JSON loading."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..utils import validators
from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_SECTION = ("AppSettings", "ThumbnailSheetConfig")
DEFAULT_CONFIG_NAME = "appsettings.json"

Color = tuple[int, int, int, int]


class GridPreset(BaseModel):
    """Named (columns, rows) pair chosen by video orientation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    columns: int = Field(5, ge=1, alias="ThumbnailsHorizontal")
    rows: int = Field(5, ge=1, alias="ThumbnailsVertical")


class SheetConfig(BaseModel):
    """Immutable settings shared by every sheet built in one run."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        validate_default=True,
        extra="ignore",
    )

    sheet_width: int = Field(3500, ge=1, alias="FinalSheetWidthPx")
    sheet_margin: int = Field(7, ge=0, alias="SheetMarginPx")
    thumbnail_padding: int = Field(2, ge=0, alias="ThumbnailPaddingPx")
    background_color: Color = Field("#2596be", alias="BackgroundColorHex")
    title_font_family: str = Field("Courier New", alias="TitleFontFamily")
    title_font_size: int = Field(45, ge=1, alias="TitleFontSize")
    title_font_color: Color = Field("#000000", alias="TitleFontColorHex")
    detail_font_family: str = Field("Courier New", alias="DetailFontFamily")
    detail_font_size: int = Field(40, ge=1, alias="DetailFontSize")
    detail_font_color: Color = Field("#000000", alias="DetailFontColorHex")
    start_skip_fraction: float = Field(0.02, ge=0, lt=0.5, alias="VideoStartSkipInLengthPercentage")
    sheet_extension: str = Field(".jpg", alias="SheetFileType")
    video_extensions: tuple[str, ...] = Field(
        (".mp4", ".avi", ".mkv", ".mov", ".wmv"), alias="VideoExtensions"
    )
    horizontal_video: GridPreset = Field(default_factory=GridPreset, alias="HorizontalVideo")
    vertical_video: GridPreset = Field(default_factory=GridPreset, alias="VerticalVideo")
    ffmpeg_binary: Optional[str] = Field(None, alias="ffmpeg")
    extract_workers: int = Field(1, ge=1, le=32)
    extract_timeout_seconds: float = Field(60.0, gt=0)
    stale_temp_age_seconds: float = Field(3600.0, ge=0)
    workers: int = Field(1, ge=1, le=64)
    shuffle: bool = True

    @field_validator("background_color", "title_font_color", "detail_font_color", mode="before")
    @classmethod
    def _parse_color(cls, value):
        if isinstance(value, (list, tuple)):
            if len(value) == 3:
                return (*value, 255)
            return tuple(value)
        if isinstance(value, str):
            return validators.parse_hex_color(value)
        raise ValueError("Color must be a hex string like #RRGGBB or #RRGGBBAA")

    @field_validator("sheet_extension", mode="before")
    @classmethod
    def _parse_sheet_extension(cls, value):
        return validators.normalize_extension(str(value))

    @field_validator("video_extensions", mode="before")
    @classmethod
    def _parse_video_extensions(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        return validators.normalize_extensions(value)

    @field_validator("ffmpeg_binary", mode="before")
    @classmethod
    def _blank_binary_to_none(cls, value):
        if value in (None, ""):
            return None
        return value


def load_config(path: Path | None = None) -> SheetConfig:
    """Load settings from a JSON file, or return defaults when no path is given.

    The file may hold the settings object directly or nest it under
    ``AppSettings.ThumbnailSheetConfig``. Keys are accepted either in
    snake_case or in their PascalCase aliases.
    """

    if path is None:
        return SheetConfig()

    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc

    section = _select_section(data)
    try:
        config = SheetConfig.model_validate(section)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc

    logger.debug("Loaded config from %s", path)
    return config


def _select_section(data) -> dict:
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")
    section = data
    for key in CONFIG_SECTION:
        if key in section and isinstance(section[key], dict):
            section = section[key]
    return section
