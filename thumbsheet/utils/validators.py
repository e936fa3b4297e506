"""Validation helpers for config values and input paths."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from PIL import ImageColor

from ..core.errors import ConfigError, ProbeError


def parse_hex_color(value: str) -> tuple[int, int, int, int]:
    """Parse '#RRGGBB' or '#RRGGBBAA' into an RGBA tuple."""

    text = value.strip() if isinstance(value, str) else ""
    if not text.startswith("#"):
        text = "#" + text
    if len(text) not in (7, 9):
        raise ConfigError(f"Color must be #RRGGBB or #RRGGBBAA, got {value!r}")
    try:
        rgb = ImageColor.getrgb(text)
    except ValueError as exc:
        raise ConfigError(f"Color must be #RRGGBB or #RRGGBBAA, got {value!r}") from exc
    if len(rgb) == 3:
        return (*rgb, 255)
    return tuple(rgb)  # type: ignore


def normalize_extension(value: str) -> str:
    """Lower-case an extension and make sure it starts with a dot."""

    ext = value.strip().lower()
    if not ext:
        raise ConfigError("File extension must not be empty")
    if not ext.startswith("."):
        ext = "." + ext
    return ext


def normalize_extensions(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(normalize_extension(v) for v in values))


def validate_video_path(path: Path) -> Path:
    """Ensure the video path exists and is a regular file."""

    if not path:
        raise ProbeError(Path("<unset>"), reason="No path provided")
    if not path.exists():
        raise ProbeError(path, reason="File not found")
    if not path.is_file():
        raise ProbeError(path, reason="Not a file")
    return path
