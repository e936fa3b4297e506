"""Filesystem helpers."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)


def ensure_directory(path: Path) -> Path:
    """Create a directory if it does not exist."""

    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)
    return path


def sheet_path_for(video_path: Path, sheet_extension: str) -> Path:
    """Return `<dir>/<stem><ext>` for a source video."""

    return video_path.parent / f"{video_path.stem}{sheet_extension}"


def base_key(path: Path) -> str:
    """Case-insensitive `<dir>/<stem>` key used to pair sheets with videos."""

    return str(path.parent / path.stem).lower()


def iter_files_with_extensions(root: Path, extensions: Iterable[str]) -> Iterator[Path]:
    """Yield files under root (recursively) whose suffix is in extensions."""

    wanted = {ext.lower() for ext in extensions}
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            candidate = Path(dirpath) / name
            if candidate.suffix.lower() in wanted:
                yield candidate


def list_files_with_extensions(root: Path, extensions: Iterable[str]) -> list[Path]:
    """Return a sorted recursive list of files in root with given extensions."""

    if not root.exists():
        return []
    return sorted(iter_files_with_extensions(root, extensions))


def partial_path_for(target: Path) -> Path:
    """Sibling path used while a sheet is being written."""

    return target.with_name(f".{target.name}.{os.getpid()}.partial")
