"""Core data model for contact sheet generation."""

__all__ = [
    "VideoMetadata",
    "GridGeometry",
    "FrameSample",
    "SheetBuild",
    "ProcessingOutcome",
    "RunSummary",
]

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from PIL import Image


@dataclass(frozen=True)
class VideoMetadata:
    """Probed facts about a source video."""

    path: Path
    duration_seconds: float
    width: int
    height: int
    codec_name: str
    file_size: int


@dataclass(frozen=True)
class GridGeometry:
    """Sheet layout derived from one video and the active config."""

    columns: int
    rows: int
    thumb_width: int
    thumb_height: int
    header_height: int
    sheet_width: int
    sheet_height: int
    title_font_size: int
    detail_font_size: int
    timestamp_font_size: int

    @property
    def total_frames(self) -> int:
        return self.columns * self.rows


@dataclass
class FrameSample:
    """One capture point; `path` is set once a frame file exists."""

    index: int
    timestamp: float
    path: Optional[Path] = None


@dataclass
class SheetBuild:
    """Finished sheet raster plus what went into it."""

    image: Image.Image
    geometry: GridGeometry
    metadata: VideoMetadata
    drawn_indices: list[int] = field(default_factory=list)
    missing_indices: list[int] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.missing_indices)


@dataclass
class ProcessingOutcome:
    """Per-video result reported by the directory runner."""

    video_path: Path
    sheet_path: Path
    status: str
    elapsed_seconds: float = 0.0
    error: Optional[str] = None

    CREATED = "created"
    SKIPPED = "skipped"
    RACED = "raced"
    FAILED = "failed"


@dataclass
class RunSummary:
    """Counters for one run over one or more paths."""

    created: int = 0
    skipped: int = 0
    errors: int = 0
    orphans_removed: int = 0

    def record(self, outcome: ProcessingOutcome) -> None:
        if outcome.status == ProcessingOutcome.CREATED:
            self.created += 1
        elif outcome.status == ProcessingOutcome.FAILED:
            self.errors += 1
        else:
            self.skipped += 1

    def merge(self, other: "RunSummary") -> None:
        self.created += other.created
        self.skipped += other.skipped
        self.errors += other.errors
        self.orphans_removed += other.orphans_removed
