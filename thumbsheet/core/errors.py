"""Domain-specific exceptions for the contact sheet generator."""

from pathlib import Path


class SheetError(RuntimeError):
    """Base class for failures that abort one video's sheet."""


class ProbeError(SheetError):
    """Raised when the video file is missing, unreadable or unrecognized."""

    def __init__(self, path: Path, reason: str | None = None):
        message = f"Invalid video file: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.path = path
        self.reason = reason


class ConfigError(SheetError, ValueError):
    """Raised when configuration is invalid or yields a degenerate layout."""


class ExtractionError(SheetError):
    """Raised when the frame decoder fails in a way no cell can recover from."""


class SheetWriteError(SheetError):
    """Raised when a finished sheet cannot be written to disk."""
