"""Entry point for the thumbsheet command."""

from __future__ import annotations

import logging
import sys

from . import cli


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def run() -> int:
    """Configure logging and run the CLI."""

    configure_logging()
    return cli.main()


if __name__ == "__main__":
    sys.exit(run())
