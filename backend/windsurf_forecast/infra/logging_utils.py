"""Logging setup for the CLI."""

from __future__ import annotations

import logging
import sys


def configure_logging(level: int = logging.WARNING) -> None:
    """Send log records to stderr so stdout stays clean for JSON output."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
