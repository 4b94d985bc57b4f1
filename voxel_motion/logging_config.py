"""Logging setup for the ``voxel_motion`` namespace."""

from __future__ import annotations

import logging
import sys


def setup_logging(level: int = logging.INFO) -> None:
    """Send ``voxel_motion`` log records to stdout at *level*."""
    logger = logging.getLogger("voxel_motion")
    logger.setLevel(level)

    # Streamlit reruns the script; replace rather than stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    ))
    logger.addHandler(handler)
