"""Route loguru output to stderr at a configurable level."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {name}:{line} - {message}"


def configure_logging(level: str = "INFO", log_path: Path | None = None) -> list[int]:
    """
    Replace loguru's sinks with stderr (and optionally a file).

    Returns:
        The ids of the sinks added, for `logger.remove`.
    """
    logger.remove()
    sink_ids = [logger.add(sys.stderr, level=level.upper(), format=_FORMAT)]
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sink_ids.append(logger.add(log_path, level=level.upper(), encoding="utf-8"))
    return sink_ids
