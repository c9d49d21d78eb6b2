"""Logging helpers for the rolehop CLI."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from .config import load_settings

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"

_logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Configura o logging do processo (stderr + arquivo opcional)."""
    settings = load_settings()
    level_name = (level or settings.logging.level).upper()
    numeric_level = getattr(logging, level_name, logging.WARNING)

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
    handlers.append(stream_handler)

    file_failed: OSError | None = None
    if settings.logging.file:
        try:
            Path(settings.logging.file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(settings.logging.file)
            file_handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
            handlers.append(file_handler)
        except OSError as exc:
            file_failed = exc

    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)

    # botocore é muito verboso em DEBUG
    logging.getLogger("botocore").setLevel(max(numeric_level, logging.INFO))

    if file_failed is not None:
        _logger.warning("Failed to open log file %s: %s", settings.logging.file, file_failed)
