from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

from .lib.env import PATHS

DEFAULT_LOG_PATH = PATHS.log_default

FORMATTER = logging.Formatter(
    fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure console logging.

    Every decision is printed with a timestamp. The persistent log file is
    attached separately (attach_log_file) once the configuration says where
    it lives, and only in real runs.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_kiosk_configured", False):
        return

    console = logging.StreamHandler()
    console.setFormatter(FORMATTER)
    logger.addHandler(console)
    setattr(logger, "_kiosk_configured", True)


def buffer_records() -> logging.handlers.MemoryHandler:
    """Hold records until the log file location is known."""

    handler = logging.handlers.MemoryHandler(capacity=10_000, flushLevel=logging.CRITICAL + 1)
    logging.getLogger().addHandler(handler)
    return handler


def attach_log_file(
    log_path: str = DEFAULT_LOG_PATH,
    buffered: Optional[logging.handlers.MemoryHandler] = None,
) -> str:
    """Also write log records to log_path.

    Notes:
    - Writing to /var/log may not be permitted everywhere. We still *attempt*
      it first; if it fails, we fall back to a file in the working directory
      and report both paths.
    - Records held by a buffer_records() handler are written out first.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()
    current = getattr(logger, "_kiosk_log_path", None)
    if current is not None:
        return current

    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path)
        chosen_path = log_path
    except OSError:
        chosen_path = str(Path.cwd() / PATHS.log_fallback_name)
        handler = logging.FileHandler(chosen_path)

    handler.setFormatter(FORMATTER)
    logger.addHandler(handler)
    setattr(logger, "_kiosk_log_path", chosen_path)

    if buffered is not None:
        logger.removeHandler(buffered)
        buffered.setTarget(handler)
        buffered.close()

    logging.getLogger(__name__).info(
        "Logging to file (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
