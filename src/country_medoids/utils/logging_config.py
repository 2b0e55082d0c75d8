"""
Logging setup shared by the library and the report scripts.

Usage:
    from country_medoids.utils.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
"""

import logging
import os
from pathlib import Path
from typing import Optional, Set, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False
_log_files: Set[Path] = set()


def setup_logging(
    level: Optional[Union[int, str]] = None,
    log_file: Optional[Union[str, Path]] = None,
    fmt: str = DEFAULT_FORMAT,
) -> None:
    """
    Configure the root logger.

    The console handler is attached once. Later calls only change the level,
    except that a ``log_file`` not seen before is still attached, so a script
    can add a file after an earlier bare ``setup_logging()``.

    Args:
        level: Logging level name or number. Falls back to the LOG_LEVEL
            environment variable, then INFO.
        log_file: Optional path; when given, records are also written there.
        fmt: Format string for all handlers.
    """
    global _configured

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(fmt)

    if not _configured:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)
        _configured = True

    if log_file is not None:
        path = Path(log_file).resolve()
        if path not in _log_files:
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
            _log_files.add(path)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)
