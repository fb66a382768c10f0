# === FILE: site_harvest/logger.py ===
"""Logging for the **SiteHarvest** crawl engine.

Every component logs through a child of one project logger, so a single
:func:`configure` call controls the whole engine::

      SiteHarvest               engine facade, URL helpers
      SiteHarvest.governor      admission, queueing, permit release
      SiteHarvest.orchestrator  session start/finish, deadlines, aborts
      SiteHarvest.frontier      budget refusals
      SiteHarvest.fetcher       per-request failures
      SiteHarvest.processor     degraded pages, retries
      SiteHarvest.parser        lenient-parse fallbacks
      SiteHarvest.catalog       signature catalog loading
      SiteHarvest.detect        detector faults

Console output goes to **stderr**: ``site-harvest scrape`` prints its JSON
result on stdout and a log line there would corrupt it. An optional rotating
file keeps the history of a long-running engine process.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteHarvest"

# rotation of the optional log file
FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
FILE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def _stderr_handler(fmt: str) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _rotating_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=str(file),
        maxBytes=FILE_MAX_BYTES,
        backupCount=FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Set up the ``SiteHarvest`` logger that all engine components inherit from.

    Parameters
    ----------
    level
        Level for the whole engine. The CLI passes ``WARNING`` by default, so a
        normal scrape only reports failed pages and rejected sessions.
    log_file
        Optional path; records are also written there with rotation
        (``FILE_MAX_BYTES`` per file, ``FILE_BACKUPS`` old files kept).
    log_format
        Format string shared by the stderr and file handlers.
    replace_handlers
        Close and drop the handlers of a previous call first. The CLI always
        does this, so repeated invocations in one process (tests, embedding)
        never write to a stale or closed stream.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    lg.addHandler(_stderr_handler(log_format))
    if log_file is not None:
        lg.addHandler(_rotating_handler(log_file, log_format))

    # host applications keep their own root configuration untouched
    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Entry point for the CLI group: fresh handlers at *level*."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


def get_logger(name: str | None = None) -> logging.Logger:
    """Component logger ``SiteHarvest.<name>``, or the project logger itself."""
    return logging.getLogger(LOGGER_NAME if not name else f"{LOGGER_NAME}.{name}")


logger: logging.Logger = init_logging()

__all__ = [
    "logger",
    "configure",
    "init_logging",
    "get_logger",
    "LOGGER_NAME",
    "DEFAULT_FORMAT",
    "FILE_MAX_BYTES",
    "FILE_BACKUPS",
]
