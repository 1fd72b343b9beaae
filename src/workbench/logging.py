"""Logging for workbench.

Every subsystem logs through a child of the ``workbench`` logger
(``workbench.turn``, ``workbench.tools`` ...). Tool calls, their results
and turn transitions are logged there. Together with the SessionUpdate
stream this is the side channel for what the agent did.

Two extra levels sit between the standard ones: VERBOSE (15) for tool
arguments and model requests, TRACE (5) for raw stream chunks. ``-v``
flags count up from errors only (0) to everything (4).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from workbench.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

ROOT_LOGGER = "workbench"
LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

logger = logging.getLogger(ROOT_LOGGER)

VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)


class _LowercaseLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def level_for(config: LoggingConfig | None) -> int:
    """Effective level for a logging section; ``verbose`` wins over ``level``."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = min(max(config.verbose, 0), len(VERBOSITY_LEVELS) - 1)
        return VERBOSITY_LEVELS[index]
    if config.level:
        level = logging.getLevelName(config.level.upper())
        if isinstance(level, int):
            return level
    return logging.INFO


def _file_handler(path: str) -> logging.Handler | None:
    try:
        return logging.FileHandler(os.path.expanduser(path), mode="a", encoding="utf-8")
    except OSError as e:
        if sys.stderr.isatty():
            print(f"[workbench] cannot open log file {path}: {e}", file=sys.stderr)
        return None


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Attach handlers to the ``workbench`` logger. Only the first call counts.

    Records go to the configured file (``logging.file`` or ``WB_LOG``). With
    no file, or one that cannot be opened, they go to stderr, but only when
    stderr is a terminal: the chat REPL owns stdout and a piped stderr should
    stay clean.
    """
    if logger.handlers:
        return

    level = level_for(config)
    logger.setLevel(level)

    path = (config.file if config else None) or os.environ.get("WB_LOG")
    handler = _file_handler(path) if path else None
    if handler is None:
        if not sys.stderr.isatty():
            logger.addHandler(logging.NullHandler())
            return
        handler = logging.StreamHandler(sys.stderr)

    handler.setLevel(level)
    handler.setFormatter(_LowercaseLevelFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """The ``workbench`` logger, or its child for one subsystem."""
    return logger.getChild(name) if name else logger
