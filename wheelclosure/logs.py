"""
Logging setup: a live console stream plus persistent warnings.log / errors.log.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from pathlib import Path
from typing import List, Optional

ROOT_LOGGER = "wheelclosure"
WARNINGS_LOG = "warnings.log"
ERRORS_LOG = "errors.log"

_PREFIX = {logging.WARNING: "WARN:  ", logging.ERROR: "ERROR: ", logging.CRITICAL: "ERROR: "}


class _Formatter(logging.Formatter):
    """[UTC timestamp] message, with WARN/ERROR prefixes."""

    converter = time.gmtime

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        ts = self.formatTime(record, self.datefmt)
        msg = f"[{ts}] {_PREFIX.get(record.levelno, '')}{record.getMessage()}"
        if record.exc_info:
            msg = f"{msg}\n{self.formatException(record.exc_info)}"
        return msg


class _ExactLevel(logging.Filter):
    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno == self.level


class _Below(logging.Filter):
    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def setup_logging(log_dir: Optional[Path] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Configure the package logger. Idempotent: previous handlers are replaced.

    Console output goes to stdout, except ERROR records which go to stderr.

    With a log_dir, WARNING records are appended to warnings.log and ERROR
    records to errors.log in addition to the console.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.setLevel(level)
    logger.propagate = False

    fmt = _Formatter()
    console = logging.StreamHandler(sys.stdout)
    console.addFilter(_Below(logging.ERROR))
    console.setFormatter(fmt)
    stderr = logging.StreamHandler(sys.stderr)
    stderr.setLevel(logging.ERROR)
    stderr.setFormatter(fmt)
    logger.addHandler(console)
    logger.addHandler(stderr)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        warn_h = logging.FileHandler(log_dir / WARNINGS_LOG)
        warn_h.setLevel(logging.WARNING)
        warn_h.addFilter(_ExactLevel(logging.WARNING))
        warn_h.setFormatter(fmt)
        err_h = logging.FileHandler(log_dir / ERRORS_LOG)
        err_h.setLevel(logging.ERROR)
        err_h.setFormatter(fmt)
        logger.addHandler(warn_h)
        logger.addHandler(err_h)
    return logger


def _width() -> int:
    try:
        return int(os.environ.get("COLUMNS", "120"))
    except ValueError:
        return 120


def rule(logger: logging.Logger) -> None:
    logger.info("-" * _width())


def hdr(logger: logging.Logger, title: str) -> None:
    """Section header: blank line, rule, title, rule."""
    logger.info("")
    rule(logger)
    logger.info(title)
    rule(logger)


def bullets(logger: logging.Logger, items: List[str], indent: str = "  ") -> None:
    for item in items:
        logger.info("%s- %s", indent, item)
