"""Diagnostics for ariabench.

Everything ariabench says goes to stderr through the ``ariabench``
logger, so it never mixes with what the benchmark prints on stdout.
Progress lines (INFO) are shown bare; warnings and errors carry an
``ariabench: <level>:`` prefix so they stand out from the benchmark's
own output.  An optional log file records every DEBUG line with
timestamps.

``micro`` mode replaces the process, which drops anything still
buffered; :func:`flush_logging` is called before every exec.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "ariabench"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class ConsoleFormatter(logging.Formatter):
    """Bare INFO/DEBUG lines, prefixed WARNING and above."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{_LOGGER_NAME}: {record.levelname.lower()}: {message}"
        return message


def console_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Console threshold for ``-v``/``-q``; *verbose* wins."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the ariabench logger.

    Calling it again replaces the handlers from the previous call.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level(verbose=verbose, quiet=quiet))
    console.setFormatter(ConsoleFormatter("%(message)s"))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def flush_logging() -> None:
    """Flush every ariabench handler and the standard streams."""
    for handler in logging.getLogger(_LOGGER_NAME).handlers:
        handler.flush()
    sys.stdout.flush()
    sys.stderr.flush()


def get_logger(name: str) -> logging.Logger:
    """Get a named child logger under the ariabench namespace."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
