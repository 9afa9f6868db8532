# === FILE: sitemap_streams/logger.py ===
"""Logging for **sitemap_streams**.

Every module logs through the single :data:`logger` ("SitemapStreams")::

    from sitemap_streams.logger import logger
    logger.info("Rotated to sitemap %d", ordinal)

Importing the package is quiet: the logger starts at WARNING with one
stderr handler and no log file, so embedding the writers in another program
only surfaces aborted pipelines and failed sinks. Nothing propagates to the
root logger. The CLI calls :func:`init_logging` to pick a level, a format and
an optional rotating log file; :func:`library_default` puts the import-time
setup back (tests use it between CLI runs).
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, TextIO, Union

# --------------------------------------------------------------------------- #
# Constants & basic types                                                     #
# --------------------------------------------------------------------------- #

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LIBRARY_FORMAT: Final[str] = "%(name)s: %(levelname)s: %(message)s"
_LIBRARY_LEVEL: Final[str] = "WARNING"
_LOGGER_NAME: Final[str] = "SitemapStreams"

# rotate the CLI log file at 5 MiB, keeping 3 old files
_LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
_LOG_FILE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


# --------------------------------------------------------------------------- #
# Helper builders                                                             #
# --------------------------------------------------------------------------- #


def _console_handler(fmt: str, stream: Optional[TextIO] = None) -> logging.StreamHandler:
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _file_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    path = Path(file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=_LOG_FILE_MAX_BYTES,
        backupCount=_LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _drop_handlers(lg: logging.Logger) -> None:
    for handler in list(lg.handlers):
        lg.removeHandler(handler)
        handler.close()


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
    replace_handlers: bool = True,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """(Re)configure the project logger.

    Parameters
    ----------
    level
        Numeric or textual logging level (e.g. ``"DEBUG"``).
    log_file
        Path to a rotating logfile; its directory is created. *None* means
        console only.
    log_format
        Format string for :class:`logging.Formatter`.
    replace_handlers
        *True* closes and removes the current handlers first.
    stream
        Console stream, ``sys.stdout`` when omitted.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        _drop_handlers(lg)

    lg.addHandler(_console_handler(log_format, stream))

    if log_file is not None:
        lg.addHandler(_file_handler(log_file, log_format))

    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Shortcut used by the CLI: replace handlers and log to stdout at *level*."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


def library_default() -> logging.Logger:
    """Restore the import-time setup: WARNING and above to stderr, no file."""
    return configure(
        level=_LIBRARY_LEVEL,
        log_format=_LIBRARY_FORMAT,
        replace_handlers=True,
        stream=sys.stderr,
    )


# --------------------------------------------------------------------------- #
# Ready‑to‑use instance                                                       #
# --------------------------------------------------------------------------- #

logger: logging.Logger = library_default()

__all__ = ["logger", "configure", "init_logging", "library_default"]
