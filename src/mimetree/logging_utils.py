"""Logging setup for the mimetree command line.

Library modules only create ``logging.getLogger(__name__)`` loggers; handlers
are installed here, by the entry point, on the root logger.
"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from mimetree.constants import ENV_LOG_LEVEL

# Name prefix of the handlers installed by configure_logging
_HANDLER_PREFIX = "mimetree."

_PLAIN_FORMAT = "%(levelname)s: %(message)s"
_TRACE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
_TRACE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def default_log_level() -> str:
    """Return the level named by ``MIMETREE_LOG_LEVEL``, or ``WARNING``."""
    return os.getenv(ENV_LOG_LEVEL, "WARNING").upper()


def resolve_level(log_level: int | str) -> int:
    """Turn a level name or number into a numeric level; unknown names mean INFO."""
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(str(log_level).upper())
    return level if isinstance(level, int) else logging.INFO


def _install(root: logging.Logger, handler: logging.Handler, name: str, level: int, trace_mode: bool) -> None:
    handler.set_name(f"{_HANDLER_PREFIX}{name}")
    handler.setLevel(level)
    if trace_mode:
        handler.setFormatter(logging.Formatter(_TRACE_FORMAT, datefmt=_TRACE_DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))
    root.addHandler(handler)


def configure_logging(
    log_level: int | str,
    log_file: Optional[str] = None,
    trace_mode: bool = False,
) -> logging.Logger:
    """Send log records to stderr and, optionally, to a file.

    Calling it again replaces the handlers of the previous call; handlers
    installed by anything else are left in place.

    Parameters
    ----------
    log_level : int | str
        Numeric level or level name (e.g. ``"DEBUG"``)
    log_file : str, optional
        File that also receives every record (appended to)
    trace_mode : bool, default False
        Prefix records with a timestamp and the logger name

    Returns
    -------
    logging.Logger
        The root logger

    """
    level = resolve_level(log_level)
    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        if (handler.get_name() or "").startswith(_HANDLER_PREFIX):
            root.removeHandler(handler)
            handler.close()

    _install(root, logging.StreamHandler(sys.stderr), "console", level, trace_mode)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as e:
            root.warning(f"Could not open log file {log_file}: {e}")
        else:
            _install(root, file_handler, "file", level, trace_mode)
            root.info(f"Logging to file: {log_file}")

    return root
