#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/utils/decorators.py
"""Utility decorators for mimetree plugins.

This module centralizes the optional-dependency checks performed before a
plugin touches its third-party library, plus a DEBUG-only timing helper.

"""

from __future__ import annotations

import importlib
import inspect
import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, List, Tuple

from mimetree.exceptions import DependencyError
from mimetree.utils.packages import check_version_requirement


def check_dependencies(plugin_name: str, packages: List[Tuple[str, str, str]]) -> None:
    """Raise DependencyError if any package is missing or too old.

    Parameters
    ----------
    plugin_name : str
        Name of the plugin, shown in the error message
    packages : list of tuple
        Required packages as (install_name, import_name, version_spec) tuples

    Raises
    ------
    DependencyError
        If any package is missing or has an incompatible version

    """
    missing = []
    version_mismatches = []
    original_error = None

    for install_name, import_name, version_spec in packages:
        try:
            # nosemgrep: python.lang.security.audit.non-literal-import.non-literal-import
            importlib.import_module(import_name)

            if version_spec:
                meets_requirement, installed_version = check_version_requirement(install_name, version_spec)
                if not meets_requirement:
                    version_mismatches.append((install_name, version_spec, installed_version or "unknown"))

        except ImportError as e:
            missing.append((install_name, version_spec))
            if original_error is None:
                original_error = e

    if missing or version_mismatches:
        raise DependencyError(
            plugin_name=plugin_name,
            missing_packages=missing,
            version_mismatches=version_mismatches,
            original_import_error=original_error,
        ) from original_error


def requires_dependencies(plugin_name: str, packages: List[Tuple[str, str, str]]) -> Callable:
    """Check required dependencies and versions before calling the function.

    Works on plain functions and on coroutine functions.

    Parameters
    ----------
    plugin_name : str
        Name of the plugin (e.g., "markdown", "html")
    packages : list of tuple
        Required packages as (install_name, import_name, version_spec) tuples

    Returns
    -------
    Callable
        Decorated function that checks dependencies before execution

    Examples
    --------
        >>> @requires_dependencies("html", [("beautifulsoup4", "bs4", ">=4.12.0")])
        ... def parse_html(text):
        ...     from bs4 import BeautifulSoup
        ...     return BeautifulSoup(text, "html.parser")

    """

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                check_dependencies(plugin_name, packages)
                return await func(*args, **kwargs)

            return async_wrapper

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            check_dependencies(plugin_name, packages)
            return func(*args, **kwargs)

        return wrapper

    return decorator


@contextmanager
def debug_timer(logger: logging.Logger, operation: str) -> Generator[None, None, None]:
    """Time a block and log the elapsed time at DEBUG level.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance to use for DEBUG messages
    operation : str
        Description of the operation being timed (e.g., "Parsing (text/html)")

    Notes
    -----
    Nothing is measured when the logger is not enabled for DEBUG.

    """
    if logger.isEnabledFor(logging.DEBUG):
        start_time = time.perf_counter()
        yield
        elapsed = time.perf_counter() - start_time
        logger.debug(f"{operation} completed in {elapsed:.2f}s")
    else:
        yield
