"""
Logging helpers for ggtraces.

The compiler reports every recoverable problem (an unsupported geom, dates
that cannot be re-read, a violin drawn as a box) as a WARNING record on the
``ggtraces`` logger hierarchy, in addition to ``PlotContext.warnings``.

Conventions
-----------
- Modules get their logger with ``get_logger(__name__)`` and never touch
  handlers.
- Only scripts call ``configure_logging()``. An application embedding the
  compiler configures logging its own way and receives the records through
  propagation.

Example
-------
    ```python
    from ggtraces.utils.logging import configure_logging
    configure_logging(level="DEBUG")   # or GGTRACES_LOG_LEVEL=DEBUG
    ```
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "ggtraces"
LOG_LEVEL_ENV_VAR = "GGTRACES_LOG_LEVEL"

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d:%(funcName)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Optional[Union[str, int]]) -> int:
    """Numeric level from a name, a number, or the environment (INFO when unknown)."""
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO")
    if isinstance(level, int):
        return level
    resolved = getattr(logging, str(level).strip().upper(), None)
    return resolved if isinstance(resolved, int) else logging.INFO


def _stderr_handler(logger: logging.Logger) -> Optional[logging.Handler]:
    for h in logger.handlers:
        if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr:
            return h
    return None


def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Send ``ggtraces`` records to stderr. The root logger is left alone.

    Parameters
    ----------
    level:
        Level name or number. Defaults to ``$GGTRACES_LOG_LEVEL``, then INFO.
    fmt, datefmt:
        Record and timestamp formats (``DEFAULT_FMT`` / ``DEFAULT_DATEFMT``).
    force:
        Drop every handler already attached to the package logger first.
        Without it a second call only updates the level.
    """
    numeric = _resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric)

    if force:
        for h in logger.handlers[:]:
            logger.removeHandler(h)
            h.close()
    existing = _stderr_handler(logger)
    if existing is not None:
        existing.setLevel(numeric)
        return

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric)
    console.setFormatter(logging.Formatter(fmt=fmt or DEFAULT_FMT, datefmt=datefmt or DEFAULT_DATEFMT))
    logger.addHandler(console)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger ``name``; the package logger when no name is given."""
    return logging.getLogger(name or PACKAGE_LOGGER)
