"""Utility functions for ggtraces."""

from .colors import to_fill, to_rgb
from .logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "to_fill",
    "to_rgb",
]
