"""Colour helpers that turn ggplot-style colour values into plotly colour strings.

ggplot hands colours over as R colour names (``"grey60"``, ``"steelblue"``),
hex strings (``"#3366FF"``, optionally with an alpha byte) or ``NA``. Plotly
wants ``"rgb(r,g,b)"`` / ``"rgba(r,g,b,a)"`` strings.
"""

from __future__ import annotations

import re
from typing import Any, Optional

import pandas as pd
from matplotlib import colors as mcolors

from ggtraces.utils.logging import get_logger

logger = get_logger(__name__)

TRANSPARENT = "transparent"
INVISIBLE_RGBA = "rgba(0,0,0,0)"

# R's grey0..grey100 / gray0..gray100 levels
_R_GREY_RE = re.compile(r"^gr[ae]y(\d{1,3})$")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _parse_rgba(colour: str) -> Optional[tuple[float, float, float, float]]:
    """Parse an R or CSS colour name / hex string into an RGBA tuple in [0, 1]."""
    name = colour.strip().lower()
    m = _R_GREY_RE.match(name)
    if m:
        level = int(m.group(1))
        if level <= 100:
            v = round(level * 255 / 100) / 255
            return (v, v, v, 1.0)
    try:
        return mcolors.to_rgba(name)
    except ValueError:
        return None


def _format_alpha(alpha: float) -> str:
    return f"{round(float(alpha), 4):g}"


def to_rgb(colour: Any, alpha: float = 1) -> Optional[str]:
    """Convert a colour value to a plotly ``rgb()``/``rgba()`` string.

    ``None``/NA stay ``None`` so callers can omit the field. ``"transparent"``
    passes through unchanged. An alpha byte in the colour is multiplied with
    ``alpha``; the ``rgba`` form is used only when the result is not opaque.
    Unknown colour names are returned unchanged (with a warning) and left for
    the renderer to interpret.
    """
    if _is_missing(colour):
        return None
    colour = str(colour)
    if colour == TRANSPARENT:
        return colour
    rgba = _parse_rgba(colour)
    if rgba is None:
        logger.warning(f"Unrecognised colour {colour!r}, passing it through unchanged")
        return colour
    r, g, b, a = rgba
    a = a * (1 if _is_missing(alpha) else float(alpha))
    channels = ",".join(str(int(round(c * 255))) for c in (r, g, b))
    if a >= 1:
        return f"rgb({channels})"
    return f"rgba({channels},{_format_alpha(a)})"


def to_fill(fill: Any, alpha: Optional[float] = None) -> Optional[str]:
    """Fill colour for polygons/areas: ``fill`` at ``alpha`` (default opaque)."""
    return to_rgb(fill, 1 if alpha is None else alpha)
