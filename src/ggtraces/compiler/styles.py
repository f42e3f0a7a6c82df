"""Line and marker style blocks built from a layer's parameter bag.

ggplot names (colour, size, linetype, shape, alpha, direction) are
translated to plotly attribute names; unset params fall back to per-trace
defaults, and only attributes valid for the target trace type are emitted.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import pandas as pd

from ggtraces.utils.colors import to_rgb

# R line types (by name and by number) -> plotly dash
LINETYPE_TO_DASH: dict[str, str] = {
    "blank": "solid",
    "solid": "solid",
    "dashed": "dash",
    "dotted": "dot",
    "dotdash": "dashdot",
    "longdash": "longdash",
    "twodash": "longdashdot",
    "0": "solid",
    "1": "solid",
    "2": "dash",
    "3": "dot",
    "4": "dashdot",
    "5": "longdash",
    "6": "longdashdot",
}

# R point shapes (pch numbers and names) -> plotly marker symbols
SHAPE_TO_SYMBOL: dict[str, str] = {
    "0": "square-open",
    "1": "circle-open",
    "2": "triangle-up-open",
    "3": "cross-thin-open",
    "4": "x-thin-open",
    "5": "diamond-open",
    "6": "triangle-down-open",
    "7": "square-x-open",
    "8": "asterisk-open",
    "9": "diamond-cross-open",
    "10": "circle-cross-open",
    "11": "hexagram-open",
    "12": "square-cross-open",
    "13": "circle-x-open",
    "14": "triangle-up-open",
    "15": "square",
    "16": "circle",
    "17": "triangle-up",
    "18": "diamond",
    "19": "circle",
    "20": "circle",
    "21": "circle",
    "22": "square",
    "23": "diamond",
    "24": "triangle-up",
    "25": "triangle-down",
    "32": "circle",
    "circle": "circle",
    "square": "square",
    "diamond": "diamond",
    "triangle": "triangle-up",
    "cross": "cross",
    "plus": "cross-thin-open",
    "asterisk": "asterisk-open",
}

# Shapes drawn with a separate fill and outline colour
FILLED_SHAPES = frozenset({21, 22, 23, 24, 25})
# Shape code that draws nothing
BLANK_SHAPE = 32

LINE_DEFAULTS: dict[str, Any] = {
    "colour": "black",
    "size": 1,
    "linetype": "solid",
    "direction": "linear",
}
POLYGON_LINE_DEFAULTS: dict[str, Any] = {**LINE_DEFAULTS, "colour": "transparent"}
STEP_LINE_DEFAULTS: dict[str, Any] = {**LINE_DEFAULTS, "direction": "hv"}
MARKER_DEFAULTS: dict[str, Any] = {
    "colour": "black",
    "size": 6,
    "shape": 16,
    "alpha": 1,
}

SCATTER_LINE_FIELDS = ("color", "width", "dash", "shape")
BOX_LINE_FIELDS = ("color", "width")
CONTOUR_LINE_FIELDS = ("color", "width", "dash")


def param(params: Mapping[str, Any], key: str) -> Any:
    """Parameter value, or None when unset/missing. Vectors collapse to their first element."""
    value = params.get(key)
    if isinstance(value, pd.Series):
        value = value.iloc[0] if len(value) else None
    elif isinstance(value, (list, tuple)) or (hasattr(value, "__len__") and hasattr(value, "dtype")):
        value = value[0] if len(value) else None
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def shape_code(shape: Any) -> Optional[int]:
    """Numeric pch code of a shape, or None when the shape is named/unset."""
    if shape is None:
        return None
    try:
        number = float(shape)
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else None


def shape_to_symbol(shape: Any) -> str:
    code = shape_code(shape)
    key = str(code) if code is not None else str(shape)
    return SHAPE_TO_SYMBOL.get(key, "circle")


def linetype_to_dash(linetype: Any) -> str:
    code = shape_code(linetype)
    key = str(code) if code is not None else str(linetype)
    return LINETYPE_TO_DASH.get(key, "solid")


def line_style(
    params: Mapping[str, Any],
    defaults: Mapping[str, Any] = LINE_DEFAULTS,
    fields: Sequence[str] = SCATTER_LINE_FIELDS,
) -> dict[str, Any]:
    """Plotly ``line`` block for a trace.

    Widths are twice the ggplot size, matching how ggplot's millimetre sizes
    look in plotly's pixel units.
    """
    def pick(key: str) -> Any:
        value = param(params, key)
        return defaults.get(key) if value is None else value

    line: dict[str, Any] = {}
    if "color" in fields:
        colour = to_rgb(pick("colour"))
        if colour is not None:
            line["color"] = colour
    if "width" in fields:
        line["width"] = float(pick("size")) * 2
    if "dash" in fields:
        line["dash"] = linetype_to_dash(pick("linetype"))
    if "shape" in fields:
        line["shape"] = str(pick("direction"))
    return line


def marker_style(params: Mapping[str, Any], defaults: Mapping[str, Any] = MARKER_DEFAULTS) -> dict[str, Any]:
    """Plotly ``marker`` block for a point trace."""
    def pick(key: str) -> Any:
        value = param(params, key)
        return defaults.get(key) if value is None else value

    marker: dict[str, Any] = {
        "opacity": float(pick("alpha")),
        "size": float(pick("size")),
        "symbol": shape_to_symbol(pick("shape")),
    }
    colour = to_rgb(pick("colour"))
    if colour is not None:
        marker["color"] = colour
    return marker
