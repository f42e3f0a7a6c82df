"""Build one plotly trace dict from a row group and its parameter bag.

One builder per basic geom. Builders are pure: ``(data, params, config) ->
trace``. Optional fields whose source value is unset are left out of the
trace entirely, never written as ``None``: plotly treats a missing key and an
explicit null differently when it applies default styling.

Coordinate arrays are plain Python lists; ``None`` marks a missing value,
which plotly renders as a break in the line.
"""

from __future__ import annotations

import datetime as _dt
from typing import Any, Callable, Mapping, Optional

import numpy as np
import pandas as pd

from ggtraces.compiler.compiler_config import CompilerConfig
from ggtraces.compiler.geoms import Geom, name_column
from ggtraces.compiler.path_assembler import group_to_na
from ggtraces.compiler.styles import (
    BLANK_SHAPE,
    BOX_LINE_FIELDS,
    CONTOUR_LINE_FIELDS,
    FILLED_SHAPES,
    LINE_DEFAULTS,
    POLYGON_LINE_DEFAULTS,
    STEP_LINE_DEFAULTS,
    line_style,
    marker_style,
    param,
    shape_code,
)
from ggtraces.utils.colors import INVISIBLE_RGBA, to_fill, to_rgb

TraceBuilder = Callable[[pd.DataFrame, Mapping[str, Any], CompilerConfig], dict]

DEFAULT_FILL = "grey20"
BOX_DEFAULT_FILL = "white"
NS_PER_MS = 1_000_000
MS_PER_DAY = 24 * 60 * 60 * 1000
DATETIME_TEXT_FMT = "%Y-%m-%d %H:%M:%S"


def _py(value: Any) -> Any:
    """Python scalar for a cell, ``None`` for missing."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.strftime(DATETIME_TEXT_FMT)
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    if isinstance(value, np.generic):
        return value.item()
    return value


def values(series: pd.Series) -> list:
    """Column as a list of Python scalars with ``None`` for missing entries."""
    return [_py(v) for v in series.tolist()]


def _set(trace: dict, key: str, value: Any) -> None:
    if value is not None:
        trace[key] = value


def _first(data: pd.DataFrame, col: str) -> Any:
    if col not in data.columns or data.empty:
        return None
    return _py(data[col].iloc[0])


def _name(params: Mapping[str, Any]) -> Optional[str]:
    name = param(params, "name")
    return None if name is None else str(name)


def _text(data: pd.DataFrame) -> Optional[list]:
    return values(data["text"]) if "text" in data.columns else None


def _scatter(data: pd.DataFrame, params: Mapping[str, Any], mode: str) -> dict:
    trace = {
        "x": values(data["x"]) if "x" in data.columns else [],
        "y": values(data["y"]) if "y" in data.columns else [],
        "type": "scatter",
        "mode": mode,
    }
    _set(trace, "name", _name(params))
    _set(trace, "text", _text(data))
    return trace


def path(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    trace = _scatter(data, params, "lines")
    trace["line"] = line_style(params, LINE_DEFAULTS)
    return trace


def step(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    trace = _scatter(data, params, "lines")
    trace["line"] = line_style(params, STEP_LINE_DEFAULTS)
    return trace


def polygon(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    """Closed rings filled to the x axis; grouping is re-applied here."""
    rings = group_to_na(data, polygon=True)
    trace = _scatter(rings, params, "lines")
    trace["line"] = line_style(params, POLYGON_LINE_DEFAULTS)
    trace["fill"] = "tozerox"
    fill = param(params, "fill") or _first(data, "fill") or DEFAULT_FILL
    _set(trace, "fillcolor", to_fill(fill, param(params, "alpha")))
    return trace


def normalized_sizes(sizes: pd.Series, sizemin: Any, sizemax: Any, mult: float) -> list:
    """Marker sizes rescaled into [0.25, 5.25] and multiplied by ``mult``.

    When every size is the same the range is empty and all markers get the
    smallest size.
    """
    s = pd.to_numeric(sizes, errors="coerce").astype(float)
    lo = float(s.min()) if sizemin is None else float(sizemin)
    hi = float(s.max()) if sizemax is None else float(sizemax)
    span = hi - lo
    scaled = (s - lo) / span if span > 0 else s * 0.0
    return [_py(v) for v in ((5 * scaled + 0.25) * mult).tolist()]


def point(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    trace = _scatter(data, params, "markers")
    marker = marker_style(params)
    if "size" in data.columns:
        trace["text"] = [f"size: {_py(s)}" for s in data["size"].tolist()]
        marker["sizeref"] = config.marker_sizeref
        # always a list: plotly reads a scalar as one size for every point
        marker["size"] = normalized_sizes(
            data["size"], param(params, "sizemin"), param(params, "sizemax"), config.marker_size_mult
        )
        marker["line"] = {"width": 0}
    code = shape_code(param(params, "shape"))
    if code in FILLED_SHAPES:
        fill = param(params, "fill")
        marker["color"] = to_rgb(fill) if fill is not None else INVISIBLE_RGBA
        outline = marker.setdefault("line", {})
        colour = to_rgb(param(params, "colour"))
        if colour is not None:
            outline["color"] = colour
        outline["width"] = 1
    trace["marker"] = marker
    if code == BLANK_SHAPE:
        trace["visible"] = False
    return trace


def text(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    trace = {
        "x": values(data["x"]),
        "y": values(data["y"]),
        "type": "scatter",
        "mode": "text",
    }
    _set(trace, "name", _name(params))
    _set(trace, "text", values(data["label"]) if "label" in data.columns else None)
    font: dict[str, Any] = {}
    _set(font, "size", param(params, "size"))
    _set(font, "color", to_rgb(param(params, "colour")))
    if font:
        trace["textfont"] = font
    return trace


def time_to_ms(x: pd.Series) -> list:
    """Date-times as epoch milliseconds, dates as day counts in milliseconds.

    Other values are returned unchanged.
    """
    if pd.api.types.is_datetime64_any_dtype(x.dtype):
        stamps = pd.to_datetime(x)
        if stamps.dt.tz is not None:
            stamps = stamps.dt.tz_convert("UTC").dt.tz_localize(None)
        ms = (stamps - pd.Timestamp(0)) // pd.Timedelta(milliseconds=1)
        return [None if pd.isna(v) else int(v) for v in ms.tolist()]
    present = x.dropna()
    if len(present) and all(isinstance(v, _dt.date) for v in present):
        epoch = _dt.date(1970, 1, 1)
        out = []
        for v in x.tolist():
            if not isinstance(v, _dt.date):
                out.append(None)
            elif isinstance(v, _dt.datetime):
                out.append(pd.Timestamp(v).value // NS_PER_MS)
            else:
                out.append((v - epoch).days * MS_PER_DAY)
        return out
    return values(x)


def bar(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    x_col = name_column("x") if name_column("x") in data.columns else "x"
    trace = {
        "x": time_to_ms(data[x_col]),
        "y": values(data["y"]),
        "type": "bar",
    }
    _set(trace, "name", _name(params))
    _set(trace, "text", _text(data))
    marker: dict[str, Any] = {}
    _set(marker, "color", to_rgb(param(params, "fill")))
    colour = to_rgb(param(params, "colour"))
    if colour is not None:
        size = param(params, "size")
        marker["line"] = {"color": colour, "width": 1 if size is None else size}
    if marker:
        trace["marker"] = marker
    _set(trace, "opacity", param(params, "alpha"))
    return trace


def grid(data: pd.DataFrame, value_col: str) -> tuple[list, list, list]:
    """Long rows -> (sorted unique x, sorted unique y, z rows indexed [y][x])."""
    z = data[value_col]
    if isinstance(z.dtype, pd.CategoricalDtype):
        z = pd.Series(z.cat.codes + 1, index=z.index).where(z.notna())
    elif not pd.api.types.is_numeric_dtype(z.dtype):
        z = pd.Series(pd.Categorical(z).codes + 1, index=z.index).where(z.notna())
    frame = pd.DataFrame({"x": data["x"].to_numpy(), "y": data["y"].to_numpy(), "z": z.to_numpy(dtype=float)})
    table = frame.pivot_table(index="y", columns="x", values="z", aggfunc="first", dropna=False)
    rows = [[_py(v) for v in row] for row in table.to_numpy().tolist()]
    return [_py(v) for v in table.columns.tolist()], [_py(v) for v in table.index.tolist()], rows


def tile(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    value_col = name_column("fill") if name_column("fill") in data.columns else "fill"
    x, y, z = grid(data, value_col)
    trace = {"x": x, "y": y, "z": z, "type": "heatmap"}
    _set(trace, "name", _name(params))
    return trace


def boxplot(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    trace = {
        "y": values(data["y"]),
        "type": "box",
        "line": line_style(params, LINE_DEFAULTS, BOX_LINE_FIELDS),
        "fillcolor": to_rgb(_first(data, "fill") or BOX_DEFAULT_FILL),
    }
    _set(trace, "name", _name(params))
    return trace


def contour(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    x, y, z = grid(data, "z")
    trace = {
        "x": x,
        "y": y,
        "z": z,
        "type": "contour",
        "line": line_style(params, LINE_DEFAULTS, CONTOUR_LINE_FIELDS),
        "contours": {"coloring": "lines"},
    }
    _set(trace, "name", _name(params))
    return trace


def density2d(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    trace = {
        "x": values(data["x"]),
        "y": values(data["y"]),
        "type": "histogram2dcontour",
        "line": line_style(params, LINE_DEFAULTS, CONTOUR_LINE_FIELDS),
        "contours": {"coloring": "lines"},
    }
    _set(trace, "name", _name(params))
    return trace


def error_spec(data: pd.DataFrame, params: Mapping[str, Any], axis: str) -> tuple[list, dict]:
    """Center values and the plotly ``error_<axis>`` block for an error bar layer.

    The upward error is ``max - center`` and the downward error
    ``center - min``. Equal (within float tolerance) errors give one
    symmetric spec, otherwise ``arrayminus`` is added.
    """
    lo = pd.to_numeric(data[f"{axis}min"], errors="coerce").astype(float)
    hi = pd.to_numeric(data[f"{axis}max"], errors="coerce").astype(float)
    if axis in data.columns:
        center = pd.to_numeric(data[axis], errors="coerce").astype(float)
    else:
        center = (lo + hi) / 2
    up = (hi - center).to_numpy()
    down = (center - lo).to_numpy()
    spec: dict[str, Any] = {
        "array": [_py(v) for v in up.tolist()],
        "type": "data",
        "symmetric": True,
    }
    _set(spec, "width", param(params, "width"))
    _set(spec, "color", to_rgb(param(params, "colour")) or to_rgb(_first(data, "colour")))
    if not np.allclose(up, down, rtol=1.5e-8, atol=1e-12, equal_nan=True):
        spec["arrayminus"] = [_py(v) for v in down.tolist()]
        spec["symmetric"] = False
    return [_py(v) for v in center.tolist()], spec


def _errorbar(data: pd.DataFrame, params: Mapping[str, Any], axis: str) -> dict:
    other = "x" if axis == "y" else "y"
    center, spec = error_spec(data, params, axis)
    trace = {
        axis: center,
        other: values(data[other]) if other in data.columns else [],
        "type": "scatter",
        "mode": "none",
    }
    _set(trace, "name", _name(params))
    trace[f"error_{axis}"] = spec
    return trace


def errorbar(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    return _errorbar(data, params, "y")


def errorbarh(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    return _errorbar(data, params, "x")


def area(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    """Area under a curve, closed down to y = 0 at both ends."""
    xs = values(data["x"])
    ys = values(data["y"])
    trace: dict[str, Any] = {
        "x": [xs[0], *xs, xs[-1]] if xs else [],
        "y": [0, *ys, 0] if ys else [],
        "type": "scatter",
        "line": line_style(params, POLYGON_LINE_DEFAULTS),
        "fill": "tozeroy",
    }
    _set(trace, "name", _name(params))
    fill = param(params, "fill") or _first(data, "fill") or DEFAULT_FILL
    _set(trace, "fillcolor", to_fill(fill, param(params, "alpha")))
    return trace


def _line_coefficients(data: pd.DataFrame, params: Mapping[str, Any]) -> list[tuple[float, float]]:
    """Distinct (slope, intercept) pairs from params, else from the rows."""
    slope, intercept = param(params, "slope"), param(params, "intercept")
    if slope is not None and intercept is not None:
        return [(float(slope), float(intercept))]
    if "slope" in data.columns and "intercept" in data.columns:
        pairs = data[["slope", "intercept"]].dropna().drop_duplicates()
        return [(float(s), float(i)) for s, i in pairs.itertuples(index=False)]
    return []


def abline(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    """One segment across the plot width per line; segments separated by ``None``."""
    xstart, xend = param(params, "xstart"), param(params, "xend")
    xs: list = []
    ys: list = []
    if xstart is not None and xend is not None:
        for slope, intercept in _line_coefficients(data, params):
            if xs:
                xs.append(None)
                ys.append(None)
            xs.extend([_py(xstart), _py(xend)])
            ys.extend([intercept + xstart * slope, intercept + xend * slope])
    trace = {"x": xs, "y": ys, "type": "scatter", "mode": "lines"}
    _set(trace, "name", _name(params))
    trace["line"] = line_style(params, LINE_DEFAULTS)
    return trace


def _intercept(data: pd.DataFrame, params: Mapping[str, Any], col: str) -> Any:
    value = _first(data, col)
    return param(params, col) if value is None else value


def hline(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    y = _intercept(data, params, "yintercept")
    trace = {
        "x": [_py(param(params, "xstart")), _py(param(params, "xend"))],
        "y": [y, y],
        "type": "scatter",
        "mode": "lines",
    }
    _set(trace, "name", _name(params))
    trace["line"] = line_style(params, LINE_DEFAULTS)
    return trace


def vline(data: pd.DataFrame, params: Mapping[str, Any], config: CompilerConfig) -> dict:
    x = _intercept(data, params, "xintercept")
    trace = {
        "x": [x, x],
        "y": [_py(param(params, "ystart")), _py(param(params, "yend"))],
        "type": "scatter",
        "mode": "lines",
    }
    _set(trace, "name", _name(params))
    trace["line"] = line_style(params, LINE_DEFAULTS)
    return trace


TRACE_BUILDERS: dict[Geom, TraceBuilder] = {
    Geom.PATH: path,
    Geom.POLYGON: polygon,
    Geom.POINT: point,
    Geom.TEXT: text,
    Geom.BAR: bar,
    Geom.STEP: step,
    Geom.TILE: tile,
    Geom.BOXPLOT: boxplot,
    Geom.CONTOUR: contour,
    Geom.DENSITY2D: density2d,
    Geom.ERRORBAR: errorbar,
    Geom.ERRORBARH: errorbarh,
    Geom.AREA: area,
    Geom.ABLINE: abline,
    Geom.HLINE: hline,
    Geom.VLINE: vline,
}


def get_builder(geom: object) -> Optional[TraceBuilder]:
    """Trace builder for a basic geom, or None when the geom cannot be drawn."""
    return TRACE_BUILDERS.get(Geom.from_tag(geom))


def trim_trailing_missing(trace: dict) -> dict:
    """Drop one trailing missing x and y entry left over from path assembly."""
    for key in ("x", "y"):
        vals = trace.get(key)
        if isinstance(vals, list) and vals and vals[-1] is None:
            trace[key] = vals[:-1]
    return trace
