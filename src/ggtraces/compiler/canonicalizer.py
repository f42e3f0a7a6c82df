"""Reduce source geoms to the basic geoms that trace synthesis understands.

Each rule is a pure function ``(Layer, CompilerConfig) -> Layer``. Geoms
without a rule are already basic (or unsupported) and pass through unchanged.
In ggplot this work happens in each geom's draw method.
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np
import pandas as pd

from ggtraces.compiler.compiler_config import CompilerConfig
from ggtraces.compiler.geoms import Geom
from ggtraces.compiler.layer import Layer
from ggtraces.compiler.path_assembler import GROUP_COL, group_to_na, grouped_ribbon_rows
from ggtraces.utils.logging import get_logger

logger = get_logger(__name__)

CanonicalRule = Callable[[Layer, CompilerConfig], Layer]


def _is_unset(params, key: str) -> bool:
    return params.get(key) is None


def _global_extent(prestats: pd.DataFrame, data: pd.DataFrame, axis: str) -> tuple[Optional[float], Optional[float]]:
    """Min/max of ``axis`` over the whole pre-statistics table.

    Upstream may provide ``glob<axis>min``/``glob<axis>max`` columns holding
    the plot-wide range; otherwise the axis column itself is used.
    """
    lo_col, hi_col = f"glob{axis}min", f"glob{axis}max"
    for table in (prestats, data):
        if lo_col in table.columns and hi_col in table.columns and len(table):
            return _scalar(table[lo_col].min()), _scalar(table[hi_col].max())
    for table in (prestats, data):
        if axis in table.columns and table[axis].notna().any():
            values = pd.to_numeric(table[axis], errors="coerce")
            if values.notna().any():
                return _scalar(values.min()), _scalar(values.max())
    return None, None


def _scalar(value):
    if isinstance(value, np.generic):
        return value.item()
    return value


def _path(layer: Layer, geom: Geom) -> Layer:
    return layer.evolve(data=group_to_na(layer.data), geom=geom.value)


def _no_vertices(others: pd.DataFrame) -> pd.DataFrame:
    return pd.DataFrame(columns=["x", "y", *others.columns])


def segment(layer: Layer, config: CompilerConfig) -> Layer:
    """Every row is one segment: a 2-point group (start, end), drawn as one path."""
    data = layer.data.reset_index(drop=True)
    others = data.drop(columns=[c for c in ("x", "y", "xend", "yend", GROUP_COL) if c in data.columns])
    if data.empty:
        return layer.evolve(data=_no_vertices(others), geom=Geom.PATH.value)
    ids = pd.Series(np.arange(len(data)), name=GROUP_COL)
    start = pd.concat([data[["x", "y"]], others, ids], axis=1)
    end = pd.concat([data["xend"].rename("x"), data["yend"].rename("y"), others, ids], axis=1)
    rows = pd.concat([start, end]).sort_values(GROUP_COL, kind="mergesort").reset_index(drop=True)
    return _path(layer.evolve(data=rows), Geom.PATH)


def rect(layer: Layer, config: CompilerConfig) -> Layer:
    """Every row becomes a 4-vertex ring tagged with its row index."""
    data = layer.data.reset_index(drop=True)
    others = data.drop(columns=[c for c in ("xmin", "xmax", "ymin", "ymax", "x", "y", GROUP_COL) if c in data.columns])
    if data.empty:
        return layer.evolve(data=_no_vertices(others), geom=Geom.POLYGON.value)
    ids = pd.Series(np.arange(len(data)), name=GROUP_COL)
    corners = (("xmin", "ymin"), ("xmin", "ymax"), ("xmax", "ymax"), ("xmax", "ymin"))
    vertices = [
        pd.concat([data[xc].rename("x"), data[yc].rename("y"), others, ids], axis=1)
        for xc, yc in corners
    ]
    rows = pd.concat(vertices).sort_values(GROUP_COL, kind="mergesort").reset_index(drop=True)
    return layer.evolve(data=rows, geom=Geom.POLYGON.value)


def ribbon(layer: Layer, config: CompilerConfig) -> Layer:
    return layer.evolve(data=grouped_ribbon_rows(layer.data), geom=Geom.POLYGON.value)


def path(layer: Layer, config: CompilerConfig) -> Layer:
    return _path(layer, Geom.PATH)


def line(layer: Layer, config: CompilerConfig) -> Layer:
    """Lines are paths drawn in order of x."""
    data = layer.data
    if "x" in data.columns:
        data = data.sort_values("x", kind="mergesort").reset_index(drop=True)
    return _path(layer.evolve(data=data), Geom.PATH)


def step(layer: Layer, config: CompilerConfig) -> Layer:
    return _path(layer, Geom.STEP)


def boxplot(layer: Layer, config: CompilerConfig) -> Layer:
    """Boxes are drawn from the pre-statistics rows (plotly computes the summary).

    Fill colours resolved upstream are carried over level by level.
    """
    prestats = layer.prestats.copy()
    if "fill" in layer.data.columns and "fill" in prestats.columns and len(layer.data):
        fill = prestats["fill"]
        if isinstance(fill.dtype, pd.CategoricalDtype):
            levels = list(fill.cat.categories)
        else:
            levels = sorted(fill.dropna().unique().tolist(), key=str)
        colours = layer.data["fill"].tolist()
        lookup = {lvl: colours[i] for i, lvl in enumerate(levels) if i < len(colours)}
        prestats["fill"] = fill.astype(object).map(lambda v: lookup.get(v, v))
    return layer.evolve(data=prestats)


def bar(layer: Layer, config: CompilerConfig) -> Layer:
    """Bars with undefined height are omitted."""
    data = group_to_na(layer.data)
    if "y" in data.columns:
        data = data.loc[data["y"].notna()].reset_index(drop=True)
    return layer.evolve(data=data, geom=Geom.BAR.value)


def prestats_grid(layer: Layer, config: CompilerConfig) -> Layer:
    """Contours are drawn from the raw grid values."""
    return layer.evolve(data=layer.prestats.copy())


def density(layer: Layer, config: CompilerConfig) -> Layer:
    """Density curves become outline-only areas unless a fill or alpha is given."""
    params = dict(layer.params)
    if "fill" not in layer.data.columns and _is_unset(params, "fill") and _is_unset(params, "alpha"):
        params["alpha"] = 0
    if "colour" not in layer.data.columns and _is_unset(params, "colour"):
        params["colour"] = config.density_line_colour
    return layer.evolve(geom=Geom.AREA.value, params=params)


def abline(layer: Layer, config: CompilerConfig) -> Layer:
    """An abline spans the full width of the plot."""
    xstart, xend = _global_extent(layer.prestats, layer.data, "x")
    return layer.with_params(xstart=xstart, xend=xend)


def hline(layer: Layer, config: CompilerConfig) -> Layer:
    """Horizontal lines span the plot width; on a discrete x axis, the first to last category."""
    x = layer.data["x"] if "x" in layer.data.columns else None
    if x is not None and isinstance(x.dtype, pd.CategoricalDtype) and x.notna().any():
        present = x.dropna().sort_values()
        return layer.with_params(xstart=str(present.iloc[0]), xend=str(present.iloc[-1]))
    xstart, xend = _global_extent(layer.prestats, layer.data, "x")
    return layer.with_params(xstart=xstart, xend=xend)


def vline(layer: Layer, config: CompilerConfig) -> Layer:
    ystart, yend = _global_extent(layer.prestats, layer.data, "y")
    return layer.with_params(ystart=ystart, yend=yend)


def point(layer: Layer, config: CompilerConfig) -> Layer:
    """Remember the plot-wide size range so marker sizes can be normalized."""
    if "size" not in layer.data.columns:
        return layer
    source = layer.prestats if "size" in layer.prestats.columns else layer.data
    lo_col, hi_col = "globsizemin", "globsizemax"
    if lo_col in source.columns and hi_col in source.columns:
        sizemin, sizemax = source[lo_col].min(), source[hi_col].max()
    else:
        sizes = pd.to_numeric(source["size"], errors="coerce")
        sizemin, sizemax = sizes.min(), sizes.max()
    return layer.with_params(sizemin=_scalar(sizemin), sizemax=_scalar(sizemax))


def smooth_line(layer: Layer, config: CompilerConfig) -> Layer:
    if "colour" not in layer.data.columns:
        layer = layer.with_params(colour=config.smooth_line_colour)
    return _path(layer, Geom.PATH)


def smooth_ribbon(layer: Layer, config: CompilerConfig) -> Layer:
    params = dict(layer.params)
    if _is_unset(params, "alpha"):
        params["alpha"] = config.smooth_ribbon_alpha
    if _is_unset(params, "fill") and "fill" not in layer.data.columns:
        params["fill"] = config.smooth_ribbon_fill
    return layer.evolve(data=grouped_ribbon_rows(layer.data), geom=Geom.POLYGON.value, params=params)


CANONICAL_RULES: dict[Geom, CanonicalRule] = {
    Geom.SEGMENT: segment,
    Geom.RECT: rect,
    Geom.RIBBON: ribbon,
    Geom.PATH: path,
    Geom.LINE: line,
    Geom.STEP: step,
    Geom.BOXPLOT: boxplot,
    Geom.BAR: bar,
    Geom.CONTOUR: prestats_grid,
    Geom.DENSITY: density,
    Geom.DENSITY2D: prestats_grid,
    Geom.ABLINE: abline,
    Geom.HLINE: hline,
    Geom.VLINE: vline,
    Geom.POINT: point,
    Geom.SMOOTH_LINE: smooth_line,
    Geom.SMOOTH_RIBBON: smooth_ribbon,
}


def to_basic(layer: Layer, config: Optional[CompilerConfig] = None) -> Layer:
    """Apply the canonicalization rule for ``layer.geom`` (if any)."""
    rule = CANONICAL_RULES.get(Geom.from_tag(layer.geom))
    if rule is None:
        return layer
    basic = rule(layer, config or CompilerConfig())
    logger.debug(f"geom {layer.geom} -> {basic.geom}: {len(layer.data)} -> {len(basic.data)} rows")
    return basic
