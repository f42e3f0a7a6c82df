"""Split a canonicalized layer into the row groups that become separate traces.

Rows are split on the display-name columns of the geom's mark aesthetics
(one legend entry per distinct look) and on the panel id (one trace per
facet). Reference lines split on panel and intercept instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from ggtraces.compiler.geoms import MARK_AESTHETICS, REFERENCE_LINE_INTERCEPTS, Geom, name_column
from ggtraces.compiler.layer import Layer

PANEL_COL = "PANEL"


@dataclass
class TraceGroup:
    """Rows of one future trace plus the parameter bag it is drawn with."""
    data: pd.DataFrame
    params: dict[str, Any] = field(default_factory=dict)


def _split(df: pd.DataFrame, keys: list[str]) -> list[pd.DataFrame]:
    """Groups for every key combination actually present, in sorted key order."""
    if df.empty:
        return []
    by = keys[0] if len(keys) == 1 else keys
    return [
        part.reset_index(drop=True)
        for _, part in df.groupby(by, sort=True, dropna=False, observed=True)
        if len(part)
    ]


def split_groups(layer: Layer) -> list[TraceGroup]:
    """Split ``layer`` on its mark aesthetics and panel id.

    Each group gets a copy of the layer params overridden by its own
    mark-aesthetic values (``colour`` and ``colour.name``, ...); those columns
    are removed from the group's rows. Without any split column the whole
    layer is one group.
    """
    geom = Geom.from_tag(layer.geom)
    intercept = REFERENCE_LINE_INTERCEPTS.get(geom)
    if intercept is not None:
        return split_reference_lines(layer, intercept)

    marks = MARK_AESTHETICS.get(geom, ())
    data = layer.data
    name_cols = [name_column(a) for a in marks if name_column(a) in data.columns]
    split_cols = [c for c in data.columns if c in name_cols or c == PANEL_COL]
    if not split_cols:
        return [TraceGroup(data=data, params=dict(layer.params))]

    invariable = []
    for aes in marks:
        if name_column(aes) in name_cols:
            invariable.append(name_column(aes))
            if aes in data.columns:
                invariable.append(aes)

    groups = []
    for part in _split(data, split_cols):
        params = dict(layer.params)
        first = part.iloc[0]
        for col in invariable:
            params[col] = _py(first[col])
        groups.append(TraceGroup(data=part.drop(columns=invariable), params=params))
    return groups


def split_reference_lines(layer: Layer, intercept: str) -> list[TraceGroup]:
    """One group per (panel, intercept) combination."""
    keys = [c for c in (PANEL_COL, intercept) if c in layer.data.columns]
    if not keys:
        return [TraceGroup(data=layer.data, params=dict(layer.params))]
    return [TraceGroup(data=part, params=dict(layer.params)) for part in _split(layer.data, keys)]


def _py(value: Any) -> Any:
    """Plain Python scalar for a cell value."""
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        try:
            return value.item()
        except (ValueError, AttributeError):
            return value
    return value
