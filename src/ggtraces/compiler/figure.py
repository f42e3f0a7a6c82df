"""Assemble compiled traces into a plotly Figure.

Bar traces carry two figure-level settings (``bargap``, ``barmode``) that
plotly keeps in the layout; they are lifted out of the traces here.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

import plotly.graph_objects as go

from ggtraces.compiler.layer_compiler import DEFAULT_BARGAP
from ggtraces.utils.logging import get_logger

logger = get_logger(__name__)

LAYOUT_KEYS = ("bargap", "barmode")


def split_layout_keys(traces: Iterable[dict]) -> tuple[list[dict], dict[str, Any]]:
    """Strip layout-level keys from traces and collect them for the layout.

    The first concrete value of each key wins; the ``"default"`` bar gap
    leaves plotly's own default in place.
    """
    clean: list[dict] = []
    layout: dict[str, Any] = {}
    for trace in traces:
        trace = dict(trace)
        for key in LAYOUT_KEYS:
            value = trace.pop(key, None)
            if value is None or (key == "bargap" and value == DEFAULT_BARGAP):
                continue
            layout.setdefault(key, value)
        clean.append(trace)
    return clean, layout


def traces_to_figure(traces: Iterable[dict], layout: Optional[dict] = None) -> go.Figure:
    """Build a validated plotly Figure from compiled traces.

    Raises:
        ValueError: If a trace does not match plotly's schema.
    """
    data, lifted = split_layout_keys(traces)
    merged = dict(lifted)
    merged.update(layout or {})
    logger.debug(f"building figure from {len(data)} trace(s), layout keys={sorted(merged)}")
    return go.Figure(data=data, layout=merged)
