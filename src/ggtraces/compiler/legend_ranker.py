"""Legend naming, ordering and visibility for the traces of one layer."""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from ggtraces.compiler.geoms import NAME_SUFFIX
from ggtraces.compiler.layer import PlotContext

SORT_KEY = "sort"
DEFAULT_RANK = 1.0


def legend_name_params(params: Mapping[str, Any]) -> list[str]:
    """``*.name`` params that describe a legend entry (group ids excluded)."""
    return [k for k in params if k.endswith(NAME_SUFFIX) and "group" not in k]


def trace_name(params: Mapping[str, Any]) -> Optional[str]:
    """Legend name from the group's display values, else the ``name`` param.

    Several display values are joined with ``.``; identical ones collapse to
    a single value.
    """
    keys = legend_name_params(params)
    if keys:
        labels = [str(params[k]) for k in keys]
        if len(set(labels)) < 2:
            return labels[0]
        return ".".join(labels)
    name = params.get("name")
    return None if name is None else str(name)


def sort_key(params: Mapping[str, Any], context: PlotContext) -> float:
    """Rank of a trace among its layer.

    For each legend aesthetic with a declared category ordering the trace's
    value is looked up in that ordering; values absent from it rank +inf.
    Aesthetics without an ordering rank the same for every trace. Several
    ranks collapse to 0 unless one of them is +inf.
    """
    ranks = []
    for key in legend_name_params(params):
        aes = key[: -len(NAME_SUFFIX)]
        order = context.ranks_for(aes)
        if order is None:
            ranks.append(DEFAULT_RANK)
        else:
            ranks.append(order.get(str(params[key]), math.inf))
    if not ranks:
        return DEFAULT_RANK
    if any(math.isinf(r) for r in ranks):
        return math.inf
    return ranks[0] if len(ranks) == 1 else 0.0


def rank_traces(traces: list[dict]) -> list[dict]:
    """Order traces by their sort key and decide legend visibility.

    A trace is hidden from the legend when it has no name, repeats the name
    of a trace emitted before it, or ranks +inf. The sort key is removed.
    """
    seen: set[str] = set()
    for trace in traces:
        name = trace.get("name")
        visible = name is not None and name not in seen and not math.isinf(trace.get(SORT_KEY, DEFAULT_RANK))
        trace["showlegend"] = visible
        if name is not None:
            seen.add(name)
    ordered = sorted(traces, key=lambda tr: tr.get(SORT_KEY, DEFAULT_RANK))
    for trace in ordered:
        trace.pop(SORT_KEY, None)
    return ordered
