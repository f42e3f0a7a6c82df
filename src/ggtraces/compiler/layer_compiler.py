"""Compile plot layers into plotly trace dicts.

This module provides the LayerCompiler class, which runs one layer through
the compile stages (missing-row filtering, axis recoding, canonicalization,
group splitting, trace synthesis, legend ranking) and handles the composite
geoms (violin, histogram, smooth) that need special treatment.
"""

from __future__ import annotations

from typing import Iterable, Optional

import pandas as pd

from ggtraces.compiler.axis_recoder import recode_axes
from ggtraces.compiler.canonicalizer import to_basic
from ggtraces.compiler.geoms import STACKING_POSITIONS, Geom, geom_tag
from ggtraces.compiler.group_splitter import PANEL_COL, TraceGroup, split_groups
from ggtraces.compiler.layer import Layer, LayerSpec, PlotContext, validate_row_table
from ggtraces.compiler.legend_ranker import SORT_KEY, legend_name_params, rank_traces, sort_key, trace_name
from ggtraces.compiler.row_filter import drop_missing_rows
from ggtraces.compiler.trace_synthesizer import get_builder, trim_trailing_missing
from ggtraces.utils.logging import get_logger

logger = get_logger(__name__)

ROW_COL = "ROW"
COL_COL = "COL"
DEFAULT_BARGAP = "default"


def axis_id(axis: str, index: object) -> str:
    """Plotly axis reference for subplot ``index`` (1 -> "x", 2 -> "x2")."""
    try:
        number = int(index)
    except (TypeError, ValueError):
        number = 1
    return axis if number <= 1 else f"{axis}{number}"


def bar_mode(position: str) -> str:
    """Plotly barmode for a ggplot position adjustment."""
    return "stack" if position in STACKING_POSITIONS else "group"


def _se_disabled(spec: LayerSpec) -> bool:
    se = spec.stat_params.get("se")
    return se is not None and not bool(se)


class LayerCompiler:
    """Compiles plot layers into plotly trace dicts.

    The compiler itself holds no state: everything shared between layers of
    one plot lives in the PlotContext passed to each call.
    """

    def compile(self, spec: LayerSpec, data: pd.DataFrame, context: PlotContext) -> list[dict]:
        """Compile one layer into an ordered list of traces.

        Args:
            spec: The upstream layer object.
            data: Computed (post-statistics) rows of the layer.
            context: Per-plot state; its ``smooth_line_pending`` flag sequences
                the two halves of a smoothed fit.

        Returns:
            Traces in legend order. Empty when the geom cannot be drawn or no
            rows are left after missing-value filtering.
        """
        validate_row_table(data, "layer data")
        prestats = spec.prestats_data if spec.prestats_data is not None else pd.DataFrame()
        layer = Layer(
            geom=geom_tag(spec.geom),
            mapping=dict(spec.mapping),
            data=drop_missing_rows(data),
            prestats=drop_missing_rows(prestats),
            params=spec.params(),
        )

        bargap: object = DEFAULT_BARGAP
        emitted_line = False
        kind = Geom.from_tag(layer.geom)

        if kind is Geom.VIOLIN:
            context.warn(
                "Converting violin plot into boxplot: "
                "probability density estimation is not supported in plotly yet."
            )
            layer = layer.evolve(geom=Geom.BOXPLOT.value)
        elif kind is Geom.SMOOTH:
            if context.smooth_line_pending:
                context.smooth_line_pending = False
                if _se_disabled(spec):
                    logger.debug("smooth ribbon disabled (se=False)")
                    return []
                colour_cols = [c for c in layer.data.columns if c in ("colour", "colour.name")]
                layer = layer.evolve(geom=Geom.SMOOTH_RIBBON.value, data=layer.data.drop(columns=colour_cols))
            else:
                context.smooth_line_pending = True
                emitted_line = True
                layer = layer.evolve(geom=Geom.SMOOTH_LINE.value)
        elif kind is Geom.HISTOGRAM:
            layer = layer.evolve(geom=Geom.BAR.value)
            bargap = 0

        is_bar = layer.geom == Geom.BAR.value
        rewritten_geom = layer.geom

        layer = recode_axes(layer, spec, context)
        basic = to_basic(layer, context.config)
        builder = get_builder(basic.geom)
        if builder is None:
            context.warn(
                f"Conversion not implemented for geom_{geom_tag(spec.geom)} "
                f"(basic geom_{basic.geom}), ignoring."
            )
            return []

        if basic.data.empty:
            logger.debug(f"geom_{geom_tag(spec.geom)} has no rows left to draw")
        groups = split_groups(basic) if len(basic.data) else []
        traces = []
        for group in groups:
            trace = self._group_trace(group, builder, context)
            if is_bar:
                trace["bargap"] = bargap
                trace["barmode"] = bar_mode(spec.position)
            traces.append(trace)
        ranked = rank_traces(traces)
        logger.info(
            f"compiled geom_{geom_tag(spec.geom)} (as {rewritten_geom} -> {basic.geom}): "
            f"{len(basic.data)} rows -> {len(ranked)} trace(s)"
        )

        if emitted_line:
            # ribbon underneath, fitted line on top
            return self.compile(spec, data, context) + ranked
        return ranked

    def _group_trace(self, group: TraceGroup, builder, context: PlotContext) -> dict:
        params = group.params
        trace = trim_trailing_missing(builder(group.data, params, context.config))
        if legend_name_params(params):
            trace["name"] = trace_name(params)
        trace[SORT_KEY] = sort_key(params, context)
        data = group.data
        if PANEL_COL in data.columns and len(data):
            first = data.iloc[0]
            trace["xaxis"] = axis_id("x", first[COL_COL] if COL_COL in data.columns else 1)
            trace["yaxis"] = axis_id("y", first[ROW_COL] if ROW_COL in data.columns else 1)
        return trace

    def compile_plot(
        self,
        layers: Iterable[tuple[LayerSpec, pd.DataFrame]],
        context: Optional[PlotContext] = None,
    ) -> list[dict]:
        """Compile every layer of a plot with one shared context.

        A layer that fails is dropped with a warning; the remaining layers
        are still compiled.
        """
        context = context if context is not None else PlotContext()
        traces: list[dict] = []
        for i, (spec, data) in enumerate(layers):
            try:
                traces.extend(self.compile(spec, data, context))
            except Exception as e:
                logger.exception(f"Layer {i} (geom_{geom_tag(spec.geom)}) failed to compile: {e}")
                context.warnings.append(f"Layer {i} (geom_{geom_tag(spec.geom)}) skipped: {e}")
                context.smooth_line_pending = False
        return traces


def layer_to_traces(spec: LayerSpec, data: pd.DataFrame, context: Optional[PlotContext] = None) -> list[dict]:
    """Compile a single layer with a fresh (or given) plot context."""
    return LayerCompiler().compile(spec, data, context if context is not None else PlotContext())
