"""Layer compiler: turns computed plot layers into plotly traces."""

from ggtraces.compiler.compiler_config import CompilerConfig, CompilerConfigStore
from ggtraces.compiler.figure import traces_to_figure
from ggtraces.compiler.geoms import Geom
from ggtraces.compiler.layer import Layer, LayerSpec, PlotContext
from ggtraces.compiler.layer_compiler import LayerCompiler, layer_to_traces

__all__ = [
    "CompilerConfig",
    "CompilerConfigStore",
    "Geom",
    "Layer",
    "LayerCompiler",
    "LayerSpec",
    "PlotContext",
    "layer_to_traces",
    "traces_to_figure",
]
