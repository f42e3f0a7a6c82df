"""
ggtraces: compile layered statistical-plot layers into plotly traces.

A plot layer (geom, aesthetic mapping, computed rows, pre-statistics rows and
parameters) is rewritten into the small set of plotly trace types:

    ```python
    from ggtraces import LayerCompiler, LayerSpec, PlotContext

    spec = LayerSpec(geom="line", mapping={"x": "wt", "y": "mpg"})
    traces = LayerCompiler().compile(spec, computed_rows, PlotContext())
    ```

For logging configuration in standalone scripts:
    ```python
    from ggtraces.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```
"""

import logging

from ggtraces.utils.logging import configure_logging, get_logger

from ggtraces.compiler import (
    CompilerConfig,
    CompilerConfigStore,
    Geom,
    Layer,
    LayerCompiler,
    LayerSpec,
    PlotContext,
    layer_to_traces,
    traces_to_figure,
)

# NullHandler on the package logger until an application or script
# calls configure_logging().
_logger = logging.getLogger("ggtraces")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "CompilerConfig",
    "CompilerConfigStore",
    "Geom",
    "Layer",
    "LayerCompiler",
    "LayerSpec",
    "PlotContext",
    "configure_logging",
    "get_logger",
    "layer_to_traces",
    "traces_to_figure",
]

__version__ = "0.1.0"
