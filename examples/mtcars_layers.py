"""
Compile a few hand-built layers and show them as one plotly figure.

Demonstrates:
- point layer split by colour (one legend entry per level)
- smooth layer (confidence band + fitted line)
- errorbar layer from per-group summary statistics
- abline spanning the full x range
- compiler defaults read from the per-user config file

Run:
    GGTRACES_LOG_LEVEL=DEBUG python examples/mtcars_layers.py
"""

import pandas as pd

from ggtraces import CompilerConfigStore, LayerCompiler, LayerSpec, PlotContext, traces_to_figure
from ggtraces.utils.logging import configure_logging

configure_logging()

cars = pd.DataFrame(
    {
        "x": [2.62, 2.875, 2.32, 3.215, 3.44, 3.46, 3.57, 3.19],
        "y": [21.0, 21.0, 22.8, 21.4, 18.7, 18.1, 14.3, 24.4],
        "colour": ["#F8766D", "#F8766D", "#00BA38", "#F8766D", "#619CFF", "#F8766D", "#619CFF", "#00BA38"],
        "colour.name": ["6", "6", "4", "6", "8", "6", "8", "4"],
    }
)

fit = pd.DataFrame(
    {
        "x": [2.3, 2.8, 3.3, 3.6],
        "y": [24.0, 21.5, 19.0, 17.5],
        "ymin": [22.0, 20.5, 17.8, 15.6],
        "ymax": [26.0, 22.5, 20.2, 19.4],
    }
)

summary = pd.DataFrame(
    {
        "x": [4.0, 6.0, 8.0],
        "y": [26.66364, 19.74286, 15.1],
        "ymin": [22.8, 18.65, 14.4],
        "ymax": [30.4, 21.0, 16.25],
    }
)

layers = [
    (LayerSpec(geom="point", prestats_data=cars[["x", "y"]]), cars),
    (LayerSpec(geom="smooth", stat="smooth"), fit),
    (LayerSpec(geom="abline", prestats_data=cars[["x", "y"]]), pd.DataFrame({"slope": [-5.3], "intercept": [37.3]})),
]

# per-user defaults, if any were saved; nothing is written here
config = CompilerConfigStore.load().data
context = PlotContext(breaks={"colour": ["4", "6", "8"]}, config=config)
traces = LayerCompiler().compile_plot(layers, context)
fig = traces_to_figure(traces, layout={"title": {"text": "mpg vs wt"}})

errorbars = LayerCompiler().compile(LayerSpec(geom="errorbar", stat="summary"), summary, PlotContext())
print("errorbar upward errors:", errorbars[0]["error_y"]["array"])

for w in context.warnings:
    print("warning:", w)

if __name__ == "__main__":
    fig.show()
