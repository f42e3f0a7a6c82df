"""Unit tests for trace_synthesizer module (one builder per basic geom)."""

from __future__ import annotations

import datetime as dt

import pandas as pd
import pytest

from ggtraces.compiler.compiler_config import CompilerConfig
from ggtraces.compiler.geoms import BASIC_GEOMS, Geom
from ggtraces.compiler.trace_synthesizer import (
    TRACE_BUILDERS,
    abline,
    area,
    bar,
    boxplot,
    contour,
    errorbar,
    errorbarh,
    get_builder,
    hline,
    normalized_sizes,
    path,
    point,
    polygon,
    step,
    text,
    tile,
    time_to_ms,
    trim_trailing_missing,
    vline,
)

CONFIG = CompilerConfig()


def test_every_basic_geom_has_a_builder():
    """All basic geoms can be drawn."""
    assert set(BASIC_GEOMS) <= set(TRACE_BUILDERS)
    assert get_builder("point") is point
    assert get_builder("hex") is None


def test_path_omits_unset_fields():
    """Unset optional fields are left out, never written as None."""
    trace = path(pd.DataFrame({"x": [1.0, 2.0], "y": [3.0, 4.0]}), {}, CONFIG)
    assert trace["type"] == "scatter"
    assert trace["mode"] == "lines"
    assert "name" not in trace
    assert "text" not in trace
    assert all(v is not None for v in trace.values())
    assert trace["line"] == {"color": "rgb(0,0,0)", "width": 2.0, "dash": "solid", "shape": "linear"}


def test_path_styles_from_params():
    """Line colour, width, dash and name come from the params."""
    params = {"colour": "red", "size": 0.5, "linetype": "dashed", "name": "fit"}
    trace = path(pd.DataFrame({"x": [1.0], "y": [1.0]}), params, CONFIG)
    assert trace["line"]["color"] == "rgb(255,0,0)"
    assert trace["line"]["width"] == 1.0
    assert trace["line"]["dash"] == "dash"
    assert trace["name"] == "fit"


def test_missing_coordinates_become_none():
    """Separator rows reach plotly as None."""
    trace = path(pd.DataFrame({"x": [1.0, float("nan"), 2.0], "y": [1.0, float("nan"), 2.0]}), {}, CONFIG)
    assert trace["x"] == [1.0, None, 2.0]


def test_step_uses_hv_shape():
    """Steps draw horizontal-then-vertical."""
    trace = step(pd.DataFrame({"x": [1, 2], "y": [1, 2]}), {}, CONFIG)
    assert trace["line"]["shape"] == "hv"


def test_polygon_closes_ring_and_fills():
    """Polygons are closed rings filled with the default fill."""
    trace = polygon(pd.DataFrame({"x": [0, 1, 1], "y": [0, 0, 1]}), {}, CONFIG)
    assert trace["x"] == [0.0, 1.0, 1.0, 0.0]
    assert trace["fill"] == "tozerox"
    assert trace["fillcolor"] == "rgb(51,51,51)"
    assert trace["line"]["color"] == "transparent"


def test_polygon_fill_alpha():
    """Fill and alpha params give a translucent fill."""
    trace = polygon(pd.DataFrame({"x": [0, 1, 1], "y": [0, 0, 1]}), {"fill": "grey60", "alpha": 0.2}, CONFIG)
    assert trace["fillcolor"] == "rgba(153,153,153,0.2)"


def test_normalized_sizes():
    """Sizes are rescaled into [0.25, 5.25] times the multiplier."""
    assert normalized_sizes(pd.Series([1, 3]), 1, 3, 10) == pytest.approx([2.5, 52.5])
    assert normalized_sizes(pd.Series([2, 2]), None, None, 10) == pytest.approx([2.5, 2.5])


def test_point_default_marker():
    """Points without params get the default marker."""
    trace = point(pd.DataFrame({"x": [1], "y": [2]}), {}, CONFIG)
    assert trace["mode"] == "markers"
    assert trace["marker"] == {"opacity": 1.0, "size": 6.0, "symbol": "circle", "color": "rgb(0,0,0)"}


def test_point_size_mapping():
    """Mapped sizes give a size list, hover text and no outline."""
    data = pd.DataFrame({"x": [1, 2], "y": [1, 2], "size": [1, 3]})
    trace = point(data, {"sizemin": 1, "sizemax": 3}, CONFIG)
    assert trace["text"] == ["size: 1", "size: 3"]
    assert trace["marker"]["size"] == pytest.approx([2.5, 52.5])
    assert trace["marker"]["sizeref"] == 1.0
    assert trace["marker"]["line"] == {"width": 0}


def test_point_single_size_is_still_a_list():
    """One mapped size is emitted as a one-element list."""
    trace = point(pd.DataFrame({"x": [1], "y": [1], "size": [2]}), {"sizemin": 1, "sizemax": 3}, CONFIG)
    assert trace["marker"]["size"] == pytest.approx([27.5])


def test_point_filled_shapes():
    """Shapes 21-25 use fill for the body and colour for the outline."""
    data = pd.DataFrame({"x": [1], "y": [1]})
    trace = point(data, {"shape": 21, "fill": "red", "colour": "blue"}, CONFIG)
    assert trace["marker"]["color"] == "rgb(255,0,0)"
    assert trace["marker"]["line"] == {"color": "rgb(0,0,255)", "width": 1}
    unfilled = point(data, {"shape": 22}, CONFIG)
    assert unfilled["marker"]["color"] == "rgba(0,0,0,0)"
    assert unfilled["marker"]["symbol"] == "square"


def test_point_blank_shape_is_hidden():
    """Shape 32 draws nothing."""
    trace = point(pd.DataFrame({"x": [1], "y": [1]}), {"shape": 32}, CONFIG)
    assert trace["visible"] is False


def test_text_labels_and_font():
    """Text traces take labels from the rows and font from the params."""
    data = pd.DataFrame({"x": [1], "y": [2], "label": ["hi"]})
    trace = text(data, {"size": 4, "colour": "red"}, CONFIG)
    assert trace["mode"] == "text"
    assert trace["text"] == ["hi"]
    assert trace["textfont"] == {"size": 4, "color": "rgb(255,0,0)"}


def test_time_to_ms():
    """Date-times become epoch milliseconds, dates day counts in milliseconds."""
    assert time_to_ms(pd.Series(pd.to_datetime(["1970-01-01 00:00:01"]))) == [1000]
    assert time_to_ms(pd.Series([dt.date(1970, 1, 2)])) == [86400000]
    assert time_to_ms(pd.Series([1.5, 2.5])) == [1.5, 2.5]


def test_bar_uses_x_names_and_omits_unset_marker():
    """Bars take x from the display names; unstyled bars have no marker block."""
    data = pd.DataFrame({"x": [1, 2], "x.name": ["a", "b"], "y": [3, 4]})
    trace = bar(data, {}, CONFIG)
    assert trace["type"] == "bar"
    assert trace["x"] == ["a", "b"]
    assert trace["y"] == [3, 4]
    assert "marker" not in trace
    assert "opacity" not in trace


def test_bar_marker_from_params():
    """Fill, outline colour and alpha style the bars."""
    trace = bar(pd.DataFrame({"x": [1], "y": [1]}), {"fill": "red", "colour": "black", "alpha": 0.5}, CONFIG)
    assert trace["marker"] == {"color": "rgb(255,0,0)", "line": {"color": "rgb(0,0,0)", "width": 1}}
    assert trace["opacity"] == 0.5


def test_tile_builds_heatmap_grid():
    """Tiles become a heatmap with z indexed [y][x]."""
    data = pd.DataFrame({"x": [1, 2, 1, 2], "y": [1, 1, 2, 2], "fill": [10, 20, 30, 40]})
    trace = tile(data, {}, CONFIG)
    assert trace["type"] == "heatmap"
    assert trace["x"] == [1, 2]
    assert trace["y"] == [1, 2]
    assert trace["z"] == [[10.0, 20.0], [30.0, 40.0]]
    assert "mode" not in trace
    assert "line" not in trace


def test_tile_missing_cell_is_none():
    """Grid cells without a row are None."""
    data = pd.DataFrame({"x": [1, 2, 1], "y": [1, 1, 2], "fill": [1.0, 2.0, 3.0]})
    trace = tile(data, {}, CONFIG)
    assert trace["z"] == [[1.0, 2.0], [3.0, None]]


def test_contour_line_block():
    """Contours draw coloured lines without a scatter line shape."""
    data = pd.DataFrame({"x": [1, 2], "y": [1, 1], "z": [0.1, 0.2]})
    trace = contour(data, {}, CONFIG)
    assert trace["type"] == "contour"
    assert trace["contours"] == {"coloring": "lines"}
    assert set(trace["line"]) == {"color", "width", "dash"}


def test_boxplot_default_fill():
    """Boxes are white unless a fill is carried on the rows."""
    trace = boxplot(pd.DataFrame({"y": [1.0, 2.0, 3.0]}), {}, CONFIG)
    assert trace["type"] == "box"
    assert trace["fillcolor"] == "rgb(255,255,255)"
    assert set(trace["line"]) == {"color", "width"}
    filled = boxplot(pd.DataFrame({"y": [1.0], "fill": ["red"]}), {}, CONFIG)
    assert filled["fillcolor"] == "rgb(255,0,0)"


def test_errorbar_symmetric():
    """Equal up and down errors give one symmetric array."""
    data = pd.DataFrame({"x": [1], "y": [5.0], "ymin": [3.0], "ymax": [7.0]})
    trace = errorbar(data, {}, CONFIG)
    assert trace["mode"] == "none"
    assert trace["y"] == [5.0]
    spec = trace["error_y"]
    assert spec["array"] == [2.0]
    assert spec["symmetric"] is True
    assert "arrayminus" not in spec
    assert "width" not in spec
    assert "color" not in spec


def test_errorbar_asymmetric():
    """Unequal errors add arrayminus and drop symmetry."""
    data = pd.DataFrame({"x": [1], "y": [5.0], "ymin": [2.0], "ymax": [7.0]})
    spec = errorbar(data, {"width": 4, "colour": "red"}, CONFIG)["error_y"]
    assert spec["array"] == [2.0]
    assert spec["arrayminus"] == [3.0]
    assert spec["symmetric"] is False
    assert spec["width"] == 4
    assert spec["color"] == "rgb(255,0,0)"


def test_errorbar_from_summary_statistics():
    """Upward errors of mean/quartile summaries are max - mean per group."""
    data = pd.DataFrame(
        {
            "x": [4, 6, 8],
            "y": [26.66364, 19.74286, 15.1],
            "ymin": [22.8, 18.65, 14.4],
            "ymax": [30.4, 21.0, 16.25],
        }
    )
    spec = errorbar(data, {}, CONFIG)["error_y"]
    assert spec["array"] == pytest.approx([3.74, 1.26, 1.15], abs=0.01)
    assert spec["symmetric"] is False


def test_errorbar_center_defaults_to_midpoint():
    """Without y the bar is centred between ymin and ymax."""
    data = pd.DataFrame({"x": [1], "ymin": [2.0], "ymax": [6.0]})
    trace = errorbar(data, {}, CONFIG)
    assert trace["y"] == [4.0]
    assert trace["error_y"]["symmetric"] is True


def test_errorbarh_uses_x_axis():
    """Horizontal error bars fill error_x."""
    data = pd.DataFrame({"y": [1], "x": [5.0], "xmin": [4.0], "xmax": [6.0]})
    trace = errorbarh(data, {}, CONFIG)
    assert trace["error_x"]["array"] == [1.0]
    assert "error_y" not in trace


def test_area_is_closed_to_zero():
    """Areas are padded with y = 0 at both ends."""
    trace = area(pd.DataFrame({"x": [1, 2, 3], "y": [4, 5, 6]}), {"alpha": 0}, CONFIG)
    assert trace["x"] == [1, 1, 2, 3, 3]
    assert trace["y"] == [0, 4, 5, 6, 0]
    assert trace["fill"] == "tozeroy"
    assert trace["fillcolor"] == "rgba(51,51,51,0)"


def test_abline_from_params():
    """An abline runs from xstart to xend."""
    params = {"xstart": 0, "xend": 10, "slope": 1, "intercept": 0}
    trace = abline(pd.DataFrame({"slope": [1], "intercept": [0]}), params, CONFIG)
    assert trace["x"] == [0, 10]
    assert trace["y"] == [0, 10]


def test_abline_several_lines_in_one_trace():
    """Distinct slope/intercept rows become segments separated by None."""
    data = pd.DataFrame({"slope": [1.0, 2.0], "intercept": [0.0, 1.0]})
    trace = abline(data, {"xstart": 0, "xend": 1}, CONFIG)
    assert trace["x"] == [0, 1, None, 0, 1]
    assert trace["y"] == [0.0, 1.0, None, 1.0, 3.0]


def test_hline_and_vline():
    """Reference lines span their precomputed extent."""
    h = hline(pd.DataFrame({"yintercept": [3.0]}), {"xstart": 0, "xend": 10}, CONFIG)
    assert h["x"] == [0, 10]
    assert h["y"] == [3.0, 3.0]
    v = vline(pd.DataFrame({"xintercept": [2.0]}), {"ystart": -1, "yend": 1}, CONFIG)
    assert v["x"] == [2.0, 2.0]
    assert v["y"] == [-1, 1]


def test_trim_trailing_missing():
    """One trailing None is removed from x and y."""
    trace = trim_trailing_missing({"x": [1, None], "y": [2, None], "type": "scatter"})
    assert trace["x"] == [1]
    assert trace["y"] == [2]
    assert trim_trailing_missing({"x": [1, 2]}) == {"x": [1, 2]}


def test_geom_enum_keys_builders():
    """Builders are looked up by Geom member or tag."""
    assert get_builder(Geom.TILE) is tile
    assert get_builder("errorbarh") is errorbarh
