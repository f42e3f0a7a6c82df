"""Unit tests for group_splitter module."""

from __future__ import annotations

from ggtraces.compiler.group_splitter import split_groups

from _layer_helpers import make_layer


def test_splits_on_mark_aesthetic_names():
    """Each distinct display name becomes a group with its own style params."""
    layer = make_layer(
        "point",
        {
            "x": [1, 2, 3],
            "y": [1, 2, 3],
            "colour": ["red", "blue", "red"],
            "colour.name": ["a", "b", "a"],
        },
        params={"size": 3},
    )
    groups = split_groups(layer)
    assert len(groups) == 2
    first, second = groups
    assert first.params["colour.name"] == "a"
    assert first.params["colour"] == "red"
    assert first.params["size"] == 3
    assert first.data["x"].tolist() == [1, 3]
    assert "colour" not in first.data.columns
    assert "colour.name" not in first.data.columns
    assert second.params["colour"] == "blue"


def test_layer_params_are_not_mutated():
    """Per-group overrides go into copies of the layer params."""
    layer = make_layer("point", {"x": [1, 2], "y": [1, 2], "colour": ["r", "b"], "colour.name": ["a", "b"]})
    split_groups(layer)
    assert dict(layer.params) == {}


def test_splits_on_panel():
    """Rows of different facets go to different groups; the panel columns stay."""
    layer = make_layer("point", {"x": [1, 2, 3], "y": [1, 2, 3], "PANEL": [1, 1, 2]})
    groups = split_groups(layer)
    assert [len(g.data) for g in groups] == [2, 1]
    assert all("PANEL" in g.data.columns for g in groups)


def test_only_present_combinations_become_groups():
    """Groups exist only for (panel, name) pairs that occur in the rows."""
    layer = make_layer(
        "point",
        {
            "x": [1, 2, 3],
            "y": [1, 2, 3],
            "PANEL": [1, 1, 2],
            "colour": ["r", "b", "r"],
            "colour.name": ["a", "b", "a"],
        },
    )
    groups = split_groups(layer)
    assert [(g.data["PANEL"].iloc[0], g.params["colour.name"]) for g in groups] == [(1, "a"), (1, "b"), (2, "a")]


def test_no_split_columns_gives_one_group():
    """Without names or panels the layer is one group."""
    layer = make_layer("path", {"x": [1, 2], "y": [1, 2]}, params={"colour": "red"})
    groups = split_groups(layer)
    assert len(groups) == 1
    assert groups[0].data is layer.data
    assert groups[0].params == {"colour": "red"}


def test_names_of_other_aesthetics_do_not_split():
    """Only the geom's mark aesthetics split; other name columns are ignored."""
    layer = make_layer("bar", {"x": [1, 2], "y": [1, 2], "shape.name": ["a", "b"]})
    assert len(split_groups(layer)) == 1


def test_reference_lines_split_on_intercept():
    """hlines get one group per intercept value."""
    layer = make_layer("hline", {"yintercept": [1.0, 2.0, 2.0], "PANEL": [1, 1, 1]})
    groups = split_groups(layer)
    assert [g.data["yintercept"].tolist() for g in groups] == [[1.0], [2.0, 2.0]]


def test_vlines_split_on_panel_and_intercept():
    """vlines split on facet as well as intercept."""
    layer = make_layer("vline", {"xintercept": [1.0, 1.0], "PANEL": [1, 2]})
    assert len(split_groups(layer)) == 2
