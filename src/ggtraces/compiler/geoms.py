"""Geom vocabulary for the layer compiler.

This module defines the Geom enum (every geom tag the compiler recognises),
the basic geom set that trace synthesis understands, and the per-geom mark
aesthetics that drive legend splitting.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Geom(Enum):
    """Enumeration of recognised geom tags (source and basic)."""
    # basic geoms
    PATH = "path"
    POLYGON = "polygon"
    POINT = "point"
    BAR = "bar"
    AREA = "area"
    TEXT = "text"
    BOXPLOT = "boxplot"
    CONTOUR = "contour"
    DENSITY2D = "density2d"
    ERRORBAR = "errorbar"
    ERRORBARH = "errorbarh"
    HLINE = "hline"
    VLINE = "vline"
    ABLINE = "abline"
    STEP = "step"
    TILE = "tile"
    # source geoms rewritten into basic ones
    SEGMENT = "segment"
    RECT = "rect"
    RIBBON = "ribbon"
    LINE = "line"
    DENSITY = "density"
    HISTOGRAM = "histogram"
    VIOLIN = "violin"
    SMOOTH = "smooth"
    # synthetic halves of a smoothed fit
    SMOOTH_LINE = "smoothLine"
    SMOOTH_RIBBON = "smoothRibbon"

    @classmethod
    def from_tag(cls, tag: object) -> Optional["Geom"]:
        """Return the Geom for a tag, or None when the tag is not recognised."""
        if isinstance(tag, Geom):
            return tag
        try:
            return cls(str(tag))
        except ValueError:
            return None


BASIC_GEOMS = frozenset({
    Geom.PATH, Geom.POLYGON, Geom.POINT, Geom.BAR, Geom.AREA, Geom.TEXT,
    Geom.BOXPLOT, Geom.CONTOUR, Geom.DENSITY2D, Geom.ERRORBAR, Geom.ERRORBARH,
    Geom.HLINE, Geom.VLINE, Geom.ABLINE, Geom.STEP, Geom.TILE,
})

# Aesthetics whose distinct values get their own legend entry.
MARK_AESTHETICS: dict[Geom, tuple[str, ...]] = {
    Geom.POINT: ("colour", "fill", "shape", "size"),
    Geom.PATH: ("linetype", "size", "colour", "shape"),
    Geom.POLYGON: ("colour", "fill", "linetype", "size", "group"),
    Geom.BAR: ("colour", "fill"),
    Geom.DENSITY: ("colour", "fill", "linetype"),
    Geom.BOXPLOT: ("x",),  # one box per category
    Geom.ERRORBAR: ("colour", "linetype"),
    Geom.ERRORBARH: ("colour", "linetype"),
    Geom.AREA: ("colour", "fill"),
    Geom.STEP: ("linetype", "size", "colour"),
    Geom.TEXT: ("colour",),
}

# Reference lines split on (panel, intercept) instead of mark aesthetics.
REFERENCE_LINE_INTERCEPTS: dict[Geom, str] = {
    Geom.HLINE: "yintercept",
    Geom.VLINE: "xintercept",
}

POSITION_AXES = ("x", "y")
AXIS_VARIANT_SUFFIXES = ("", "end", "min", "max")

# Position adjustments that draw bars on top of each other
STACKING_POSITIONS = frozenset({"identity", "stack", "fill"})

NAME_SUFFIX = ".name"


def name_column(aes: str) -> str:
    """Display-name companion column for an aesthetic (``colour`` -> ``colour.name``)."""
    return f"{aes}{NAME_SUFFIX}"


def geom_tag(geom: object) -> str:
    """String tag for a Geom or raw tag."""
    if isinstance(geom, Geom):
        return geom.value
    return str(geom)
