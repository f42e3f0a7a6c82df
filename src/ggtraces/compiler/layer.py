"""Layer and plot-context values handed to the layer compiler.

LayerSpec is the read-only upstream layer object; Layer is the working value
each compile stage versions forward with ``evolve``; PlotContext is the
per-plot state shared by all layers of one compile pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Sequence, Union

import pandas as pd

from ggtraces.compiler.compiler_config import CompilerConfig
from ggtraces.utils.logging import get_logger

logger = get_logger(__name__)


def validate_row_table(df: Any, what: str) -> pd.DataFrame:
    """Check a row table received from upstream and return it.

    Raises:
        TypeError: If ``df`` is not a DataFrame.
        ValueError: If column names are duplicated or not strings.
    """
    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"{what} must be a pandas DataFrame, got {type(df).__name__}")
    if df.columns.has_duplicates:
        dups = sorted(set(df.columns[df.columns.duplicated()]))
        raise ValueError(f"{what} has duplicated columns: {dups}")
    bad = [c for c in df.columns if not isinstance(c, str)]
    if bad:
        raise ValueError(f"{what} column names must be strings, got {bad!r}")
    return df


@dataclass(frozen=True)
class LayerSpec:
    """Read-only description of one plot layer, as built upstream.

    Attributes:
        geom: Geom tag (e.g. "line", "bar", "smooth").
        mapping: Aesthetic name -> source column identifier.
        geom_params: Constant geom parameters (colour, size, name, ...).
        stat_params: Statistic parameters (e.g. ``se`` for smooth).
        position: Position-adjustment tag (identity, stack, fill, dodge, ...).
        stat: Statistic-kind tag.
        data: Untouched source data of the layer, used to recover
            categorical/date values on discrete axes.
        prestats_data: Rows as they were before the statistic ran.
    """
    geom: str
    mapping: Mapping[str, str] = field(default_factory=dict)
    geom_params: Mapping[str, Any] = field(default_factory=dict)
    stat_params: Mapping[str, Any] = field(default_factory=dict)
    position: str = "identity"
    stat: str = "identity"
    data: Optional[pd.DataFrame] = None
    prestats_data: Optional[pd.DataFrame] = None

    def __post_init__(self) -> None:
        if self.data is not None:
            validate_row_table(self.data, "LayerSpec.data")
        if self.prestats_data is not None:
            validate_row_table(self.prestats_data, "LayerSpec.prestats_data")

    def params(self) -> dict[str, Any]:
        """Merged geom and stat parameters (stat params win on clashes)."""
        merged = dict(self.geom_params)
        merged.update(self.stat_params)
        return merged

    def source_column(self, aes: str) -> Optional[pd.Series]:
        """Untouched source values mapped to ``aes``, or None when unavailable."""
        col = self.mapping.get(aes)
        if col is None or self.data is None or col not in self.data.columns:
            return None
        return self.data[col]


@dataclass(frozen=True)
class Layer:
    """Working value of one layer while it moves through the compile stages.

    Stages never mutate a Layer; they return ``layer.evolve(...)``.
    """
    geom: str
    mapping: Mapping[str, str]
    data: pd.DataFrame
    prestats: pd.DataFrame
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        validate_row_table(self.data, "Layer.data")
        validate_row_table(self.prestats, "Layer.prestats")

    def evolve(self, **changes: Any) -> "Layer":
        """Return a copy with ``changes`` applied."""
        return replace(self, **changes)

    def with_params(self, **updates: Any) -> "Layer":
        """Return a copy whose params bag has ``updates`` applied."""
        params = dict(self.params)
        params.update(updates)
        return replace(self, params=params)


Breaks = Mapping[str, Union[Mapping[str, float], Sequence[str]]]


@dataclass
class PlotContext:
    """Per-plot compile state shared by every layer of one plot.

    Attributes:
        is_continuous: Axis name -> True when the axis is continuous.
        breaks: Custom category ordering per aesthetic, either a mapping
            value -> rank or an ordered sequence of values.
        smooth_line_pending: True between compiling the line half of a
            smoothed fit and compiling its ribbon half.
        warnings: Every recoverable warning raised while compiling.
        config: Compiler defaults.
    """
    is_continuous: dict[str, bool] = field(default_factory=lambda: {"x": True, "y": True})
    breaks: Breaks = field(default_factory=dict)
    smooth_line_pending: bool = False
    warnings: list[str] = field(default_factory=list)
    config: CompilerConfig = field(default_factory=CompilerConfig)

    def axis_is_continuous(self, axis: str) -> bool:
        return bool(self.is_continuous.get(axis, True))

    def ranks_for(self, aes: str) -> Optional[dict[str, float]]:
        """Custom ordering for ``aes`` as value -> rank, or None when not declared."""
        order = self.breaks.get(aes)
        if order is None:
            return None
        if isinstance(order, Mapping):
            return {str(k): float(v) for k, v in order.items()}
        return {str(v): float(i + 1) for i, v in enumerate(order)}

    def warn(self, message: str) -> None:
        """Log a recoverable problem and keep it for the caller."""
        logger.warning(message)
        self.warnings.append(message)
