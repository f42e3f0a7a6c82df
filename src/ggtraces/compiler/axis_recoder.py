"""Recover original values on non-continuous position axes.

Upstream encodes discrete and date axes numerically: categories become
1-based level positions, date-times epoch seconds and dates epoch days.
Plotly needs the original values back, on both the computed data and the
pre-statistics data, so the two tables stay consistent.

Three kinds are recognised from the untouched source column (or, when that
is unavailable, from the ``<aes>.name`` display column):

- date-time: epoch seconds -> "YYYY-MM-DD HH:MM:SS"
- date-only: epoch days    -> "YYYY-MM-DD HH:MM:SS"
- categorical: level positions -> labels, as a Categorical keeping level order
"""

from __future__ import annotations

import datetime as _dt

import pandas as pd

from ggtraces.compiler.geoms import AXIS_VARIANT_SUFFIXES, POSITION_AXES, name_column
from ggtraces.compiler.layer import Layer, LayerSpec, PlotContext
from ggtraces.utils.logging import get_logger

logger = get_logger(__name__)

DATETIME_FMT = "%Y-%m-%d %H:%M:%S"

DATETIME = "datetime"
DATE = "date"
CATEGORICAL = "categorical"
NUMERIC = "numeric"


def value_kind(values: pd.Series) -> str:
    """Classify a column as datetime, date, categorical or numeric."""
    dtype = values.dtype
    if pd.api.types.is_datetime64_any_dtype(dtype):
        return DATETIME
    if isinstance(dtype, pd.CategoricalDtype) or pd.api.types.is_bool_dtype(dtype):
        return CATEGORICAL
    if pd.api.types.is_numeric_dtype(dtype):
        return NUMERIC
    present = values.dropna()
    if len(present):
        if all(isinstance(v, _dt.datetime) for v in present):
            return DATETIME
        if all(isinstance(v, _dt.date) for v in present):
            return DATE
    return CATEGORICAL


def format_epoch(values: pd.Series, unit: str) -> pd.Series:
    """Format epoch-encoded values (``unit`` "s" or "D") as date-time text.

    Values that are already date-times are formatted as-is. Missing values
    stay missing.

    Raises:
        ValueError, TypeError, OverflowError: On malformed values.
    """
    if pd.api.types.is_datetime64_any_dtype(values.dtype):
        stamps = values
    elif value_kind(values) in (DATETIME, DATE):
        stamps = pd.to_datetime(values, errors="raise")
    else:
        numeric = pd.to_numeric(values, errors="raise")
        stamps = pd.to_datetime(numeric, unit=unit, origin="unix", errors="raise")
    text = stamps.dt.strftime(DATETIME_FMT)
    return text.where(stamps.notna(), None)


def _categories(reference: pd.Series) -> list:
    if isinstance(reference.dtype, pd.CategoricalDtype):
        return list(reference.cat.categories)
    return sorted(reference.dropna().unique().tolist(), key=str)


def _code_labels(reference: pd.Series, categories: list) -> dict[float, object]:
    """Level position (1-based) -> label for every level present in ``reference``."""
    cat = pd.Categorical(reference, categories=categories)
    labels: dict[float, object] = {}
    for code, label in zip(cat.codes, reference):
        if code >= 0 and float(code + 1) not in labels:
            labels[float(code + 1)] = label
    return labels


def _map_codes(codes: pd.Series, labels: dict[float, object]) -> pd.Series:
    numeric = pd.to_numeric(codes, errors="coerce")
    return numeric.map(lambda c: labels.get(float(c)) if pd.notna(c) else None)


def _as_categorical(values, categories: list) -> pd.Categorical:
    return pd.Categorical(values, categories=categories)


class AxisRecoder:
    """Replaces numeric placeholder codes on discrete axes with original values."""

    def __init__(self, spec: LayerSpec, context: PlotContext) -> None:
        self.spec = spec
        self.context = context

    def recode(self, layer: Layer) -> Layer:
        """Recode every non-continuous position axis of ``layer``."""
        for axis in POSITION_AXES:
            if self.context.axis_is_continuous(axis):
                continue
            for suffix in AXIS_VARIANT_SUFFIXES:
                aes = f"{axis}{suffix}"
                if aes in layer.mapping:
                    layer = self._recode_aes(layer, aes)
        return layer

    def _recode_aes(self, layer: Layer, aes: str) -> Layer:
        if aes not in layer.data.columns:
            return layer
        reference = self.spec.source_column(aes)
        if reference is None:
            return self._recode_from_names(layer, aes)

        data = layer.data.copy()
        prestats = layer.prestats.copy()
        kind = value_kind(reference)
        logger.debug(f"recoding {aes!r} as {kind} from the source column")
        if kind == DATETIME:
            data, prestats = self._recode_epoch(data, prestats, aes, unit="s")
        elif kind == DATE:
            data, prestats = self._recode_epoch(data, prestats, aes, unit="D")
        elif kind == CATEGORICAL:
            data, prestats = self._recode_categorical(data, prestats, aes, reference)
        return layer.evolve(data=data, prestats=prestats)

    def _recode_from_names(self, layer: Layer, aes: str) -> Layer:
        """Take the values from the ``<aes>.name`` column when there is no source data.

        Rows are put in code order first so the pre-statistics table, sorted
        the same way, lines up with them.
        """
        name_col = name_column(aes)
        if name_col not in layer.data.columns:
            return layer
        # guard against double conversion: only replace when the kinds differ
        if value_kind(layer.data[aes]) == value_kind(layer.data[name_col]):
            return layer

        data = _sort_by(layer.data.copy(), aes)
        prestats = layer.prestats.copy()
        kind = value_kind(data[name_col])
        logger.debug(f"recoding {aes!r} as {kind} from {name_col!r}")
        if kind in (DATETIME, DATE):
            data[aes] = data[name_col]
            unit = "s" if kind == DATETIME else "D"
            data, prestats = self._recode_epoch(data, prestats, aes, unit=unit)
        else:
            labels = _pair_labels(data[aes], data[name_col])
            categories = _code_ordered_categories(labels, data[name_col])
            data[aes] = _as_categorical(data[name_col], categories)
            prestats = _recode_prestats(prestats, data, aes, categories, labels)
        return layer.evolve(data=data, prestats=prestats)

    def _recode_epoch(
        self, data: pd.DataFrame, prestats: pd.DataFrame, aes: str, unit: str
    ) -> tuple[pd.DataFrame, pd.DataFrame]:
        for label, table in (("data", data), ("prestats", prestats)):
            if aes not in table.columns:
                continue
            try:
                table[aes] = format_epoch(table[aes], unit)
            except (ValueError, TypeError, OverflowError) as e:
                self.context.warn(
                    f"Could not reformat {label} column {aes!r} as dates ({e}); keeping previous values"
                )
        return data, prestats

    def _recode_categorical(
        self,
        data: pd.DataFrame,
        prestats: pd.DataFrame,
        aes: str,
        reference: pd.Series,
    ) -> tuple[pd.DataFrame, pd.DataFrame]:
        name_col = name_column(aes)
        categories = _categories(reference)
        labels = _code_labels(reference, categories)

        if not pd.api.types.is_numeric_dtype(data[aes].dtype):
            # already holds labels (e.g. recoded before)
            data[aes] = _as_categorical(data[aes].where(data[aes].isin(categories), None), categories)
        else:
            data = _sort_by(data, aes)
            values = _map_codes(data[aes], labels)
            if values.isna().any() and name_col in data.columns:
                # positional match missed some levels: match on display names
                names = data[name_col]
                values = names.where(names.isin(categories), None)
            if values.isna().any():
                logger.debug(f"{int(values.isna().sum())} value(s) of {aes!r} could not be recovered")
            data[aes] = _as_categorical(values, categories)
        return data, _recode_prestats(prestats, data, aes, categories, labels)


def _pair_labels(codes: pd.Series, names: pd.Series) -> dict[float, object]:
    """Code -> display name, from the rows that carry both."""
    numeric = pd.to_numeric(codes, errors="coerce")
    labels: dict[float, object] = {}
    for code, name in zip(numeric.tolist(), names.tolist()):
        if pd.notna(code) and pd.notna(name) and float(code) not in labels:
            labels[float(code)] = name
    return labels


def _code_ordered_categories(labels: dict[float, object], names: pd.Series) -> list:
    """Levels in the order of their codes; names without a code go last, sorted."""
    categories: list = []
    for code in sorted(labels):
        if labels[code] not in categories:
            categories.append(labels[code])
    rest = [n for n in names.dropna().unique().tolist() if n not in categories]
    return categories + sorted(rest, key=str)


def _recode_prestats(
    prestats: pd.DataFrame,
    data: pd.DataFrame,
    aes: str,
    categories: list,
    labels: dict[float, object],
) -> pd.DataFrame:
    """Give the pre-statistics table the recovered values of ``aes``.

    Same-length tables, both in code order, share the recovered column.
    Otherwise the table's own display names are used, or its codes mapped.
    """
    if aes not in prestats.columns:
        return prestats
    name_col = name_column(aes)
    prestats = _sort_by(prestats, aes)
    if len(prestats) == len(data):
        prestats[aes] = data[aes].array
    elif name_col in prestats.columns:
        prestats[aes] = _as_categorical(prestats[name_col], categories)
    elif labels:
        prestats[aes] = _as_categorical(_map_codes(prestats[aes], labels), categories)
    return prestats


def _sort_by(df: pd.DataFrame, col: str) -> pd.DataFrame:
    """Stable sort on a coded column; non-numeric columns are left in place."""
    if not pd.api.types.is_numeric_dtype(df[col].dtype):
        return df
    return df.sort_values(col, kind="mergesort").reset_index(drop=True)


def recode_axes(layer: Layer, spec: LayerSpec, context: PlotContext) -> Layer:
    """Convenience wrapper around ``AxisRecoder(spec, context).recode(layer)``."""
    return AxisRecoder(spec, context).recode(layer)
