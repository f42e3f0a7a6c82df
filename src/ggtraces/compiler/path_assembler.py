"""Path and ribbon assembly.

Plotly draws many disconnected lines or rings most efficiently as one trace
whose coordinate arrays are broken by missing values. ``group_to_na`` turns a
grouped row table into such a stream; ``ribbon_rows`` turns a min/max band
into a single closed ring.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

GROUP_COL = "group"
XY = ("x", "y")


def _blank_xy(rows: pd.DataFrame) -> pd.DataFrame:
    """Copy of ``rows`` with x and y set to missing (the separator row)."""
    out = rows.copy()
    for col in XY:
        if col in out.columns:
            out.loc[:, col] = np.nan
    return out


def _as_float_xy(df: pd.DataFrame) -> pd.DataFrame:
    """Promote integer/bool x and y so separators can hold NaN without a dtype change."""
    changes = {
        col: df[col].astype(float)
        for col in XY
        if col in df.columns
        and (pd.api.types.is_integer_dtype(df[col]) or pd.api.types.is_bool_dtype(df[col]))
    }
    return df.assign(**changes) if changes else df


def split_blocks(df: pd.DataFrame, group_col: str = GROUP_COL) -> list[pd.DataFrame]:
    """Partition rows into blocks by group id in first-appearance order.

    The group column is dropped from every block. A table without a group
    column is a single block; empty blocks are never returned.
    """
    if df.empty:
        return []
    if group_col not in df.columns:
        return [df.reset_index(drop=True)]
    blocks = []
    for _, block in df.groupby(group_col, sort=False, dropna=False, observed=True):
        if len(block):
            blocks.append(block.drop(columns=[group_col]).reset_index(drop=True))
    return blocks


def group_to_na(df: pd.DataFrame, polygon: bool = False, group_col: str = GROUP_COL) -> pd.DataFrame:
    """Concatenate grouped rows into one stream with missing x/y separators.

    Every group is followed by a separator row (a copy of its first row with
    x and y missing). In ``polygon`` mode each group is first closed by
    repeating its first row, then the first rows of the inner groups are
    retraced backwards and the whole stream returns to the very first vertex,
    so adjacent rings do not bleed fill into each other. A trailing separator
    is dropped.
    """
    df = _as_float_xy(df)
    blocks = split_blocks(df, group_col)
    if not blocks:
        return df.drop(columns=[group_col], errors="ignore").iloc[0:0].reset_index(drop=True)

    pieces: list[pd.DataFrame] = []
    for block in blocks:
        first = block.iloc[[0]]
        pieces.append(block)
        if polygon:
            pieces.append(first)
        pieces.append(_blank_xy(first))

    if polygon:
        for block in reversed(blocks[1:-1]):
            first = block.iloc[[0]]
            pieces.append(first)
            pieces.append(_blank_xy(first))
        if len(blocks) > 1:
            first = blocks[0].iloc[[0]]
            pieces.extend([first, first])

    out = pd.concat(pieces, ignore_index=True)
    if len(out) and "x" in out.columns and pd.isna(out["x"].iloc[-1]):
        out = out.iloc[:-1]
    return out.reset_index(drop=True)


def ribbon_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Turn a band (x, ymin, ymax) into one closed ring.

    Rows sorted by ascending x with y = ymax, then the last x again with
    y = ymin, then rows sorted by descending x with y = ymin: 2N + 1 rows.
    Columns other than x/y/ymin/ymax are carried along.
    """
    if df.empty:
        others = [c for c in df.columns if c not in ("x", "y", "ymin", "ymax")]
        return pd.DataFrame(columns=["x", "y", *others])
    others = [c for c in df.columns if c not in ("x", "y", "ymin", "ymax")]
    up = df.sort_values("x", kind="mergesort")
    down = df.sort_values("x", ascending=False, kind="mergesort")

    top = pd.concat([up[["x"]], up["ymax"].rename("y"), up[others]], axis=1)
    turn = pd.concat([up[["x"]].iloc[[-1]], up["ymin"].rename("y").iloc[[-1]], up[others].iloc[[-1]]], axis=1)
    bottom = pd.concat([down[["x"]], down["ymin"].rename("y"), down[others]], axis=1)
    return pd.concat([top, turn, bottom], ignore_index=True)


def grouped_ribbon_rows(df: pd.DataFrame, group_col: Optional[str] = GROUP_COL) -> pd.DataFrame:
    """``ribbon_rows`` applied per group; the group column is kept on every ring."""
    if group_col is None or group_col not in df.columns or df[group_col].nunique(dropna=False) < 2:
        return ribbon_rows(df)
    rings = [
        ribbon_rows(block)
        for _, block in df.groupby(group_col, sort=False, dropna=False, observed=True)
        if len(block)
    ]
    return pd.concat(rings, ignore_index=True)
