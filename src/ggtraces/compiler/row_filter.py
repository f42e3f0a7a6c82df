"""Drop rows with missing aesthetic values from computed layer data."""

from __future__ import annotations

import pandas as pd


def drop_missing_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Return the rows of ``df`` with no missing value in any column.

    Row order is kept and the index is reset. A table whose rows all
    contain a missing value yields an empty table with the same columns.
    """
    keep = ~df.isna().any(axis=1)
    return df.loc[keep].reset_index(drop=True)
