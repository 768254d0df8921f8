"""
Multiset difference between the rows of two DataFrames
"""

from collections import Counter
from typing import Hashable, List, Tuple

import numpy as np
import pandas as pd


class _Missing:
    """Hashable stand-in so that NaN, None and NaT match each other"""

    def __repr__(self) -> str:
        return "<missing>"


_MISSING = _Missing()


def _cell_key(value) -> Hashable:
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return _MISSING
    if isinstance(value, (list, np.ndarray)):
        return tuple(value)
    return value


def row_keys(df: pd.DataFrame) -> List[Tuple]:
    """Hashable content of every row, in order"""
    return [
        tuple(_cell_key(value) for value in row)
        for row in df.itertuples(index=False, name=None)
    ]


def rowdiff(a: pd.DataFrame, b: pd.DataFrame) -> pd.DataFrame:
    """
    Rows of ``a`` without a full-row match in ``b``.

    Each row of ``b`` can match a single row of ``a``: when a row appears
    ``k`` times in ``b`` the first ``k`` copies in ``a`` are matched and any
    later copy is returned. Row order of ``a`` is preserved.
    """
    if len(b) == 0:
        return a

    remaining = Counter(row_keys(b[list(a.columns)]))
    keep = np.ones(len(a), dtype=bool)
    for position, key in enumerate(row_keys(a)):
        if remaining[key] > 0:
            remaining[key] -= 1
            keep[position] = False

    return a[keep]


def combined_rowdiffs(df_new: pd.DataFrame, df_old: pd.DataFrame) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Diff the two frames in both directions.

    Returns:
        ``(removed, added)``: rows only in ``df_old`` and rows only in ``df_new``
    """
    return rowdiff(df_old, df_new), rowdiff(df_new, df_old)
