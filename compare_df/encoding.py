"""
Conversion of origin and score codes to display symbols and colours
"""

from typing import Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .models import CHANGE_COL, GROUP_COL, CellScore, ColorScheme

SYMBOLS = {
    int(CellScore.CHANGED_ADDITION): "+",
    int(CellScore.CHANGED_REMOVAL): "-",
    int(CellScore.UNCHANGED): "=",
    int(CellScore.UNCHANGED_ROW): "=",
}

BAND_COLOURS = ("white", "#dedede")


def _to_symbol(value):
    return SYMBOLS.get(value, value)


def replace_numbers_with_symbols(values: Union[pd.Series, pd.DataFrame]) -> Union[pd.Series, pd.DataFrame]:
    """Swap the codes 2, 1, 0 and -1 for ``+``, ``-``, ``=`` and ``=``"""
    if len(values) == 0:
        return values
    if isinstance(values, pd.DataFrame):
        return values.apply(lambda column: column.map(_to_symbol))
    return values.map(_to_symbol)


def colour_coding(comparison_table_diff: pd.DataFrame, color_scheme: ColorScheme) -> pd.DataFrame:
    """Colour matrix matching the score table cell for cell"""
    if len(comparison_table_diff) == 0:
        return comparison_table_diff
    return comparison_table_diff.apply(lambda column: column.map(color_scheme.colour_for))


def sequence_order_vector(keys: Sequence) -> np.ndarray:
    """Zero-based index of the run of equal consecutive keys each row belongs to"""
    keys = pd.Series(keys).reset_index(drop=True)
    if len(keys) == 0:
        return np.array([], dtype=np.int64)
    return (keys.ne(keys.shift()).cumsum() - 1).to_numpy(dtype=np.int64)


def row_shading(keys: Sequence) -> List[str]:
    """Background colour per row, alternating between groups"""
    return [BAND_COLOURS[run % 2] for run in sequence_order_vector(keys)]


def get_headers(
    columns: Sequence[str],
    headers: Optional[Mapping[str, str]] = None,
    change_col_name: str = CHANGE_COL,
    group_col_name: str = GROUP_COL
) -> List[str]:
    """
    Display names for the columns of the HTML table.

    ``grp`` and ``chng_type`` get their configured display names first;
    ``headers`` then overrides any column, keyed by its original or its
    display name.
    """
    renames: Dict[str, str] = {GROUP_COL: group_col_name, CHANGE_COL: change_col_name}
    headers = headers or {}
    result = []
    for column in columns:
        display = renames.get(column, column)
        if column in headers:
            display = headers[column]
        elif display in headers:
            display = headers[display]
        result.append(display)
    return result
