"""
Collapse several grouping columns into one synthetic integer key
"""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .errors import ReservedNameError
from .models import GROUP_COL

logger = logging.getLogger("compare_df")


def group_columns(
    df_new: pd.DataFrame,
    df_old: pd.DataFrame,
    group_col: Sequence[str],
    name: str = GROUP_COL,
    log: Optional[logging.Logger] = None
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Give both frames a single integer group column.

    Every distinct combination of ``group_col`` values seen across both
    frames gets an id, counting from 1 in the sorted order of the
    combinations. Missing values form their own combination and sort last.
    The new column is inserted first; the original grouping columns are
    kept as ordinary columns.

    Returns:
        The new and old frames, in that order, each with a fresh index
    """
    log = log or logger
    log.info("Grouping grouping columns")

    if name in df_new.columns or name in df_old.columns:
        raise ReservedNameError([name], [name])

    combined = pd.concat([df_new, df_old], keys=["new", "old"])
    ids = combined.groupby(list(group_col), sort=True, dropna=False).ngroup() + 1
    combined.insert(0, name, ids.to_numpy(dtype=np.int64))

    from_new = combined.index.get_level_values(0) == "new"
    return (
        combined[from_new].reset_index(drop=True),
        combined[~from_new].reset_index(drop=True),
    )
