"""
Comparison table, tolerance scoring, row filtering and change counts

All functions return new frames and leave their inputs untouched. The
comparison table, its display variant and the score table are kept
row-aligned: any filter or sort applied to one is applied to all three.
"""

import logging
from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .errors import UnknownToleranceModeError
from .models import CHANGE_COL, CellScore, ChangeSummary, ColumnKind, Origin, TableSchema

logger = logging.getLogger("compare_df")

TOLERANCE_TYPES = ("ratio", "difference")
COUNT_COLUMNS = ["changes", "additions", "removals"]


def _concat_rows(frames: Sequence[pd.DataFrame], columns: Iterable[str]) -> pd.DataFrame:
    # empty frames are skipped so they cannot alter the result dtypes
    columns = list(columns)
    non_empty = [frame for frame in frames if len(frame) > 0]
    if not non_empty:
        return frames[0][columns].reset_index(drop=True)
    return pd.concat([frame[columns] for frame in non_empty], ignore_index=True)


def round_numeric(df: pd.DataFrame, digits: int = 2) -> pd.DataFrame:
    """Round every numeric column"""
    rounded = df.copy()
    numeric_cols = rounded.select_dtypes(include="number").columns
    if len(numeric_cols) > 0:
        rounded[numeric_cols] = rounded[numeric_cols].round(digits)
    return rounded


def timestamps_to_text(df: pd.DataFrame, schema: Optional[TableSchema] = None) -> pd.DataFrame:
    """Replace timestamp columns by their string form, keeping missing values missing"""
    schema = schema or TableSchema.from_frame(df)
    converted = df.copy()
    for name in schema.of_kind(ColumnKind.TIMESTAMP):
        column = converted[name]
        converted[name] = column.astype(str).where(column.notna(), None)
    return converted


# -----------------------------------------------------------------------------
# Comparison table
# -----------------------------------------------------------------------------

def _tag(frame: pd.DataFrame, origin: Origin) -> pd.DataFrame:
    tagged = frame.copy()
    tagged.insert(0, CHANGE_COL, np.full(len(tagged), int(origin), dtype=np.int64))
    return tagged


def create_comparison_table(
    removed: pd.DataFrame,
    added: pd.DataFrame,
    group_col: str,
    log: Optional[logging.Logger] = None
) -> pd.DataFrame:
    """
    Merge both directional diffs into one table.

    Rows are ordered by group ascending and, inside a group, additions
    before removals; rows that tie keep their removed-then-added order.
    The group column comes first, then ``chng_type``, then the rest.
    """
    (log or logger).info("Creating comparison table...")

    columns = [group_col, CHANGE_COL] + [col for col in removed.columns if col != group_col]
    mixed = _concat_rows([_tag(removed, Origin.REMOVED), _tag(added, Origin.ADDED)], columns)
    mixed = mixed.astype({CHANGE_COL: np.int64})

    mixed = mixed.sort_values(CHANGE_COL, ascending=False, kind="mergesort")
    mixed = mixed.sort_values(group_col, kind="mergesort", na_position="last")
    return round_numeric(mixed.reset_index(drop=True))


# -----------------------------------------------------------------------------
# Tolerance classification
# -----------------------------------------------------------------------------

def check_tolerance(tolerance: float, tolerance_type: str) -> None:
    """Reject a negative tolerance or an unknown tolerance mode"""
    if tolerance_type not in TOLERANCE_TYPES:
        raise UnknownToleranceModeError(tolerance_type)
    if tolerance < 0:
        raise ValueError(f"tolerance must be non-negative, got {tolerance}")


def exceeds_tolerance(values: np.ndarray, tolerance: float, tolerance_type: str) -> bool:
    """
    Whether the spread of ``values`` is beyond the tolerance.

    ``difference`` compares the range itself, ``ratio`` compares the range
    relative to the magnitude of the minimum. A zero minimum with a
    non-zero range has no meaningful ratio and always counts as changed.
    """
    low = values.min()
    spread = values.max() - low
    if tolerance_type == "difference":
        return bool(spread > tolerance)
    if tolerance_type != "ratio":
        raise UnknownToleranceModeError(tolerance_type)
    if low == 0:
        return bool(spread > 0)
    return bool(spread / abs(low) > tolerance)


def column_score(values: pd.Series, kind: ColumnKind, tolerance: float, tolerance_type: str) -> int:
    """Score a column within one group: 1 if it counts as changed, else 0"""
    present = values.dropna()
    if len(present) == 1:
        # nothing to compare against
        return 1

    distinct = present.nunique()
    if kind is ColumnKind.NUMERIC and distinct > 1:
        return int(exceeds_tolerance(present.to_numpy(dtype=float), tolerance, tolerance_type))
    return int(distinct > 1)


def _score_group(group: pd.DataFrame, schema: TableSchema, tolerance: float, tolerance_type: str) -> pd.DataFrame:
    factor = np.where(group[CHANGE_COL].to_numpy() == int(Origin.ADDED), 2, 1)
    scores = {}
    for name in group.columns:
        if name == CHANGE_COL:
            continue
        base = column_score(group[name], schema.kind(name), tolerance, tolerance_type)
        scores[name] = (base * factor).astype(np.int64)
    return pd.DataFrame(scores, index=group.index)


def create_comparison_table_diff(
    comparison_table: pd.DataFrame,
    group_col: str,
    schema: Optional[TableSchema] = None,
    tolerance: float = 0,
    tolerance_type: str = "ratio"
) -> pd.DataFrame:
    """
    Score every cell of the comparison table.

    The table should already have its timestamps converted to text, with
    ``schema`` describing the columns before that conversion. Each column
    is scored once per group; the score is doubled on added rows so that
    additions and removals can be told apart. ``chng_type`` is copied
    through unchanged.

    Raises:
        UnknownToleranceModeError: If ``tolerance_type`` is not supported
        ValueError: If ``tolerance`` is negative
    """
    check_tolerance(tolerance, tolerance_type)
    schema = schema or TableSchema.from_frame(comparison_table)
    columns = list(comparison_table.columns)

    if len(comparison_table) == 0:
        return pd.DataFrame({col: pd.Series(dtype=np.int64) for col in columns})

    parts = [
        _score_group(group, schema, tolerance, tolerance_type)
        for _, group in comparison_table.groupby(group_col, sort=True, dropna=False)
    ]
    scores = pd.concat(parts).reindex(comparison_table.index)
    scores[CHANGE_COL] = comparison_table[CHANGE_COL]
    return scores[columns]


# -----------------------------------------------------------------------------
# Row filtering
# -----------------------------------------------------------------------------

def rows_within_tolerance(comparison_table_diff: pd.DataFrame) -> pd.Series:
    """Mask of rows whose every score is ``CellScore.UNCHANGED``"""
    scores = comparison_table_diff.drop(columns=CHANGE_COL)
    return (scores == int(CellScore.UNCHANGED)).all(axis=1)


def eliminate_tolerant_rows(frame: pd.DataFrame, within_tolerance: pd.Series) -> pd.DataFrame:
    """Drop the rows flagged by ``rows_within_tolerance``"""
    return frame[~within_tolerance.to_numpy(dtype=bool)].reset_index(drop=True)


def keep_unchanged_rows(
    frame: pd.DataFrame,
    originals: Sequence[pd.DataFrame],
    group_col: str,
    keys: Optional[pd.Series] = None,
    scores: bool = False
) -> pd.DataFrame:
    """
    Append the rows of groups that have no difference.

    Rows of ``originals`` whose group key is absent from ``keys`` (by
    default the group column of ``frame``) are appended with origin
    ``Origin.UNCHANGED``. A score table holds scores in its group column,
    so it must be given the keys of its comparison table; with
    ``scores=True`` each appended cell is ``CellScore.UNCHANGED_ROW``.
    """
    present = frame[group_col] if keys is None else keys
    untouched = [source[~source[group_col].isin(present)] for source in originals]
    untouched = [rows.assign(**{CHANGE_COL: int(Origin.UNCHANGED)}) for rows in untouched]
    unchanged = _concat_rows(untouched, frame.columns)

    if len(unchanged) == 0:
        return frame.reset_index(drop=True)
    if scores:
        unchanged = pd.DataFrame(int(CellScore.UNCHANGED_ROW), index=unchanged.index,
                                 columns=frame.columns, dtype=np.int64)
    return _concat_rows([frame, unchanged], frame.columns)


def sort_by_group(frames: Sequence[pd.DataFrame], key_frame: pd.DataFrame, group_col: str) -> List[pd.DataFrame]:
    """Stable-sort row-aligned frames by the group column of ``key_frame``"""
    keys = key_frame[group_col].reset_index(drop=True)
    positions = keys.sort_values(kind="mergesort", na_position="last").index.to_numpy()
    return [frame.iloc[positions].reset_index(drop=True) for frame in frames]


# -----------------------------------------------------------------------------
# Change counts
# -----------------------------------------------------------------------------

def create_change_count(comparison_table: pd.DataFrame, group_col: str) -> pd.DataFrame:
    """
    Count changes, additions and removals per group.

    A removal paired with an addition in the same group is a change; the
    surplus on either side counts as additions or removals.
    """
    if len(comparison_table) == 0:
        return pd.DataFrame({
            group_col: pd.Series(dtype=comparison_table[group_col].dtype),
            **{col: pd.Series(dtype=np.int64) for col in COUNT_COLUMNS},
        })

    counts = (
        comparison_table.groupby([group_col, CHANGE_COL], sort=True, dropna=False)
        .size()
        .unstack(fill_value=0)
        .reindex(columns=[int(Origin.REMOVED), int(Origin.ADDED)], fill_value=0)
    )
    removed = counts[int(Origin.REMOVED)].to_numpy(dtype=np.int64)
    added = counts[int(Origin.ADDED)].to_numpy(dtype=np.int64)

    return pd.DataFrame({
        group_col: counts.index.to_numpy(),
        "changes": np.minimum(removed, added),
        "additions": np.maximum(added - removed, 0),
        "removals": np.maximum(removed - added, 0),
    })


def create_change_summary(change_count: pd.DataFrame, df_new: pd.DataFrame, df_old: pd.DataFrame) -> ChangeSummary:
    """Total the per-group counts"""
    return ChangeSummary(
        old_obs=len(df_old),
        new_obs=len(df_new),
        changes=int(change_count["changes"].sum()),
        additions=int(change_count["additions"].sum()),
        removals=int(change_count["removals"].sum()),
    )
