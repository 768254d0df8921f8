"""
Preconditions checked before any comparison work is done
"""

import warnings
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from .errors import (
    ComparisonWarning,
    IdenticalTablesError,
    MissingGroupColumnError,
    ReservedNameError,
    SchemaMismatchError,
    stop_or_warn,
)
from .models import RESERVED_NAMES


def check_is_dataframe(obj, name: str) -> None:
    """Raise TypeError unless ``obj`` is a pandas DataFrame"""
    if not isinstance(obj, pd.DataFrame):
        raise TypeError(f"{name} must be a pandas DataFrame, got {type(obj).__name__}")


def as_column_list(group_col: Union[str, Sequence[str]]) -> List[str]:
    """Normalise a column name or a sequence of names to a list"""
    if isinstance(group_col, str):
        return [group_col]
    if not isinstance(group_col, (list, tuple)):
        raise TypeError("group_col must be a column name or a list or tuple of column names")
    if len(group_col) == 0:
        raise ValueError("group_col cannot be empty")
    return list(group_col)


def check_if_comparable(
    df_new: pd.DataFrame,
    df_old: pd.DataFrame,
    group_col: Union[str, Sequence[str]],
    stop_on_error: bool = True
) -> bool:
    """
    Check that two DataFrames can be compared.

    Only the identical-tables check honours ``stop_on_error``; every other
    failure is raised unconditionally.

    Raises:
        TypeError: If an input is not a pandas DataFrame
        IdenticalTablesError: If the frames are equal and ``stop_on_error`` is set
        SchemaMismatchError: If the column sets differ
        ReservedNameError: If a grouping column uses a reserved name
        MissingGroupColumnError: If a grouping column is not in the frames
    """
    check_is_dataframe(df_new, "df_new")
    check_is_dataframe(df_old, "df_old")
    group_col = as_column_list(group_col)

    if df_old.reset_index(drop=True).equals(df_new.reset_index(drop=True)):
        stop_or_warn(IdenticalTablesError("The two data frames are the same!"), stop_on_error)

    if set(df_new.columns) != set(df_old.columns):
        raise SchemaMismatchError(
            missing_in_new=[col for col in df_old.columns if col not in df_new.columns],
            missing_in_old=[col for col in df_new.columns if col not in df_old.columns],
        )

    reserved = [col for col in group_col if col in RESERVED_NAMES]
    if reserved:
        raise ReservedNameError(reserved, list(RESERVED_NAMES))

    missing = [col for col in group_col if col not in df_new.columns]
    if missing:
        raise MissingGroupColumnError(missing)

    return True


def exclude_columns(
    df_new: pd.DataFrame,
    df_old: pd.DataFrame,
    exclude: Optional[Sequence[str]]
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Drop the excluded columns from both frames"""
    if not exclude:
        return df_new, df_old
    if isinstance(exclude, str):
        exclude = [exclude]

    unknown = [col for col in exclude if col not in df_new.columns and col not in df_old.columns]
    if unknown:
        warnings.warn(f"Excluded column(s) {unknown} not found in either data frame",
                      ComparisonWarning, stacklevel=2)

    return (
        df_new.drop(columns=[col for col in exclude if col in df_new.columns]),
        df_old.drop(columns=[col for col in exclude if col in df_old.columns]),
    )


def align_columns(df_new: pd.DataFrame, df_old: pd.DataFrame) -> pd.DataFrame:
    """Reorder the columns of ``df_new`` to follow ``df_old``"""
    return df_new[list(df_old.columns)]
