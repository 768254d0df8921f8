"""
Git style comparison of two versions of a pandas DataFrame

Rows present in only one version are paired up per group, numeric changes
are checked against a tolerance, and the result is returned as a symbolic
table, a score table, per-group change counts and an optional HTML diff.
"""

import logging
from typing import Mapping, Optional, Sequence, Union

import pandas as pd

from .comparison import (
    create_change_count,
    create_change_summary,
    create_comparison_table,
    create_comparison_table_diff,
    eliminate_tolerant_rows,
    keep_unchanged_rows,
    round_numeric,
    rows_within_tolerance,
    sort_by_group,
    timestamps_to_text,
)
from .encoding import get_headers, replace_numbers_with_symbols
from .errors import AllWithinToleranceError, IdenticalTablesError, stop_or_warn
from .grouping import group_columns
from .models import CHANGE_COL, GROUP_COL, ColorScheme, ComparisonResult, TableSchema
from .rendering import create_html_table
from .rowdiff import combined_rowdiffs
from .validation import (
    align_columns,
    as_column_list,
    check_if_comparable,
    check_is_dataframe,
    exclude_columns,
)


__version__ = "0.1.0"


class DataFrameCompare:
    """
    Compare a new and an old version of a DataFrame grouped by key columns.

    Rows found only in the old frame are removals, rows found only in the
    new frame are additions. Within a group, a removal matched by an
    addition is reported as a change.

    Example:
        >>> comparer = DataFrameCompare(tolerance=0.05)
        >>> result = comparer.compare(new_df, old_df, group_col=['var1'])
        >>> print(result.change_summary)
    """

    def __init__(
        self,
        tolerance: float = 0,
        tolerance_type: str = "ratio",
        stop_on_error: bool = True,
        keep_unchanged: bool = False,
        color_scheme: Optional[Union[ColorScheme, Mapping[str, str]]] = None,
        limit_html: int = 100,
        html_headers: Optional[Mapping[str, str]] = None,
        html_change_col_name: str = CHANGE_COL,
        html_group_col_name: str = GROUP_COL,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize DataFrameCompare

        Args:
            tolerance: Changes to numeric columns up to this amount are ignored.
                Doesn't apply to categorical columns.
            tolerance_type: 'ratio' (range relative to the minimum) or
                'difference' (absolute range)
            stop_on_error: If True, identical frames or frames equal within
                tolerance raise; otherwise a warning is emitted
            keep_unchanged: If True, rows of groups without any difference are
                kept in the output
            color_scheme: Colours of the HTML diff, as a ColorScheme or a
                mapping with the keys addition, removal, unchanged_cell and
                unchanged_row
            limit_html: Maximum number of rows in the HTML diff; 0 disables it
            html_headers: Display names for columns of the HTML diff
            html_change_col_name: Display name of the change column
            html_group_col_name: Display name of the synthetic group column
            logger: Logger receiving progress messages
        """
        if tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {tolerance}")
        if limit_html < 0:
            raise ValueError(f"limit_html must be non-negative, got {limit_html}")

        if color_scheme is None:
            color_scheme = ColorScheme()
        elif not isinstance(color_scheme, ColorScheme):
            color_scheme = ColorScheme.from_mapping(color_scheme)

        self.tolerance = tolerance
        self.tolerance_type = tolerance_type
        self.stop_on_error = stop_on_error
        self.keep_unchanged = keep_unchanged
        self.color_scheme = color_scheme
        self.limit_html = limit_html
        self.html_headers = dict(html_headers or {})
        self.html_change_col_name = html_change_col_name
        self.html_group_col_name = html_group_col_name
        self.logger = logger or logging.getLogger("compare_df")

    def compare(
        self,
        df_new: pd.DataFrame,
        df_old: pd.DataFrame,
        group_col: Union[str, Sequence[str]],
        exclude: Optional[Sequence[str]] = None
    ) -> ComparisonResult:
        """
        Compare two DataFrames sharing the same columns

        Args:
            df_new: Frame whose differences are shown as additions
            df_old: Frame whose differences are shown as removals
            group_col: Column or columns identifying a logical row. Several
                columns are collapsed into a single integer ``grp`` column.
            exclude: Columns left out of the comparison

        Returns:
            ComparisonResult holding comparison_df, comparison_table_diff,
            change_count, change_summary and html_output

        Raises:
            TypeError: If inputs are not pandas DataFrames
            ComparisonError: If the frames cannot be compared, or if they
                carry no difference and ``stop_on_error`` is set
        """
        check_is_dataframe(df_new, "df_new")
        check_is_dataframe(df_old, "df_old")
        group_cols = as_column_list(group_col)

        df_new, df_old = exclude_columns(df_new, df_old, exclude)
        check_if_comparable(df_new, df_old, group_cols, self.stop_on_error)
        df_new = align_columns(df_new, df_old).reset_index(drop=True)
        df_old = df_old.reset_index(drop=True)

        if len(group_cols) > 1:
            df_new, df_old = group_columns(df_new, df_old, group_cols, GROUP_COL, self.logger)
            key = GROUP_COL
        else:
            key = group_cols[0]

        removed, added = combined_rowdiffs(df_new, df_old)
        if len(removed) == 0 and len(added) == 0:
            stop_or_warn(IdenticalTablesError("The two data frames are similar after reordering"),
                         self.stop_on_error)

        comparison_table = create_comparison_table(removed, added, key, self.logger)
        schema = TableSchema.from_frame(comparison_table)
        display_table = timestamps_to_text(comparison_table, schema)
        score_table = create_comparison_table_diff(display_table, key, schema,
                                                   self.tolerance, self.tolerance_type)

        within_tolerance = rows_within_tolerance(score_table)
        comparison_table = eliminate_tolerant_rows(comparison_table, within_tolerance)
        display_table = eliminate_tolerant_rows(display_table, within_tolerance)
        score_table = eliminate_tolerant_rows(score_table, within_tolerance)

        if len(comparison_table) == 0 or len(score_table) == 0:
            stop_or_warn(AllWithinToleranceError("The two data frames are the same after accounting for tolerance!"),
                         self.stop_on_error)

        if self.keep_unchanged:
            comparison_table, display_table, score_table = self._keep_unchanged(
                comparison_table, display_table, score_table, df_new, df_old, key
            )

        html_output = None
        if self.limit_html > 0 and len(score_table) > 0:
            headers = get_headers(score_table.columns, self.html_headers,
                                  self.html_change_col_name, self.html_group_col_name)
            html_output = create_html_table(score_table, display_table, key, self.limit_html,
                                            self.color_scheme, headers, self.logger)

        change_count = create_change_count(comparison_table, key)
        change_summary = create_change_summary(change_count, df_new, df_old)

        comparison_df = comparison_table.copy()
        comparison_df[CHANGE_COL] = replace_numbers_with_symbols(comparison_df[CHANGE_COL])

        return ComparisonResult(
            comparison_df=comparison_df,
            comparison_table_diff=replace_numbers_with_symbols(score_table),
            change_count=change_count,
            change_summary=change_summary,
            html_output=html_output,
            group_col=key,
        )

    def _keep_unchanged(self, comparison_table, display_table, score_table, df_new, df_old, key):
        """Reinsert the rows of untouched groups into the three aligned tables"""
        keys = comparison_table[key]
        rounded = [round_numeric(df_new), round_numeric(df_old)]

        comparison_table = keep_unchanged_rows(comparison_table, rounded, key, keys)
        display_table = keep_unchanged_rows(display_table, [timestamps_to_text(df) for df in rounded], key, keys)
        score_table = keep_unchanged_rows(score_table, rounded, key, keys, scores=True)

        return sort_by_group([comparison_table, display_table, score_table], comparison_table, key)


def compare_df(
    df_new: pd.DataFrame,
    df_old: pd.DataFrame,
    group_col: Union[str, Sequence[str]],
    exclude: Optional[Sequence[str]] = None,
    **kwargs
) -> ComparisonResult:
    """
    Convenience function to compare two DataFrames.

    Args:
        df_new: Frame whose differences are shown as additions
        df_old: Frame whose differences are shown as removals
        group_col: Column or columns to group by
        exclude: Columns left out of the comparison
        **kwargs: Options passed to DataFrameCompare

    Example:
        >>> old_df = pd.DataFrame({'var1': ['A', 'B', 'C'], 'val1': [1, 2, 3]})
        >>> new_df = pd.DataFrame({'var1': ['A', 'B', 'C'], 'val1': [1, 2, 4]})
        >>> result = compare_df(new_df, old_df, ['var1'])
        >>> result.change_summary.changes
        1
    """
    return DataFrameCompare(**kwargs).compare(df_new, df_old, group_col, exclude)
