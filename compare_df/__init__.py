"""
compare_df - git style comparison of two versions of a DataFrame

Compares a new and an old version of a pandas DataFrame grouped by one or
more key columns. Numeric changes can be ignored up to a tolerance, and the
result comes as a symbolic table, a score table, change counts and an
optional colour-coded HTML diff.

Basic Usage:
    >>> from compare_df import compare_df, DataFrameCompare
    >>>
    >>> # Quick comparison
    >>> result = compare_df(new_df, old_df, group_col=['var1'])
    >>> print(result.comparison_df)
    >>> print(result.change_summary)
    >>>
    >>> # Class-based usage with options
    >>> comparer = DataFrameCompare(tolerance=0.1, tolerance_type='difference',
    ...                             keep_unchanged=True)
    >>> result = comparer.compare(new_df, old_df, group_col=['region', 'product'])
    >>>
    >>> # Open the HTML diff in a browser
    >>> view_html(result)
"""

from .comparison import (
    create_change_count,
    create_change_summary,
    create_comparison_table,
    create_comparison_table_diff,
    eliminate_tolerant_rows,
    keep_unchanged_rows,
    rows_within_tolerance,
)
from .datadiff import (
    # Main class
    DataFrameCompare,

    # Convenience function
    compare_df,

    # Version
    __version__,
)
from .encoding import colour_coding, replace_numbers_with_symbols, sequence_order_vector
from .errors import (
    AllWithinToleranceError,
    ComparisonError,
    ComparisonWarning,
    IdenticalTablesError,
    MissingGroupColumnError,
    ReservedNameError,
    SchemaMismatchError,
    UnknownToleranceModeError,
)
from .grouping import group_columns
from .models import (
    CellScore,
    ChangeSummary,
    ColorScheme,
    ColumnKind,
    ComparisonResult,
    Origin,
    TableSchema,
)
from .rendering import create_html_table, view_html
from .rowdiff import combined_rowdiffs, rowdiff
from .validation import check_if_comparable

__all__ = [
    # Main class and function
    "DataFrameCompare",
    "compare_df",
    "view_html",

    # Result types
    "ComparisonResult",
    "ChangeSummary",
    "ColorScheme",
    "Origin",
    "CellScore",
    "ColumnKind",
    "TableSchema",

    # Errors
    "ComparisonError",
    "ComparisonWarning",
    "IdenticalTablesError",
    "AllWithinToleranceError",
    "SchemaMismatchError",
    "ReservedNameError",
    "MissingGroupColumnError",
    "UnknownToleranceModeError",

    # Pipeline stages
    "check_if_comparable",
    "group_columns",
    "rowdiff",
    "combined_rowdiffs",
    "create_comparison_table",
    "create_comparison_table_diff",
    "rows_within_tolerance",
    "eliminate_tolerant_rows",
    "keep_unchanged_rows",
    "create_change_count",
    "create_change_summary",
    "replace_numbers_with_symbols",
    "colour_coding",
    "sequence_order_vector",
    "create_html_table",

    # Version
    "__version__",
]
