"""
HTML rendering of a comparison and a helper to open it in a browser
"""

import logging
import tempfile
import warnings
import webbrowser
from html import escape
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import pandas as pd

from .encoding import colour_coding, replace_numbers_with_symbols, row_shading
from .errors import ComparisonWarning
from .models import CHANGE_COL, ColorScheme, ComparisonResult

logger = logging.getLogger("compare_df")

LARGE_TABLE_ROWS = 1000


def _format_cell(value) -> str:
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return ""
    return escape(str(value))


def create_html_table(
    comparison_table_diff: pd.DataFrame,
    display_table: pd.DataFrame,
    group_col: str,
    limit_html: int,
    color_scheme: ColorScheme,
    headers: Sequence[str],
    log: Optional[logging.Logger] = None
) -> str:
    """
    Render the first ``limit_html`` rows of the comparison as an HTML table.

    Args:
        comparison_table_diff: Score table, still holding integer codes
        display_table: Comparison table with timestamps as text
        group_col: Column whose runs decide the row banding
        limit_html: Maximum number of rows to render
        color_scheme: Colours for each score code
        headers: Column headers, one per column of ``display_table``

    Returns:
        The table markup
    """
    log = log or logger
    n_rows = len(comparison_table_diff)

    if limit_html > LARGE_TABLE_ROWS and n_rows > LARGE_TABLE_ROWS:
        warnings.warn(f"Creating HTML diff for a large dataset (>{LARGE_TABLE_ROWS} rows) could take a long time!",
                      ComparisonWarning, stacklevel=2)
    if limit_html < n_rows:
        log.info("Truncating HTML diff table to %d rows...", limit_html)

    display = display_table.copy()
    display[CHANGE_COL] = replace_numbers_with_symbols(display[CHANGE_COL])
    colours = colour_coding(comparison_table_diff, color_scheme).head(limit_html)
    shading = row_shading(display[group_col])
    display = display.head(limit_html)

    log.info("Creating HTML table for first %d rows", limit_html)
    html_parts = ['<table style="border-collapse: collapse;">', "<thead>", "<tr>"]
    for header in headers:
        html_parts.append(f'<th style="padding: .2em;">{escape(str(header))}</th>')
    html_parts.append("</tr>")
    html_parts.append("</thead>")
    html_parts.append("<tbody>")

    rows = zip(display.itertuples(index=False, name=None), colours.itertuples(index=False, name=None))
    for position, (values, cell_colours) in enumerate(rows):
        html_parts.append(f'<tr style="background-color: {shading[position]};">')
        for value, colour in zip(values, cell_colours):
            html_parts.append(f'<td style="padding: .2em; color: {colour};">{_format_cell(value)}</td>')
        html_parts.append("</tr>")

    html_parts.append("</tbody>")
    html_parts.append("</table>")
    return "\n".join(html_parts)


def view_html(
    comparison_output: Union[ComparisonResult, str],
    opener: Callable[[str], object] = webbrowser.open
) -> None:
    """Write the HTML diff to a temporary file and open it in a browser"""
    if isinstance(comparison_output, ComparisonResult):
        html_output = comparison_output.html_output
    else:
        html_output = comparison_output

    if html_output is None:
        warnings.warn("The comparison has no HTML output to view", ComparisonWarning, stacklevel=2)
        return

    with tempfile.NamedTemporaryFile("w", suffix=".html", delete=False, encoding="utf-8") as handle:
        handle.write(html_output)
    opener(Path(handle.name).as_uri())
