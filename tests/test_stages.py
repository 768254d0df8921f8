"""
Tests for the individual comparison stages
"""

from collections import Counter

import pytest
import pandas as pd
import numpy as np
from compare_df import (
    CellScore,
    ColorScheme,
    ColumnKind,
    ComparisonResult,
    ComparisonWarning,
    IdenticalTablesError,
    Origin,
    TableSchema,
    UnknownToleranceModeError,
    check_if_comparable,
    colour_coding,
    combined_rowdiffs,
    create_change_count,
    create_comparison_table,
    create_comparison_table_diff,
    eliminate_tolerant_rows,
    group_columns,
    keep_unchanged_rows,
    replace_numbers_with_symbols,
    rowdiff,
    rows_within_tolerance,
    sequence_order_vector,
    view_html,
)
from compare_df.comparison import column_score, exceeds_tolerance, round_numeric, sort_by_group
from compare_df.encoding import get_headers, row_shading
from compare_df.errors import stop_or_warn
from compare_df.validation import exclude_columns


class TestRowDiff:
    """Tests for the row-set difference"""

    def test_empty_right_side(self):
        """Test the left frame is returned as is when the right one is empty"""
        a = pd.DataFrame({'x': [1, 2]})
        b = pd.DataFrame({'x': pd.Series([], dtype=int)})
        assert rowdiff(a, b) is a

    def test_matching_rows_removed(self):
        """Test rows with a full match are dropped and order is preserved"""
        a = pd.DataFrame({'x': [3, 1, 2], 'y': ['c', 'a', 'b']})
        b = pd.DataFrame({'x': [1], 'y': ['a']})
        result = rowdiff(a, b)

        assert list(result['x']) == [3, 2]
        assert list(result.index) == [0, 2]

    def test_partial_match_kept(self):
        """Test a row matching on only some columns is kept"""
        a = pd.DataFrame({'x': [1], 'y': ['a']})
        b = pd.DataFrame({'x': [1], 'y': ['b']})
        assert len(rowdiff(a, b)) == 1

    def test_multiset_semantics(self):
        """Test each right-hand copy cancels a single left-hand copy"""
        a = pd.DataFrame({'x': [7, 7, 7, 8]})
        b = pd.DataFrame({'x': [7]})
        result = rowdiff(a, b)

        assert list(result['x']) == [7, 7, 8]
        assert list(result.index) == [1, 2, 3]

    def test_count_law(self):
        """Test |rowdiff(a, b)| = |a| - sum of min multiplicities"""
        a = pd.DataFrame({'x': [1, 1, 2, 3, 3, 3, 4], 'y': ['a', 'a', 'b', 'c', 'c', 'c', 'd']})
        b = pd.DataFrame({'x': [1, 3, 3, 5, 5], 'y': ['a', 'c', 'c', 'e', 'e']})

        count_a = Counter(a.itertuples(index=False, name=None))
        count_b = Counter(b.itertuples(index=False, name=None))
        matched = sum(min(n, count_b[row]) for row, n in count_a.items())

        assert len(rowdiff(a, b)) == len(a) - matched
        assert len(rowdiff(b, a)) == len(b) - matched

    def test_missing_values_match(self):
        """Test missing values are equal to each other"""
        a = pd.DataFrame({'x': [1, 2], 'y': [np.nan, 1.0]})
        b = pd.DataFrame({'x': [1], 'y': [np.nan]})
        result = rowdiff(a, b)

        assert list(result['x']) == [2]

    def test_combined_rowdiffs(self):
        """Test both directions are returned as (removed, added)"""
        old_df = pd.DataFrame({'x': [1, 2]})
        new_df = pd.DataFrame({'x': [2, 3]})
        removed, added = combined_rowdiffs(new_df, old_df)

        assert list(removed['x']) == [1]
        assert list(added['x']) == [3]


class TestGroupColumns:
    """Tests for the synthetic group key"""

    def test_ids_follow_sorted_combinations(self):
        """Test ids are assigned in sorted order across both frames"""
        new_df = pd.DataFrame({'region': ['US', 'EU'], 'product': ['A', 'A'], 'v': [1, 2]})
        old_df = pd.DataFrame({'region': ['US'], 'product': ['B'], 'v': [3]})
        grouped_new, grouped_old = group_columns(new_df, old_df, ['region', 'product'])

        assert list(grouped_new.columns) == ['grp', 'region', 'product', 'v']
        assert list(grouped_new['grp']) == [2, 1]
        assert list(grouped_old['grp']) == [3]
        assert list(grouped_new['v']) == [1, 2]
        assert list(grouped_old['v']) == [3]

    def test_same_combination_same_id(self):
        """Test a combination present in both frames gets one id"""
        new_df = pd.DataFrame({'a': ['x', 'y'], 'b': [1, 1]})
        old_df = pd.DataFrame({'a': ['y', 'x'], 'b': [1, 1]})
        grouped_new, grouped_old = group_columns(new_df, old_df, ['a', 'b'])

        assert list(grouped_new['grp']) == [1, 2]
        assert list(grouped_old['grp']) == [2, 1]

    def test_inputs_untouched(self):
        """Test the input frames are not modified"""
        new_df = pd.DataFrame({'a': ['x'], 'b': [1]})
        old_df = pd.DataFrame({'a': ['y'], 'b': [1]})
        group_columns(new_df, old_df, ['a', 'b'])

        assert list(new_df.columns) == ['a', 'b']
        assert list(old_df.columns) == ['a', 'b']


class TestComparisonTable:
    """Tests for building the comparison table"""

    @pytest.fixture
    def comparison_table(self):
        removed = pd.DataFrame({'g': ['B', 'A'], 'v': [1.234, 2.0]})
        added = pd.DataFrame({'g': ['A'], 'v': [3.0]})
        return create_comparison_table(removed, added, 'g')

    def test_column_order(self, comparison_table):
        """Test the group column and chng_type come first"""
        assert list(comparison_table.columns) == ['g', 'chng_type', 'v']

    def test_sort_order(self, comparison_table):
        """Test group ascending, additions before removals"""
        assert list(comparison_table['g']) == ['A', 'A', 'B']
        assert list(comparison_table['chng_type']) == [Origin.ADDED, Origin.REMOVED, Origin.REMOVED]

    def test_rounding(self, comparison_table):
        """Test numeric columns are rounded to 2 decimals"""
        assert list(comparison_table['v']) == [3.0, 2.0, 1.23]

    def test_ties_keep_order(self):
        """Test rows with the same group and origin keep their order"""
        removed = pd.DataFrame({'g': ['A', 'A'], 'v': [9, 1]})
        added = pd.DataFrame({'g': ['A'], 'v': [5]})
        table = create_comparison_table(removed, added, 'g')

        assert list(table['v']) == [5, 9, 1]

    def test_empty_diffs(self):
        """Test empty diffs give an empty table with all columns"""
        empty = pd.DataFrame({'g': pd.Series([], dtype=object), 'v': pd.Series([], dtype=float)})
        table = create_comparison_table(empty, empty, 'g')

        assert len(table) == 0
        assert list(table.columns) == ['g', 'chng_type', 'v']

    def test_round_numeric_leaves_input(self):
        """Test rounding returns a new frame"""
        df = pd.DataFrame({'v': [1.004, 2.4567], 's': ['a', 'b']})
        rounded = round_numeric(df)

        assert list(rounded['v']) == [1.0, 2.46]
        assert list(df['v']) == [1.004, 2.4567]


class TestToleranceScoring:
    """Tests for the per-group tolerance classification"""

    def test_exceeds_tolerance_difference(self):
        values = np.array([10.0, 14.0])
        assert exceeds_tolerance(values, 5, 'difference') == False
        assert exceeds_tolerance(values, 3, 'difference') == True

    def test_exceeds_tolerance_ratio(self):
        values = np.array([10.0, 14.0])
        assert exceeds_tolerance(values, 0.5, 'ratio') == False
        assert exceeds_tolerance(values, 0.3, 'ratio') == True

    def test_exceeds_tolerance_zero_minimum(self):
        """Test a zero minimum always counts as changed"""
        assert exceeds_tolerance(np.array([0.0, 0.01]), 1e9, 'ratio') == True

    def test_exceeds_tolerance_negative_minimum(self):
        """Test a negative minimum is used by magnitude"""
        values = np.array([-10.0, -9.0])
        assert exceeds_tolerance(values, 0.2, 'ratio') == False
        assert exceeds_tolerance(values, 0.05, 'ratio') == True

    def test_exceeds_tolerance_unknown_type(self):
        with pytest.raises(UnknownToleranceModeError):
            exceeds_tolerance(np.array([1.0, 2.0]), 0, 'percent')

    def test_column_score_single_value(self):
        """Test a lone usable value cannot be confirmed as unchanged"""
        values = pd.Series([1.0, np.nan])
        assert column_score(values, ColumnKind.NUMERIC, 100, 'ratio') == 1

    def test_column_score_all_missing(self):
        values = pd.Series([np.nan, np.nan])
        assert column_score(values, ColumnKind.NUMERIC, 0, 'ratio') == 0

    def test_column_score_categorical(self):
        assert column_score(pd.Series(['a', 'b']), ColumnKind.CATEGORICAL, 100, 'ratio') == 1
        assert column_score(pd.Series(['a', 'a']), ColumnKind.CATEGORICAL, 0, 'ratio') == 0

    def test_column_score_numeric_equal(self):
        assert column_score(pd.Series([2.0, 2.0]), ColumnKind.NUMERIC, 0, 'ratio') == 0

    @pytest.fixture
    def comparison_table(self):
        removed = pd.DataFrame({'g': ['B', 'A'], 'v': [1.234, 2.0]})
        added = pd.DataFrame({'g': ['A'], 'v': [3.0]})
        return create_comparison_table(removed, added, 'g')

    def test_scores_doubled_on_additions(self, comparison_table):
        """Test added rows carry twice the base score"""
        scores = create_comparison_table_diff(comparison_table, 'g')

        assert list(scores.columns) == ['g', 'chng_type', 'v']
        assert list(scores['g']) == [0, 0, 1]
        assert list(scores['chng_type']) == [2, 1, 1]
        assert list(scores['v']) == [2, 1, 1]

    def test_scores_with_tolerance(self, comparison_table):
        """Test a change within tolerance scores zero"""
        scores = create_comparison_table_diff(comparison_table, 'g', tolerance=0.6)

        assert list(scores['v']) == [0, 0, 1]
        assert list(rows_within_tolerance(scores)) == [True, True, False]

    def test_unknown_tolerance_type(self, comparison_table):
        with pytest.raises(UnknownToleranceModeError):
            create_comparison_table_diff(comparison_table, 'g', tolerance_type='percent')

    def test_negative_tolerance(self, comparison_table):
        with pytest.raises(ValueError):
            create_comparison_table_diff(comparison_table, 'g', tolerance=-0.1)

    def test_empty_table(self):
        empty = pd.DataFrame({'g': pd.Series([], dtype=object), 'chng_type': pd.Series([], dtype=np.int64)})
        scores = create_comparison_table_diff(empty, 'g')

        assert len(scores) == 0
        assert list(scores.columns) == ['g', 'chng_type']


class TestRowFilter:
    """Tests for tolerance elimination and unchanged-row reinsertion"""

    def test_eliminate_tolerant_rows(self):
        frame = pd.DataFrame({'g': ['A', 'A', 'B'], 'chng_type': [2, 1, 1], 'v': [5, 4, 1]})
        within = pd.Series([True, True, False])
        result = eliminate_tolerant_rows(frame, within)

        assert list(result['g']) == ['B']
        assert list(result.index) == [0]

    def test_rows_within_tolerance_ignores_origin(self):
        scores = pd.DataFrame({'g': [0, 1], 'chng_type': [2, 1], 'v': [0, 1]})
        assert list(rows_within_tolerance(scores)) == [True, False]

    def test_keep_unchanged_rows(self):
        frame = pd.DataFrame({'g': ['C', 'C'], 'chng_type': [2, 1], 'v': [4, 3]})
        new_df = pd.DataFrame({'g': ['A', 'C'], 'v': [1, 4]})
        old_df = pd.DataFrame({'g': ['A', 'C'], 'v': [1, 3]})
        result = keep_unchanged_rows(frame, [new_df, old_df], 'g')

        assert list(result['g']) == ['C', 'C', 'A', 'A']
        assert list(result['chng_type']) == [2, 1, Origin.UNCHANGED, Origin.UNCHANGED]

    def test_keep_unchanged_scores(self):
        scores = pd.DataFrame({'g': [0, 0], 'chng_type': [2, 1], 'v': [2, 1]})
        keys = pd.Series(['C', 'C'])
        new_df = pd.DataFrame({'g': ['A', 'C'], 'v': [1, 4]})
        old_df = pd.DataFrame({'g': ['C'], 'v': [3]})
        result = keep_unchanged_rows(scores, [new_df, old_df], 'g', keys, scores=True)

        assert len(result) == 3
        assert list(result.iloc[2]) == [CellScore.UNCHANGED_ROW] * 3

    def test_sort_by_group(self):
        key_frame = pd.DataFrame({'g': ['C', 'A', 'B', 'A']})
        other = pd.DataFrame({'v': [1, 2, 3, 4]})
        sorted_keys, sorted_other = sort_by_group([key_frame, other], key_frame, 'g')

        assert list(sorted_keys['g']) == ['A', 'A', 'B', 'C']
        assert list(sorted_other['v']) == [2, 4, 3, 1]


class TestChangeCount:
    """Tests for the per-group counts"""

    def test_counts(self):
        table = pd.DataFrame({'g': ['A', 'A', 'A', 'B'], 'chng_type': [2, 1, 1, 2]})
        counts = create_change_count(table, 'g')

        assert counts.to_dict('records') == [
            {'g': 'A', 'changes': 1, 'additions': 0, 'removals': 1},
            {'g': 'B', 'changes': 0, 'additions': 1, 'removals': 0},
        ]

    def test_unchanged_rows_ignored(self):
        table = pd.DataFrame({'g': ['A', 'B'], 'chng_type': [0, 1]})
        counts = create_change_count(table, 'g')

        assert counts.to_dict('records') == [
            {'g': 'A', 'changes': 0, 'additions': 0, 'removals': 0},
            {'g': 'B', 'changes': 0, 'additions': 0, 'removals': 1},
        ]

    def test_empty_table(self):
        table = pd.DataFrame({'g': pd.Series([], dtype=object), 'chng_type': pd.Series([], dtype=np.int64)})
        counts = create_change_count(table, 'g')

        assert len(counts) == 0
        assert list(counts.columns) == ['g', 'changes', 'additions', 'removals']


class TestEncoding:
    """Tests for symbols, colours, banding and headers"""

    def test_symbols_series(self):
        result = replace_numbers_with_symbols(pd.Series([2, 1, 0, -1]))
        assert list(result) == ['+', '-', '=', '=']

    def test_symbols_frame(self):
        result = replace_numbers_with_symbols(pd.DataFrame({'a': [2, -1], 'b': [0, 1]}))
        assert result.to_dict('list') == {'a': ['+', '='], 'b': ['=', '-']}

    def test_symbols_empty(self):
        empty = pd.Series([], dtype=np.int64)
        assert replace_numbers_with_symbols(empty) is empty

    def test_colour_coding(self):
        scores = pd.DataFrame({'a': [2, 1], 'b': [0, -1]})
        colours = colour_coding(scores, ColorScheme())

        assert colours.to_dict('list') == {'a': ['green', 'red'], 'b': ['gray', 'deepskyblue']}

    def test_sequence_order_vector(self):
        assert list(sequence_order_vector(['a', 'a', 'b', 'a'])) == [0, 0, 1, 2]
        assert len(sequence_order_vector([])) == 0

    def test_row_shading(self):
        assert row_shading([1, 1, 2, 3]) == ['white', 'white', '#dedede', 'white']

    def test_get_headers(self):
        headers = get_headers(['grp', 'chng_type', 'a', 'b'], {'b': 'Bee', 'group': 'Group'},
                              change_col_name='change', group_col_name='group')
        assert headers == ['Group', 'change', 'a', 'Bee']


class TestModels:
    """Tests for the schema descriptor and color scheme"""

    def test_table_schema(self):
        df = pd.DataFrame({
            'n': [1.5],
            'i': [1],
            's': ['x'],
            'b': [True],
            't': pd.to_datetime(['2024-01-01']),
        })
        schema = TableSchema.from_frame(df)

        assert schema.names == ['n', 'i', 's', 'b', 't']
        assert schema.kind('n') is ColumnKind.NUMERIC
        assert schema.kind('i') is ColumnKind.NUMERIC
        assert schema.kind('s') is ColumnKind.CATEGORICAL
        assert schema.kind('b') is ColumnKind.CATEGORICAL
        assert schema.of_kind(ColumnKind.TIMESTAMP) == ['t']

    def test_color_scheme_from_mapping(self):
        scheme = ColorScheme.from_mapping({
            'addition': 'a', 'removal': 'r', 'unchanged_cell': 'c', 'unchanged_row': 'u'
        })
        assert scheme.colour_for(CellScore.CHANGED_ADDITION) == 'a'
        assert scheme.colour_for(-1) == 'u'

    def test_color_scheme_unknown_key(self):
        with pytest.raises(ValueError):
            ColorScheme.from_mapping({
                'addition': 'a', 'removal': 'r', 'unchanged_cell': 'c', 'unchanged_row': 'u', 'extra': 'x'
            })


class TestValidation:
    """Tests for the precondition checks"""

    def test_comparable(self):
        df = pd.DataFrame({'a': [1], 'b': [2]})
        assert check_if_comparable(df.assign(b=3), df, ['a']) == True

    def test_identical_policy(self):
        df = pd.DataFrame({'a': [1], 'b': [2]})
        with pytest.raises(IdenticalTablesError):
            check_if_comparable(df, df.copy(), ['a'])
        with pytest.warns(ComparisonWarning):
            check_if_comparable(df, df.copy(), ['a'], stop_on_error=False)

    def test_stop_or_warn(self):
        error = IdenticalTablesError("same")
        with pytest.raises(IdenticalTablesError):
            stop_or_warn(error, True)
        with pytest.warns(ComparisonWarning, match="same"):
            stop_or_warn(error, False)

    def test_exclude_columns(self):
        new_df = pd.DataFrame({'a': [1], 'b': [2]})
        old_df = pd.DataFrame({'a': [1], 'b': [3]})
        excluded_new, excluded_old = exclude_columns(new_df, old_df, ['b'])

        assert list(excluded_new.columns) == ['a']
        assert list(excluded_old.columns) == ['a']
        assert list(new_df.columns) == ['a', 'b']

    def test_exclude_unknown_column_warns(self):
        df = pd.DataFrame({'a': [1]})
        with pytest.warns(ComparisonWarning):
            exclude_columns(df, df, ['zzz'])


class TestViewHtml:
    """Tests for opening the HTML diff"""

    def test_view_html_writes_file(self):
        opened = []
        view_html('<table></table>', opener=opened.append)

        assert len(opened) == 1
        assert opened[0].startswith('file://')
        assert opened[0].endswith('.html')

    def test_view_html_without_output(self):
        result = ComparisonResult(
            comparison_df=pd.DataFrame(),
            comparison_table_diff=pd.DataFrame(),
            change_count=pd.DataFrame(),
            change_summary=None,
        )
        opened = []
        with pytest.warns(ComparisonWarning):
            view_html(result, opener=opened.append)
        assert opened == []
