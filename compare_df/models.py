"""
Data model shared by the comparison stages

The comparison works on plain pandas DataFrames. The types here give names
to the integer codes stored in those frames and describe their columns.
"""

import json
from dataclasses import dataclass, field, fields
from enum import Enum, IntEnum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

import numpy as np
import pandas as pd


CHANGE_COL = "chng_type"
GROUP_COL = "grp"
RESERVED_NAMES = (CHANGE_COL, "X1", "X2")


class Origin(IntEnum):
    """Which table a row of the comparison table comes from"""
    UNCHANGED = 0
    REMOVED = 1
    ADDED = 2


class CellScore(IntEnum):
    """Per-cell outcome of the tolerance classification"""
    UNCHANGED_ROW = -1
    UNCHANGED = 0
    CHANGED_REMOVAL = 1
    CHANGED_ADDITION = 2


class ColumnKind(Enum):
    """Semantic type of a column, as far as the comparison cares"""
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    TIMESTAMP = "timestamp"

    @classmethod
    def of(cls, series: pd.Series) -> "ColumnKind":
        if pd.api.types.is_datetime64_any_dtype(series):
            return cls.TIMESTAMP
        if pd.api.types.is_bool_dtype(series):
            return cls.CATEGORICAL
        if pd.api.types.is_numeric_dtype(series):
            return cls.NUMERIC
        return cls.CATEGORICAL


@dataclass(frozen=True)
class TableSchema:
    """Ordered column names with their semantic kind"""
    columns: Tuple[Tuple[str, ColumnKind], ...]

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "TableSchema":
        return cls(tuple((name, ColumnKind.of(df[name])) for name in df.columns))

    def __iter__(self) -> Iterator[Tuple[str, ColumnKind]]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    @property
    def names(self) -> list:
        return [name for name, _ in self.columns]

    def kind(self, name: str) -> ColumnKind:
        for column, kind in self.columns:
            if column == name:
                return kind
        raise KeyError(name)

    def of_kind(self, kind: ColumnKind) -> list:
        return [name for name, column_kind in self.columns if column_kind is kind]


@dataclass(frozen=True)
class ColorScheme:
    """Colours used for each score code in the HTML diff"""
    addition: str = "green"
    removal: str = "red"
    unchanged_cell: str = "gray"
    unchanged_row: str = "deepskyblue"

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "ColorScheme":
        expected = {f.name for f in fields(cls)}
        given = set(mapping)
        if given != expected:
            raise ValueError(
                f"color_scheme must have exactly the keys {sorted(expected)}, got {sorted(given)}"
            )
        return cls(**mapping)

    def colour_for(self, score: int) -> str:
        return {
            CellScore.CHANGED_ADDITION: self.addition,
            CellScore.CHANGED_REMOVAL: self.removal,
            CellScore.UNCHANGED: self.unchanged_cell,
            CellScore.UNCHANGED_ROW: self.unchanged_row,
        }[CellScore(score)]


@dataclass(frozen=True)
class ChangeSummary:
    """Global counts of a comparison"""
    old_obs: int
    new_obs: int
    changes: int
    additions: int
    removals: int

    def to_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _json_serializer(obj):
    if isinstance(obj, (pd.Timestamp, np.datetime64)):
        return str(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if pd.isna(obj):
        return None
    return str(obj)


@dataclass
class ComparisonResult:
    """Everything produced by a single comparison"""
    comparison_df: pd.DataFrame
    comparison_table_diff: pd.DataFrame
    change_count: pd.DataFrame
    change_summary: ChangeSummary
    html_output: Optional[str] = None
    group_col: str = field(default=GROUP_COL, repr=False)

    def __str__(self) -> str:
        return f"ComparisonResult(rows: {len(self.comparison_df)}, {self.change_summary})"

    def __repr__(self) -> str:
        return self.__str__()

    def has_changes(self) -> bool:
        """Check if any change, addition or removal was detected"""
        summary = self.change_summary
        return (summary.changes + summary.additions + summary.removals) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a dictionary of records"""
        return {
            'comparison_df': self.comparison_df.to_dict('records'),
            'comparison_table_diff': self.comparison_table_diff.to_dict('records'),
            'change_count': self.change_count.to_dict('records'),
            'change_summary': self.change_summary.to_dict(),
            'html_output': self.html_output,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert the result to a JSON string"""
        return json.dumps(self.to_dict(), default=_json_serializer, indent=indent)
