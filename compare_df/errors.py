"""
Exceptions and warnings raised while comparing two DataFrames
"""

import warnings
from typing import List, Optional


class ComparisonError(ValueError):
    """Base class for every error raised by a comparison"""


class ComparisonWarning(UserWarning):
    """Emitted instead of an error when ``stop_on_error`` is False"""


class IdenticalTablesError(ComparisonError):
    """The two tables carry no difference"""


class AllWithinToleranceError(ComparisonError):
    """Every differing row was absorbed by the tolerance"""


class SchemaMismatchError(ComparisonError):
    """The two tables do not share the same set of columns"""

    def __init__(self, missing_in_new: List[str], missing_in_old: List[str]):
        self.missing_in_new = missing_in_new
        self.missing_in_old = missing_in_old
        super().__init__(
            "The two data frames have different columns! "
            f"Missing in new: {missing_in_new}. Missing in old: {missing_in_old}"
        )


class ReservedNameError(ComparisonError):
    """A grouping column uses a name reserved by the comparison table"""

    def __init__(self, names: List[str], reserved: Optional[List[str]] = None):
        self.names = names
        reserved_text = ", ".join(reserved) if reserved else ", ".join(names)
        super().__init__(f"Grouping column(s) {names} clash with reserved keywords ({reserved_text})!")


class MissingGroupColumnError(ComparisonError):
    """A grouping column is absent from the tables"""

    def __init__(self, columns: List[str]):
        self.columns = columns
        super().__init__(f"Grouping column(s) {columns} not found in the data frames!")


class UnknownToleranceModeError(ComparisonError):
    """The tolerance mode is neither ``ratio`` nor ``difference``"""

    def __init__(self, tolerance_type: str):
        self.tolerance_type = tolerance_type
        super().__init__(
            f"Unknown tolerance type {tolerance_type!r}: should be 'ratio' or 'difference'"
        )


def stop_or_warn(error: ComparisonError, stop_on_error: bool = True) -> None:
    """Raise ``error`` or downgrade it to a ``ComparisonWarning``"""
    if stop_on_error:
        raise error
    warnings.warn(str(error), ComparisonWarning, stacklevel=3)
