"""Exception hierarchy for recoverable analysis failures."""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for conditions that stop a single computation."""


class InsufficientDataError(AnalysisError):
    """Too few valid observations for the requested computation."""


class DegenerateDataError(AnalysisError):
    """The data admit no unique solution (singular system, constant predictor)."""


class WouldEmptyDatasetError(AnalysisError):
    """A cleaning operation would remove every row of the dataset."""

    def __init__(self, operation: str, rows_before: int) -> None:
        self.operation = operation
        self.rows_before = rows_before
        super().__init__(
            f"{operation} would remove all {rows_before} rows; dataset left unchanged."
        )
