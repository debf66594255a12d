"""Column profiler: infers a type for every column from a leading sample."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from edakit.config import DEFAULT_THRESHOLDS, ProfilerThresholds
from edakit.models import ColumnProfile, ColumnType, Dataset
from edakit.values import present_values, to_date, to_number

logger = logging.getLogger(__name__)


def _distinct_count(values: Sequence[Any]) -> int:
    return len({_key(v) for v in values})


def _key(value: Any) -> Any:
    try:
        hash(value)
    except TypeError:
        return repr(value)
    return value


def infer_column_type(
    values: Sequence[Any], thresholds: ProfilerThresholds = DEFAULT_THRESHOLDS
) -> ColumnType:
    """Classify a column's raw values.

    The first ``thresholds.sample_size`` non-missing values form the sample.
    Rules are applied in order: numeric, date, categorical (full-column
    distinct count in ``(1, max_categories]``), and text as the fallback.
    An empty sample is text.

    Args:
        values: Raw cell values of one column.
        thresholds: Shared classification thresholds.

    Returns:
        The inferred ``ColumnType``.
    """
    present = present_values(values)
    sample = present[: thresholds.sample_size]
    if not sample:
        return ColumnType.TEXT

    numeric_hits = sum(1 for v in sample if to_number(v) is not None)
    if numeric_hits >= len(sample) * thresholds.numeric_ratio:
        return ColumnType.NUMERIC

    date_hits = sum(1 for v in sample if to_date(v) is not None)
    if date_hits >= len(sample) * thresholds.date_ratio:
        return ColumnType.DATE

    distinct = _distinct_count(present)
    if 1 < distinct <= thresholds.max_categories:
        return ColumnType.CATEGORICAL

    return ColumnType.TEXT


def profile_column(
    name: str, values: Sequence[Any], thresholds: ProfilerThresholds = DEFAULT_THRESHOLDS
) -> ColumnProfile:
    present = present_values(values)
    return ColumnProfile(
        name=name,
        inferred_type=infer_column_type(values, thresholds),
        count=len(values),
        missing_count=len(values) - len(present),
        unique_count=_distinct_count(present),
    )


def classify(
    dataset: Dataset, thresholds: ProfilerThresholds = DEFAULT_THRESHOLDS
) -> list[ColumnProfile]:
    """Profile every column of *dataset* in schema order.

    Args:
        dataset: Input dataset.
        thresholds: Shared classification thresholds.

    Returns:
        One ``ColumnProfile`` per column.
    """
    profiles = [
        profile_column(name, dataset.column(name), thresholds) for name in dataset.columns
    ]
    logger.debug(
        "Profiled %d columns: %s",
        len(profiles),
        {p.name: p.inferred_type.value for p in profiles},
    )
    return profiles


def columns_of_type(profiles: Sequence[ColumnProfile], column_type: ColumnType) -> list[str]:
    return [p.name for p in profiles if p.inferred_type == column_type]
