"""Descriptive statistics for numeric, categorical and date columns."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Optional, Sequence

import numpy as np

from edakit.config import HISTOGRAM_BINS
from edakit.models import (
    CategoricalSummary,
    ColumnProfile,
    ColumnType,
    Dataset,
    DateSummary,
    HistogramBin,
    NumericSummary,
)
from edakit.tools.profiling import classify
from edakit.values import numeric_values, present_values, to_date

logger = logging.getLogger(__name__)

_NAN = math.nan


def quartiles(sorted_values: Sequence[float]) -> tuple[float, float, float]:
    """Return (q1, median, q3) of ascending values by nearest rank.

    Each quartile is the element at ``floor(n * p)``; there is no
    interpolation. Empty input gives NaN for all three.
    """
    n = len(sorted_values)
    if n == 0:
        return (_NAN, _NAN, _NAN)
    return (
        sorted_values[math.floor(n * 0.25)],
        sorted_values[math.floor(n * 0.5)],
        sorted_values[math.floor(n * 0.75)],
    )


def histogram(values: Sequence[float], bins: int = HISTOGRAM_BINS) -> list[HistogramBin]:
    """Bucket *values* into ``bins`` equal-width bins spanning [min, max].

    Bins are right-open except the last, which also holds the maximum. When
    every value is identical the width is zero and all values land in the
    last bin.
    """
    if not values:
        return []
    low, high = min(values), max(values)
    width = (high - low) / bins
    counts = [0] * bins
    for value in values:
        index = int((value - low) / width) if width > 0 else bins - 1
        counts[min(index, bins - 1)] += 1

    result: list[HistogramBin] = []
    for i, count in enumerate(counts):
        start = low + i * width
        end = high if i == bins - 1 else start + width
        result.append(
            HistogramBin(bin_range=f"{start:.1f}-{end:.1f}", start=start, end=end, count=count)
        )
    return result


def summarize(values: Iterable[Any]) -> NumericSummary:
    """Compute descriptive statistics of the numeric values in *values*.

    Non-numeric entries are ignored. Dispersion uses the population
    formulas; skewness and kurtosis are the third and fourth standardized
    moments, kurtosis reported as excess. Both are NaN when the standard
    deviation is zero, and every statistic is NaN for an empty input.

    Args:
        values: Raw or numeric column values.

    Returns:
        A ``NumericSummary``.
    """
    numbers = sorted(numeric_values(values))
    n = len(numbers)
    if n == 0:
        return NumericSummary(
            count=0, min=_NAN, max=_NAN, mean=_NAN, median=_NAN, std=_NAN,
            q1=_NAN, q3=_NAN, skewness=_NAN, kurtosis=_NAN, histogram=[],
        )

    arr = np.asarray(numbers, dtype=float)
    mean = float(arr.mean())
    std = float(math.sqrt(((arr - mean) ** 2).mean()))
    if std > 0:
        z = (arr - mean) / std
        skewness = float((z**3).mean())
        kurtosis = float((z**4).mean()) - 3.0
    else:
        logger.debug("Zero standard deviation over %d values; shape statistics undefined", n)
        skewness = kurtosis = _NAN

    q1, median, q3 = quartiles(numbers)
    return NumericSummary(
        count=n,
        min=numbers[0],
        max=numbers[-1],
        mean=mean,
        median=median,
        std=std,
        q1=q1,
        q3=q3,
        skewness=skewness,
        kurtosis=kurtosis,
        histogram=histogram(numbers),
    )


def summarize_categorical(values: Iterable[Any], top_n: int = 3) -> CategoricalSummary:
    """Build a frequency table of the non-missing values in *values*.

    Frequencies keep first-encounter order. The mode is the value with the
    highest count, ties going to the value seen first.
    """
    present = present_values(values)
    frequencies: dict[Any, int] = {}
    for value in present:
        frequencies[value] = frequencies.get(value, 0) + 1

    mode: Optional[Any] = None
    mode_count = 0
    for value, count in frequencies.items():
        if count > mode_count:
            mode, mode_count = value, count

    ranked = sorted(frequencies.items(), key=lambda item: -item[1])[:top_n]
    top_values = [(value, count, count / len(present) * 100) for value, count in ranked]

    return CategoricalSummary(
        count=len(present),
        unique_count=len(frequencies),
        frequencies=frequencies,
        mode=mode,
        mode_count=mode_count,
        top_values=top_values,
    )


def summarize_dates(values: Iterable[Any]) -> DateSummary:
    """Return the earliest and latest parseable dates and the span in days."""
    stamps = [stamp for stamp in (to_date(v) for v in values) if stamp is not None]
    if not stamps:
        return DateSummary(count=0, earliest=None, latest=None, range_days=_NAN)
    earliest, latest = min(stamps), max(stamps)
    return DateSummary(
        count=len(stamps),
        earliest=earliest,
        latest=latest,
        range_days=(latest - earliest).total_seconds() / 86400,
    )


def describe_dataset(
    dataset: Dataset, profiles: Optional[Sequence[ColumnProfile]] = None
) -> dict[str, dict]:
    """Summarize every column according to its inferred type.

    Args:
        dataset: Input dataset.
        profiles: Column profiles; computed when omitted.

    Returns:
        Dict with ``numeric``, ``categorical`` and ``date`` keys, each mapping
        column name to its summary. Text columns are not summarized.
    """
    profiles = profiles if profiles is not None else classify(dataset)
    result: dict[str, dict] = {"numeric": {}, "categorical": {}, "date": {}}
    for profile in profiles:
        values = dataset.column(profile.name)
        if profile.inferred_type == ColumnType.NUMERIC:
            result["numeric"][profile.name] = summarize(values)
        elif profile.inferred_type == ColumnType.CATEGORICAL:
            result["categorical"][profile.name] = summarize_categorical(values)
        elif profile.inferred_type == ColumnType.DATE:
            result["date"][profile.name] = summarize_dates(values)
    return result
