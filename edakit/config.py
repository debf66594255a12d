"""Shared thresholds and constants for the analysis engines."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProfilerThresholds:
    """Column type inference thresholds shared by every consumer.

    Attributes:
        sample_size: Number of leading non-missing values inspected.
        numeric_ratio: Minimum share of the sample parsing as numbers.
        date_ratio: Minimum share of the sample parsing as dates.
        max_categories: Largest full-column distinct count treated as
            categorical (the lower bound is always 2).
    """

    sample_size: int = 10
    numeric_ratio: float = 0.8
    date_ratio: float = 0.6
    max_categories: int = 20


DEFAULT_THRESHOLDS = ProfilerThresholds()

# Strings (after strip + casefold) that count as a missing cell.
MISSING_SENTINELS = frozenset({"", "n/a", "null"})

# Words the date parser resolves against the clock; never treated as dates.
RELATIVE_DATE_WORDS = frozenset({"now", "today", "tomorrow", "yesterday"})

# Value written into missing cells by the auto-fix action.
DEFAULT_FILL_SENTINEL = "N/A"

HISTOGRAM_BINS = 10
IQR_MULTIPLIER = 1.5
MIN_OUTLIER_VALUES = 4

STRONG_CORRELATION = 0.7
MODERATE_CORRELATION = 0.3

MAX_ITERATIONS = 100
DEFAULT_COORDINATE_RANGE = (0.0, 100.0)
SILHOUETTE_SAMPLE_SIZE = 2000

COHORT_PERIODS = 12

FORECAST_HORIZON = 10
SMOOTHING_ALPHA = 0.3
MAX_MOVING_AVERAGE_WINDOW = 5
MAX_SEASON_LENGTH = 12
