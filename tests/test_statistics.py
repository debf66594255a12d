"""Tests for descriptive statistics."""

from __future__ import annotations

import math

import pandas as pd
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from edakit.tools.statistics import (
    describe_dataset,
    histogram,
    quartiles,
    summarize,
    summarize_categorical,
    summarize_dates,
)

from conftest import finite_floats, numeric_lists


# ---------------------------------------------------------------------------
# quartiles / histogram
# ---------------------------------------------------------------------------


class TestQuartiles:
    def test_nearest_rank(self):
        assert quartiles([1, 2, 3, 4, 100]) == (2, 3, 4)

    def test_even_length_takes_upper_middle(self):
        assert quartiles([1, 2, 3, 4]) == (2, 3, 4)

    def test_empty_is_nan(self):
        assert all(math.isnan(q) for q in quartiles([]))


class TestHistogram:
    def test_ten_equal_width_bins(self):
        bins = histogram([float(v) for v in range(11)])
        assert len(bins) == 10
        assert [b.count for b in bins] == [1] * 9 + [2]
        assert bins[0].bin_range == "0.0-1.0"
        assert bins[-1].end == 10.0

    def test_zero_width_goes_to_last_bin(self):
        bins = histogram([5.0, 5.0, 5.0])
        assert [b.count for b in bins] == [0] * 9 + [3]

    def test_empty(self):
        assert histogram([]) == []

    @given(st.lists(finite_floats(), min_size=1, max_size=80))
    def test_counts_sum_to_n(self, values):
        bins = histogram(values)
        assert len(bins) == 10
        assert sum(b.count for b in bins) == len(values)


# ---------------------------------------------------------------------------
# summarize
# ---------------------------------------------------------------------------


class TestSummarize:
    def test_basic_statistics(self):
        s = summarize(["1", "2", "3", "4", "100"])
        assert s.count == 5
        assert s.min == 1 and s.max == 100
        assert s.mean == pytest.approx(22.0)
        assert s.median == 3
        assert (s.q1, s.q3) == (2, 4)
        assert s.std == pytest.approx(math.sqrt(sum((v - 22) ** 2 for v in [1, 2, 3, 4, 100]) / 5))
        assert s.skewness > 1

    def test_ignores_non_numeric(self):
        assert summarize(["1", "x", None, "", "3"]).count == 2

    def test_constant_values_have_nan_shape(self):
        s = summarize([4, 4, 4])
        assert s.std == 0
        assert math.isnan(s.skewness)
        assert math.isnan(s.kurtosis)

    def test_empty_is_all_nan(self):
        s = summarize(["a", None])
        assert s.count == 0
        assert math.isnan(s.mean) and math.isnan(s.median) and math.isnan(s.std)
        assert s.histogram == []

    def test_symmetric_data_has_zero_skew(self):
        assert summarize([1, 2, 3, 4, 5]).skewness == pytest.approx(0.0, abs=1e-12)

    def test_matches_pandas_population_std(self):
        values = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
        assert summarize(values).std == pytest.approx(pd.Series(values).std(ddof=0))

    @given(st.lists(finite_floats(), min_size=1, max_size=60))
    def test_order_invariants(self, values):
        s = summarize(values)
        assert s.min <= s.q1 <= s.median <= s.q3 <= s.max
        assert s.std >= 0
        assert s.min - 1e-6 <= s.mean <= s.max + 1e-6

    @given(numeric_lists)
    def test_count_matches_input(self, values):
        assert summarize(values).count == len(values)


# ---------------------------------------------------------------------------
# categorical / dates / dataset
# ---------------------------------------------------------------------------


class TestSummarizeCategorical:
    def test_frequencies_in_first_encounter_order(self):
        s = summarize_categorical(["b", "a", "b", "c", "a", ""])
        assert list(s.frequencies.items()) == [("b", 2), ("a", 2), ("c", 1)]
        assert s.count == 5
        assert s.unique_count == 3

    def test_mode_tie_goes_to_first_seen(self):
        s = summarize_categorical(["b", "a", "b", "a"])
        assert s.mode == "b"
        assert s.mode_count == 2

    def test_top_values_with_percentages(self):
        s = summarize_categorical(["x", "x", "x", "y"])
        assert s.top_values[0] == ("x", 3, 75.0)
        assert len(s.top_values) == 2

    def test_empty(self):
        s = summarize_categorical([None, ""])
        assert s.mode is None
        assert s.top_values == []


class TestSummarizeDates:
    def test_range(self):
        s = summarize_dates(["2024-01-01", "bad", "2024-01-11"])
        assert s.count == 2
        assert s.earliest == pd.Timestamp(2024, 1, 1)
        assert s.range_days == 10

    def test_no_dates(self):
        s = summarize_dates(["x", None])
        assert s.count == 0
        assert s.earliest is None
        assert math.isnan(s.range_days)


class TestDescribeDataset:
    def test_routes_by_type(self, sales_dataset):
        described = describe_dataset(sales_dataset)
        assert set(described["numeric"]) == {"units", "price"}
        assert set(described["categorical"]) == {"region"}
        assert set(described["date"]) == {"sold_on"}
        assert described["numeric"]["price"].count == 5
