"""Tests for Pearson correlation and the pairwise edge list."""

from __future__ import annotations

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from edakit.models import Dataset
from edakit.tools.correlation import correlate, correlation_edges, strength_label

from conftest import finite_floats


paired_lists = st.integers(min_value=0, max_value=40).flatmap(
    lambda n: st.tuples(
        st.lists(st.one_of(finite_floats(-1e3, 1e3), st.none()), min_size=n, max_size=n),
        st.lists(st.one_of(finite_floats(-1e3, 1e3), st.none()), min_size=n, max_size=n),
    )
)


class TestCorrelate:
    def test_perfect_positive(self):
        assert correlate([1, 2, 3, 4], [2, 4, 6, 8]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert correlate(["1", "2", "3"], ["3", "2", "1"]) == pytest.approx(-1.0)

    def test_uses_only_aligned_numeric_pairs(self):
        a = [1, 2, "x", 3, None]
        b = [2, 4, 100, 6, 7]
        assert correlate(a, b) == pytest.approx(1.0)

    def test_fewer_than_two_pairs(self):
        assert correlate([1], [2]) == 0.0
        assert correlate([], []) == 0.0

    def test_zero_variance(self):
        assert correlate([5, 5, 5], [1, 2, 3]) == 0.0

    @settings(max_examples=100)
    @given(paired_lists)
    def test_bounded_and_symmetric(self, pair):
        a, b = pair
        r = correlate(a, b)
        assert -1.0 <= r <= 1.0
        assert r == pytest.approx(correlate(b, a))

    @settings(max_examples=100)
    @given(st.lists(finite_floats(-1e3, 1e3), min_size=2, max_size=40))
    def test_self_correlation_is_one(self, values):
        assume(len(set(values)) > 1)
        assert correlate(values, values) == pytest.approx(1.0)


class TestStrengthLabel:
    @pytest.mark.parametrize(
        "r, label",
        [(0.95, "strong"), (-0.71, "strong"), (0.7, "moderate"), (0.5, "moderate"),
         (-0.31, "moderate"), (0.3, "weak"), (0.0, "weak")],
    )
    def test_cut_offs(self, r, label):
        assert strength_label(r) == label


class TestCorrelationEdges:
    def test_all_pairs_sorted_by_magnitude(self):
        dataset = Dataset.from_records(
            [
                {"a": i, "b": 2 * i, "c": (i * 7) % 5, "d": -i + (i % 2)}
                for i in range(10)
            ]
        )
        edges = correlation_edges(dataset)
        assert len(edges) == 6
        magnitudes = [abs(e.coefficient) for e in edges]
        assert magnitudes == sorted(magnitudes, reverse=True)
        assert {edges[0].column_a, edges[0].column_b} == {"a", "b"}
        assert edges[0].strength == "strong"
        assert edges[0].n_pairs == 10

    def test_defaults_to_numeric_columns(self, sales_dataset):
        edges = correlation_edges(sales_dataset)
        assert len(edges) == 1
        assert {edges[0].column_a, edges[0].column_b} == {"units", "price"}
        assert edges[0].n_pairs == 5

    def test_single_numeric_column_has_no_edges(self):
        dataset = Dataset.from_records([{"a": 1}, {"a": 2}])
        assert correlation_edges(dataset) == []
