"""Tests for the dense solver and the t-distribution heuristic."""

from __future__ import annotations

import math

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from edakit.errors import DegenerateDataError
from edakit.tools.linalg import gaussian_elimination, invert, solve_normal_equations, t_cdf, two_sided_p_value


class TestGaussianElimination:
    def test_solves_small_system(self):
        a = np.array([[2.0, 1.0], [1.0, 3.0]])
        b = np.array([3.0, 5.0])
        assert gaussian_elimination(a, b) == pytest.approx([0.8, 1.4])

    def test_needs_pivoting(self):
        a = np.array([[0.0, 1.0], [1.0, 0.0]])
        assert gaussian_elimination(a, np.array([2.0, 3.0])) == pytest.approx([3.0, 2.0])

    def test_singular_matrix_raises(self):
        with pytest.raises(DegenerateDataError):
            gaussian_elimination(np.array([[1.0, 2.0], [2.0, 4.0]]), np.array([1.0, 2.0]))

    def test_does_not_modify_inputs(self):
        a = np.array([[0.0, 1.0], [1.0, 0.0]])
        b = np.array([2.0, 3.0])
        gaussian_elimination(a, b)
        assert a.tolist() == [[0.0, 1.0], [1.0, 0.0]]

    @settings(max_examples=50)
    @given(st.integers(min_value=1, max_value=5), st.integers(min_value=0, max_value=10_000))
    def test_matches_numpy(self, n, seed):
        rng = np.random.default_rng(seed)
        a = rng.normal(size=(n, n)) + n * np.eye(n)
        b = rng.normal(size=n)
        assert gaussian_elimination(a, b) == pytest.approx(np.linalg.solve(a, b), abs=1e-8)


class TestInvertAndNormalEquations:
    def test_invert(self):
        a = np.array([[4.0, 7.0], [2.0, 6.0]])
        assert invert(a) @ a == pytest.approx(np.eye(2))

    def test_normal_equations_recover_line(self):
        x = np.column_stack([np.ones(5), np.arange(5.0)])
        y = 3.0 + 2.0 * np.arange(5.0)
        beta, xtx = solve_normal_equations(x, y)
        assert beta == pytest.approx([3.0, 2.0])
        assert xtx.shape == (2, 2)


class TestTcdf:
    def test_symmetric_about_zero(self):
        assert t_cdf(0.0, 10) == 0.5
        assert t_cdf(2.0, 10) + t_cdf(-2.0, 10) == pytest.approx(1.0)

    def test_increasing(self):
        assert t_cdf(0.5, 5) < t_cdf(1.0, 5) < t_cdf(3.0, 5)

    def test_formula(self):
        expected = 0.5 * (1 + math.sqrt(1 - math.exp(-2 * 4 / 11)))
        assert t_cdf(2.0, 10) == pytest.approx(expected)

    def test_degenerate_inputs(self):
        assert math.isnan(t_cdf(1.0, 0))
        assert t_cdf(math.inf, 3) == 1.0
        assert t_cdf(-math.inf, 3) == 0.0

    def test_p_value_bounds(self):
        assert two_sided_p_value(0.0, 5) == pytest.approx(1.0)
        assert 0 <= two_sided_p_value(3.0, 5) < 0.5
        assert math.isnan(two_sided_p_value(math.nan, 5))
