"""Small dense linear-algebra helpers for the least-squares fits."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from edakit.errors import DegenerateDataError

_PIVOT_TOLERANCE = 1e-12


def gaussian_elimination(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Solve ``a @ x = b`` by Gaussian elimination with partial pivoting.

    At every column the row with the largest magnitude entry is swapped into
    the pivot position before eliminating below it.

    Args:
        a: Square coefficient matrix.
        b: Right-hand side, a vector or a matrix of column vectors.

    Returns:
        The solution with the same trailing shape as *b*.

    Raises:
        DegenerateDataError: If a pivot is numerically zero.
    """
    a = np.array(a, dtype=float)
    b = np.array(b, dtype=float)
    n = a.shape[0]
    vector = b.ndim == 1
    augmented = np.hstack([a, b.reshape(n, -1)])
    tolerance = _PIVOT_TOLERANCE * max(1.0, float(np.abs(a).max(initial=0.0)))

    for i in range(n):
        pivot_row = i + int(np.argmax(np.abs(augmented[i:, i])))
        if abs(augmented[pivot_row, i]) <= tolerance:
            raise DegenerateDataError("Singular matrix: columns are linearly dependent")
        if pivot_row != i:
            augmented[[i, pivot_row]] = augmented[[pivot_row, i]]
        for k in range(i + 1, n):
            factor = augmented[k, i] / augmented[i, i]
            augmented[k, i:] -= factor * augmented[i, i:]

    solution = np.zeros((n, augmented.shape[1] - n))
    for i in range(n - 1, -1, -1):
        solution[i] = (augmented[i, n:] - augmented[i, i + 1 : n] @ solution[i + 1 :]) / augmented[i, i]
    return solution[:, 0] if vector else solution


def solve_normal_equations(x: np.ndarray, y: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
    """Least-squares coefficients for design matrix *x* via ``(XᵗX)β = Xᵗy``.

    Returns:
        Tuple of (coefficients, XᵗX).
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    xtx = x.T @ x
    xty = x.T @ y
    return gaussian_elimination(xtx, xty), xtx


def invert(a: np.ndarray) -> np.ndarray:
    """Invert a square matrix by eliminating against the identity."""
    a = np.asarray(a, dtype=float)
    return gaussian_elimination(a, np.eye(a.shape[0]))


def t_cdf(t: float, df: float) -> float:
    """Heuristic CDF of Student's t distribution.

    ``0.5 * (1 + sign(t) * sqrt(1 - exp(-2t² / (df + 1))))``. This is a rough
    approximation kept for parity with the figures users already see; it is
    not suitable for real inference.
    """
    if math.isnan(t) or math.isnan(df) or df <= 0:
        return math.nan
    if math.isinf(t):
        return 1.0 if t > 0 else 0.0
    sign = (t > 0) - (t < 0)
    return 0.5 * (1 + sign * math.sqrt(1 - math.exp(-2 * t * t / (df + 1))))


def two_sided_p_value(t: float, df: float) -> float:
    cdf = t_cdf(abs(t), df) if not math.isnan(t) else math.nan
    return 2 * (1 - cdf) if not math.isnan(cdf) else math.nan
