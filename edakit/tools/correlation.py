"""Pairwise Pearson correlation across numeric columns."""

from __future__ import annotations

import logging
import math
from itertools import combinations
from typing import Any, Optional, Sequence

import numpy as np

from edakit.config import MODERATE_CORRELATION, STRONG_CORRELATION
from edakit.models import ColumnType, CorrelationEdge, Dataset
from edakit.tools.profiling import classify, columns_of_type
from edakit.values import to_number

logger = logging.getLogger(__name__)


def _aligned_pairs(a: Sequence[Any], b: Sequence[Any]) -> tuple[np.ndarray, np.ndarray]:
    xs: list[float] = []
    ys: list[float] = []
    for raw_x, raw_y in zip(a, b):
        x, y = to_number(raw_x), to_number(raw_y)
        if x is not None and y is not None:
            xs.append(x)
            ys.append(y)
    return np.asarray(xs, dtype=float), np.asarray(ys, dtype=float)


def correlate(a: Sequence[Any], b: Sequence[Any]) -> float:
    """Pearson's r over the index-aligned pairs where both values are numeric.

    Pairs are dropped individually (pairwise complete observations). Fewer
    than two pairs, or zero variance on either side, yields 0.

    Args:
        a: First column's values.
        b: Second column's values, aligned by index with *a*.

    Returns:
        The coefficient, clipped to [-1, 1].
    """
    xs, ys = _aligned_pairs(a, b)
    if len(xs) < 2:
        return 0.0
    dx = xs - xs.mean()
    dy = ys - ys.mean()
    sxx = float(np.dot(dx, dx))
    syy = float(np.dot(dy, dy))
    denominator = math.sqrt(sxx) * math.sqrt(syy)
    if denominator == 0:
        return 0.0
    r = float(np.dot(dx, dy)) / denominator
    return max(-1.0, min(1.0, r))


def strength_label(coefficient: float) -> str:
    magnitude = abs(coefficient)
    if magnitude > STRONG_CORRELATION:
        return "strong"
    if magnitude > MODERATE_CORRELATION:
        return "moderate"
    return "weak"


def correlation_edges(
    dataset: Dataset, columns: Optional[Sequence[str]] = None
) -> list[CorrelationEdge]:
    """Correlate every unordered pair of numeric columns.

    Args:
        dataset: Input dataset.
        columns: Columns to correlate; defaults to the columns profiled as
            numeric.

    Returns:
        One edge per pair, sorted by descending absolute coefficient.
    """
    if columns is None:
        columns = columns_of_type(classify(dataset), ColumnType.NUMERIC)

    edges: list[CorrelationEdge] = []
    for col_a, col_b in combinations(columns, 2):
        values_a, values_b = dataset.column(col_a), dataset.column(col_b)
        r = correlate(values_a, values_b)
        n_pairs = len(_aligned_pairs(values_a, values_b)[0])
        edges.append(
            CorrelationEdge(
                column_a=col_a,
                column_b=col_b,
                coefficient=r,
                strength=strength_label(r),
                n_pairs=n_pairs,
            )
        )

    edges.sort(key=lambda edge: abs(edge.coefficient), reverse=True)
    logger.debug("Computed %d correlation pairs over %d columns", len(edges), len(columns))
    return edges
