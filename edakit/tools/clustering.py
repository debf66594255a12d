"""K-means clustering with inertia tracking and silhouette scoring."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence, Union

import numpy as np

from edakit.config import DEFAULT_COORDINATE_RANGE, MAX_ITERATIONS, SILHOUETTE_SAMPLE_SIZE
from edakit.errors import InsufficientDataError
from edakit.models import ClusterAssignment, Dataset
from edakit.values import to_number

logger = logging.getLogger(__name__)

RandomState = Union[None, int, np.random.Generator]

INIT_METHODS = ("random", "k-means++")


def _rng(random_state: RandomState) -> np.random.Generator:
    if isinstance(random_state, np.random.Generator):
        return random_state
    return np.random.default_rng(random_state)


def extract_points(dataset: Dataset, columns: Sequence[str]) -> tuple[np.ndarray, list[int]]:
    """Build feature vectors from *columns*, skipping rows with any non-numeric value.

    Returns:
        Tuple of (points array of shape (n, len(columns)), source row indices).
    """
    points: list[list[float]] = []
    indices: list[int] = []
    for i, row in enumerate(dataset.rows):
        vector = [to_number(row.get(col)) for col in columns]
        if all(v is not None for v in vector):
            points.append(vector)
            indices.append(i)
    return np.asarray(points, dtype=float).reshape(len(points), len(columns)), indices


def _squared_distances(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    diff = points[:, None, :] - centroids[None, :, :]
    return np.einsum("ijk,ijk->ij", diff, diff)


def _pairwise_distances(points: np.ndarray) -> np.ndarray:
    norms = (points * points).sum(axis=1)
    squared = norms[:, None] + norms[None, :] - 2 * points @ points.T
    np.fill_diagonal(squared, 0.0)
    return np.sqrt(np.clip(squared, 0.0, None))


def _init_random(
    rng: np.random.Generator, k: int, dims: int, coordinate_range: tuple[float, float]
) -> np.ndarray:
    low, high = coordinate_range
    return rng.uniform(low, high, size=(k, dims))


def _init_plus_plus(rng: np.random.Generator, points: np.ndarray, k: int) -> np.ndarray:
    centroids = [points[rng.integers(len(points))]]
    for _ in range(1, k):
        nearest = _squared_distances(points, np.asarray(centroids)).min(axis=1)
        total = nearest.sum()
        if total == 0:
            centroids.append(points[rng.integers(len(points))])
            continue
        centroids.append(points[rng.choice(len(points), p=nearest / total)])
    return np.asarray(centroids, dtype=float)


def silhouette_score(
    points: np.ndarray,
    labels: Sequence[int],
    sample_size: Optional[int] = SILHOUETTE_SAMPLE_SIZE,
    random_state: RandomState = None,
) -> float:
    """Mean silhouette coefficient of a labelled point set.

    For each point ``a`` is the mean distance to the rest of its cluster and
    ``b`` the smallest mean distance to another non-empty cluster; the
    coefficient is ``(b - a) / max(a, b)``. Points in singleton clusters,
    solutions with a single cluster, and ``a == b == 0`` all score 0.

    Args:
        points: Array of shape (n, d).
        labels: Cluster index per point.
        sample_size: Above this many points the score is estimated on a
            random subset; ``None`` disables sampling.
        random_state: Seed or generator for the subset.

    Returns:
        The mean coefficient in [-1, 1], or 0 for fewer than two points.
    """
    points = np.asarray(points, dtype=float)
    labels = np.asarray(labels)
    if len(points) < 2:
        return 0.0
    if sample_size is not None and len(points) > sample_size:
        chosen = _rng(random_state).choice(len(points), size=sample_size, replace=False)
        points, labels = points[chosen], labels[chosen]

    distances = _pairwise_distances(points)
    clusters, sizes = np.unique(labels, return_counts=True)
    if len(clusters) < 2:
        return 0.0

    # Column c holds each point's summed distance to the members of cluster c.
    sums = np.column_stack([distances[:, labels == c].sum(axis=1) for c in clusters])
    own = np.searchsorted(clusters, labels)
    own_sizes = sizes[own]
    rows = np.arange(len(points))

    a = np.divide(
        sums[rows, own], own_sizes - 1, out=np.zeros(len(points)), where=own_sizes > 1
    )
    means = sums / sizes
    means[rows, own] = np.inf
    b = means.min(axis=1)

    denominator = np.maximum(a, b)
    scores = np.divide(b - a, denominator, out=np.zeros(len(points)), where=denominator > 0)
    scores[own_sizes <= 1] = 0.0
    return float(scores.mean())


def cluster(
    points: Sequence[Sequence[float]],
    k: int,
    max_iterations: int = MAX_ITERATIONS,
    init: str = "random",
    random_state: RandomState = None,
    coordinate_range: tuple[float, float] = DEFAULT_COORDINATE_RANGE,
) -> ClusterAssignment:
    """Partition *points* into *k* clusters with Lloyd's k-means.

    ``init="random"`` places every centroid at uniform random coordinates in
    *coordinate_range*, independent of the data; results then depend on the
    seed and on the scale of the features. ``init="k-means++"`` seeds the
    centroids from the data instead.

    Each iteration assigns points to the nearest centroid and moves every
    centroid to the mean of its points; a centroid with no points stays
    where it is. Iteration stops when the assignment no longer changes or
    after *max_iterations*. ``inertia_history`` holds the inertia after each
    centroid update and never increases.

    Args:
        points: Sequence of equal-length numeric vectors.
        k: Number of clusters.
        max_iterations: Iteration cap.
        init: ``"random"`` or ``"k-means++"``.
        random_state: Seed or ``numpy.random.Generator``.
        coordinate_range: (low, high) bounds for random initialization.

    Returns:
        A ``ClusterAssignment``.

    Raises:
        ValueError: If *k* or *max_iterations* is below 1, or *init* is unknown.
        InsufficientDataError: No points, or fewer points than clusters.
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
    if init not in INIT_METHODS:
        raise ValueError(f"Invalid init '{init}'. Must be one of {INIT_METHODS}.")

    data = np.asarray(points, dtype=float)
    if data.size == 0:
        raise InsufficientDataError("Clustering needs at least one complete point")
    if data.ndim == 1:
        data = data.reshape(-1, 1)
    if len(data) < k:
        raise InsufficientDataError(f"Cannot form {k} clusters from {len(data)} points")

    rng = _rng(random_state)
    if init == "random":
        centroids = _init_random(rng, k, data.shape[1], coordinate_range)
    else:
        centroids = _init_plus_plus(rng, data, k)

    labels: Optional[np.ndarray] = None
    history: list[float] = []
    converged = False
    iterations = 0
    for iterations in range(1, max_iterations + 1):
        new_labels = _squared_distances(data, centroids).argmin(axis=1)
        if labels is not None and np.array_equal(new_labels, labels):
            converged = True
            break
        labels = new_labels
        for j in range(k):
            members = data[labels == j]
            if len(members) > 0:
                centroids[j] = members.mean(axis=0)
        distances = _squared_distances(data, centroids)
        history.append(float(distances[np.arange(len(data)), labels].sum()))

    inertia = history[-1]
    score = silhouette_score(data, labels, random_state=rng)
    logger.debug(
        "k-means k=%d init=%s: %d iterations, converged=%s, inertia=%.4g, silhouette=%.3f",
        k, init, iterations, converged, inertia, score,
    )
    return ClusterAssignment(
        k=k,
        centroids=centroids.tolist(),
        labels=[int(label) for label in labels],
        inertia=inertia,
        silhouette_score=score,
        iterations=iterations,
        converged=converged,
        inertia_history=history,
        row_indices=list(range(len(data))),
    )


def cluster_dataset(
    dataset: Dataset,
    columns: Sequence[str],
    k: int,
    **kwargs,
) -> ClusterAssignment:
    """Cluster the rows of *dataset* on *columns*; labels map back via ``row_indices``."""
    for column in columns:
        if column not in dataset.columns:
            raise ValueError(f"Column '{column}' not found in dataset.")
    points, indices = extract_points(dataset, columns)
    if len(points) == 0:
        raise InsufficientDataError(f"No rows with numeric values in all of {list(columns)}")
    return replace(cluster(points, k, **kwargs), row_indices=indices)
