"""Tests for k-means clustering and silhouette scoring."""

from __future__ import annotations

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from edakit.errors import InsufficientDataError
from edakit.models import Dataset
from edakit.tools.clustering import cluster, cluster_dataset, extract_points, silhouette_score

from conftest import finite_floats


def _two_blobs(seed: int = 0, n: int = 30) -> np.ndarray:
    rng = np.random.default_rng(seed)
    left = rng.normal(loc=(10.0, 10.0), scale=1.0, size=(n, 2))
    right = rng.normal(loc=(80.0, 80.0), scale=1.0, size=(n, 2))
    return np.vstack([left, right])


point_sets = st.integers(min_value=1, max_value=3).flatmap(
    lambda dims: st.lists(
        st.lists(finite_floats(0, 100), min_size=dims, max_size=dims),
        min_size=1,
        max_size=40,
    )
)


# ---------------------------------------------------------------------------
# cluster
# ---------------------------------------------------------------------------


class TestCluster:
    def test_two_blobs_are_separated(self):
        points = _two_blobs()
        result = cluster(points, 2, init="k-means++", random_state=42)
        left, right = set(result.labels[:30]), set(result.labels[30:])
        assert len(left) == 1 and len(right) == 1
        assert left != right
        assert result.silhouette_score > 0.5
        assert result.converged
        assert sorted(result.cluster_sizes) == [30, 30]

    def test_two_blobs_with_uniform_random_init(self):
        points = _two_blobs()
        # A uniform start can leave a centroid with no points; those seeds are skipped.
        results = [cluster(points, 2, init="random", random_state=seed) for seed in range(20)]
        separated = [r for r in results if min(r.cluster_sizes) > 0]
        assert separated
        for result in separated:
            low, high = sorted(result.centroids)
            assert low == pytest.approx([10.0, 10.0], abs=1.0)
            assert high == pytest.approx([80.0, 80.0], abs=1.0)
            assert result.silhouette_score > 0.5
            assert sorted(result.cluster_sizes) == [30, 30]

    def test_random_init_is_reproducible(self):
        points = _two_blobs(seed=3)
        first = cluster(points, 3, random_state=7)
        second = cluster(points, 3, random_state=7)
        assert first.labels == second.labels
        assert first.centroids == second.centroids

    def test_inertia_history_never_increases(self):
        points = _two_blobs(seed=5)
        result = cluster(points, 4, random_state=11)
        history = result.inertia_history
        assert history
        assert all(b <= a + 1e-9 for a, b in zip(history, history[1:]))
        assert result.inertia == history[-1]

    def test_single_cluster_has_zero_silhouette(self):
        result = cluster([[1.0], [2.0], [3.0]], 1, random_state=0)
        assert result.labels == [0, 0, 0]
        assert result.silhouette_score == 0.0
        assert result.centroids[0] == pytest.approx([2.0])

    def test_iteration_cap(self):
        result = cluster(_two_blobs(), 2, max_iterations=1, random_state=0)
        assert result.iterations == 1
        assert len(result.inertia_history) == 1

    def test_one_dimensional_input(self):
        result = cluster([1.0, 2.0, 50.0, 51.0], 2, init="k-means++", random_state=1)
        assert len(result.labels) == 4
        assert result.labels[0] == result.labels[1] != result.labels[2] == result.labels[3]

    def test_fewer_points_than_clusters(self):
        with pytest.raises(InsufficientDataError):
            cluster([[1.0, 2.0]], 2)

    def test_no_points(self):
        with pytest.raises(InsufficientDataError):
            cluster([], 2)

    @pytest.mark.parametrize("kwargs", [{"k": 0}, {"k": 2, "max_iterations": 0}, {"k": 2, "init": "bogus"}])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            cluster([[1.0], [2.0]], **kwargs)

    @settings(max_examples=40, deadline=None)
    @given(point_sets, st.integers(min_value=1, max_value=4), st.integers(min_value=0, max_value=1000))
    def test_structural_properties(self, points, k, seed):
        if len(points) < k:
            with pytest.raises(InsufficientDataError):
                cluster(points, k, random_state=seed)
            return
        result = cluster(points, k, random_state=seed)
        assert len(result.labels) == len(points)
        assert all(0 <= label < k for label in result.labels)
        assert sum(result.cluster_sizes) == len(points)
        assert -1.0 <= result.silhouette_score <= 1.0
        assert all(b <= a * (1 + 1e-9) + 1e-9 for a, b in zip(result.inertia_history, result.inertia_history[1:]))


# ---------------------------------------------------------------------------
# silhouette_score
# ---------------------------------------------------------------------------


class TestSilhouette:
    def test_well_separated(self):
        points = np.array([[0.0], [0.1], [10.0], [10.1]])
        assert silhouette_score(points, [0, 0, 1, 1]) > 0.9

    def test_singletons_score_zero(self):
        points = np.array([[0.0], [5.0], [5.1]])
        # Point 0 is alone: contributes 0; the pair scores high.
        score = silhouette_score(points, [0, 1, 1])
        assert 0 < score < 1
        assert silhouette_score(np.array([[0.0], [1.0]]), [0, 1]) == 0.0

    def test_identical_points(self):
        points = np.zeros((4, 2))
        assert silhouette_score(points, [0, 0, 1, 1]) == 0.0

    def test_sampling_is_seeded(self):
        points = _two_blobs(n=40)
        labels = [0] * 40 + [1] * 40
        a = silhouette_score(points, labels, sample_size=20, random_state=3)
        b = silhouette_score(points, labels, sample_size=20, random_state=3)
        assert a == b
        assert a > 0.5


# ---------------------------------------------------------------------------
# Dataset helpers
# ---------------------------------------------------------------------------


class TestDatasetClustering:
    def test_extract_points_skips_incomplete_rows(self):
        dataset = Dataset.from_records(
            [{"x": "1", "y": "2"}, {"x": "", "y": "3"}, {"x": "4", "y": "z"}, {"x": "5", "y": "6"}]
        )
        points, indices = extract_points(dataset, ["x", "y"])
        assert points.tolist() == [[1.0, 2.0], [5.0, 6.0]]
        assert indices == [0, 3]

    def test_cluster_dataset_maps_rows(self):
        rows = [{"x": str(v), "y": str(v)} for v in [1, 2, 90, 91]] + [{"x": "", "y": "1"}]
        result = cluster_dataset(Dataset.from_records(rows), ["x", "y"], 2, init="k-means++", random_state=0)
        assert result.row_indices == [0, 1, 2, 3]

    def test_cluster_dataset_unknown_column(self):
        with pytest.raises(ValueError):
            cluster_dataset(Dataset.from_records([{"x": 1}]), ["nope"], 1)

    def test_cluster_dataset_without_numeric_rows(self):
        with pytest.raises(InsufficientDataError):
            cluster_dataset(Dataset.from_records([{"x": "a"}]), ["x"], 1)
