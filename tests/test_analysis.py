"""Tests for the recompute and whole-dataset analysis entry points."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from hypothesis import given, settings

from edakit.analysis import COMPUTATIONS, analyze_dataset, recompute
from edakit.errors import DegenerateDataError
from edakit.models import (
    ClusterAssignment,
    ColumnType,
    Dataset,
    DatasetAnalysis,
    QualityReport,
    RegressionModel,
)

from conftest import messy_datasets


@pytest.fixture
def numbers() -> Dataset:
    return Dataset.from_records(
        [{"a": str(i), "b": str(2 * i), "k": "x", "day": f"2024-0{1 + i % 3}-01"} for i in range(1, 13)]
    )


# ---------------------------------------------------------------------------
# recompute
# ---------------------------------------------------------------------------


class TestRecompute:
    def test_profile(self, numbers):
        result = recompute(numbers, "profile")
        assert result.ok
        assert [p.inferred_type for p in result.value][:2] == [ColumnType.NUMERIC] * 2

    def test_summary(self, numbers):
        result = recompute(numbers, "summary")
        assert set(result.value["numeric"]) == {"a", "b"}

    def test_regression(self, numbers):
        result = recompute(numbers, "regression", target="b", features=["a"])
        assert isinstance(result.value, RegressionModel)
        assert result.value.slope == pytest.approx(2.0)

    def test_regression_failure_becomes_reason(self):
        dataset = Dataset.from_records([{"x": "1", "y": "2"}, {"x": "1", "y": "3"}])
        result = recompute(dataset, "regression", target="y", features=["x"])
        assert not result.ok
        assert result.value is None
        assert "zero variance" in result.reason

    def test_unknown_column_becomes_reason(self, numbers):
        result = recompute(numbers, "regression", target="b", features=["nope"])
        assert result.value is None
        assert "not found" in result.reason

    def test_clustering(self, numbers):
        result = recompute(numbers, "clustering", columns=["a", "b"], k=2, random_state=0)
        assert isinstance(result.value, ClusterAssignment)
        assert len(result.value.labels) == 12

    def test_clustering_too_few_points(self, numbers):
        result = recompute(numbers, "clustering", columns=["a"], k=20)
        assert not result.ok

    def test_cohort(self, numbers):
        result = recompute(numbers, "cohort", id_column="a", date_column="day", periods=2)
        assert result.ok
        assert len(result.value) == 3 * 2

    def test_forecast(self, numbers):
        result = recompute(numbers, "forecast", column="a", method="linear")
        assert result.value[0].points[0].predicted == pytest.approx(13.0)

    def test_forecast_unknown_column(self, numbers):
        assert not recompute(numbers, "forecast", column="zzz").ok

    def test_quality_and_insights(self, numbers):
        assert isinstance(recompute(numbers, "quality").value, QualityReport)
        assert recompute(numbers, "insights").value[0].id == "overview"

    def test_correlation(self, numbers):
        (edge,) = recompute(numbers, "correlation", columns=["a", "b"]).value
        assert edge.coefficient == pytest.approx(1.0)

    def test_unknown_kind_raises(self, numbers):
        with pytest.raises(ValueError):
            recompute(numbers, "telepathy")

    def test_kinds(self):
        assert set(COMPUTATIONS) == {
            "profile", "summary", "correlation", "quality", "regression",
            "clustering", "cohort", "forecast", "insights",
        }

    def test_is_pure(self, numbers):
        first = recompute(numbers, "forecast", column="b", method="all", random_state=5)
        second = recompute(numbers, "forecast", column="b", method="all", random_state=5)
        assert first == second


# ---------------------------------------------------------------------------
# analyze_dataset
# ---------------------------------------------------------------------------


class TestAnalyzeDataset:
    def test_populates_every_section(self, sales_dataset):
        analysis = analyze_dataset(sales_dataset)
        assert isinstance(analysis, DatasetAnalysis)
        assert len(analysis.profiles) == 4
        assert set(analysis.numeric) == {"units", "price"}
        assert set(analysis.categorical) == {"region"}
        assert set(analysis.dates) == {"sold_on"}
        assert len(analysis.correlations) == 1
        assert analysis.quality is not None
        assert analysis.insights
        assert analysis.errors == []

    def test_one_failing_column_does_not_stop_others(self, sales_dataset):
        from edakit.tools import statistics

        real = statistics.summarize

        def flaky(values):
            values = list(values)
            if "10" in values:
                raise DegenerateDataError("boom")
            return real(values)

        with patch("edakit.analysis.summarize", side_effect=flaky):
            analysis = analyze_dataset(sales_dataset)

        assert "units" not in analysis.numeric
        assert "price" in analysis.numeric
        assert any("units" in err for err in analysis.errors)
        assert analysis.quality is not None

    @settings(max_examples=30, deadline=None)
    @given(messy_datasets())
    def test_never_raises(self, dataset):
        analysis = analyze_dataset(dataset)
        assert len(analysis.profiles) == len(dataset.columns)
