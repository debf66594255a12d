"""Explicit recomputation entry points.

The host calls ``recompute`` whenever its dataset or the user's parameters
change, and ``analyze_dataset`` for the summary view. Each computation is
isolated: an ``AnalysisError`` becomes an ``AnalysisResult`` carrying the
reason instead of propagating.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from edakit.config import DEFAULT_THRESHOLDS, ProfilerThresholds
from edakit.errors import AnalysisError
from edakit.models import AnalysisResult, ColumnType, Dataset, DatasetAnalysis
from edakit.tools.clustering import cluster_dataset
from edakit.tools.cohort import analyze_cohorts
from edakit.tools.correlation import correlation_edges
from edakit.tools.forecasting import forecast
from edakit.tools.insights import generate_insights
from edakit.tools.profiling import classify, columns_of_type
from edakit.tools.quality import scan
from edakit.tools.regression import run_regression
from edakit.tools.statistics import describe_dataset, summarize, summarize_categorical, summarize_dates

logger = logging.getLogger(__name__)


def _profile(dataset: Dataset, thresholds: ProfilerThresholds = DEFAULT_THRESHOLDS, **_: Any):
    return classify(dataset, thresholds)


def _summary(dataset: Dataset, thresholds: ProfilerThresholds = DEFAULT_THRESHOLDS, **_: Any):
    return describe_dataset(dataset, classify(dataset, thresholds))


def _correlation(dataset: Dataset, columns=None, **_: Any):
    return correlation_edges(dataset, columns)


def _quality(dataset: Dataset, thresholds: ProfilerThresholds = DEFAULT_THRESHOLDS, **_: Any):
    return scan(dataset, thresholds=thresholds)


def _regression(dataset: Dataset, target: str, features, model="linear", **_: Any):
    return run_regression(dataset, target, list(features), model)


def _clustering(dataset: Dataset, columns, k: int, **options: Any):
    return cluster_dataset(dataset, list(columns), k, **options)


def _cohort(dataset: Dataset, id_column: str, date_column: str, periods: int = 12, **_: Any):
    return analyze_cohorts(dataset, id_column, date_column, periods)


def _forecast(dataset: Dataset, column: str, method: str = "all", random_state=None, **_: Any):
    if column not in dataset.columns:
        raise ValueError(f"Column '{column}' not found in dataset.")
    return forecast(dataset.column(column), method, random_state=random_state)


def _insights(dataset: Dataset, thresholds: ProfilerThresholds = DEFAULT_THRESHOLDS, **_: Any):
    return analyze_dataset(dataset, thresholds).insights


COMPUTATIONS: dict[str, Callable[..., Any]] = {
    "profile": _profile,
    "summary": _summary,
    "correlation": _correlation,
    "quality": _quality,
    "regression": _regression,
    "clustering": _clustering,
    "cohort": _cohort,
    "forecast": _forecast,
    "insights": _insights,
}


def recompute(dataset: Dataset, kind: str, **params: Any) -> AnalysisResult:
    """Run one computation over *dataset* and wrap its outcome.

    Args:
        dataset: The host's current dataset.
        kind: One of ``COMPUTATIONS``.
        **params: Computation parameters, e.g. ``target``/``features``/
            ``model`` for regression, ``columns``/``k`` for clustering,
            ``id_column``/``date_column`` for cohorts, ``column``/``method``
            for forecasts.

    Returns:
        ``AnalysisResult`` with the computed value, or with ``value=None``
        and a readable ``reason`` when the data do not support it.

    Raises:
        ValueError: If *kind* is unknown.
    """
    if kind not in COMPUTATIONS:
        raise ValueError(f"Unknown analysis kind '{kind}'. Must be one of {sorted(COMPUTATIONS)}.")
    try:
        value = COMPUTATIONS[kind](dataset, **params)
    except (AnalysisError, ValueError) as exc:
        logger.warning("%s analysis failed: %s", kind, exc)
        return AnalysisResult(kind=kind, reason=str(exc))
    return AnalysisResult(kind=kind, value=value)


def analyze_dataset(
    dataset: Dataset, thresholds: ProfilerThresholds = DEFAULT_THRESHOLDS
) -> DatasetAnalysis:
    """Profile, summarize, correlate, scan and derive insights for *dataset*.

    A failing column summary or engine is recorded in ``errors`` and the
    remaining work still runs.
    """
    analysis = DatasetAnalysis(profiles=classify(dataset, thresholds))

    for profile in analysis.profiles:
        values = dataset.column(profile.name)
        try:
            if profile.inferred_type == ColumnType.NUMERIC:
                analysis.numeric[profile.name] = summarize(values)
            elif profile.inferred_type == ColumnType.CATEGORICAL:
                analysis.categorical[profile.name] = summarize_categorical(values)
            elif profile.inferred_type == ColumnType.DATE:
                analysis.dates[profile.name] = summarize_dates(values)
        except (AnalysisError, ValueError) as exc:
            logger.warning("Summary of '%s' failed: %s", profile.name, exc)
            analysis.errors.append(f"summary of '{profile.name}': {exc}")

    numeric_columns = columns_of_type(analysis.profiles, ColumnType.NUMERIC)
    try:
        analysis.correlations = correlation_edges(dataset, numeric_columns)
    except (AnalysisError, ValueError) as exc:
        logger.warning("Correlation failed: %s", exc)
        analysis.errors.append(f"correlation: {exc}")

    try:
        analysis.quality = scan(dataset, analysis.profiles, thresholds)
    except (AnalysisError, ValueError) as exc:
        logger.warning("Quality scan failed: %s", exc)
        analysis.errors.append(f"quality: {exc}")

    analysis.insights = generate_insights(
        analysis.profiles, analysis.numeric, analysis.correlations, analysis.quality
    )
    logger.info(
        "Analyzed %d rows x %d columns: %d insights, %d errors",
        len(dataset), len(dataset.columns), len(analysis.insights), len(analysis.errors),
    )
    return analysis
