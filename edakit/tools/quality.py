"""Data quality scanning: missing values, duplicates, outliers, mixed types."""

from __future__ import annotations

import json
import logging
from collections import Counter
from typing import Any, Optional, Sequence

from edakit.config import DEFAULT_THRESHOLDS, IQR_MULTIPLIER, MIN_OUTLIER_VALUES, ProfilerThresholds
from edakit.models import (
    ColumnProfile,
    ColumnType,
    Dataset,
    DatasetHealth,
    IssueKind,
    QualityIssue,
    QualityReport,
    Severity,
)
from edakit.tools.profiling import classify, columns_of_type
from edakit.tools.statistics import quartiles
from edakit.values import classify_value, is_missing, numeric_values, present_values

logger = logging.getLogger(__name__)

# Accuracy reported for datasets without numeric columns.
_DEFAULT_ACCURACY = 95


# ---------------------------------------------------------------------------
# Individual detectors
# ---------------------------------------------------------------------------


def count_missing(values: Sequence[Any]) -> int:
    return sum(1 for value in values if is_missing(value))


def row_key(row: dict) -> str:
    """Serialize a row with sorted keys so equal rows give equal keys."""
    return json.dumps(row, sort_keys=True, default=str)


def count_duplicates(dataset: Dataset) -> int:
    """Return how many rows repeat an earlier row exactly."""
    unique = {row_key(row) for row in dataset.rows}
    return len(dataset.rows) - len(unique)


def outlier_bounds(values: Sequence[Any]) -> Optional[tuple[float, float]]:
    """Return the IQR fence ``(q1 - 1.5*iqr, q3 + 1.5*iqr)``.

    ``None`` when fewer than four numeric values are available.
    """
    numbers = sorted(numeric_values(values))
    if len(numbers) < MIN_OUTLIER_VALUES:
        return None
    q1, _, q3 = quartiles(numbers)
    iqr = q3 - q1
    return (q1 - IQR_MULTIPLIER * iqr, q3 + IQR_MULTIPLIER * iqr)


def detect_outliers(values: Sequence[Any]) -> list[float]:
    """Return the numeric values lying outside the IQR fence, in input order."""
    bounds = outlier_bounds(values)
    if bounds is None:
        return []
    lower, upper = bounds
    return [v for v in numeric_values(values) if v < lower or v > upper]


def count_type_inconsistencies(values: Sequence[Any]) -> int:
    """Count non-missing values outside the column's majority kind.

    Every present value is classified as number, date or string. A column
    with a single kind is consistent; otherwise everything outside the most
    common kind counts as inconsistent.
    """
    kinds = Counter(
        classify_value(value) for value in values if not is_missing(value)
    )
    if len(kinds) <= 1:
        return 0
    return sum(kinds.values()) - max(kinds.values())


# ---------------------------------------------------------------------------
# Severity mapping
# ---------------------------------------------------------------------------


def _missing_severity(percentage: float) -> Severity:
    if percentage > 20:
        return Severity.HIGH
    if percentage > 10:
        return Severity.MEDIUM
    return Severity.LOW


def _duplicate_severity(count: int, total: int) -> Severity:
    return Severity.HIGH if count > total * 0.1 else Severity.MEDIUM


def _outlier_severity(count: int, total: int) -> Severity:
    return Severity.MEDIUM if count > total * 0.05 else Severity.LOW


# ---------------------------------------------------------------------------
# Health metrics
# ---------------------------------------------------------------------------


def completeness_score(dataset: Dataset) -> int:
    total = len(dataset.rows) * len(dataset.columns)
    if total == 0:
        return 100
    missing = sum(count_missing(dataset.column(col)) for col in dataset.columns)
    return round((total - missing) / total * 100)


def consistency_score(dataset: Dataset) -> int:
    if not dataset.columns:
        return 100
    scores: list[float] = []
    for col in dataset.columns:
        values = dataset.column(col)
        present = present_values(values)
        if present:
            inconsistent = count_type_inconsistencies(values)
            scores.append((len(present) - inconsistent) / len(present) * 100)
        else:
            scores.append(100.0)
    return round(sum(scores) / len(scores))


def accuracy_score(dataset: Dataset, numeric_columns: Sequence[str]) -> int:
    total = 0
    outliers = 0
    for col in numeric_columns:
        values = dataset.column(col)
        total += len(numeric_values(values))
        outliers += len(detect_outliers(values))
    if total == 0:
        return _DEFAULT_ACCURACY
    return round((total - outliers) / total * 100)


def validity_score(consistency: int) -> int:
    return min(consistency + 5, 100)


# ---------------------------------------------------------------------------
# Scan
# ---------------------------------------------------------------------------


def scan(
    dataset: Dataset,
    profiles: Optional[Sequence[ColumnProfile]] = None,
    thresholds: ProfilerThresholds = DEFAULT_THRESHOLDS,
) -> QualityReport:
    """Scan *dataset* for quality issues and score its health.

    Args:
        dataset: Input dataset.
        profiles: Column profiles; computed with *thresholds* when omitted.
        thresholds: Profiler thresholds used to find numeric columns.

    Returns:
        A ``QualityReport`` whose scores all lie in [0, 100].
    """
    profiles = profiles if profiles is not None else classify(dataset, thresholds)
    numeric_columns = columns_of_type(profiles, ColumnType.NUMERIC)
    n_rows = len(dataset.rows)
    issues: list[QualityIssue] = []

    for col in dataset.columns:
        missing = count_missing(dataset.column(col))
        if missing > 0:
            percentage = missing / n_rows * 100
            issues.append(
                QualityIssue(
                    kind=IssueKind.MISSING,
                    severity=_missing_severity(percentage),
                    column=col,
                    count=missing,
                    description=f"{missing} missing values ({percentage:.1f}%) in {col}",
                    auto_fixable=True,
                )
            )

    duplicates = count_duplicates(dataset)
    if duplicates > 0:
        issues.append(
            QualityIssue(
                kind=IssueKind.DUPLICATE,
                severity=_duplicate_severity(duplicates, n_rows),
                count=duplicates,
                description=f"{duplicates} duplicate rows detected",
                auto_fixable=True,
            )
        )

    for col in numeric_columns:
        outliers = detect_outliers(dataset.column(col))
        if outliers:
            issues.append(
                QualityIssue(
                    kind=IssueKind.OUTLIER,
                    severity=_outlier_severity(len(outliers), n_rows),
                    column=col,
                    count=len(outliers),
                    description=f"{len(outliers)} potential outliers in {col}",
                    auto_fixable=False,
                )
            )

    for col in dataset.columns:
        inconsistent = count_type_inconsistencies(dataset.column(col))
        if inconsistent > 0:
            issues.append(
                QualityIssue(
                    kind=IssueKind.INCONSISTENT,
                    severity=Severity.MEDIUM,
                    column=col,
                    count=inconsistent,
                    description=f"{inconsistent} data type inconsistencies in {col}",
                    auto_fixable=False,
                )
            )

    consistency = consistency_score(dataset)
    health = DatasetHealth(
        completeness=completeness_score(dataset),
        consistency=consistency,
        accuracy=accuracy_score(dataset, numeric_columns),
        validity=validity_score(consistency),
    )
    overall = round(
        (health.completeness + health.consistency + health.accuracy + health.validity) / 4
    )

    suggestions: list[str] = []
    kinds = {issue.kind for issue in issues}
    if IssueKind.MISSING in kinds:
        suggestions.append("Consider using imputation techniques for missing values")
    if IssueKind.DUPLICATE in kinds:
        suggestions.append("Remove duplicate rows to improve data quality")
    if IssueKind.OUTLIER in kinds:
        suggestions.append(
            "Investigate outliers - they might indicate data errors or interesting patterns"
        )
    if IssueKind.INCONSISTENT in kinds:
        suggestions.append("Standardize value formats in columns with mixed types")

    logger.info(
        "Quality scan: %d issues, overall score %d (rows=%d, columns=%d)",
        len(issues), overall, n_rows, len(dataset.columns),
    )
    return QualityReport(
        overall_score=overall,
        issues=issues,
        dataset_health=health,
        suggestions=suggestions,
    )
