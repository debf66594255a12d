"""Rule-based insights derived from profiles, summaries and the quality scan."""

from __future__ import annotations

import logging
import math
from typing import Mapping, Optional, Sequence

from edakit.config import STRONG_CORRELATION
from edakit.models import (
    ColumnProfile,
    ColumnType,
    CorrelationEdge,
    Insight,
    IssueKind,
    NumericSummary,
    QualityReport,
    Severity,
)

logger = logging.getLogger(__name__)

MISSING_INSIGHT_PCT = 15
MISSING_HIGH_PCT = 30
VERY_STRONG_CORRELATION = 0.9
SKEW_THRESHOLD = 1.0
NORMAL_SKEW = 0.5
NORMAL_KURTOSIS = 3.0
OUTLIER_INSIGHT_PCT = 5
OUTLIER_HIGH_PCT = 10
HIGH_CARDINALITY_PCT = 90
MIN_CARDINALITY_VALUES = 20


def _overview(profiles: Sequence[ColumnProfile]) -> Insight:
    n_rows = profiles[0].count if profiles else 0
    by_type = {t: sum(1 for p in profiles if p.inferred_type == t) for t in ColumnType}
    parts = ", ".join(f"{count} {t.value}" for t, count in by_type.items() if count)
    return Insight(
        id="overview",
        kind="overview",
        severity=Severity.LOW,
        title="Dataset Overview",
        description=f"{n_rows} rows and {len(profiles)} columns ({parts or 'no columns'}).",
        confidence=100,
        actionable=False,
    )


def _missing(profiles: Sequence[ColumnProfile]) -> list[Insight]:
    found = []
    for profile in profiles:
        if profile.count == 0:
            continue
        pct = profile.missing_count / profile.count * 100
        if pct > MISSING_INSIGHT_PCT:
            found.append(
                Insight(
                    id=f"missing-{profile.name}",
                    kind="recommendation",
                    severity=Severity.HIGH if pct > MISSING_HIGH_PCT else Severity.MEDIUM,
                    title=f"High Missing Values in {profile.name}",
                    description=(
                        f"{pct:.1f}% missing values detected. "
                        "Consider imputation or removal strategies."
                    ),
                    confidence=95,
                    actionable=True,
                )
            )
    return found


def _correlations(edges: Sequence[CorrelationEdge]) -> list[Insight]:
    found = []
    for edge in edges:
        r = edge.coefficient
        if abs(r) <= STRONG_CORRELATION:
            continue
        direction = "positive" if r > 0 else "negative"
        found.append(
            Insight(
                id=f"correlation-{edge.column_a}-{edge.column_b}",
                kind="correlation",
                severity=Severity.HIGH if abs(r) > VERY_STRONG_CORRELATION else Severity.MEDIUM,
                title="Strong Correlation Detected",
                description=(
                    f"{edge.column_a} and {edge.column_b} show {direction} "
                    f"correlation (r = {r:.2f})"
                ),
                confidence=88,
                actionable=True,
            )
        )
    return found


def _distributions(summaries: Mapping[str, NumericSummary]) -> list[Insight]:
    found = []
    for name, summary in summaries.items():
        skew, kurt = summary.skewness, summary.kurtosis
        if math.isnan(skew):
            continue
        if abs(skew) > SKEW_THRESHOLD:
            side = "right" if skew > 0 else "left"
            found.append(
                Insight(
                    id=f"distribution-{name}",
                    kind="pattern",
                    severity=Severity.MEDIUM,
                    title=f"Skewed Distribution in {name}",
                    description=(
                        f"Data shows {side} skewness ({skew:.2f}). "
                        "Consider a transformation before modelling."
                    ),
                    confidence=82,
                    actionable=True,
                )
            )
        elif abs(skew) < NORMAL_SKEW and abs(kurt) < NORMAL_KURTOSIS:
            found.append(
                Insight(
                    id=f"normal-{name}",
                    kind="pattern",
                    severity=Severity.LOW,
                    title=f"Approximately Normal Distribution in {name}",
                    description=(
                        f"Skewness {skew:.2f} and excess kurtosis {kurt:.2f} "
                        "are close to a normal distribution."
                    ),
                    confidence=75,
                    actionable=False,
                )
            )
    return found


def _outliers(summaries: Mapping[str, NumericSummary], report: QualityReport) -> list[Insight]:
    found = []
    for issue in report.issues_of(IssueKind.OUTLIER):
        summary = summaries.get(issue.column)
        if summary is None or summary.count == 0:
            continue
        pct = issue.count / summary.count * 100
        if pct > OUTLIER_INSIGHT_PCT:
            found.append(
                Insight(
                    id=f"outliers-{issue.column}",
                    kind="outlier",
                    severity=Severity.HIGH if pct > OUTLIER_HIGH_PCT else Severity.MEDIUM,
                    title=f"Outliers Detected in {issue.column}",
                    description=(
                        f"{issue.count} outliers found ({pct:.1f}% of data). "
                        "Review for data quality issues."
                    ),
                    confidence=91,
                    actionable=True,
                )
            )
    return found


def _cardinality(profiles: Sequence[ColumnProfile]) -> list[Insight]:
    found = []
    for profile in profiles:
        present = profile.count - profile.missing_count
        if (
            profile.inferred_type == ColumnType.TEXT
            and present >= MIN_CARDINALITY_VALUES
            and profile.uniqueness >= HIGH_CARDINALITY_PCT
        ):
            found.append(
                Insight(
                    id=f"cardinality-{profile.name}",
                    kind="pattern",
                    severity=Severity.LOW,
                    title=f"High Cardinality in {profile.name}",
                    description=(
                        f"{profile.unique_count} distinct values in {present} rows; "
                        "the column is likely an identifier or free text."
                    ),
                    confidence=85,
                    actionable=False,
                )
            )
    return found


def _duplicates(report: QualityReport, n_rows: int) -> list[Insight]:
    duplicates = sum(issue.count for issue in report.issues_of(IssueKind.DUPLICATE))
    if not duplicates:
        return []
    pct = duplicates / n_rows * 100 if n_rows else 0.0
    return [
        Insight(
            id="duplicates",
            kind="recommendation",
            severity=Severity.HIGH if pct > 10 else Severity.MEDIUM,
            title="Duplicate Rows Found",
            description=f"{duplicates} duplicate rows ({pct:.1f}% of data). Remove them before analysis.",
            confidence=99,
            actionable=True,
        )
    ]


def generate_insights(
    profiles: Sequence[ColumnProfile],
    summaries: Mapping[str, NumericSummary],
    edges: Sequence[CorrelationEdge],
    report: Optional[QualityReport] = None,
) -> list[Insight]:
    """Apply the insight rules and return their findings.

    Args:
        profiles: Column profiles of the dataset.
        summaries: Numeric summaries keyed by column name.
        edges: Correlation edges between numeric columns.
        report: Quality report; outlier and duplicate rules are skipped
            without one.

    Returns:
        Insights in rule order, starting with the dataset overview.
    """
    insights = [_overview(profiles)]
    insights.extend(_missing(profiles))
    insights.extend(_correlations(edges))
    insights.extend(_distributions(summaries))
    if report is not None:
        insights.extend(_outliers(summaries, report))
    insights.extend(_cardinality(profiles))
    if report is not None:
        n_rows = profiles[0].count if profiles else 0
        insights.extend(_duplicates(report, n_rows))
    logger.debug("Generated %d insights", len(insights))
    return insights
