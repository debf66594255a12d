"""Report generator that compiles profiling, quality and analysis results into Markdown."""

from __future__ import annotations

import math
import os
from typing import Optional, Sequence

from edakit.models import (
    CleaningLogEntry,
    ColumnProfile,
    CorrelationEdge,
    DatasetAnalysis,
    Insight,
    NumericSummary,
    QualityReport,
)


def _fmt(value: float, digits: int = 2) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "n/a"
    return f"{value:.{digits}f}"


def _format_profiles(profiles: Sequence[ColumnProfile]) -> str:
    if not profiles:
        return "No columns profiled.\n"
    lines = [
        "| Column | Type | Missing | Completeness | Unique |",
        "|--------|------|---------|--------------|--------|",
    ]
    for p in profiles:
        lines.append(
            f"| {p.name} | {p.inferred_type.value} | {p.missing_count} | "
            f"{p.completeness:.1f}% | {p.unique_count} |"
        )
    lines.append("")
    return "\n".join(lines)


def _format_quality(report: Optional[QualityReport]) -> str:
    if report is None:
        return "Quality scan not available.\n"

    health = report.dataset_health
    lines = [
        f"- **Overall score**: {report.overall_score}/100",
        f"- **Completeness**: {health.completeness}",
        f"- **Consistency**: {health.consistency}",
        f"- **Accuracy**: {health.accuracy}",
        f"- **Validity**: {health.validity}",
        "",
    ]
    if report.issues:
        lines.append("| Issue | Column | Count | Severity | Auto-fixable |")
        lines.append("|-------|--------|-------|----------|--------------|")
        for issue in report.issues:
            lines.append(
                f"| {issue.kind.value} | {issue.column or '-'} | {issue.count} | "
                f"{issue.severity.value} | {'yes' if issue.auto_fixable else 'no'} |"
            )
        lines.append("")
    else:
        lines.append("No issues detected.\n")

    if report.suggestions:
        lines.append("**Suggestions**\n")
        lines.extend(f"- {s}" for s in report.suggestions)
        lines.append("")
    return "\n".join(lines)


def _format_cleaning_log_entry(entry: CleaningLogEntry) -> str:
    """Format a single cleaning log entry as a Markdown list item."""
    parts = [f"**{entry.operation}**"]
    if entry.columns_affected:
        parts.append(f"columns: {', '.join(entry.columns_affected)}")
    if entry.parameters:
        params_str = ", ".join(f"{k}={v}" for k, v in entry.parameters.items())
        parts.append(f"params: {{{params_str}}}")
    parts.append(f"rows: {entry.rows_before} → {entry.rows_after}")
    if entry.description:
        parts.append(entry.description)
    return "- " + " | ".join(parts)


def _format_numeric(numeric: dict[str, NumericSummary]) -> str:
    if not numeric:
        return "No numeric columns.\n"
    lines = [
        "| Column | Count | Mean | Std | Min | Q1 | Median | Q3 | Max | Skew | Kurtosis |",
        "|--------|-------|------|-----|-----|----|--------|----|-----|------|----------|",
    ]
    for name, s in numeric.items():
        lines.append(
            f"| {name} | {s.count} | {_fmt(s.mean)} | {_fmt(s.std)} | {_fmt(s.min)} | "
            f"{_fmt(s.q1)} | {_fmt(s.median)} | {_fmt(s.q3)} | {_fmt(s.max)} | "
            f"{_fmt(s.skewness)} | {_fmt(s.kurtosis)} |"
        )
    lines.append("")
    return "\n".join(lines)


def _format_categorical(analysis: DatasetAnalysis) -> str:
    lines: list[str] = []
    for name, summary in analysis.categorical.items():
        lines.append(f"**{name}** ({summary.unique_count} categories, mode `{summary.mode}`):\n")
        for value, count, pct in summary.top_values:
            lines.append(f"- {value}: {count} ({pct:.1f}%)")
        lines.append("")
    return "\n".join(lines)


def _format_correlations(edges: Sequence[CorrelationEdge]) -> str:
    if not edges:
        return "Fewer than two numeric columns; no correlations computed.\n"
    lines = [
        "| Column A | Column B | r | Strength | Pairs |",
        "|----------|----------|---|----------|-------|",
    ]
    for e in edges:
        lines.append(
            f"| {e.column_a} | {e.column_b} | {e.coefficient:.3f} | {e.strength} | {e.n_pairs} |"
        )
    lines.append("")
    return "\n".join(lines)


def _format_insight(insight: Insight) -> str:
    return f"**[{insight.severity.value}] {insight.title}**: {insight.description}"


def generate_report(
    original_shape: tuple[int, int],
    final_shape: tuple[int, int],
    analysis: Optional[DatasetAnalysis],
    cleaning_log: list[CleaningLogEntry],
    narrative: Optional[str],
    output_dir: str,
) -> str:
    """Generate a Markdown report and save to output_dir/report.md.

    Args:
        original_shape: (rows, cols) of the loaded dataset.
        final_shape: (rows, cols) after cleaning.
        analysis: Profiles, summaries, correlations, quality and insights.
        cleaning_log: Cleaning actions applied, in order.
        narrative: Optional prose summary from the language model.
        output_dir: Directory to save the report.

    Returns:
        The path to the saved report file.
    """
    os.makedirs(output_dir, exist_ok=True)
    analysis = analysis or DatasetAnalysis()

    sections: list[str] = []
    sections.append("# Exploratory Data Analysis Report\n")

    sections.append("## Dataset Overview\n")
    sections.append(f"- **Original shape**: {original_shape[0]} rows × {original_shape[1]} columns")
    sections.append(f"- **Final shape**: {final_shape[0]} rows × {final_shape[1]} columns")
    sections.append(f"- **Rows removed**: {original_shape[0] - final_shape[0]}\n")

    sections.append("## Column Profiles\n")
    sections.append(_format_profiles(analysis.profiles))

    sections.append("## Data Quality\n")
    sections.append(_format_quality(analysis.quality))

    sections.append("## Cleaning Actions\n")
    if cleaning_log:
        for entry in cleaning_log:
            sections.append(_format_cleaning_log_entry(entry))
    else:
        sections.append("No cleaning actions were performed.\n")
    sections.append("")

    sections.append("## Numeric Statistics\n")
    sections.append(_format_numeric(analysis.numeric))
    if analysis.categorical:
        sections.append("## Categorical Statistics\n")
        sections.append(_format_categorical(analysis))

    sections.append("## Correlations\n")
    sections.append(_format_correlations(analysis.correlations))

    sections.append("## Insights\n")
    if analysis.insights:
        for i, insight in enumerate(analysis.insights, 1):
            sections.append(f"{i}. {_format_insight(insight)}")
    else:
        sections.append("No insights generated.\n")
    sections.append("")

    if narrative:
        sections.append("## Narrative\n")
        sections.append(narrative.strip() + "\n")

    if analysis.errors:
        sections.append("## Analysis Errors\n")
        sections.extend(f"- {err}" for err in analysis.errors)
        sections.append("")

    report_path = os.path.join(output_dir, "report.md")
    with open(report_path, "w", encoding="utf-8") as f:
        f.write("\n".join(sections))
    return report_path


def generate_reasoning_report(
    reasoning_log: list[dict], errors: list[str], output_dir: str
) -> str:
    """Write the pipeline's reasoning log and errors to output_dir/reasoning_log.md."""
    os.makedirs(output_dir, exist_ok=True)
    lines = ["# Pipeline Reasoning Log\n"]
    for entry in reasoning_log:
        lines.append(
            f"- `{entry.get('timestamp', '')}` **{entry.get('agent', '')}**: "
            f"{entry.get('reasoning', '')}"
        )
    lines.append("")
    lines.append("## Errors\n")
    if errors:
        lines.extend(f"- {err}" for err in errors)
    else:
        lines.append("No errors.")
    lines.append("")

    path = os.path.join(output_dir, "reasoning_log.md")
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))
    return path
