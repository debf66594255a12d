"""Core data models for the statistical analysis engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

import pandas as pd
from typing_extensions import TypedDict


# ---------------------------------------------------------------------------
# Dataset
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Dataset:
    """An ordered, immutable sequence of rows sharing one schema.

    A row maps column name to a raw value (string, number, ``None``); a key
    may also be absent. Cleaning operations build a new ``Dataset`` rather
    than mutating this one.
    """

    columns: tuple[str, ...]
    rows: tuple[dict, ...] = ()

    @classmethod
    def from_records(
        cls, records: Iterable[Mapping[str, Any]], columns: Optional[Iterable[str]] = None
    ) -> "Dataset":
        """Build a dataset from mappings; columns default to keys in first-seen order."""
        rows = tuple(dict(record) for record in records)
        if columns is None:
            seen: dict[str, None] = {}
            for row in rows:
                for key in row:
                    seen.setdefault(key, None)
            columns = seen.keys()
        return cls(columns=tuple(columns), rows=rows)

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "Dataset":
        columns = tuple(str(c) for c in df.columns)
        rows = tuple(
            dict(zip(columns, values)) for values in df.itertuples(index=False, name=None)
        )
        return cls(columns=columns, rows=rows)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame.from_records(list(self.rows), columns=list(self.columns))

    def column(self, name: str) -> list[Any]:
        """Return the raw values of *name*; absent keys come back as ``None``."""
        return [row.get(name) for row in self.rows]

    def with_rows(self, rows: Iterable[Mapping[str, Any]]) -> "Dataset":
        return Dataset(columns=self.columns, rows=tuple(dict(row) for row in rows))

    @property
    def shape(self) -> tuple[int, int]:
        return (len(self.rows), len(self.columns))

    def __len__(self) -> int:
        return len(self.rows)


# ---------------------------------------------------------------------------
# Profiling and descriptive statistics
# ---------------------------------------------------------------------------


class ColumnType(str, Enum):
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    DATE = "date"
    TEXT = "text"


@dataclass(frozen=True)
class ColumnProfile:
    """Inferred type and completeness figures for one column."""

    name: str
    inferred_type: ColumnType
    count: int
    missing_count: int
    unique_count: int

    @property
    def completeness(self) -> float:
        """Percentage of non-missing cells (100 for an empty column)."""
        if self.count == 0:
            return 100.0
        return (self.count - self.missing_count) / self.count * 100

    @property
    def uniqueness(self) -> float:
        """Distinct non-missing values as a percentage of non-missing cells."""
        present = self.count - self.missing_count
        if present == 0:
            return 0.0
        return self.unique_count / present * 100


@dataclass(frozen=True)
class HistogramBin:
    bin_range: str
    start: float
    end: float
    count: int


@dataclass(frozen=True)
class NumericSummary:
    """Descriptive statistics of a numeric column; NaN where not computable."""

    count: int
    min: float
    max: float
    mean: float
    median: float
    std: float
    q1: float
    q3: float
    skewness: float
    kurtosis: float
    histogram: list[HistogramBin] = field(default_factory=list)

    @property
    def iqr(self) -> float:
        return self.q3 - self.q1


@dataclass(frozen=True)
class CategoricalSummary:
    """Frequency table of a categorical column in first-encounter order."""

    count: int
    unique_count: int
    frequencies: dict[Any, int]
    mode: Any
    mode_count: int
    top_values: list[tuple[Any, int, float]] = field(default_factory=list)


@dataclass(frozen=True)
class DateSummary:
    count: int
    earliest: Optional[pd.Timestamp]
    latest: Optional[pd.Timestamp]
    range_days: float


@dataclass(frozen=True)
class CorrelationEdge:
    column_a: str
    column_b: str
    coefficient: float
    strength: str
    n_pairs: int = 0


# ---------------------------------------------------------------------------
# Quality and cleaning
# ---------------------------------------------------------------------------


class IssueKind(str, Enum):
    MISSING = "missing"
    DUPLICATE = "duplicate"
    OUTLIER = "outlier"
    INCONSISTENT = "inconsistent"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class QualityIssue:
    kind: IssueKind
    severity: Severity
    count: int
    description: str
    auto_fixable: bool
    column: Optional[str] = None


@dataclass(frozen=True)
class DatasetHealth:
    """Four quality sub-scores, each in [0, 100]."""

    completeness: float
    consistency: float
    accuracy: float
    validity: float


@dataclass(frozen=True)
class QualityReport:
    overall_score: int
    issues: list[QualityIssue]
    dataset_health: DatasetHealth
    suggestions: list[str] = field(default_factory=list)

    def issues_of(self, kind: IssueKind) -> list[QualityIssue]:
        return [issue for issue in self.issues if issue.kind == kind]


@dataclass
class CleaningLogEntry:
    """Record of a single cleaning operation."""

    timestamp: str
    operation: str
    columns_affected: list[str]
    parameters: dict
    rows_before: int
    rows_after: int
    description: str


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class RegressionKind(str, Enum):
    LINEAR = "linear"
    MULTIPLE = "multiple"
    POLYNOMIAL = "polynomial"


@dataclass(frozen=True)
class ResidualPoint:
    x: float
    y: float
    predicted: float
    residual: float


@dataclass(frozen=True)
class FeatureCoefficient:
    feature: str
    coefficient: float
    importance: float
    std_error: float = math.nan
    p_value: float = math.nan


@dataclass(frozen=True)
class RegressionModel:
    """A fitted regression; superseded, never mutated, by the next run."""

    kind: RegressionKind
    slope: float
    intercept: float
    r_squared: float
    standard_error: float
    p_value: float
    n_observations: int
    residuals: list[ResidualPoint] = field(default_factory=list)
    coefficients: Optional[list[FeatureCoefficient]] = None

    def predict(self, x: float) -> float:
        """Predict from the first feature; only meaningful for single-input kinds."""
        if self.kind == RegressionKind.POLYNOMIAL and self.coefficients:
            quadratic = self.coefficients[-1].coefficient
            return self.intercept + self.slope * x + quadratic * x * x
        return self.intercept + self.slope * x


@dataclass(frozen=True)
class ClusterAssignment:
    k: int
    centroids: list[list[float]]
    labels: list[int]
    inertia: float
    silhouette_score: float
    iterations: int = 0
    converged: bool = False
    inertia_history: list[float] = field(default_factory=list)
    row_indices: list[int] = field(default_factory=list)

    @property
    def cluster_sizes(self) -> list[int]:
        sizes = [0] * self.k
        for label in self.labels:
            sizes[label] += 1
        return sizes


@dataclass(frozen=True)
class CohortPoint:
    cohort: str
    period: int
    users: int
    retention: float
    size: int


@dataclass(frozen=True)
class ForecastPoint:
    index: int
    predicted: float
    confidence: float


@dataclass(frozen=True)
class Forecast:
    method: str
    points: list[ForecastPoint]
    confidence: float
    accuracy: float
    trend: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class Insight:
    id: str
    kind: str
    severity: Severity
    title: str
    description: str
    confidence: int
    actionable: bool


# ---------------------------------------------------------------------------
# Results and pipeline state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one computation: a value, or ``None`` and the reason why."""

    kind: str
    value: Any = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass
class DatasetAnalysis:
    """Everything the summary view shows for one dataset."""

    profiles: list[ColumnProfile] = field(default_factory=list)
    numeric: dict[str, NumericSummary] = field(default_factory=dict)
    categorical: dict[str, CategoricalSummary] = field(default_factory=dict)
    dates: dict[str, DateSummary] = field(default_factory=dict)
    correlations: list[CorrelationEdge] = field(default_factory=list)
    quality: Optional[QualityReport] = None
    insights: list[Insight] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class PipelineState(TypedDict, total=False):
    """Central state object shared across all graph nodes."""

    # Input
    file_path: str
    auto_fix: bool

    # Data
    dataset: Optional[Dataset]
    original_shape: Optional[tuple[int, int]]

    # Profiling and quality
    profiles: list[ColumnProfile]
    quality_report: Optional[QualityReport]

    # Cleaning
    cleaning_log: list[CleaningLogEntry]

    # Analysis
    analysis: Optional[DatasetAnalysis]
    narrative: Optional[str]

    # Output
    output_dir: str
    report_path: Optional[str]

    # Traceability
    errors: list[str]
    reasoning_log: list[dict]
