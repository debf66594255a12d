"""Cohort retention: group entities by first-seen month and track activity."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Sequence

from edakit.config import COHORT_PERIODS
from edakit.models import CohortPoint, Dataset
from edakit.values import is_missing, to_date

logger = logging.getLogger(__name__)


def _month_index(year: int, month: int) -> int:
    return year * 12 + (month - 1)


def _cohort_label(index: int) -> str:
    year, month0 = divmod(index, 12)
    return f"{year:04d}-{month0 + 1:02d}"


def analyze_cohorts(
    dataset: Dataset,
    id_column: str,
    date_column: str,
    periods: int = COHORT_PERIODS,
) -> list[CohortPoint]:
    """Compute monthly retention for cohorts of first appearance.

    Every entity joins the cohort of the calendar month holding its earliest
    date. For period ``p`` an entity counts as retained when it has at least
    one row dated in month ``cohort + p``. Rows with a missing id or an
    unparseable date are ignored entirely.

    Args:
        dataset: Input dataset.
        id_column: Column identifying the entity (user, customer, ...).
        date_column: Column holding the activity date.
        periods: Number of monthly periods per cohort, starting at 0.

    Returns:
        ``CohortPoint`` entries ordered by cohort, then period. Empty when no
        row is usable.

    Raises:
        ValueError: If either column is not in the dataset.
    """
    for column in (id_column, date_column):
        if column not in dataset.columns:
            raise ValueError(f"Column '{column}' not found in dataset.")

    activity: dict[Any, set[int]] = defaultdict(set)
    skipped = 0
    for row in dataset.rows:
        entity = row.get(id_column)
        stamp = to_date(row.get(date_column))
        if is_missing(entity) or stamp is None:
            skipped += 1
            continue
        activity[entity].add(_month_index(stamp.year, stamp.month))

    if skipped:
        logger.debug("Cohort analysis skipped %d rows without id or valid date", skipped)

    cohorts: dict[int, list[Any]] = defaultdict(list)
    for entity, months in activity.items():
        cohorts[min(months)].append(entity)

    points: list[CohortPoint] = []
    for start in sorted(cohorts):
        members = cohorts[start]
        size = len(members)
        for period in range(periods):
            active = sum(1 for entity in members if start + period in activity[entity])
            points.append(
                CohortPoint(
                    cohort=_cohort_label(start),
                    period=period,
                    users=active,
                    retention=active / size * 100 if size else 0.0,
                    size=size,
                )
            )
    logger.debug("Built %d cohorts from %d entities", len(cohorts), len(activity))
    return points


def average_retention(points: Sequence[CohortPoint]) -> list[tuple[int, float]]:
    """Average retention per period across cohorts, ordered by period."""
    by_period: dict[int, list[float]] = defaultdict(list)
    for point in points:
        by_period[point.period].append(point.retention)
    return [
        (period, sum(values) / len(values)) for period, values in sorted(by_period.items())
    ]
