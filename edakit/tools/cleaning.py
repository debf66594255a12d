"""Cleaning tools that derive a new dataset from an existing one.

Each function takes a Dataset (and relevant parameters), builds a cleaned
copy, and returns a tuple of (cleaned_dataset, CleaningLogEntry). The input
dataset is never modified.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from edakit.config import DEFAULT_FILL_SENTINEL
from edakit.errors import WouldEmptyDatasetError
from edakit.models import CleaningLogEntry, Dataset, IssueKind, QualityIssue
from edakit.tools.quality import row_key
from edakit.values import is_missing

logger = logging.getLogger(__name__)


def _now() -> str:
    """Return current timestamp as ISO format string."""
    return datetime.now().isoformat()


def drop_duplicates(dataset: Dataset) -> tuple[Dataset, CleaningLogEntry]:
    """Remove exact duplicate rows, keeping the first occurrence.

    Args:
        dataset: Input dataset.

    Returns:
        Tuple of (cleaned dataset, cleaning log entry).
    """
    rows_before = len(dataset)
    seen: set[str] = set()
    kept: list[dict] = []
    for row in dataset.rows:
        key = row_key(row)
        if key in seen:
            continue
        seen.add(key)
        kept.append(row)

    cleaned = dataset.with_rows(kept)
    removed = rows_before - len(cleaned)
    log = CleaningLogEntry(
        timestamp=_now(),
        operation="drop_duplicates",
        columns_affected=list(dataset.columns),
        parameters={},
        rows_before=rows_before,
        rows_after=len(cleaned),
        description=f"Removed {removed} duplicate rows.",
    )
    return cleaned, log


def fill_missing(
    dataset: Dataset, column: str, sentinel: str = DEFAULT_FILL_SENTINEL
) -> tuple[Dataset, CleaningLogEntry]:
    """Replace missing cells of *column* with an explicit sentinel.

    No row is removed. With the default ``"N/A"`` the cells stay in the
    missing sentinel set, so later scans still report them; they are just
    no longer blank.

    Args:
        dataset: Input dataset.
        column: Column name to fill.
        sentinel: Replacement value.

    Returns:
        Tuple of (cleaned dataset, cleaning log entry).

    Raises:
        ValueError: If column not in dataset.
    """
    if column not in dataset.columns:
        raise ValueError(f"Column '{column}' not found in dataset.")

    filled = 0
    rows: list[dict] = []
    for row in dataset.rows:
        if is_missing(row.get(column)) and row.get(column) != sentinel:
            row = {**row, column: sentinel}
            filled += 1
        rows.append(row)

    cleaned = dataset.with_rows(rows)
    log = CleaningLogEntry(
        timestamp=_now(),
        operation="fill_missing",
        columns_affected=[column],
        parameters={"sentinel": sentinel},
        rows_before=len(dataset),
        rows_after=len(cleaned),
        description=f"Marked {filled} missing values in '{column}' as '{sentinel}'.",
    )
    return cleaned, log


def drop_missing_rows(
    dataset: Dataset, on_data_cleaned: Optional[Callable[[Dataset], None]] = None
) -> tuple[Dataset, CleaningLogEntry]:
    """Remove every row that has a missing value in any column.

    Args:
        dataset: Input dataset.
        on_data_cleaned: Called with the replacement dataset once the rows
            are removed. Not called when the removal is refused.

    Returns:
        Tuple of (cleaned dataset, cleaning log entry).

    Raises:
        WouldEmptyDatasetError: If no row is complete; nothing is removed.
    """
    rows_before = len(dataset)
    kept = [
        row for row in dataset.rows
        if not any(is_missing(row.get(col)) for col in dataset.columns)
    ]
    if rows_before > 0 and not kept:
        logger.warning("Refusing to drop missing rows: every row has a missing value")
        raise WouldEmptyDatasetError("drop_missing_rows", rows_before)

    cleaned = dataset.with_rows(kept)
    log = CleaningLogEntry(
        timestamp=_now(),
        operation="drop_missing_rows",
        columns_affected=list(dataset.columns),
        parameters={},
        rows_before=rows_before,
        rows_after=len(cleaned),
        description=(
            f"Removed {rows_before - len(cleaned)} rows with missing values. "
            f"{len(cleaned)} rows remaining."
        ),
    )
    if on_data_cleaned is not None:
        on_data_cleaned(cleaned)
    return cleaned, log


def apply_fixes(
    dataset: Dataset,
    issues: Iterable[QualityIssue],
    on_data_cleaned: Optional[Callable[[Dataset], None]] = None,
    sentinel: str = DEFAULT_FILL_SENTINEL,
) -> tuple[Dataset, list[CleaningLogEntry]]:
    """Apply every auto-fixable issue and hand the result to the host.

    Missing-value issues mark their column's blank cells with *sentinel*;
    duplicate issues drop repeated rows. Other issue kinds are skipped.

    Args:
        dataset: Dataset the issues were detected on.
        issues: Issues from a quality scan.
        on_data_cleaned: Called with the replacement dataset once all fixes
            succeeded. The host decides whether to adopt it.
        sentinel: Replacement value for missing cells.

    Returns:
        Tuple of (cleaned dataset, cleaning log entries in application order).

    Raises:
        WouldEmptyDatasetError: If the fixes would leave no rows. The
            callback is not invoked.
    """
    cleaned = dataset
    log: list[CleaningLogEntry] = []
    for issue in issues:
        if not issue.auto_fixable:
            continue
        if issue.kind == IssueKind.MISSING and issue.column is not None:
            cleaned, entry = fill_missing(cleaned, issue.column, sentinel)
        elif issue.kind == IssueKind.DUPLICATE:
            cleaned, entry = drop_duplicates(cleaned)
        else:
            continue
        log.append(entry)

    if len(dataset) > 0 and len(cleaned) == 0:
        raise WouldEmptyDatasetError("apply_fixes", len(dataset))

    logger.info("Applied %d fixes: %d -> %d rows", len(log), len(dataset), len(cleaned))
    if on_data_cleaned is not None:
        on_data_cleaned(cleaned)
    return cleaned, log
