"""Resolution of raw cell values into numbers, dates, text, or missing.

Rows keep whatever the ingestion layer produced (strings, numbers, ``None``
or an absent key). Every engine goes through the helpers here instead of
coercing values on its own, so one sentinel set and one parsing policy
apply everywhere.
"""

from __future__ import annotations

import math
import numbers
import warnings
from datetime import date, datetime
from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, Optional

import pandas as pd

from edakit.config import MISSING_SENTINELS, RELATIVE_DATE_WORDS


class CellKind(str, Enum):
    MISSING = "missing"
    NUMBER = "number"
    DATE = "date"
    TEXT = "text"


def is_missing(value: Any) -> bool:
    """Return True for ``None``, NaN, NaT, and the canonical missing strings."""
    if value is None or value is pd.NaT or value is pd.NA:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str):
        return value.strip().casefold() in MISSING_SENTINELS
    return False


def to_number(value: Any) -> Optional[float]:
    """Parse *value* as a finite float, or return ``None``.

    Booleans are not numbers here. Strings are stripped first; ``nan`` and
    ``inf`` spellings are rejected along with digit-group underscores.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        result = float(value)
        return result if math.isfinite(result) else None
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            result = float(text)
        except ValueError:
            return None
        return result if math.isfinite(result) else None
    return None


def _year_in_text(year: int, text: str) -> bool:
    if f"{year:04d}" in text:
        return True
    return year >= 1900 and f"{year % 100:02d}" in text


@lru_cache(maxsize=8192)
def _parse_date_string(text: str) -> Optional[pd.Timestamp]:
    """Parse *text* as an absolute date.

    Text without a digit, relative words such as ``now``, and parses whose
    year was filled in by the parser rather than read from *text* are
    rejected, so the result depends on the string alone.
    """
    if not any(ch.isdigit() for ch in text):
        return None
    if any(word in RELATIVE_DATE_WORDS for word in text.casefold().split()):
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    if parsed is pd.NaT or pd.isna(parsed):
        return None
    if not _year_in_text(parsed.year, text):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_localize(None)
    return parsed


def to_date(value: Any) -> Optional[pd.Timestamp]:
    """Parse *value* as a timestamp, or return ``None``.

    Numbers are never dates. Timezone-aware values are reduced to their
    naive wall-clock time.
    """
    if isinstance(value, (pd.Timestamp, datetime, date)):
        if is_missing(value):
            return None
        stamp = pd.Timestamp(value)
        return stamp.tz_localize(None) if stamp.tzinfo is not None else stamp
    if not isinstance(value, str) or is_missing(value):
        return None
    return _parse_date_string(value.strip())


def classify_value(value: Any) -> CellKind:
    """Classify one cell, checking number before date before text."""
    if is_missing(value):
        return CellKind.MISSING
    if to_number(value) is not None:
        return CellKind.NUMBER
    if to_date(value) is not None:
        return CellKind.DATE
    return CellKind.TEXT


def numeric_values(values: Iterable[Any]) -> list[float]:
    """Return the finite numbers among *values*, in order."""
    result: list[float] = []
    for value in values:
        number = to_number(value)
        if number is not None:
            result.append(number)
    return result


def present_values(values: Iterable[Any]) -> list[Any]:
    """Return the non-missing values among *values*, in order."""
    return [value for value in values if not is_missing(value)]
