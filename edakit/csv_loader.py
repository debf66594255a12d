"""CSV ingestion with automatic encoding and delimiter detection.

Cells are kept as raw strings; typing them is the profiler's job.
"""

from __future__ import annotations

import csv
import io
import logging
import os
from typing import Optional

import chardet
import pandas as pd

from edakit.models import Dataset

logger = logging.getLogger(__name__)

_DELIMITERS = ",\t;|"


def _detect_encoding(file_path: str) -> str:
    """Detect file encoding using chardet, falling back to utf-8."""
    try:
        with open(file_path, "rb") as f:
            raw = f.read()
    except OSError:
        return "utf-8"
    if not raw:
        return "utf-8"
    encoding = chardet.detect(raw).get("encoding")
    return encoding or "utf-8"


def _detect_delimiter(text: str) -> str:
    """Detect CSV delimiter using csv.Sniffer, falling back to comma."""
    try:
        dialect = csv.Sniffer().sniff(text[:8192], delimiters=_DELIMITERS)
        return dialect.delimiter
    except csv.Error:
        return ","


def _read_with_encoding(file_path: str, encoding: str) -> Optional[str]:
    """Try reading a file with the given encoding. Returns text or None."""
    try:
        with open(file_path, "r", encoding=encoding, newline="") as f:
            return f.read()
    except (UnicodeDecodeError, LookupError):
        return None


def _try_parse(text: str, delimiter: str) -> Optional[pd.DataFrame]:
    """Parse *text* keeping every cell as a string. Returns DataFrame or None."""
    try:
        return pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            engine="python",
            dtype=str,
            keep_default_na=False,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, csv.Error, ValueError) as exc:
        logger.debug("Parsing with delimiter %r failed: %s", delimiter, exc)
        return None


def load_csv(file_path: str) -> dict:
    """Load a CSV file into a ``Dataset``.

    Args:
        file_path: Path to the CSV file.

    Returns:
        dict with keys:
            - "dataset": Dataset or None
            - "error": Optional[str] error message if loading failed
    """
    if not os.path.exists(file_path):
        return {"dataset": None, "error": f"File not found: {file_path}"}

    if not os.path.isfile(file_path):
        return {"dataset": None, "error": f"Path is not a file: {file_path}"}

    try:
        if os.path.getsize(file_path) == 0:
            return {"dataset": None, "error": "File is empty"}
    except OSError as e:
        return {"dataset": None, "error": f"Cannot read file: {e}"}

    encoding = _detect_encoding(file_path)
    text = _read_with_encoding(file_path, encoding)
    if text is None:
        text = _read_with_encoding(file_path, "utf-8")
    if text is None:
        # latin-1 decodes any byte sequence
        text = _read_with_encoding(file_path, "latin-1")
    if text is None:
        return {"dataset": None, "error": "Failed to decode file with any supported encoding"}

    if not text.strip():
        return {"dataset": None, "error": "File is empty"}

    delimiter = _detect_delimiter(text)
    df = _try_parse(text, delimiter)
    if df is None:
        return {"dataset": None, "error": "Failed to parse CSV file"}

    # A single wide column usually means the sniffer picked the wrong delimiter.
    if len(df.columns) == 1 and len(df) > 1:
        for alt_delim in ["\t", ";", "|", ","]:
            if alt_delim == delimiter:
                continue
            alt_df = _try_parse(text, alt_delim)
            if alt_df is not None and len(alt_df.columns) > 1:
                delimiter, df = alt_delim, alt_df
                break

    if len(df) == 0:
        return {"dataset": None, "error": "File contains only headers with no data rows"}

    logger.info(
        "Loaded %s: %d rows x %d columns (encoding=%s, delimiter=%r)",
        file_path, len(df), len(df.columns), encoding, delimiter,
    )
    return {"dataset": Dataset.from_frame(df), "error": None}
