"""Shared Hypothesis strategies and fixtures for the test suite.

Provides reusable strategies for numeric series, messy raw cells and
datasets, plus small hand-built datasets used across test modules.
"""

from __future__ import annotations

import pytest
from hypothesis import strategies as st

from edakit.models import Dataset


# ---------------------------------------------------------------------------
# Value strategies
# ---------------------------------------------------------------------------


def finite_floats(min_value: float = -1e6, max_value: float = 1e6) -> st.SearchStrategy[float]:
    return st.floats(
        min_value=min_value,
        max_value=max_value,
        allow_nan=False,
        allow_infinity=False,
        allow_subnormal=False,
    )


numeric_lists = st.lists(finite_floats(), min_size=0, max_size=60)

# Cells the way a CSV loader or a hand-built record hands them over.
missing_cells = st.sampled_from([None, "", "  ", "N/A", "n/a", "null", "NULL", float("nan")])
word_cells = st.text(alphabet="bcdfghjklpqrstvwxz", min_size=3, max_size=8)
number_cells = st.one_of(
    st.integers(min_value=-1000, max_value=1000),
    finite_floats(-1000, 1000),
    st.integers(min_value=-1000, max_value=1000).map(str),
)
raw_cells = st.one_of(missing_cells, word_cells, number_cells)


# ---------------------------------------------------------------------------
# messy_datasets: Datasets with controlled messiness
# ---------------------------------------------------------------------------


@st.composite
def messy_datasets(
    draw: st.DrawFn,
    min_rows: int = 1,
    max_rows: int = 40,
    min_cols: int = 1,
    max_cols: int = 5,
) -> Dataset:
    """Generate a Dataset mixing numbers, words and missing sentinels,
    optionally with repeated rows and absent keys.

    Parameters
    ----------
    draw : hypothesis draw function
    min_rows, max_rows : row count bounds before duplicates are injected
    min_cols, max_cols : column count bounds

    Returns
    -------
    Dataset with a realistic mix of data quality issues.
    """
    n_rows = draw(st.integers(min_value=min_rows, max_value=max_rows))
    n_cols = draw(st.integers(min_value=min_cols, max_value=max_cols))
    columns = [f"col_{i}" for i in range(n_cols)]

    rows: list[dict] = []
    for _ in range(n_rows):
        row = {}
        for col in columns:
            # Occasionally leave the key out altogether.
            if draw(st.integers(min_value=0, max_value=19)) == 0:
                continue
            row[col] = draw(raw_cells)
        rows.append(row)

    if rows and draw(st.booleans()):
        n_dupes = draw(st.integers(min_value=1, max_value=max(1, n_rows // 3)))
        for _ in range(n_dupes):
            rows.append(dict(rows[draw(st.integers(min_value=0, max_value=len(rows) - 1))]))

    return Dataset.from_records(rows, columns=columns)


@st.composite
def numeric_datasets(draw: st.DrawFn, min_rows: int = 0, max_rows: int = 40) -> Dataset:
    """Two numeric columns with sprinkled missing cells."""
    n_rows = draw(st.integers(min_value=min_rows, max_value=max_rows))
    cell = st.one_of(finite_floats(-1e4, 1e4), st.none())
    rows = [{"x": draw(cell), "y": draw(cell)} for _ in range(n_rows)]
    return Dataset.from_records(rows, columns=["x", "y"])


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sales_dataset() -> Dataset:
    """Small mixed-type dataset with one missing cell and one duplicate row."""
    return Dataset.from_records(
        [
            {"region": "north", "units": "10", "price": "2.5", "sold_on": "2024-01-05"},
            {"region": "south", "units": "12", "price": "2.7", "sold_on": "2024-01-09"},
            {"region": "north", "units": "9", "price": "", "sold_on": "2024-02-01"},
            {"region": "east", "units": "15", "price": "3.1", "sold_on": "2024-02-11"},
            {"region": "south", "units": "11", "price": "2.6", "sold_on": "2024-03-02"},
            {"region": "south", "units": "11", "price": "2.6", "sold_on": "2024-03-02"},
        ]
    )


@pytest.fixture
def tmp_dir(tmp_path):
    """Alias of pytest's tmp_path kept for file-writing tests."""
    return tmp_path
