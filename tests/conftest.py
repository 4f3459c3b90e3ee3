"""Shared test configuration and fixtures."""

import pytest

from tablestyle import Table
from tablestyle.config import FOOTNOTE_MARKS_ENV, OPTIONS_FILE_ENV


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep a developer's .env overrides out of the built-in defaults under test."""
    monkeypatch.delenv(OPTIONS_FILE_ENV, raising=False)
    monkeypatch.delenv(FOOTNOTE_MARKS_ENV, raising=False)


@pytest.fixture
def num_table() -> Table:
    """Three rows, columns {num, currency}, no stub or groups."""
    return Table.from_records(
        [
            {"num": 100, "currency": 1.5},
            {"num": 6000, "currency": 20.0},
            {"num": 50, "currency": 300.25},
        ]
    )


@pytest.fixture
def grouped_table() -> Table:
    """Stub column 'name', group column 'grp'; display order is r1, r3 (g1) then r2 (g2)."""
    return Table.from_records(
        [
            {"name": "r1", "grp": "g1", "a": 1, "b": 10, "c_pct": 0.1},
            {"name": "r2", "grp": "g2", "a": 2, "b": 20, "c_pct": 0.2},
            {"name": "r3", "grp": "g1", "a": 3, "b": 30, "c_pct": 0.3},
        ],
        rowname_col="name",
        groupname_col="grp",
    )
