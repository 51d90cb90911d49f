"""Shared pytest fixtures for post-compute data quality tests."""

import sqlite3
from pathlib import Path

import pytest

from post_compute_dq.config import ConnectionConfig
from post_compute_dq.connection import ConnectionProvider


FEATURE_ROWS = [
    (1, 10, 20, 1, 11, "AC001"),
    (2, 30, 25, 5, 15, "AC002"),
    (3, 50, 40, 9, 3, None),
    (4, 60, 70, 2, 12, "AC004"),
]


@pytest.fixture
def feature_db(tmp_path: Path) -> Path:
    """SQLite database with two seq_start > seq_end rows and one hstart > hend row."""
    db_path = tmp_path / "compute.db"
    conn = sqlite3.connect(db_path)
    conn.execute(
        "CREATE TABLE feature ("
        "feature_id INTEGER PRIMARY KEY, seq_start INTEGER, seq_end INTEGER, "
        "hstart INTEGER, hend INTEGER, hid TEXT)"
    )
    conn.executemany("INSERT INTO feature VALUES (?, ?, ?, ?, ?, ?)", FEATURE_ROWS)
    conn.execute("CREATE TABLE analysis (analysis_id INTEGER PRIMARY KEY, logic_name TEXT)")
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def empty_db(tmp_path: Path) -> Path:
    """SQLite database without any tables."""
    db_path = tmp_path / "empty.db"
    sqlite3.connect(db_path).close()
    return db_path


@pytest.fixture
def sqlite_provider(feature_db: Path) -> ConnectionProvider:
    return ConnectionProvider(ConnectionConfig(driver="sqlite", database=str(feature_db)))


@pytest.fixture
def make_sqlite_provider():
    """Factory building a ConnectionProvider for any SQLite database file."""

    def _make(db_path: Path) -> ConnectionProvider:
        return ConnectionProvider(ConnectionConfig(driver="sqlite", database=str(db_path)))

    return _make
