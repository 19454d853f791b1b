from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from simpledb.database import DatabaseConfig, SimpleDb

BASE_TIME = datetime(2024, 1, 1, 9, 30, 0)
SEED_ROWS = 6


@pytest.fixture(autouse=True)
def app_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Forces test mode and clears any SIMPLEDB_* settings from the real environment.
    Automatically applied to all tests.
    """
    monkeypatch.setenv("APP_ENV", "test")
    for name in ("DRIVER", "HOST", "PORT", "USER", "PASSWORD", "DB", "DEV_MODE", "LOG_LEVEL"):
        monkeypatch.delenv(f"SIMPLEDB_{name}", raising=False)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """
    A dedicated temp root directory for each test.
    All filesystem writes in tests should be under this root (or tmp_path directly).
    """
    root = tmp_path / "proj"
    (root / "data" / "out").mkdir(parents=True)
    return root


@pytest.fixture(autouse=True)
def chdir_to_project_root(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Automatically change working directory to project_root for all tests.
    This ensures relative-path operations go into the temp directory by default.
    """
    monkeypatch.chdir(project_root)


@pytest.fixture
def sqlite_path(project_root: Path) -> Path:
    """
    On-disk SQLite DB under the temp project root (more realistic than :memory:).
    """
    return project_root / "data" / "out" / "test.sqlite"


@pytest.fixture
def mysql_db() -> SimpleDb:
    """A MySQL-configured manager. Never connects unless a test makes it."""
    return SimpleDb("localhost", "root", "secret", "simpledb_test")


@pytest.fixture
def db(sqlite_path: Path, project_root: Path) -> Iterator[SimpleDb]:
    """
    A SQLite-backed manager with a seeded ``article`` table.

    Rows 1..6 have title "title N", body "body N", created_at/modified_at
    BASE_TIME + N days, and is_blind false for odd ids, true for even ids.
    Any transaction left open by a test is rolled back afterwards.
    """
    try:
        sqlite_path.resolve().relative_to(project_root.resolve())
    except ValueError:
        raise AssertionError(
            f"SQLite path {sqlite_path} is not under project_root {project_root}. "
            "This prevents accidental writes to real databases."
        )

    simple_db = SimpleDb.from_config(DatabaseConfig.sqlite(sqlite_path), dev_mode=False)
    simple_db.run(
        """
        CREATE TABLE article (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            body TEXT NOT NULL,
            created_at DATETIME NOT NULL,
            modified_at DATETIME NOT NULL,
            is_blind BOOLEAN NOT NULL DEFAULT 0
        )
        """
    )
    for n in range(1, SEED_ROWS + 1):
        when = BASE_TIME + timedelta(days=n)
        simple_db.run(
            "INSERT INTO article (title, body, created_at, modified_at, is_blind) "
            "VALUES (?, ?, ?, ?, ?)",
            f"title {n}",
            f"body {n}",
            when,
            when,
            n % 2 == 0,
        )
    with simple_db:
        yield simple_db
