"""Pytest configuration for test isolation.

``db.client`` caches one SQLAlchemy engine per URL for the whole process. To
keep tests hermetic, every test gets its own SQLite file, ``DATABASE_URL``
points at it, and the cached engines are disposed before and after the test.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the workspace packages importable without an editable install.
_ROOT = Path(__file__).resolve().parents[1]
_PATHS = [_ROOT / "packages", _ROOT / "libs" / "db" / "src", _ROOT]
sys.path[:0] = [str(p) for p in _PATHS if str(p) not in sys.path]

from db.client import dispose_engine  # noqa: E402

from tests.helpers.db import bootstrap_sqlite_db  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point ``DATABASE_URL`` at a per-test file and reset the engine singleton."""

    dispose_engine()
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{tmp_path / 'unbootstrapped.db'}")
    yield
    dispose_engine()


@pytest.fixture
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """A bootstrapped SQLite database with the expense schema."""

    url = bootstrap_sqlite_db(tmp_path / "ledger.db")
    monkeypatch.setenv("DATABASE_URL", url)
    return url
