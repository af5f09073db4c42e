"""Engine and session helpers for the expense ledger database.

Engines are cached per URL, so a store bound to an explicit ``database_url``
and code relying on ``DATABASE_URL`` can coexist in one process. Each call to
:func:`session_scope` is one transaction.

Usage
-----
from db.client import session_scope

with session_scope(database_url=url) as s:
    s.add(...)
"""

from __future__ import annotations

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

_LOCK = threading.Lock()
_ENGINES: dict[str, tuple[Engine, sessionmaker[Session]]] = {}


def resolve_database_url(override: str | None = None) -> str:
    """Return ``override`` or ``DATABASE_URL``; raise when neither is set."""

    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot initialize database client")
    return url


def _create_engine(url: str) -> Engine:
    if make_url(url).get_backend_name() == "sqlite":
        # SQLite connections must be usable from the thread that opens a session.
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


def _entry(database_url: str | None) -> tuple[Engine, sessionmaker[Session]]:
    url = resolve_database_url(database_url)
    with _LOCK:
        entry = _ENGINES.get(url)
        if entry is None:
            engine = _create_engine(url)
            entry = (engine, sessionmaker(bind=engine, expire_on_commit=False))
            _ENGINES[url] = entry
        return entry


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the cached engine for ``database_url`` (or ``DATABASE_URL``)."""

    return _entry(database_url)[0]


def dispose_engine() -> None:
    """Dispose every cached engine; the next call creates fresh ones."""

    with _LOCK:
        entries = list(_ENGINES.values())
        _ENGINES.clear()
    for engine, _ in entries:
        engine.dispose()


def get_session(*, database_url: str | None = None) -> Session:
    return _entry(database_url)[1]()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Commit once when the block succeeds; roll back and re-raise otherwise."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "dispose_engine",
    "get_engine",
    "get_session",
    "resolve_database_url",
    "session_scope",
]
