# ruff: noqa: I001
"""Alembic environment for the expense ledger schema.

The target URL is ``DATABASE_URL`` (a ``.env`` found from the working
directory is honored) with ``sqlalchemy.url`` in alembic.ini as a fallback.
SQLite targets run in batch mode so ALTERs are emulated by table copies.
"""

from __future__ import annotations

import logging
import os
from logging.config import fileConfig

from alembic import context
from dotenv import find_dotenv, load_dotenv
from sqlalchemy import pool
from sqlalchemy.engine import create_engine, make_url

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

_dotenv = find_dotenv(usecwd=True)
if _dotenv:
    load_dotenv(dotenv_path=_dotenv, override=False)

from db import metadata as target_metadata  # noqa: E402
from db.client import resolve_database_url  # noqa: E402

logger = logging.getLogger("alembic.env")

DB_URL = resolve_database_url(os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url"))
# Alembic reads the option back when rendering offline scripts.
config.set_main_option("sqlalchemy.url", DB_URL.replace("%", "%%"))

_OPTIONS = {
    "target_metadata": target_metadata,
    "compare_type": True,
    "render_as_batch": make_url(DB_URL).get_backend_name() == "sqlite",
}


def run_migrations_offline() -> None:
    context.configure(url=DB_URL, literal_binds=True, **_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(DB_URL, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **_OPTIONS)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    logger.info("migrations:offline url=%s", make_url(DB_URL).render_as_string(hide_password=True))
    run_migrations_offline()
else:
    run_migrations_online()
