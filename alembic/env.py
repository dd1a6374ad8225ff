"""
alembic/env.py

Migration environment for the report core tables (PostgreSQL only).
"""

from __future__ import annotations

import os
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import create_engine, pool

import db.models  # noqa: F401  - registers every table on Base.metadata
from db.base import Base
from db.config import normalize_postgres_url, resolve_database_url

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

COMPARE_OPTIONS: dict[str, Any] = {"compare_type": True, "compare_server_default": True}


def _migration_url() -> str:
    """
    Target database for this run.

    ``alembic -x db_url=...`` wins, then ALEMBIC_DATABASE_URL, then the
    application's own resolution (DATABASE_URL / CLOUD_DATABASE_URL /
    LOCAL_DATABASE_URL).
    """

    override = context.get_x_argument(as_dictionary=True).get("db_url") or os.getenv("ALEMBIC_DATABASE_URL")
    url = normalize_postgres_url(override.strip()) if override and override.strip() else resolve_database_url()
    if not url.startswith("postgresql"):
        raise RuntimeError(f"Migrations target PostgreSQL only, got {url.split(':', 1)[0]!r}.")
    return url


def run_migrations_offline() -> None:
    context.configure(
        url=_migration_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_migration_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, **COMPARE_OPTIONS)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
