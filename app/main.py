"""
app/main.py

FastAPI application factory for the report ingestion API.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

logger = logging.getLogger(__name__)

CLASSIFIER_ADAPTERS: frozenset[str] = frozenset({"openai", "none"})
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _startup_problems() -> list[str]:
    """
    Collect every configuration problem so one restart can fix them all.
    """

    from db.config import load_env_files, resolve_database_url

    load_env_files()
    problems: list[str] = []

    try:
        resolve_database_url()
    except RuntimeError as exc:
        problems.append(str(exc))

    adapter = os.getenv("CLASSIFIER_ADAPTER", "openai").strip().lower()
    if adapter not in CLASSIFIER_ADAPTERS:
        problems.append(
            f"CLASSIFIER_ADAPTER={adapter!r} is not supported; use one of {sorted(CLASSIFIER_ADAPTERS)}."
        )
    elif adapter == "openai" and not (
        os.getenv("LLM_API_KEY", "").strip() or os.getenv("OPENAI_API_KEY", "").strip()
    ):
        problems.append(
            "Set LLM_API_KEY or OPENAI_API_KEY, or CLASSIFIER_ADAPTER=none "
            "to classify reports by keywords only."
        )

    return problems


def _validate_env() -> None:
    problems = _startup_problems()
    if problems:
        raise RuntimeError(
            "Startup configuration is invalid:\n" + "\n".join(f"  - {problem}" for problem in problems)
        )


def _configure_logging() -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


def _verify_database() -> None:
    """
    Fail fast when the database is unreachable or migrations have not been applied.

    Tables are never created here; ``alembic upgrade head`` owns the schema.
    """

    from sqlalchemy import inspect, text

    import db.models  # noqa: F401  - registers every table on Base.metadata
    from db.base import Base
    from db.session import get_engine

    engine = get_engine()
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            existing = set(inspect(connection).get_table_names())
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc

    missing = sorted(set(Base.metadata.tables) - existing)
    if missing:
        logger.critical("Missing tables %s; run 'alembic upgrade head' and restart", ", ".join(missing))
        raise RuntimeError(f"Database schema is behind the models; missing tables: {', '.join(missing)}.")
    logger.info("Database reachable and schema current (%d tables)", len(Base.metadata.tables))


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _verify_database()
    yield


def create_app(*, validate_env: bool = True, lifespan_checks: bool = True) -> FastAPI:
    """
    Build the API. Tests pass ``validate_env=False, lifespan_checks=False``.
    """

    if validate_env:
        _validate_env()
    _configure_logging()

    from app.api.routers import sync_router, upload_router

    application = FastAPI(
        title="Agent Performance Reports API",
        version="1.0.0",
        lifespan=_lifespan if lifespan_checks else None,
    )
    application.include_router(upload_router)
    application.include_router(sync_router)

    @application.get("/health", tags=["health"])
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
