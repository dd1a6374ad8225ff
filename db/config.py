"""
db/config.py

Database URL resolution shared by the API, the session factory, and Alembic.

Settings come from the process environment, topped up from ``.env`` and
``.env.local`` at the project root. Lookup order for the KPI store:

    DATABASE_URL
    CLOUD_DATABASE_URL   (only when ENVIRONMENT is prod/production/staging/cloud)
    LOCAL_DATABASE_URL
"""

from __future__ import annotations

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES: tuple[str, ...] = (".env", ".env.local")
CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})
PSYCOPG_SCHEME = "postgresql+psycopg://"


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None
    if line.startswith("export "):
        line = line[len("export "):]

    key, separator, value = line.partition("=")
    key = key.strip()
    if not separator or not key:
        return None

    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    return key, value


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    """
    Fill unset environment variables from the env files under ``root``.

    Variables already present in the process environment are never replaced.
    """

    for path in (root / name for name in ENV_FILES):
        if not path.is_file():
            continue
        for raw_line in path.read_text(encoding="utf-8-sig").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def normalize_postgres_url(url: str) -> str:
    scheme, separator, rest = url.partition("://")
    if separator and scheme in {"postgres", "postgresql"}:
        return PSYCOPG_SCHEME + rest
    return url


def _database_url_variables() -> list[str]:
    names = ["DATABASE_URL"]
    if os.getenv("ENVIRONMENT", "local").strip().lower() in CLOUD_ENVIRONMENTS:
        names.append("CLOUD_DATABASE_URL")
    names.append("LOCAL_DATABASE_URL")
    return names


def resolve_database_url() -> str:
    load_env_files()

    names = _database_url_variables()
    for name in names:
        value = (os.getenv(name) or "").strip()
        if value:
            return normalize_postgres_url(value)

    raise RuntimeError(f"No database URL configured; set one of: {', '.join(names)}.")
