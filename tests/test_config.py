"""
tests/test_config.py

Environment-driven settings and database URL resolution.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from app.config import (
    get_classifier_settings,
    get_matching_settings,
    get_sync_settings,
)
from db.config import load_env_files, normalize_postgres_url, resolve_database_url


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    for factory in (get_matching_settings, get_classifier_settings, get_sync_settings):
        factory.cache_clear()
    yield
    for factory in (get_matching_settings, get_classifier_settings, get_sync_settings):
        factory.cache_clear()


def test_matching_settings_are_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MATCH_ACCEPT_CONFIDENCE", "250")
    monkeypatch.setenv("MATCH_MAX_DISTANCE", "-3")
    monkeypatch.setenv("MATCH_BATCH_WORKERS", "not-a-number")

    settings = get_matching_settings()

    assert settings.accept_confidence == 100
    assert settings.max_distance == 0
    assert settings.batch_workers == 4


def test_classifier_settings_prefer_generic_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLASSIFIER_ADAPTER", " NONE ")
    monkeypatch.setenv("LLM_API_KEY", "generic")
    monkeypatch.setenv("OPENAI_API_KEY", "vendor")

    settings = get_classifier_settings()

    assert settings.adapter == "none"
    assert settings.api_key == "generic"


def test_sync_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SYNC_LOW_AUDIT_THRESHOLD", "75.5")
    monkeypatch.setenv("SYNC_BASELINE_OFFSET_DAYS", "0")

    settings = get_sync_settings()

    assert settings.low_audit_threshold == 75.5
    assert settings.baseline_offset_days == 1
    assert settings.effectiveness_window_days == 30


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("postgres://u:p@db/kpis", "postgresql+psycopg://u:p@db/kpis"),
        ("postgresql://u:p@db/kpis", "postgresql+psycopg://u:p@db/kpis"),
        ("postgresql+psycopg://u:p@db/kpis", "postgresql+psycopg://u:p@db/kpis"),
    ],
)
def test_normalize_postgres_url(url: str, expected: str) -> None:
    assert normalize_postgres_url(url) == expected


def test_database_url_priority(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("CLOUD_DATABASE_URL", "postgres://cloud/kpis")
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgres://local/kpis")

    assert resolve_database_url() == "postgresql+psycopg://cloud/kpis"

    monkeypatch.setenv("DATABASE_URL", "postgresql://primary/kpis")
    assert resolve_database_url() == "postgresql+psycopg://primary/kpis"


def test_missing_database_url_names_checked_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("db.config.load_env_files", lambda root=None: None)
    for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "local")

    with pytest.raises(RuntimeError, match="set one of: DATABASE_URL, LOCAL_DATABASE_URL"):
        resolve_database_url()


def test_env_files_fill_only_unset_variables(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "# comment\n"
        "export REPORTS_TEST_EXPORTED=from-file\n"
        "REPORTS_TEST_QUOTED=\"a=b c\"\n"
        "REPORTS_TEST_PRESET=from-file\n"
        "not a setting\n",
        encoding="utf-8",
    )
    (tmp_path / ".env.local").write_text("REPORTS_TEST_EXPORTED=from-local\n", encoding="utf-8")
    for name in ("REPORTS_TEST_EXPORTED", "REPORTS_TEST_QUOTED"):
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    monkeypatch.setenv("REPORTS_TEST_PRESET", "from-process")

    load_env_files(tmp_path)

    assert os.environ["REPORTS_TEST_EXPORTED"] == "from-file"
    assert os.environ["REPORTS_TEST_QUOTED"] == "a=b c"
    assert os.environ["REPORTS_TEST_PRESET"] == "from-process"
