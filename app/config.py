"""
app/config.py

Environment-driven settings for matching, ingestion, classification, merge, and sync.

Every getter is cached; tests that change the environment call ``cache_clear()``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, TypeVar

from db.config import load_env_files

T = TypeVar("T")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()


def _raw_env(name: str) -> str | None:
    """
    Stripped value of ``name``; None when unset or blank.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parsed_env(name: str, default: T, parse: Callable[[str], T]) -> T:
    raw_value = _raw_env(name)
    if raw_value is None:
        return default
    try:
        return parse(raw_value)
    except ValueError:
        return default


def _get_bool_env(name: str, default: bool) -> bool:
    return _parsed_env(name, default, lambda raw: raw.lower() in _TRUE_VALUES)


def _get_int_env(name: str, default: int) -> int:
    return _parsed_env(name, default, int)


def _get_float_env(name: str, default: float) -> float:
    return _parsed_env(name, default, float)


def _get_str_env(name: str, default: str) -> str:
    return _raw_env(name) or default


@dataclass(frozen=True)
class MatchingSettings:
    """
    Thresholds for agent name resolution.
    """

    max_distance: int = 2
    accept_confidence: int = 70
    suggestion_limit: int = 3
    batch_workers: int = 4


@dataclass(frozen=True)
class IngestionSettings:
    """
    Runtime settings for report ingestion.
    """

    sample_rows: int = 5
    max_row_errors: int = 500
    log_row_errors: bool = True


@dataclass(frozen=True)
class ClassifierSettings:
    """
    Remote report classifier settings. ``adapter="none"`` disables the remote call.
    """

    adapter: str = "openai"
    model: str = "gpt-4o-mini"
    max_tokens: int = 2000
    api_key: str | None = None
    base_url: str | None = None
    timeout_seconds: float = 20.0
    json_mode: bool = True


@dataclass(frozen=True)
class MergeSettings:
    """
    Metric merge retry policy.
    """

    max_attempts: int = 3


@dataclass(frozen=True)
class SyncSettings:
    """
    Windows and thresholds used by the cross-entity sync rules.
    """

    low_audit_threshold: float = 70.0
    audit_lookback_days: int = 7
    effectiveness_window_days: int = 30
    baseline_offset_days: int = 7
    effective_threshold: float = 10.0
    availability_horizon_days: int = 14


@lru_cache(maxsize=1)
def get_matching_settings() -> MatchingSettings:
    """
    Return cached name matching settings from environment variables.
    """

    return MatchingSettings(
        max_distance=max(0, _get_int_env("MATCH_MAX_DISTANCE", 2)),
        accept_confidence=min(100, max(0, _get_int_env("MATCH_ACCEPT_CONFIDENCE", 70))),
        suggestion_limit=max(1, _get_int_env("MATCH_SUGGESTION_LIMIT", 3)),
        batch_workers=max(1, _get_int_env("MATCH_BATCH_WORKERS", 4)),
    )


@lru_cache(maxsize=1)
def get_ingestion_settings() -> IngestionSettings:
    """
    Return cached ingestion settings from environment variables.
    """

    return IngestionSettings(
        sample_rows=max(1, _get_int_env("INGEST_SAMPLE_ROWS", 5)),
        max_row_errors=max(1, _get_int_env("INGEST_MAX_ROW_ERRORS", 500)),
        log_row_errors=_get_bool_env("INGEST_LOG_ROW_ERRORS", True),
    )


@lru_cache(maxsize=1)
def get_classifier_settings() -> ClassifierSettings:
    """
    Return cached remote classifier settings from environment variables.
    """

    return ClassifierSettings(
        adapter=_get_str_env("CLASSIFIER_ADAPTER", "openai").lower(),
        model=_get_str_env("CLASSIFIER_MODEL", "gpt-4o-mini"),
        max_tokens=max(256, _get_int_env("CLASSIFIER_MAX_TOKENS", 2000)),
        api_key=_raw_env("LLM_API_KEY") or _raw_env("OPENAI_API_KEY"),
        base_url=_raw_env("LLM_BASE_URL"),
        timeout_seconds=max(1.0, _get_float_env("CLASSIFIER_TIMEOUT_SECONDS", 20.0)),
        json_mode=_get_bool_env("CLASSIFIER_JSON_MODE", True),
    )


@lru_cache(maxsize=1)
def get_merge_settings() -> MergeSettings:
    """
    Return cached merge settings from environment variables.
    """

    return MergeSettings(
        max_attempts=max(1, _get_int_env("MERGE_MAX_ATTEMPTS", 3)),
    )


@lru_cache(maxsize=1)
def get_sync_settings() -> SyncSettings:
    """
    Return cached sync rule settings from environment variables.
    """

    return SyncSettings(
        low_audit_threshold=_get_float_env("SYNC_LOW_AUDIT_THRESHOLD", 70.0),
        audit_lookback_days=max(0, _get_int_env("SYNC_AUDIT_LOOKBACK_DAYS", 7)),
        effectiveness_window_days=max(0, _get_int_env("SYNC_EFFECTIVENESS_WINDOW_DAYS", 30)),
        baseline_offset_days=max(1, _get_int_env("SYNC_BASELINE_OFFSET_DAYS", 7)),
        effective_threshold=_get_float_env("SYNC_EFFECTIVE_THRESHOLD", 10.0),
        availability_horizon_days=max(0, _get_int_env("SYNC_AVAILABILITY_HORIZON_DAYS", 14)),
    )
