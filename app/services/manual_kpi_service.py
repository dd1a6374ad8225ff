"""
app/services/manual_kpi_service.py

Manual (form-entered) KPI records, merged through the same engine as uploads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Mapping, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_merge_settings
from app.domain.metrics import MetricRecord
from app.errors import ConflictError
from app.services.sync_service import get_sync_service
from db.repositories.daily_kpi_repository import DailyKPIRepository
from ingestion.dates import parse_iso_date
from metrics.locks import KeyedLockRegistry
from metrics.merge import MetricMergeEngine

logger = logging.getLogger(__name__)

_IDENTITY_KEYS = frozenset({"agent_id", "date"})


@dataclass(frozen=True)
class ManualEntryResult:
    records_processed: int
    errors: list[str] = field(default_factory=list)
    merged: list[MetricRecord] = field(default_factory=list)


def merge_manual_records(
    records: Sequence[Mapping[str, Any]],
    merge_engine: MetricMergeEngine,
) -> ManualEntryResult:
    """
    Merge each record independently; one bad record never blocks the others.

    Every record needs ``agent_id`` and ``date``; the remaining keys are metric
    fields by short or full name.
    """

    errors: list[str] = []
    merged: list[MetricRecord] = []

    for position, record in enumerate(records, start=1):
        label = f"Record {position}"
        agent_id = record.get("agent_id")
        if not isinstance(agent_id, int) or isinstance(agent_id, bool):
            errors.append(f"{label}: agent_id is required.")
            continue
        day = parse_iso_date(record.get("date"))
        if day is None:
            errors.append(f"{label}: date is required in YYYY-MM-DD format.")
            continue

        fields = {key: value for key, value in record.items() if key not in _IDENTITY_KEYS}
        if all(value is None for value in fields.values()):
            errors.append(f"{label}: at least one metric value is required.")
            continue

        try:
            result = merge_engine.merge(agent_id, day, fields)
        except ConflictError as exc:
            errors.append(f"{label}: {exc}")
            continue

        errors.extend(f"{label}: {rejection.message}" for rejection in result.rejections)
        if result.applied_fields:
            merged.append(result.record)

    return ManualEntryResult(records_processed=len(merged), errors=errors, merged=merged)


class ManualKPIService:
    def __init__(self, *, merge_max_attempts: int = 3) -> None:
        self._merge_max_attempts = max(1, merge_max_attempts)
        self._locks = KeyedLockRegistry()

    def submit(self, *, db: Session, records: Sequence[Mapping[str, Any]]) -> ManualEntryResult:
        engine = MetricMergeEngine(
            DailyKPIRepository(db, lock_rows=True),
            max_attempts=self._merge_max_attempts,
            locks=self._locks,
        )
        try:
            result = merge_manual_records(records, engine)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        logger.info(
            "Manual KPI entry records=%d processed=%d errors=%d",
            len(records),
            result.records_processed,
            len(result.errors),
        )

        if result.merged:
            get_sync_service().observe_merged(db=db, records=result.merged)

        return result


@lru_cache(maxsize=1)
def get_manual_kpi_service() -> ManualKPIService:
    return ManualKPIService(merge_max_attempts=get_merge_settings().max_attempts)
