"""
db/repositories/daily_kpi_repository.py

PostgreSQL-backed MetricStore for DailyKPI rows.

The caller controls commit/rollback; this repository only flushes. Inserts run
inside a savepoint so a unique-constraint collision can be retried without
discarding the caller's outer transaction.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.metrics import METRIC_FIELDS, MetricRecord
from app.errors import ConflictError
from db.models.daily_kpi import DailyKPI
from metrics.store import MetricStore


class DailyKPIRepository(MetricStore):
    """
    With ``lock_rows=True`` reads take a row lock (SELECT ... FOR UPDATE) held
    until the caller commits, so concurrent merges of one key serialize.
    """

    def __init__(self, session: Session, *, lock_rows: bool = False) -> None:
        self._session = session
        self._lock_rows = lock_rows

    def get(self, agent_id: int, day: date) -> MetricRecord | None:
        row = self._get_row(agent_id, day)
        return _to_record(row) if row is not None else None

    def insert(self, record: MetricRecord) -> MetricRecord:
        row = DailyKPI(agent_id=record.agent_id, day=record.day, **record.fields())
        try:
            with self._session.begin_nested():
                self._session.add(row)
                self._session.flush()
        except IntegrityError as exc:
            raise ConflictError(agent_id=record.agent_id, day=record.day) from exc
        return _to_record(row)

    def update(self, record: MetricRecord) -> MetricRecord:
        row = self._get_row(record.agent_id, record.day)
        if row is None:
            return self.insert(record)
        for name, value in record.fields().items():
            setattr(row, name, value)
        self._session.flush()
        return _to_record(row)

    def list_for_agent(
        self,
        agent_id: int,
        *,
        start: date | None = None,
        end: date | None = None,
    ) -> list[MetricRecord]:
        stmt = select(DailyKPI).where(DailyKPI.agent_id == agent_id)
        if start is not None:
            stmt = stmt.where(DailyKPI.day >= start)
        if end is not None:
            stmt = stmt.where(DailyKPI.day <= end)
        stmt = stmt.order_by(DailyKPI.day.asc())
        return [_to_record(row) for row in self._session.scalars(stmt).all()]

    def _get_row(self, agent_id: int, day: date) -> DailyKPI | None:
        stmt = select(DailyKPI).where(DailyKPI.agent_id == agent_id, DailyKPI.day == day)
        if self._lock_rows:
            stmt = stmt.with_for_update()
        return self._session.scalars(stmt).one_or_none()


def _to_record(row: DailyKPI) -> MetricRecord:
    return MetricRecord(
        agent_id=row.agent_id,
        day=row.day,
        **{name: getattr(row, name) for name in METRIC_FIELDS},
    )
