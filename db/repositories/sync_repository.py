"""
db/repositories/sync_repository.py

PostgreSQL-backed SyncStore plus the leave and audit lookups used by the sync service.
Never commits; the service owns transaction boundaries.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from sqlalchemy import Select, delete, select
from sqlalchemy.orm import Session

from app.domain.metrics import MetricRecord
from app.domain.sync import (
    AttendanceEntry,
    AuditResult,
    CoachingSession,
    LeaveRecord,
    LeaveStatus,
)
from db.models.agent_attendance import AgentAttendance
from db.models.coaching_session import CoachingSessionRecord
from db.models.leave_request import LeaveRequest
from db.models.quality_audit import QualityAudit
from db.repositories.daily_kpi_repository import DailyKPIRepository
from sync.store import SyncStore


class SyncRepository(SyncStore):
    def __init__(self, session: Session) -> None:
        self._session = session
        self._metrics = DailyKPIRepository(session)

    # ------------------------------------------------------------------
    # SyncStore
    # ------------------------------------------------------------------

    def list_sessions(
        self,
        agent_id: int,
        *,
        statuses: Iterable[str] | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[CoachingSession]:
        stmt: Select[tuple[CoachingSessionRecord]] = select(CoachingSessionRecord).where(
            CoachingSessionRecord.agent_id == agent_id
        )
        if statuses is not None:
            stmt = stmt.where(CoachingSessionRecord.status.in_(list(statuses)))
        if start is not None:
            stmt = stmt.where(CoachingSessionRecord.scheduled_date >= start)
        if end is not None:
            stmt = stmt.where(CoachingSessionRecord.scheduled_date <= end)
        stmt = stmt.order_by(CoachingSessionRecord.scheduled_date.asc(), CoachingSessionRecord.id.asc())
        return [_to_session(row) for row in self._session.scalars(stmt).all()]

    def save_session(self, session: CoachingSession) -> CoachingSession:
        row = self._session.get(CoachingSessionRecord, session.id)
        if row is None:
            row = CoachingSessionRecord(id=session.id, agent_id=session.agent_id)
            self._session.add(row)
        row.scheduled_date = session.scheduled_date
        row.status = session.status
        row.effectiveness = session.effectiveness
        self._session.flush()
        return _to_session(row)

    def get_metric(self, agent_id: int, day: date) -> MetricRecord | None:
        return self._metrics.get(agent_id, day)

    def upsert_attendance(self, entry: AttendanceEntry) -> bool:
        stmt = select(AgentAttendance).where(
            AgentAttendance.agent_id == entry.agent_id,
            AgentAttendance.day == entry.day,
        )
        row = self._session.scalars(stmt).one_or_none()
        if row is None:
            self._session.add(
                AgentAttendance(
                    agent_id=entry.agent_id,
                    day=entry.day,
                    status=entry.status,
                    leave_id=entry.leave_id,
                )
            )
            self._session.flush()
            return True
        if row.leave_id != entry.leave_id or row.status == entry.status:
            return False
        row.status = entry.status
        self._session.flush()
        return True

    def delete_attendance_for_leave(self, leave_id: int) -> int:
        result = self._session.execute(
            delete(AgentAttendance).where(AgentAttendance.leave_id == leave_id)
        )
        self._session.flush()
        return int(result.rowcount or 0)

    def list_approved_leave(self, agent_id: int) -> list[LeaveRecord]:
        stmt = (
            select(LeaveRequest)
            .where(LeaveRequest.agent_id == agent_id, LeaveRequest.status == LeaveStatus.APPROVED)
            .order_by(LeaveRequest.start_date.asc(), LeaveRequest.id.asc())
        )
        return [to_leave_record(row) for row in self._session.scalars(stmt).all()]

    # ------------------------------------------------------------------
    # Entity lookups
    # ------------------------------------------------------------------

    def get_leave(self, leave_id: int) -> LeaveRequest | None:
        return self._session.get(LeaveRequest, leave_id)

    def get_audit(self, audit_id: int) -> AuditResult | None:
        row = self._session.get(QualityAudit, audit_id)
        if row is None:
            return None
        return AuditResult(id=row.id, agent_id=row.agent_id, day=row.audit_date, score=row.score)


def to_leave_record(row: LeaveRequest) -> LeaveRecord:
    return LeaveRecord(
        id=row.id,
        agent_id=row.agent_id,
        start_date=row.start_date,
        end_date=row.end_date,
        status=row.status,
        leave_type=row.leave_type,
    )


def _to_session(row: CoachingSessionRecord) -> CoachingSession:
    return CoachingSession(
        id=row.id,
        agent_id=row.agent_id,
        scheduled_date=row.scheduled_date,
        status=row.status,
        effectiveness=row.effectiveness,
    )
