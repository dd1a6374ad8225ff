"""
sync/store.py

Storage collaborator read and written by the cross-entity sync engine.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import date
from typing import Iterable

from app.domain.metrics import MetricRecord
from app.domain.sync import (
    AttendanceEntry,
    CoachingSession,
    LeaveRecord,
    LeaveStatus,
)


class SyncStore(ABC):
    """
    Keyed query/update operations the sync rules depend on.
    """

    @abstractmethod
    def list_sessions(
        self,
        agent_id: int,
        *,
        statuses: Iterable[str] | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[CoachingSession]:
        """Sessions for one agent, optionally filtered by status and inclusive date range."""
        raise NotImplementedError

    @abstractmethod
    def save_session(self, session: CoachingSession) -> CoachingSession:
        raise NotImplementedError

    @abstractmethod
    def get_metric(self, agent_id: int, day: date) -> MetricRecord | None:
        raise NotImplementedError

    @abstractmethod
    def upsert_attendance(self, entry: AttendanceEntry) -> bool:
        """
        Write one attendance row keyed by (agent_id, day). Return True when anything changed.

        A day already owned by a different writer (manual entry or another leave) is
        never taken over.
        """
        raise NotImplementedError

    @abstractmethod
    def delete_attendance_for_leave(self, leave_id: int) -> int:
        """Delete attendance rows synthesized by one leave. Return the number removed."""
        raise NotImplementedError

    @abstractmethod
    def list_approved_leave(self, agent_id: int) -> list[LeaveRecord]:
        raise NotImplementedError


class InMemorySyncStore(SyncStore):
    """
    Dict-backed store for tests and database-less processes.
    """

    def __init__(
        self,
        *,
        sessions: Iterable[CoachingSession] = (),
        metrics: Iterable[MetricRecord] = (),
        leave: Iterable[LeaveRecord] = (),
    ) -> None:
        self._lock = threading.Lock()
        self.sessions: dict[int, CoachingSession] = {session.id: session for session in sessions}
        self.metrics: dict[tuple[int, date], MetricRecord] = {record.key: record for record in metrics}
        self.leave: dict[int, LeaveRecord] = {record.id: record for record in leave}
        self.attendance: dict[tuple[int, date], AttendanceEntry] = {}

    def list_sessions(
        self,
        agent_id: int,
        *,
        statuses: Iterable[str] | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[CoachingSession]:
        wanted = set(statuses) if statuses is not None else None
        with self._lock:
            found = [
                session
                for session in self.sessions.values()
                if session.agent_id == agent_id
                and (wanted is None or session.status in wanted)
                and (start is None or session.scheduled_date >= start)
                and (end is None or session.scheduled_date <= end)
            ]
        return sorted(found, key=lambda item: (item.scheduled_date, item.id))

    def save_session(self, session: CoachingSession) -> CoachingSession:
        with self._lock:
            self.sessions[session.id] = session
        return session

    def get_metric(self, agent_id: int, day: date) -> MetricRecord | None:
        with self._lock:
            return self.metrics.get((agent_id, day))

    def upsert_attendance(self, entry: AttendanceEntry) -> bool:
        key = (entry.agent_id, entry.day)
        with self._lock:
            current = self.attendance.get(key)
            if current is not None and (current == entry or current.leave_id != entry.leave_id):
                return False
            self.attendance[key] = entry
            return True

    def delete_attendance_for_leave(self, leave_id: int) -> int:
        with self._lock:
            keys = [key for key, entry in self.attendance.items() if entry.leave_id == leave_id]
            for key in keys:
                del self.attendance[key]
            return len(keys)

    def list_approved_leave(self, agent_id: int) -> list[LeaveRecord]:
        with self._lock:
            found = [
                record
                for record in self.leave.values()
                if record.agent_id == agent_id and record.status == LeaveStatus.APPROVED
            ]
        return sorted(found, key=lambda item: (item.start_date, item.id))

    def set_leave_status(self, leave_id: int, status: str) -> LeaveRecord:
        with self._lock:
            record = replace(self.leave[leave_id], status=status)
            self.leave[leave_id] = record
            return record
