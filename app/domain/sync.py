"""
app/domain/sync.py

Leave, coaching, audit, and attendance models read and written by the sync engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta


class LeaveStatus:
    REQUESTED = "requested"
    APPROVED = "approved"
    DECLINED = "declined"


class LeaveType:
    FULL_DAY = "full-day"
    HALF_DAY = "half-day"
    SICK = "sick"
    PERSONAL = "personal"
    VACATION = "vacation"


class CoachingStatus:
    SCHEDULED = "scheduled"
    NEEDS_RESCHEDULE = "needs_reschedule"
    COMPLETED = "completed"
    FOLLOW_UP_NEEDED = "follow_up_needed"
    CANCELLED = "cancelled"


class Effectiveness:
    UNSET = "unset"
    EFFECTIVE = "effective"
    NEEDS_FOLLOW_UP = "needs_follow_up"


class AttendanceStatus:
    ACTIVE = "active"
    SICK = "sick"
    HOLIDAY = "holiday"


@dataclass(frozen=True)
class LeaveRecord:
    id: int
    agent_id: int
    start_date: date
    end_date: date
    status: str = LeaveStatus.REQUESTED
    leave_type: str = LeaveType.VACATION

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def days(self) -> list[date]:
        span = (self.end_date - self.start_date).days
        return [self.start_date + timedelta(days=offset) for offset in range(span + 1)]


@dataclass(frozen=True)
class CoachingSession:
    id: int
    agent_id: int
    scheduled_date: date
    status: str = CoachingStatus.SCHEDULED
    effectiveness: str = Effectiveness.UNSET


@dataclass(frozen=True)
class AuditResult:
    id: int
    agent_id: int
    day: date
    score: float


@dataclass(frozen=True)
class AttendanceEntry:
    """
    Attendance row; ``leave_id`` is set when a leave approval synthesized it.
    """

    agent_id: int
    day: date
    status: str
    leave_id: int | None = None


@dataclass(frozen=True)
class SyncOutcome:
    """
    Observability report of what one sync reaction changed.
    """

    trigger: str
    agent_id: int
    changed: int = 0
    reasons: list[str] = field(default_factory=list)
    session_ids: list[int] = field(default_factory=list)
    suggest_coaching: bool | None = None
    reason: str | None = None


@dataclass(frozen=True)
class ScheduledSessionView:
    session_id: int
    scheduled_date: date


@dataclass(frozen=True)
class Availability:
    """
    Read-only availability snapshot for scheduling.
    """

    agent_id: int
    on_leave: bool
    return_date: date | None
    leave_days: list[date] = field(default_factory=list)
    scheduled_sessions: list[ScheduledSessionView] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return not self.on_leave
