"""
tests/test_sync_engine.py

Unit tests for cross-entity sync rules: leave vs. coaching and attendance,
audit-driven coaching suggestions, coaching effectiveness, and availability.

All tests use InMemorySyncStore and a fixed clock.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from app.config import SyncSettings
from app.domain.metrics import MetricRecord
from app.domain.sync import (
    AttendanceEntry,
    AttendanceStatus,
    AuditResult,
    CoachingSession,
    CoachingStatus,
    Effectiveness,
    LeaveRecord,
    LeaveStatus,
    LeaveType,
)
from sync.engine import (
    TRIGGER_AUDIT_SCORED,
    TRIGGER_LEAVE_APPROVED,
    TRIGGER_LEAVE_REVERSED,
    CrossEntitySyncEngine,
)
from sync.improvement import composite_improvement, field_improvements
from sync.store import InMemorySyncStore

AGENT = 7


def _engine(store: InMemorySyncStore, today: date, settings: SyncSettings | None = None) -> CrossEntitySyncEngine:
    return CrossEntitySyncEngine(store, settings=settings, clock=lambda: today)


def _leave(**overrides: object) -> LeaveRecord:
    values: dict[str, object] = {
        "id": 11,
        "agent_id": AGENT,
        "start_date": date(2025, 3, 8),
        "end_date": date(2025, 3, 12),
        "status": LeaveStatus.APPROVED,
        "leave_type": LeaveType.VACATION,
    }
    values.update(overrides)
    return LeaveRecord(**values)


# ---------------------------------------------------------------------------
# Leave approval and reversal
# ---------------------------------------------------------------------------


class TestLeaveSync:
    @pytest.fixture()
    def store(self) -> InMemorySyncStore:
        return InMemorySyncStore(
            sessions=[
                CoachingSession(id=1, agent_id=AGENT, scheduled_date=date(2025, 3, 10)),
                CoachingSession(id=2, agent_id=AGENT, scheduled_date=date(2025, 3, 20)),
                CoachingSession(
                    id=3,
                    agent_id=AGENT,
                    scheduled_date=date(2025, 3, 9),
                    status=CoachingStatus.COMPLETED,
                ),
                CoachingSession(id=4, agent_id=99, scheduled_date=date(2025, 3, 10)),
            ]
        )

    def test_approval_flags_overlapping_scheduled_sessions(self, store: InMemorySyncStore) -> None:
        outcome = _engine(store, date(2025, 3, 1)).on_leave_approved(_leave())

        assert outcome.trigger == TRIGGER_LEAVE_APPROVED
        assert outcome.changed == 1
        assert outcome.session_ids == [1]
        assert store.sessions[1].status == CoachingStatus.NEEDS_RESCHEDULE
        assert store.sessions[2].status == CoachingStatus.SCHEDULED
        assert store.sessions[3].status == CoachingStatus.COMPLETED
        assert store.sessions[4].status == CoachingStatus.SCHEDULED

    def test_approval_synthesizes_attendance_for_each_day(self, store: InMemorySyncStore) -> None:
        _engine(store, date(2025, 3, 1)).on_leave_approved(_leave())

        assert sorted(store.attendance) == [(AGENT, date(2025, 3, day)) for day in range(8, 13)]
        assert store.attendance[(AGENT, date(2025, 3, 10))] == AttendanceEntry(
            agent_id=AGENT,
            day=date(2025, 3, 10),
            status=AttendanceStatus.HOLIDAY,
            leave_id=11,
        )

    def test_sick_leave_is_recorded_as_sick(self, store: InMemorySyncStore) -> None:
        _engine(store, date(2025, 3, 1)).on_leave_approved(_leave(leave_type=LeaveType.SICK))
        assert {entry.status for entry in store.attendance.values()} == {AttendanceStatus.SICK}

    def test_approval_is_idempotent(self, store: InMemorySyncStore) -> None:
        engine = _engine(store, date(2025, 3, 1))
        engine.on_leave_approved(_leave())
        sessions_before = dict(store.sessions)
        attendance_before = dict(store.attendance)

        again = engine.on_leave_approved(_leave())

        assert again.changed == 0
        assert again.reasons == []
        assert store.sessions == sessions_before
        assert store.attendance == attendance_before

    def test_reversal_removes_only_synthesized_attendance(self, store: InMemorySyncStore) -> None:
        engine = _engine(store, date(2025, 3, 1))
        store.upsert_attendance(
            AttendanceEntry(agent_id=AGENT, day=date(2025, 3, 1), status=AttendanceStatus.ACTIVE)
        )
        engine.on_leave_approved(_leave())

        outcome = engine.on_leave_reversed(_leave(status=LeaveStatus.DECLINED))

        assert outcome.trigger == TRIGGER_LEAVE_REVERSED
        assert outcome.changed == 5
        assert list(store.attendance) == [(AGENT, date(2025, 3, 1))]
        assert store.sessions[1].status == CoachingStatus.NEEDS_RESCHEDULE

    def test_approval_keeps_manually_recorded_day(self, store: InMemorySyncStore) -> None:
        manual = AttendanceEntry(agent_id=AGENT, day=date(2025, 3, 9), status=AttendanceStatus.ACTIVE)
        store.upsert_attendance(manual)
        engine = _engine(store, date(2025, 3, 1))

        approved = engine.on_leave_approved(_leave())
        assert "Recorded 4 holiday attendance day(s)" in approved.reasons

        engine.on_leave_reversed(_leave(status=LeaveStatus.DECLINED))
        assert store.attendance == {(AGENT, date(2025, 3, 9)): manual}

    def test_overlapping_leave_keeps_its_days_when_other_is_reversed(self) -> None:
        first = _leave(id=21, start_date=date(2025, 3, 1), end_date=date(2025, 3, 5))
        second = _leave(id=22, start_date=date(2025, 3, 3), end_date=date(2025, 3, 7))
        store = InMemorySyncStore(leave=[first, second])
        engine = _engine(store, date(2025, 2, 20))
        engine.on_leave_approved(first)
        engine.on_leave_approved(second)

        store.set_leave_status(22, LeaveStatus.DECLINED)
        engine.on_leave_reversed(replace(second, status=LeaveStatus.DECLINED))

        assert sorted(store.attendance) == [(AGENT, date(2025, 3, day)) for day in range(1, 6)]
        assert {entry.leave_id for entry in store.attendance.values()} == {21}

    def test_reversal_restores_days_still_covered_by_other_leave(self) -> None:
        first = _leave(id=21, start_date=date(2025, 3, 1), end_date=date(2025, 3, 5))
        second = _leave(
            id=22,
            start_date=date(2025, 3, 3),
            end_date=date(2025, 3, 7),
            leave_type=LeaveType.SICK,
        )
        store = InMemorySyncStore(leave=[first, second])
        engine = _engine(store, date(2025, 2, 20))
        engine.on_leave_approved(first)
        engine.on_leave_approved(second)

        store.set_leave_status(21, LeaveStatus.DECLINED)
        outcome = engine.on_leave_reversed(replace(first, status=LeaveStatus.DECLINED))

        assert outcome.changed == 5
        assert "Restored 3 attendance day(s) still covered by other approved leave" in outcome.reasons
        assert sorted(store.attendance) == [(AGENT, date(2025, 3, day)) for day in range(3, 8)]
        assert store.attendance[(AGENT, date(2025, 3, 4))] == AttendanceEntry(
            agent_id=AGENT,
            day=date(2025, 3, 4),
            status=AttendanceStatus.SICK,
            leave_id=22,
        )

    def test_reversal_without_attendance_changes_nothing(self, store: InMemorySyncStore) -> None:
        outcome = _engine(store, date(2025, 3, 1)).on_leave_reversed(_leave())
        assert outcome.changed == 0
        assert outcome.reasons == []


# ---------------------------------------------------------------------------
# Audit scoring
# ---------------------------------------------------------------------------


class TestAuditSync:
    TODAY = date(2025, 3, 15)

    def _audit(self, score: float) -> AuditResult:
        return AuditResult(id=3, agent_id=AGENT, day=self.TODAY, score=score)

    def test_low_score_without_coaching_suggests_session(self) -> None:
        outcome = _engine(InMemorySyncStore(), self.TODAY).on_audit_scored(self._audit(65))

        assert outcome.trigger == TRIGGER_AUDIT_SCORED
        assert outcome.suggest_coaching is True
        assert outcome.reason == "Low audit score: 65%"

    def test_recent_scheduled_session_suppresses_suggestion(self) -> None:
        store = InMemorySyncStore(
            sessions=[CoachingSession(id=9, agent_id=AGENT, scheduled_date=date(2025, 3, 10))]
        )

        outcome = _engine(store, self.TODAY).on_audit_scored(self._audit(65))

        assert outcome.suggest_coaching is False
        assert outcome.reason == "Coaching already planned"
        assert outcome.session_ids == [9]

    def test_session_outside_lookback_does_not_count(self) -> None:
        store = InMemorySyncStore(
            sessions=[CoachingSession(id=9, agent_id=AGENT, scheduled_date=date(2025, 3, 1))]
        )
        outcome = _engine(store, self.TODAY).on_audit_scored(self._audit(62.5))

        assert outcome.suggest_coaching is True
        assert outcome.reason == "Low audit score: 62.5%"

    def test_passing_score_never_suggests(self) -> None:
        outcome = _engine(InMemorySyncStore(), self.TODAY).on_audit_scored(self._audit(70))
        assert outcome.suggest_coaching is False

    def test_threshold_is_configurable(self) -> None:
        engine = _engine(InMemorySyncStore(), self.TODAY, SyncSettings(low_audit_threshold=80.0))
        assert engine.on_audit_scored(self._audit(75)).suggest_coaching is True


# ---------------------------------------------------------------------------
# Coaching effectiveness
# ---------------------------------------------------------------------------


class TestEffectivenessSync:
    TODAY = date(2025, 3, 20)
    SESSION_DAY = date(2025, 3, 10)
    BASELINE_DAY = date(2025, 3, 3)

    def _store(self, **baseline: float) -> InMemorySyncStore:
        return InMemorySyncStore(
            sessions=[
                CoachingSession(
                    id=5,
                    agent_id=AGENT,
                    scheduled_date=self.SESSION_DAY,
                    status=CoachingStatus.COMPLETED,
                )
            ],
            metrics=[MetricRecord(agent_id=AGENT, day=self.BASELINE_DAY, **baseline)],
        )

    def test_improvement_above_threshold_is_effective(self) -> None:
        store = self._store(quality=80.0)

        outcome = _engine(store, self.TODAY).on_kpi_observation(AGENT, {"quality": 92.0})

        assert outcome.changed == 1
        assert outcome.session_ids == [5]
        assert store.sessions[5].effectiveness == Effectiveness.EFFECTIVE
        assert store.sessions[5].status == CoachingStatus.COMPLETED

    def test_tagged_session_is_not_reevaluated(self) -> None:
        store = self._store(quality=80.0)
        engine = _engine(store, self.TODAY)
        engine.on_kpi_observation(AGENT, {"quality": 92.0})

        again = engine.on_kpi_observation(AGENT, {"quality": 60.0})

        assert again.changed == 0
        assert store.sessions[5].effectiveness == Effectiveness.EFFECTIVE

    def test_decline_needs_follow_up(self) -> None:
        store = self._store(quality=80.0)

        _engine(store, self.TODAY).on_kpi_observation(AGENT, {"quality": 75.0})

        assert store.sessions[5].effectiveness == Effectiveness.NEEDS_FOLLOW_UP
        assert store.sessions[5].status == CoachingStatus.FOLLOW_UP_NEEDED

    def test_small_improvement_leaves_session_untagged(self) -> None:
        store = self._store(quality=80.0)
        engine = _engine(store, self.TODAY)

        assert engine.on_kpi_observation(AGENT, {"quality": 85.0}).changed == 0
        assert store.sessions[5].effectiveness == Effectiveness.UNSET

        assert engine.on_kpi_observation(AGENT, {"quality": 95.0}).changed == 1
        assert store.sessions[5].effectiveness == Effectiveness.EFFECTIVE

    def test_handle_time_improves_when_it_drops(self) -> None:
        store = self._store(handle_time_seconds=400.0)

        _engine(store, self.TODAY).on_kpi_observation(AGENT, {"aht": 300.0})

        assert store.sessions[5].effectiveness == Effectiveness.EFFECTIVE

    def test_mixed_fields_are_averaged(self) -> None:
        store = self._store(quality=80.0, handle_time_seconds=400.0)

        outcome = _engine(store, self.TODAY).on_kpi_observation(
            AGENT, {"quality": 82.0, "handle_time_seconds": 380.0}
        )

        assert outcome.changed == 0
        assert store.sessions[5].effectiveness == Effectiveness.UNSET

    def test_missing_baseline_leaves_session_untagged(self) -> None:
        store = InMemorySyncStore(
            sessions=[
                CoachingSession(
                    id=5,
                    agent_id=AGENT,
                    scheduled_date=self.SESSION_DAY,
                    status=CoachingStatus.COMPLETED,
                )
            ]
        )
        assert _engine(store, self.TODAY).on_kpi_observation(AGENT, {"quality": 99.0}).changed == 0

    def test_sessions_outside_window_are_ignored(self) -> None:
        store = self._store(quality=80.0)
        assert _engine(store, date(2025, 4, 30)).on_kpi_observation(AGENT, {"quality": 99.0}).changed == 0

    def test_composite_improvement(self) -> None:
        assert field_improvements({"quality": 80.0}, {"quality": 92.0}) == {"quality": 12.0}
        assert composite_improvement(
            {"quality": 80.0, "handle_time_seconds": 0.0},
            {"quality": 90.0, "handle_time_seconds": 100.0},
        ) == pytest.approx(10.0)
        assert composite_improvement({"quality": 80.0}, {"retention_rate": 90.0}) is None


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------


class TestAvailability:
    TODAY = date(2025, 3, 10)

    def _store(self, leave_status: str = LeaveStatus.APPROVED) -> InMemorySyncStore:
        return InMemorySyncStore(
            sessions=[
                CoachingSession(id=1, agent_id=AGENT, scheduled_date=date(2025, 3, 11)),
                CoachingSession(id=2, agent_id=AGENT, scheduled_date=date(2025, 3, 30)),
                CoachingSession(
                    id=3,
                    agent_id=AGENT,
                    scheduled_date=date(2025, 3, 12),
                    status=CoachingStatus.CANCELLED,
                ),
            ],
            leave=[_leave(status=leave_status)],
        )

    def test_on_leave_reports_return_date_and_sessions(self) -> None:
        store = self._store()
        sessions_before = dict(store.sessions)

        availability = _engine(store, self.TODAY).availability(AGENT, horizon_days=14)

        assert availability.on_leave is True
        assert availability.available is False
        assert availability.return_date == date(2025, 3, 12)
        assert len(availability.leave_days) == 5
        assert [view.session_id for view in availability.scheduled_sessions] == [1]
        assert store.sessions == sessions_before
        assert store.attendance == {}

    def test_requested_leave_does_not_count(self) -> None:
        availability = _engine(self._store(LeaveStatus.REQUESTED), self.TODAY).availability(AGENT)

        assert availability.available is True
        assert availability.return_date is None
        assert availability.leave_days == []

    def test_default_horizon_comes_from_settings(self) -> None:
        engine = _engine(self._store(), self.TODAY, SyncSettings(availability_horizon_days=30))
        sessions = engine.availability(AGENT).scheduled_sessions
        assert [view.session_id for view in sessions] == [1, 2]
