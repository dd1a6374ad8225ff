"""
sync/engine.py

Cross-entity sync rules for leave, audits, coaching sessions, and attendance.

Every reaction is idempotent and is applied only after the triggering entity's
own change has been committed by the caller. Each call returns a SyncOutcome
and logs it at INFO.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Callable, Mapping, Sequence

from app.config import SyncSettings
from app.domain.metrics import METRIC_FIELDS
from app.domain.sync import (
    AttendanceEntry,
    AttendanceStatus,
    AuditResult,
    Availability,
    CoachingStatus,
    Effectiveness,
    LeaveRecord,
    LeaveType,
    ScheduledSessionView,
    SyncOutcome,
)
from metrics.validation import canonical_field_name
from sync.improvement import composite_improvement
from sync.store import SyncStore

logger = logging.getLogger(__name__)

TRIGGER_LEAVE_APPROVED = "leave_approved"
TRIGGER_LEAVE_REVERSED = "leave_reversed"
TRIGGER_AUDIT_SCORED = "audit_scored"
TRIGGER_KPI_OBSERVED = "kpi_observed"


class CrossEntitySyncEngine:
    """
    Derives coaching schedule, effectiveness, and attendance consequences of entity changes.
    """

    def __init__(
        self,
        store: SyncStore,
        *,
        settings: SyncSettings | None = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._settings = settings or SyncSettings()
        self._clock = clock

    # ------------------------------------------------------------------
    # Leave
    # ------------------------------------------------------------------

    def on_leave_approved(self, leave: LeaveRecord) -> SyncOutcome:
        """
        Flag scheduled sessions inside the leave span for rescheduling and
        synthesize one attendance row per spanned day.

        Days that already hold a manual row or another leave's row are left alone.
        """

        sessions = self._store.list_sessions(
            leave.agent_id,
            statuses=(CoachingStatus.SCHEDULED,),
            start=leave.start_date,
            end=leave.end_date,
        )
        flagged: list[int] = []
        for session in sessions:
            self._store.save_session(replace(session, status=CoachingStatus.NEEDS_RESCHEDULE))
            flagged.append(session.id)

        attendance_written = self._write_leave_attendance(leave, leave.days())

        reasons = [f"Session {session_id} overlaps approved leave {leave.id}" for session_id in flagged]
        if attendance_written:
            reasons.append(
                f"Recorded {attendance_written} {_attendance_status(leave)} attendance day(s)"
            )

        return self._report(
            SyncOutcome(
                trigger=TRIGGER_LEAVE_APPROVED,
                agent_id=leave.agent_id,
                changed=len(flagged),
                reasons=reasons,
                session_ids=flagged,
            )
        )

    def on_leave_reversed(self, leave: LeaveRecord) -> SyncOutcome:
        """
        Remove attendance rows this leave synthesized.

        Days still covered by another approved leave get that leave's row back.
        Sessions already flagged ``needs_reschedule`` are left for manual handling.
        """

        removed = self._store.delete_attendance_for_leave(leave.id)
        reasons = [f"Removed {removed} attendance day(s) synthesized by leave {leave.id}"] if removed else []

        restored = 0
        if removed:
            span = set(leave.days())
            for other in self._store.list_approved_leave(leave.agent_id):
                if other.id != leave.id:
                    restored += self._write_leave_attendance(
                        other, [day for day in other.days() if day in span]
                    )
        if restored:
            reasons.append(f"Restored {restored} attendance day(s) still covered by other approved leave")

        return self._report(
            SyncOutcome(
                trigger=TRIGGER_LEAVE_REVERSED,
                agent_id=leave.agent_id,
                changed=removed,
                reasons=reasons,
            )
        )

    def _write_leave_attendance(self, leave: LeaveRecord, days: Sequence[date]) -> int:
        status = _attendance_status(leave)
        written = 0
        for day in days:
            entry = AttendanceEntry(agent_id=leave.agent_id, day=day, status=status, leave_id=leave.id)
            if self._store.upsert_attendance(entry):
                written += 1
        return written

    # ------------------------------------------------------------------
    # Audits
    # ------------------------------------------------------------------

    def on_audit_scored(self, audit: AuditResult) -> SyncOutcome:
        """
        Advise whether a low audit score warrants a new coaching session.

        Advisory only; no session is created.
        """

        if audit.score >= self._settings.low_audit_threshold:
            return self._report(
                SyncOutcome(
                    trigger=TRIGGER_AUDIT_SCORED,
                    agent_id=audit.agent_id,
                    suggest_coaching=False,
                    reason=f"Audit score {_format_score(audit.score)}% meets the threshold",
                )
            )

        since = self._clock() - timedelta(days=self._settings.audit_lookback_days)
        planned = self._store.list_sessions(
            audit.agent_id,
            statuses=(CoachingStatus.SCHEDULED,),
            start=since,
        )
        if planned:
            outcome = SyncOutcome(
                trigger=TRIGGER_AUDIT_SCORED,
                agent_id=audit.agent_id,
                session_ids=[session.id for session in planned],
                suggest_coaching=False,
                reason="Coaching already planned",
            )
        else:
            outcome = SyncOutcome(
                trigger=TRIGGER_AUDIT_SCORED,
                agent_id=audit.agent_id,
                suggest_coaching=True,
                reason=f"Low audit score: {_format_score(audit.score)}%",
            )
        return self._report(outcome)

    # ------------------------------------------------------------------
    # Coaching effectiveness
    # ------------------------------------------------------------------

    def on_kpi_observation(
        self,
        agent_id: int,
        metrics: Mapping[str, float | None],
    ) -> SyncOutcome:
        """
        Tag recent completed, untagged sessions by comparing the new metrics
        against the record from ``baseline_offset_days`` before each session.
        """

        after = _canonical_metrics(metrics)
        today = self._clock()
        candidates = self._store.list_sessions(
            agent_id,
            statuses=(CoachingStatus.COMPLETED,),
            start=today - timedelta(days=self._settings.effectiveness_window_days),
            end=today,
        )

        tagged: list[int] = []
        reasons: list[str] = []
        for session in candidates:
            if session.effectiveness != Effectiveness.UNSET:
                continue
            baseline_day = session.scheduled_date - timedelta(days=self._settings.baseline_offset_days)
            baseline = self._store.get_metric(agent_id, baseline_day)
            if baseline is None:
                continue
            score = composite_improvement(baseline.fields(), after)
            if score is None:
                continue

            if score > self._settings.effective_threshold:
                self._store.save_session(replace(session, effectiveness=Effectiveness.EFFECTIVE))
            elif score < 0:
                self._store.save_session(
                    replace(
                        session,
                        effectiveness=Effectiveness.NEEDS_FOLLOW_UP,
                        status=CoachingStatus.FOLLOW_UP_NEEDED,
                    )
                )
            else:
                continue
            tagged.append(session.id)
            reasons.append(f"Session {session.id} improvement {score:.1f}")

        return self._report(
            SyncOutcome(
                trigger=TRIGGER_KPI_OBSERVED,
                agent_id=agent_id,
                changed=len(tagged),
                reasons=reasons,
                session_ids=tagged,
            )
        )

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def availability(self, agent_id: int, horizon_days: int | None = None) -> Availability:
        """
        Pure read: leave status today and scheduled sessions within the horizon.
        """

        today = self._clock()
        horizon = self._settings.availability_horizon_days if horizon_days is None else max(0, horizon_days)

        covering = [leave for leave in self._store.list_approved_leave(agent_id) if leave.covers(today)]
        current = max(covering, key=lambda leave: leave.end_date) if covering else None

        sessions = self._store.list_sessions(
            agent_id,
            statuses=(CoachingStatus.SCHEDULED,),
            start=today,
            end=today + timedelta(days=horizon),
        )
        return Availability(
            agent_id=agent_id,
            on_leave=current is not None,
            return_date=current.end_date if current is not None else None,
            leave_days=current.days() if current is not None else [],
            scheduled_sessions=[
                ScheduledSessionView(session_id=session.id, scheduled_date=session.scheduled_date)
                for session in sessions
            ],
        )

    def _report(self, outcome: SyncOutcome) -> SyncOutcome:
        logger.info(
            "Sync %s agent_id=%s changed=%d session_ids=%s suggest_coaching=%s reason=%s",
            outcome.trigger,
            outcome.agent_id,
            outcome.changed,
            outcome.session_ids,
            outcome.suggest_coaching,
            outcome.reason,
        )
        return outcome


def _canonical_metrics(metrics: Mapping[str, float | None]) -> dict[str, float | None]:
    canonical: dict[str, float | None] = {}
    for name, value in metrics.items():
        field = canonical_field_name(name)
        if field in METRIC_FIELDS and value is not None:
            canonical[field] = float(value)
    return canonical


def _format_score(score: float) -> str:
    return f"{score:g}"


def _attendance_status(leave: LeaveRecord) -> str:
    return AttendanceStatus.SICK if leave.leave_type == LeaveType.SICK else AttendanceStatus.HOLIDAY
