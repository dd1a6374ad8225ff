"""
app/services/sync_service.py

Applies entity state changes and their cross-entity sync reactions.

Transaction contract:
  - The triggering change (leave status, leave deletion) is committed first.
  - The sync reaction runs afterwards in its own transaction. A failure is
    rolled back and logged at WARNING level; the committed change stands and
    the reaction can be re-derived later from current state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Callable, Mapping, Sequence

from sqlalchemy.orm import Session

from app.config import SyncSettings, get_sync_settings
from app.domain.metrics import MetricRecord
from app.domain.sync import Availability, LeaveRecord, LeaveStatus, SyncOutcome
from db.repositories.sync_repository import SyncRepository, to_leave_record
from sync.engine import CrossEntitySyncEngine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class EntityNotFoundError(LookupError):
    """
    Raised when the entity a sync request refers to does not exist.
    """

    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity} {entity_id} not found.")
        self.entity = entity
        self.entity_id = entity_id


class InvalidLeaveTransitionError(ValueError):
    """
    Raised for a leave status outside requested/approved/declined.
    """


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LeaveChangeResult:
    leave: LeaveRecord
    previous_status: str
    outcome: SyncOutcome | None


_LEAVE_STATUSES = frozenset({LeaveStatus.REQUESTED, LeaveStatus.APPROVED, LeaveStatus.DECLINED})


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class SyncService:
    def __init__(
        self,
        *,
        settings: SyncSettings,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._settings = settings
        self._clock = clock

    def _engine(self, repository: SyncRepository) -> CrossEntitySyncEngine:
        return CrossEntitySyncEngine(repository, settings=self._settings, clock=self._clock)

    # ------------------------------------------------------------------
    # Leave
    # ------------------------------------------------------------------

    def update_leave_status(
        self,
        *,
        db: Session,
        leave_id: int,
        status: str,
        approved_by: str | None = None,
        declined_reason: str | None = None,
    ) -> LeaveChangeResult:
        """
        Change a leave's status, commit, then apply the matching sync reaction.
        """

        if status not in _LEAVE_STATUSES:
            raise InvalidLeaveTransitionError(f"Unsupported leave status {status!r}.")

        repository = SyncRepository(db)
        row = repository.get_leave(leave_id)
        if row is None:
            raise EntityNotFoundError("Leave", leave_id)

        previous_status = row.status
        row.status = status
        if status == LeaveStatus.APPROVED and previous_status != LeaveStatus.APPROVED:
            row.approved_by = approved_by
            row.approved_at = datetime.now(tz=timezone.utc)
            row.declined_reason = None
        elif status == LeaveStatus.DECLINED:
            row.declined_reason = declined_reason
        self._commit(db)
        leave = to_leave_record(row)

        outcome: SyncOutcome | None = None
        if status == LeaveStatus.APPROVED:
            outcome = self._apply(db, "leave approval", leave.agent_id, lambda engine: engine.on_leave_approved(leave))
        elif previous_status == LeaveStatus.APPROVED:
            outcome = self._apply(db, "leave reversal", leave.agent_id, lambda engine: engine.on_leave_reversed(leave))

        return LeaveChangeResult(leave=leave, previous_status=previous_status, outcome=outcome)

    def delete_leave(self, *, db: Session, leave_id: int) -> LeaveChangeResult:
        repository = SyncRepository(db)
        row = repository.get_leave(leave_id)
        if row is None:
            raise EntityNotFoundError("Leave", leave_id)

        leave = to_leave_record(row)
        db.delete(row)
        self._commit(db)

        outcome: SyncOutcome | None = None
        if leave.status == LeaveStatus.APPROVED:
            outcome = self._apply(db, "leave reversal", leave.agent_id, lambda engine: engine.on_leave_reversed(leave))
        return LeaveChangeResult(leave=leave, previous_status=leave.status, outcome=outcome)

    # ------------------------------------------------------------------
    # Audits, KPIs, availability
    # ------------------------------------------------------------------

    def audit_scored(self, *, db: Session, audit_id: int) -> SyncOutcome:
        repository = SyncRepository(db)
        audit = repository.get_audit(audit_id)
        if audit is None:
            raise EntityNotFoundError("Audit", audit_id)
        return self._engine(repository).on_audit_scored(audit)

    def observe_kpis(
        self,
        *,
        db: Session,
        agent_id: int,
        metrics: Mapping[str, float | None],
    ) -> SyncOutcome | None:
        """
        Evaluate coaching effectiveness after KPI rows were committed. Never raises.
        """

        return self._apply(
            db,
            "effectiveness evaluation",
            agent_id,
            lambda engine: engine.on_kpi_observation(agent_id, metrics),
        )

    def observe_merged(self, *, db: Session, records: Sequence[MetricRecord]) -> list[SyncOutcome]:
        """
        Run effectiveness evaluation once per agent, using its latest merged record.
        """

        latest: dict[int, MetricRecord] = {}
        for record in records:
            current = latest.get(record.agent_id)
            if current is None or record.day >= current.day:
                latest[record.agent_id] = record

        outcomes: list[SyncOutcome] = []
        for agent_id, record in latest.items():
            outcome = self.observe_kpis(db=db, agent_id=agent_id, metrics=record.fields())
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    def availability(self, *, db: Session, agent_id: int, horizon_days: int | None = None) -> Availability:
        return self._engine(SyncRepository(db)).availability(agent_id, horizon_days)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(
        self,
        db: Session,
        label: str,
        agent_id: int,
        reaction: Callable[[CrossEntitySyncEngine], SyncOutcome],
    ) -> SyncOutcome | None:
        try:
            outcome = reaction(self._engine(SyncRepository(db)))
            db.commit()
            return outcome
        except Exception as exc:  # noqa: BLE001
            db.rollback()
            logger.warning("Sync %s failed agent_id=%s: %s", label, agent_id, exc)
            return None

    @staticmethod
    def _commit(db: Session) -> None:
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_sync_service() -> SyncService:
    return SyncService(settings=get_sync_settings())
