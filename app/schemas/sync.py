"""
app/schemas/sync.py

Schemas for leave, audit, KPI entry, and availability endpoints.
"""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.domain.sync import Availability, SyncOutcome


class SyncOutcomeResponse(BaseModel):
    """
    What one sync reaction changed, for audit logging and UI display.
    """

    trigger: str
    agent_id: int
    changed: int = Field(..., ge=0)
    reasons: list[str] = Field(default_factory=list)
    session_ids: list[int] = Field(default_factory=list)
    suggest_coaching: bool | None = None
    reason: str | None = None

    @classmethod
    def from_domain(cls, outcome: SyncOutcome) -> "SyncOutcomeResponse":
        return cls(
            trigger=outcome.trigger,
            agent_id=outcome.agent_id,
            changed=outcome.changed,
            reasons=list(outcome.reasons),
            session_ids=list(outcome.session_ids),
            suggest_coaching=outcome.suggest_coaching,
            reason=outcome.reason,
        )


class LeaveStatusUpdateRequest(BaseModel):
    status: Literal["requested", "approved", "declined"]
    approved_by: str | None = None
    declined_reason: str | None = None


class LeaveChangeResponse(BaseModel):
    leave_id: int
    agent_id: int
    status: str
    previous_status: str
    start_date: date
    end_date: date
    sync: SyncOutcomeResponse | None = None


class ManualKPIRecordRequest(BaseModel):
    """
    One manually entered KPI row. Unset metrics are left untouched on merge.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    agent_id: int
    day: date = Field(..., alias="date")
    quality: float | None = None
    aht: float | None = None
    srr: float | None = None
    voc: float | None = None


class ManualKPIRequest(BaseModel):
    records: list[ManualKPIRecordRequest] = Field(..., min_length=1)


class ManualKPIResponse(BaseModel):
    records_processed: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)


class ScheduledSessionResponse(BaseModel):
    session_id: int
    scheduled_date: date


class AvailabilityResponse(BaseModel):
    agent_id: int
    available: bool
    on_leave: bool
    return_date: date | None = None
    leave_days: list[date] = Field(default_factory=list)
    scheduled_sessions: list[ScheduledSessionResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, availability: Availability) -> "AvailabilityResponse":
        return cls(
            agent_id=availability.agent_id,
            available=availability.available,
            on_leave=availability.on_leave,
            return_date=availability.return_date,
            leave_days=list(availability.leave_days),
            scheduled_sessions=[
                ScheduledSessionResponse(session_id=item.session_id, scheduled_date=item.scheduled_date)
                for item in availability.scheduled_sessions
            ],
        )
