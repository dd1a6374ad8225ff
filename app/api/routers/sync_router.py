"""
app/api/routers/sync_router.py

Leave, audit, manual KPI, and availability endpoints backed by the sync engine.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.schemas.sync import (
    AvailabilityResponse,
    LeaveChangeResponse,
    LeaveStatusUpdateRequest,
    ManualKPIRequest,
    ManualKPIResponse,
    SyncOutcomeResponse,
)
from app.services.manual_kpi_service import ManualKPIService, get_manual_kpi_service
from app.services.sync_service import (
    EntityNotFoundError,
    InvalidLeaveTransitionError,
    LeaveChangeResult,
    SyncService,
    get_sync_service,
)
from db.session import get_db

router = APIRouter(tags=["sync"])


@router.patch("/leave/{leave_id}", response_model=LeaveChangeResponse)
def update_leave(
    leave_id: int,
    payload: LeaveStatusUpdateRequest,
    db: Session = Depends(get_db),
    sync_service: SyncService = Depends(get_sync_service),
) -> LeaveChangeResponse:
    try:
        result = sync_service.update_leave_status(
            db=db,
            leave_id=leave_id,
            status=payload.status,
            approved_by=payload.approved_by,
            declined_reason=payload.declined_reason,
        )
    except EntityNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidLeaveTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _leave_response(result)


@router.delete("/leave/{leave_id}", response_model=LeaveChangeResponse)
def delete_leave(
    leave_id: int,
    db: Session = Depends(get_db),
    sync_service: SyncService = Depends(get_sync_service),
) -> LeaveChangeResponse:
    try:
        result = sync_service.delete_leave(db=db, leave_id=leave_id)
    except EntityNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _leave_response(result)


@router.post("/audits/{audit_id}/sync", response_model=SyncOutcomeResponse)
def sync_audit(
    audit_id: int,
    db: Session = Depends(get_db),
    sync_service: SyncService = Depends(get_sync_service),
) -> SyncOutcomeResponse:
    """
    Advise whether a scored audit warrants a coaching session.
    """

    try:
        outcome = sync_service.audit_scored(db=db, audit_id=audit_id)
    except EntityNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return SyncOutcomeResponse.from_domain(outcome)


@router.post("/kpis/manual", response_model=ManualKPIResponse)
def submit_manual_kpis(
    payload: ManualKPIRequest,
    db: Session = Depends(get_db),
    kpi_service: ManualKPIService = Depends(get_manual_kpi_service),
) -> ManualKPIResponse:
    records = [
        {
            "agent_id": record.agent_id,
            "date": record.day,
            "quality": record.quality,
            "aht": record.aht,
            "srr": record.srr,
            "voc": record.voc,
        }
        for record in payload.records
    ]
    try:
        result = kpi_service.submit(db=db, records=records)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist KPI records.",
        ) from exc
    return ManualKPIResponse(records_processed=result.records_processed, errors=result.errors)


@router.get("/agents/{agent_id}/availability", response_model=AvailabilityResponse)
def get_availability(
    agent_id: int,
    horizon_days: int | None = Query(default=None, ge=0, le=365),
    db: Session = Depends(get_db),
    sync_service: SyncService = Depends(get_sync_service),
) -> AvailabilityResponse:
    availability = sync_service.availability(db=db, agent_id=agent_id, horizon_days=horizon_days)
    return AvailabilityResponse.from_domain(availability)


def _leave_response(result: LeaveChangeResult) -> LeaveChangeResponse:
    return LeaveChangeResponse(
        leave_id=result.leave.id,
        agent_id=result.leave.agent_id,
        status=result.leave.status,
        previous_status=result.previous_status,
        start_date=result.leave.start_date,
        end_date=result.leave.end_date,
        sync=SyncOutcomeResponse.from_domain(result.outcome) if result.outcome is not None else None,
    )
