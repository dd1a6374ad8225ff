"""
db/models/leave_request.py

Agent leave requests and their approval bookkeeping.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.sync import LeaveStatus, LeaveType
from db.base import Base, TimestampMixin


class LeaveRequest(TimestampMixin, Base):
    __tablename__ = "leave_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    agent_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("agents.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    leave_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=LeaveType.VACATION,
        server_default=LeaveType.VACATION,
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=LeaveStatus.REQUESTED,
        server_default=LeaveStatus.REQUESTED,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    declined_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_leave_requests_agent_status", "agent_id", "status"),
    )
