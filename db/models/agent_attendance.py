"""
db/models/agent_attendance.py

Daily attendance. Rows with ``leave_id`` set were synthesized by a leave approval.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

ATTENDANCE_UNIQUE_CONSTRAINT = "uq_agent_attendance_agent_date"


class AgentAttendance(TimestampMixin, Base):
    __tablename__ = "agent_attendance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    agent_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("agents.id", ondelete="CASCADE"),
        nullable=False,
    )
    day: Mapped[date] = mapped_column("date", Date, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    # No foreign key: rows must outlive a deleted leave until its reversal removes them.
    leave_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("agent_id", "date", name=ATTENDANCE_UNIQUE_CONSTRAINT),
        Index("ix_agent_attendance_leave_id", "leave_id"),
    )
