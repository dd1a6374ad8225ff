"""
db/models/coaching_session.py

Scheduled and completed coaching sessions.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.sync import CoachingStatus, Effectiveness
from db.base import Base, TimestampMixin


class CoachingSessionRecord(TimestampMixin, Base):
    """
    ``status`` and ``effectiveness`` transitions derived from other entities
    are written only by the sync engine.
    """

    __tablename__ = "coaching_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    agent_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("agents.id", ondelete="CASCADE"),
        nullable=False,
    )
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=CoachingStatus.SCHEDULED,
        server_default=CoachingStatus.SCHEDULED,
    )
    effectiveness: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=Effectiveness.UNSET,
        server_default=Effectiveness.UNSET,
    )
    focus_area: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_coaching_sessions_agent_date", "agent_id", "scheduled_date"),
        Index("ix_coaching_sessions_status", "status"),
    )
