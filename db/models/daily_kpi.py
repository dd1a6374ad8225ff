"""
db/models/daily_kpi.py

Per-agent, per-day KPI snapshot. One row per ``(agent_id, date)``.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Float, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

DAILY_KPI_UNIQUE_CONSTRAINT = "uq_daily_kpis_agent_date"


class DailyKPI(TimestampMixin, Base):
    """
    Stored metric record. Every metric column is independently nullable.

    The unique constraint on ``(agent_id, date)`` is what makes concurrent
    inserts for the same key collide instead of duplicating.
    """

    __tablename__ = "daily_kpis"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    agent_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("agents.id", ondelete="CASCADE"),
        nullable=False,
    )
    day: Mapped[date] = mapped_column("date", Date, nullable=False)
    quality: Mapped[float | None] = mapped_column(Float, nullable=True)
    handle_time_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    retention_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    customer_voice_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint("agent_id", "date", name=DAILY_KPI_UNIQUE_CONSTRAINT),
        Index("ix_daily_kpis_date", "date"),
    )
