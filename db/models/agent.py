"""
db/models/agent.py

Canonical agent roster.
"""

from __future__ import annotations

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.roster import AgentStatus
from db.base import Base, TimestampMixin


class Agent(TimestampMixin, Base):
    """
    One roster agent. ``name`` is the canonical display name used for matching.
    """

    __tablename__ = "agents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    team: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=AgentStatus.ACTIVE,
        server_default=AgentStatus.ACTIVE,
    )

    __table_args__ = (Index("ix_agents_status", "status"),)
