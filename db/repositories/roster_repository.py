"""
Repository for reading the agent roster.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.domain.roster import AgentStatus, RosterAgent
from db.models.agent import Agent


class RosterRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_agents(self, *, include_inactive: bool = False) -> list[RosterAgent]:
        stmt = select(Agent)
        if not include_inactive:
            stmt = stmt.where(Agent.status == AgentStatus.ACTIVE)
        stmt = stmt.order_by(Agent.id.asc())
        return [
            RosterAgent(id=row.id, canonical_name=row.name, status=row.status)
            for row in self._session.scalars(stmt).all()
        ]
