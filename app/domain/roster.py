"""
app/domain/roster.py

Roster and name-matching domain models.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class AgentStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class RosterAgent:
    """
    Canonical agent identity used as the source of truth for matching.
    """

    id: int
    canonical_name: str
    status: str = AgentStatus.ACTIVE


@dataclass(frozen=True)
class MatchSuggestion:
    """
    Candidate agent offered to a reviewer when a name is not matched outright.
    """

    agent_id: int
    name: str
    distance: int


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of resolving one free-text name against the roster.
    """

    matched: bool
    confidence: int
    agent_id: int | None = None
    strategy: str | None = None
    suggestions: tuple[MatchSuggestion, ...] = field(default_factory=tuple)

    @classmethod
    def no_match(cls) -> "MatchResult":
        return cls(matched=False, confidence=0)
