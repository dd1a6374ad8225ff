"""
identity/resolver.py

Resolves loosely formatted agent names to canonical roster identities.

Resolution order, short-circuiting on the first success:

    1. exact match on the normalized or "Last, First"-reversed input  -> 100
    2. same last name and nickname-equivalent first name              -> 95
    3. Levenshtein distance <= max_distance, 25 points per edit        -> 100 - 25d

A fuzzy candidate below the acceptance threshold is not matched; the closest
candidates are returned as suggestions for human review instead.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Sequence

from app.domain.roster import MatchResult, MatchSuggestion, RosterAgent
from app.errors import DuplicateRosterNameError, MatchAmbiguous
from identity.distance import levenshtein
from identity.nicknames import DEFAULT_NICKNAMES, NicknameTable
from identity.normalizer import normalize_name, reverse_last_first, split_first_last

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 100
NICKNAME_CONFIDENCE = 95
CONFIDENCE_PER_EDIT = 25


@dataclass(frozen=True)
class _IndexedAgent:
    agent: RosterAgent
    normalized: str
    first: str
    last: str


class RosterIndex:
    """
    Read-only, pre-normalized view of a roster.

    Building the index validates that no two agents share a normalized name;
    such a roster cannot be matched against unambiguously.
    """

    def __init__(self, roster: Iterable[RosterAgent]) -> None:
        entries: list[_IndexedAgent] = []
        by_name: dict[str, list[int]] = {}
        for agent in roster:
            normalized = normalize_name(agent.canonical_name)
            first, last = split_first_last(normalized)
            entries.append(_IndexedAgent(agent=agent, normalized=normalized, first=first, last=last))
            by_name.setdefault(normalized, []).append(agent.id)

        duplicates = {name: ids for name, ids in by_name.items() if len(ids) > 1}
        if duplicates:
            raise DuplicateRosterNameError(duplicates)

        self._entries = tuple(entries)
        self._by_normalized = {entry.normalized: entry for entry in entries}

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[_IndexedAgent, ...]:
        return self._entries

    def exact(self, normalized: str) -> _IndexedAgent | None:
        return self._by_normalized.get(normalized)


class IdentityResolver:
    """
    Maps free-text names onto roster agents with a 0-100 confidence score.
    """

    def __init__(
        self,
        *,
        nicknames: NicknameTable = DEFAULT_NICKNAMES,
        max_distance: int = 2,
        accept_confidence: int = 70,
        suggestion_limit: int = 3,
        batch_workers: int = 4,
    ) -> None:
        self._nicknames = nicknames
        self._max_distance = max(0, max_distance)
        self._accept_confidence = accept_confidence
        self._suggestion_limit = max(1, suggestion_limit)
        self._batch_workers = max(1, batch_workers)

    def resolve(
        self,
        input_name: str,
        roster: Sequence[RosterAgent] | RosterIndex,
    ) -> MatchResult:
        """
        Resolve one name against the roster.

        Raises DuplicateRosterNameError when ``roster`` contains two agents
        whose names normalize identically.
        """

        index = roster if isinstance(roster, RosterIndex) else RosterIndex(roster)

        normalized = normalize_name(input_name)
        if not normalized or len(index) == 0:
            return MatchResult.no_match()
        reversed_normalized = normalize_name(reverse_last_first(input_name))
        variants = _unique((normalized, reversed_normalized))

        for variant in variants:
            hit = index.exact(variant)
            if hit is not None:
                return MatchResult(
                    matched=True,
                    confidence=EXACT_CONFIDENCE,
                    agent_id=hit.agent.id,
                    strategy="exact",
                )

        nickname_hit = self._match_nickname(variants, index)
        if nickname_hit is not None:
            return MatchResult(
                matched=True,
                confidence=NICKNAME_CONFIDENCE,
                agent_id=nickname_hit.agent.id,
                strategy="nickname",
            )

        return self._match_fuzzy(variants, index)

    def require(
        self,
        input_name: str,
        roster: Sequence[RosterAgent] | RosterIndex,
    ) -> MatchResult:
        """
        Resolve one name and raise MatchAmbiguous unless it is matched.
        """

        result = self.resolve(input_name, roster)
        if not result.matched:
            raise MatchAmbiguous(input_name, result)
        return result

    def resolve_batch(
        self,
        names: Iterable[str],
        roster: Sequence[RosterAgent] | RosterIndex,
    ) -> dict[str, MatchResult]:
        """
        Resolve many names independently; the roster is indexed once and shared read-only.
        """

        index = roster if isinstance(roster, RosterIndex) else RosterIndex(roster)
        unique_names = list(dict.fromkeys(names))
        if not unique_names:
            return {}

        if self._batch_workers == 1 or len(unique_names) == 1:
            return {name: self.resolve(name, index) for name in unique_names}

        with ThreadPoolExecutor(max_workers=self._batch_workers) as executor:
            results = list(executor.map(lambda name: self.resolve(name, index), unique_names))

        resolved = dict(zip(unique_names, results))
        logger.debug(
            "Resolved agent names total=%d matched=%d",
            len(resolved),
            sum(1 for result in resolved.values() if result.matched),
        )
        return resolved

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _match_nickname(
        self,
        variants: Sequence[str],
        index: RosterIndex,
    ) -> _IndexedAgent | None:
        for variant in variants:
            first, last = split_first_last(variant)
            if not first or not last:
                continue
            for entry in index.entries:
                if entry.last != last:
                    continue
                if self._nicknames.are_equivalent(first, entry.first):
                    return entry
        return None

    def _match_fuzzy(
        self,
        variants: Sequence[str],
        index: RosterIndex,
    ) -> MatchResult:
        candidates: list[tuple[int, str, _IndexedAgent]] = []
        for entry in index.entries:
            distance = min(
                levenshtein(variant, entry.normalized, limit=self._max_distance)
                for variant in variants
            )
            if distance <= self._max_distance:
                candidates.append((distance, entry.agent.canonical_name, entry))

        if not candidates:
            return MatchResult.no_match()

        candidates.sort(key=lambda item: (item[0], item[1]))
        best_distance, _, best = candidates[0]
        confidence = max(0, EXACT_CONFIDENCE - best_distance * CONFIDENCE_PER_EDIT)

        if confidence >= self._accept_confidence:
            return MatchResult(
                matched=True,
                confidence=confidence,
                agent_id=best.agent.id,
                strategy="fuzzy",
            )

        suggestions = tuple(
            MatchSuggestion(
                agent_id=entry.agent.id,
                name=entry.agent.canonical_name,
                distance=distance,
            )
            for distance, _, entry in candidates[: self._suggestion_limit]
        )
        return MatchResult(
            matched=False,
            confidence=confidence,
            suggestions=suggestions,
        )


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(value for value in dict.fromkeys(values) if value)
