"""
identity/nicknames.py

Bidirectional first-name nickname table.
"""

from __future__ import annotations

from typing import Iterable, Mapping

DEFAULT_NICKNAME_GROUPS: dict[str, tuple[str, ...]] = {
    "michael": ("mike", "mick", "mikey"),
    "robert": ("rob", "bob", "bobby", "robbie"),
    "william": ("will", "bill", "billy", "willie"),
    "richard": ("rick", "dick", "rich", "richie"),
    "james": ("jim", "jimmy", "jamie"),
    "jennifer": ("jen", "jenny", "jenn"),
    "elizabeth": ("liz", "beth", "betty", "eliza"),
    "thomas": ("tom", "tommy"),
    "christopher": ("chris",),
    "daniel": ("dan", "danny"),
    "matthew": ("matt", "matty"),
    "anthony": ("tony",),
    "joseph": ("joe", "joey"),
    "samuel": ("sam", "sammy"),
    "benjamin": ("ben", "benny"),
    "alexander": ("alex",),
    "nicholas": ("nick",),
}


class NicknameTable:
    """
    Immutable lookup of first names that refer to the same person.

    A name may belong to several groups (``"chris"`` could be configured for
    both christopher and christine); two names are equivalent when they share
    at least one group.
    """

    def __init__(self, groups: Mapping[str, Iterable[str]]) -> None:
        membership: dict[str, set[int]] = {}
        for group_id, (formal, nicknames) in enumerate(groups.items()):
            for variant in (formal, *nicknames):
                key = variant.strip().lower()
                if key:
                    membership.setdefault(key, set()).add(group_id)
        self._membership: dict[str, frozenset[int]] = {
            name: frozenset(ids) for name, ids in membership.items()
        }

    def are_equivalent(self, first: str, second: str) -> bool:
        left = self._membership.get(first.lower())
        right = self._membership.get(second.lower())
        if not left or not right:
            return False
        return not left.isdisjoint(right)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._membership


DEFAULT_NICKNAMES = NicknameTable(DEFAULT_NICKNAME_GROUPS)
