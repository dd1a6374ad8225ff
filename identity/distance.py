"""
identity/distance.py

Edit distance used for fuzzy name matching.
"""

from __future__ import annotations


def levenshtein(left: str, right: str, *, limit: int | None = None) -> int:
    """Return the Levenshtein edit distance between two strings.

    Uses the two-row dynamic programming formulation. When ``limit`` is
    given, the computation stops as soon as every value in the current row
    exceeds it and ``limit + 1`` is returned; callers that only care whether
    the distance is within a bound avoid the full quadratic cost.

    Args:
        left: First string.
        right: Second string.
        limit: Optional upper bound of interest.

    Returns:
        The edit distance, or ``limit + 1`` when it is known to exceed ``limit``.
    """
    if left == right:
        return 0
    if len(left) < len(right):
        left, right = right, left
    if limit is not None and len(left) - len(right) > limit:
        return limit + 1
    if not right:
        return len(left)

    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        if limit is not None and min(current) > limit:
            return limit + 1
        previous = current
    return previous[-1]
