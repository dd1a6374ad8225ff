"""
Composite KPI improvement score between a baseline and a newer observation.
"""

from __future__ import annotations

from typing import Mapping

from app.domain.metrics import (
    CUSTOMER_VOICE_SCORE,
    HANDLE_TIME_SECONDS,
    QUALITY,
    RETENTION_RATE,
)

HIGHER_IS_BETTER: tuple[str, ...] = (QUALITY, RETENTION_RATE, CUSTOMER_VOICE_SCORE)
LOWER_IS_BETTER: tuple[str, ...] = (HANDLE_TIME_SECONDS,)


def field_improvements(
    before: Mapping[str, float | None],
    after: Mapping[str, float | None],
) -> dict[str, float]:
    """
    Per-field improvement for fields present on both sides.

    Score fields improve by ``after - before``; handle time improves by the
    percentage reduction ``(before - after) / before * 100`` and is skipped
    when the baseline is zero.
    """

    improvements: dict[str, float] = {}
    for name in HIGHER_IS_BETTER:
        old, new = before.get(name), after.get(name)
        if old is not None and new is not None:
            improvements[name] = float(new) - float(old)
    for name in LOWER_IS_BETTER:
        old, new = before.get(name), after.get(name)
        if old is not None and new is not None and old != 0:
            improvements[name] = (float(old) - float(new)) / float(old) * 100.0
    return improvements


def composite_improvement(
    before: Mapping[str, float | None],
    after: Mapping[str, float | None],
) -> float | None:
    """
    Average improvement across comparable fields, or None when nothing is comparable.
    """

    improvements = field_improvements(before, after)
    if not improvements:
        return None
    return sum(improvements.values()) / len(improvements)
