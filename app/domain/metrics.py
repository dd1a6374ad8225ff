"""
app/domain/metrics.py

Per-agent, per-day KPI record models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

QUALITY = "quality"
HANDLE_TIME_SECONDS = "handle_time_seconds"
RETENTION_RATE = "retention_rate"
CUSTOMER_VOICE_SCORE = "customer_voice_score"

METRIC_FIELDS: tuple[str, ...] = (
    QUALITY,
    HANDLE_TIME_SECONDS,
    RETENTION_RATE,
    CUSTOMER_VOICE_SCORE,
)

# Short report names used by uploads and manual entry forms.
METRIC_FIELD_ALIASES: dict[str, str] = {
    "quality": QUALITY,
    "aht": HANDLE_TIME_SECONDS,
    "handle_time_seconds": HANDLE_TIME_SECONDS,
    "srr": RETENTION_RATE,
    "retention_rate": RETENTION_RATE,
    "voc": CUSTOMER_VOICE_SCORE,
    "customer_voice_score": CUSTOMER_VOICE_SCORE,
}


@dataclass(frozen=True)
class MetricRecord:
    """
    KPI snapshot keyed by ``(agent_id, day)``. Every metric is independently nullable.
    """

    agent_id: int
    day: date
    quality: float | None = None
    handle_time_seconds: float | None = None
    retention_rate: float | None = None
    customer_voice_score: float | None = None

    @property
    def key(self) -> tuple[int, date]:
        return (self.agent_id, self.day)

    def fields(self) -> dict[str, float | None]:
        return {name: getattr(self, name) for name in METRIC_FIELDS}


@dataclass(frozen=True)
class FieldRejection:
    """
    One incoming metric value refused by validation.
    """

    field: str
    value: object
    message: str


@dataclass(frozen=True)
class MergeResult:
    """
    Stored record after a merge plus any fields that were rejected.
    """

    record: MetricRecord
    created: bool
    applied_fields: tuple[str, ...] = ()
    rejections: list[FieldRejection] = field(default_factory=list)
