"""
app/domain/classification.py

Report classification domain models.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class ReportType:
    QUALITY = "quality"
    HANDLE_TIME = "aht"
    RETENTION_RATE = "srr"
    CUSTOMER_VOICE = "voc"
    HOLD_TIME = "hold"
    AUDIT = "audit"
    UNKNOWN = "unknown"


ALL_REPORT_TYPES: tuple[str, ...] = (
    ReportType.QUALITY,
    ReportType.HANDLE_TIME,
    ReportType.RETENTION_RATE,
    ReportType.CUSTOMER_VOICE,
    ReportType.HOLD_TIME,
    ReportType.AUDIT,
    ReportType.UNKNOWN,
)


@dataclass(frozen=True)
class DateRange:
    """
    Sample-order date range: first and last observed values, not min/max.
    """

    start: str = ""
    end: str = ""


@dataclass(frozen=True)
class ClassifiedBatch:
    """
    Classification of one uploaded report.
    """

    report_type: str
    confidence: int
    detected_columns: dict[str, str] = field(default_factory=dict)
    date_range: DateRange = field(default_factory=DateRange)
    agents_found: list[str] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    source: str = "heuristic"
