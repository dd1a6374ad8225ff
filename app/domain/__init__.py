"""
app/domain package marker.
"""

from app.domain.classification import ClassifiedBatch, DateRange, ReportType
from app.domain.metrics import FieldRejection, MergeResult, MetricRecord
from app.domain.roster import MatchResult, MatchSuggestion, RosterAgent
from app.domain.sync import (
    Availability,
    AttendanceEntry,
    AuditResult,
    CoachingSession,
    LeaveRecord,
    SyncOutcome,
)
from app.domain.tabular import IngestResult, RawRow, TabularLayout

__all__ = [
    "AttendanceEntry",
    "AuditResult",
    "Availability",
    "ClassifiedBatch",
    "CoachingSession",
    "DateRange",
    "FieldRejection",
    "IngestResult",
    "LeaveRecord",
    "MatchResult",
    "MatchSuggestion",
    "MergeResult",
    "MetricRecord",
    "RawRow",
    "ReportType",
    "RosterAgent",
    "SyncOutcome",
    "TabularLayout",
]
