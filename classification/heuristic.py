"""
classification/heuristic.py

Deterministic keyword classifier. Always produces a result.
"""

from __future__ import annotations

from typing import Any, Sequence

from app.domain.classification import ClassifiedBatch, ReportType
from classification.base import BaseClassifier
from classification.inspection import inspect_sample

HEURISTIC_MATCH_CONFIDENCE = 70
HEURISTIC_UNKNOWN_CONFIDENCE = 50

# Ordered: the first report type with a keyword hit wins.
DEFAULT_REPORT_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (ReportType.QUALITY, ("quality",)),
    (ReportType.HANDLE_TIME, ("aht", "handling time")),
    (ReportType.RETENTION_RATE, ("srr", "save")),
    (ReportType.CUSTOMER_VOICE, ("voc", "voice")),
    (ReportType.HOLD_TIME, ("hold",)),
    (ReportType.AUDIT, ("audit",)),
)


class HeuristicClassifier(BaseClassifier):
    """
    Scores report types by case-insensitive substring hits in the file name and headers.
    """

    name = "heuristic"

    def __init__(
        self,
        *,
        report_keywords: Sequence[tuple[str, Sequence[str]]] = DEFAULT_REPORT_KEYWORDS,
    ) -> None:
        self._report_keywords = tuple(
            (report_type, tuple(keyword.lower() for keyword in keywords))
            for report_type, keywords in report_keywords
        )

    def detect_report_type(self, file_name: str, headers: Sequence[str]) -> tuple[str, int]:
        haystacks = [(file_name or "").lower(), *(str(header).lower() for header in headers)]
        for report_type, keywords in self._report_keywords:
            if any(keyword in haystack for keyword in keywords for haystack in haystacks):
                return report_type, HEURISTIC_MATCH_CONFIDENCE
        return ReportType.UNKNOWN, HEURISTIC_UNKNOWN_CONFIDENCE

    def classify(
        self,
        file_name: str,
        headers: Sequence[str],
        sample_rows: Sequence[Sequence[Any]],
    ) -> ClassifiedBatch:
        report_type, confidence = self.detect_report_type(file_name, headers)
        inspection = inspect_sample(headers, sample_rows)
        return ClassifiedBatch(
            report_type=report_type,
            confidence=confidence,
            detected_columns=inspection.detected_columns,
            date_range=inspection.date_range,
            agents_found=inspection.agents_found,
            issues=list(inspection.issues),
            source=self.name,
        )
