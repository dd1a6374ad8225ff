"""
app/schemas/upload.py

Request and response schemas for report upload endpoints.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

from app.domain.classification import ClassifiedBatch
from app.domain.roster import MatchResult


class DateRangeResponse(BaseModel):
    start: str = ""
    end: str = ""


class ClassificationResponse(BaseModel):
    """
    API response model for one report classification.
    """

    report_type: str
    confidence: int = Field(..., ge=0, le=100)
    detected_columns: dict[str, str] = Field(default_factory=dict)
    date_range: DateRangeResponse = Field(default_factory=DateRangeResponse)
    agents_found: list[str] = Field(default_factory=list)
    issues: list[str] = Field(default_factory=list)
    source: str

    @classmethod
    def from_domain(cls, batch: ClassifiedBatch) -> "ClassificationResponse":
        return cls(
            report_type=batch.report_type,
            confidence=batch.confidence,
            detected_columns=dict(batch.detected_columns),
            date_range=DateRangeResponse(start=batch.date_range.start, end=batch.date_range.end),
            agents_found=list(batch.agents_found),
            issues=list(batch.issues),
            source=batch.source,
        )


class MatchSuggestionResponse(BaseModel):
    agent_id: int
    name: str
    distance: int = Field(..., ge=0)


class UnmatchedNameResponse(BaseModel):
    """
    Name that could not be matched, with candidates for human review.
    """

    name: str
    confidence: int = Field(..., ge=0, le=100)
    suggestions: list[MatchSuggestionResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, name: str, result: MatchResult) -> "UnmatchedNameResponse":
        return cls(
            name=name,
            confidence=result.confidence,
            suggestions=[
                MatchSuggestionResponse(agent_id=item.agent_id, name=item.name, distance=item.distance)
                for item in result.suggestions
            ],
        )


class UploadAnalysisResponse(BaseModel):
    file_name: str
    file_type: str
    row_count: int = Field(..., ge=0)
    had_header: bool
    headers: list[str] = Field(default_factory=list)
    sample_rows: list[list[str]] = Field(default_factory=list)
    classification: ClassificationResponse
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class UploadProcessResponse(BaseModel):
    """
    API response model for a processed upload.
    """

    records_processed: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    report_type: str
    classification: ClassificationResponse | None = None
    unmatched: list[UnmatchedNameResponse] = Field(default_factory=list)


class PasteUploadRequest(BaseModel):
    text: str = Field(..., min_length=1)
    fallback_date: date | None = None


class ParseErrorResponse(BaseModel):
    message: str
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
