"""Response contract expected from the remote report classifier."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ReportTypeLiteral = Literal["quality", "aht", "srr", "voc", "hold", "audit", "unknown"]


class ClassifierDateRange(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    start: str = ""
    end: str = ""


class ClassifierColumn(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(min_length=1)
    type: str = "unknown"
    format: Optional[str] = None


class ClassifierResponse(BaseModel):
    """Validated remote classification. ``reportType`` and ``confidence`` are required."""

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    report_type: ReportTypeLiteral = Field(alias="reportType")
    confidence: float = Field(ge=0.0, le=100.0)
    date_range: ClassifierDateRange = Field(default_factory=ClassifierDateRange, alias="dateRange")
    agents_found: List[str] = Field(default_factory=list, alias="agentsFound")
    columns: List[ClassifierColumn] = Field(default_factory=list)
    issues: List[str] = Field(default_factory=list)

    @field_validator("report_type", mode="before")
    @classmethod
    def _lowercase_report_type(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value
