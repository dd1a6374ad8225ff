"""
classification/inspection.py

Structural inspection of report headers and sample rows.

Used by every classifier so that agent discovery, the sample-order date
range, and structural issues are computed the same way regardless of which
classifier assigned the report type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from app.domain.classification import DateRange
from ingestion.dates import normalize_date

AGENT_HEADER_KEYWORDS: tuple[str, ...] = ("agent", "name", "employee")
DATE_HEADER_KEYWORDS: tuple[str, ...] = ("date",)

# Ordered: the first semantic type whose keyword appears in a header wins.
DEFAULT_COLUMN_SEMANTICS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("agent_name", AGENT_HEADER_KEYWORDS),
    ("date", DATE_HEADER_KEYWORDS),
    ("quality_score", ("quality",)),
    ("aht_seconds", ("aht", "handling time", "handle time")),
    ("srr_percentage", ("srr", "save", "retention")),
    ("voc_score", ("voc", "voice")),
    ("hold_time", ("hold",)),
    ("audit_score", ("audit",)),
)


@dataclass(frozen=True)
class SampleInspection:
    agent_column: int | None
    date_column: int | None
    agents_found: list[str] = field(default_factory=list)
    date_range: DateRange = field(default_factory=DateRange)
    detected_columns: dict[str, str] = field(default_factory=dict)
    issues: list[str] = field(default_factory=list)


def first_header_index(headers: Sequence[str], keywords: Sequence[str]) -> int | None:
    for position, header in enumerate(headers):
        lowered = str(header).lower()
        if any(keyword in lowered for keyword in keywords):
            return position
    return None


def describe_columns(
    headers: Sequence[str],
    semantics: Sequence[tuple[str, Sequence[str]]] = DEFAULT_COLUMN_SEMANTICS,
) -> dict[str, str]:
    """
    Map each header to a semantic type name, ``unknown`` when nothing matches.
    """

    described: dict[str, str] = {}
    for header in headers:
        name = str(header).strip()
        if not name:
            continue
        lowered = name.lower()
        semantic = "unknown"
        for candidate, keywords in semantics:
            if any(keyword in lowered for keyword in keywords):
                semantic = candidate
                break
        described[name] = semantic
    return described


def inspect_sample(
    headers: Sequence[str],
    sample_rows: Sequence[Sequence[Any]],
    *,
    semantics: Sequence[tuple[str, Sequence[str]]] = DEFAULT_COLUMN_SEMANTICS,
) -> SampleInspection:
    """Discover the agent and date columns and collect structural issues.

    ``date_range`` is the first and last non-empty date value in sample
    order. It is a best-effort range; it is not sorted into a min/max.

    Args:
        headers: Header cells as they appear in the report.
        sample_rows: Data rows only (no header row).
        semantics: Ordered semantic type keywords for column descriptions.

    Returns:
        A SampleInspection with discovered columns and issues.
    """
    issues: list[str] = []

    agent_column = first_header_index(headers, AGENT_HEADER_KEYWORDS)
    agents_found: list[str] = []
    if agent_column is None:
        issues.append("No agent name column detected.")
    else:
        empty_agents = 0
        for row in sample_rows:
            value = _cell(row, agent_column)
            if not value:
                empty_agents += 1
                continue
            if value not in agents_found:
                agents_found.append(value)
        if sample_rows and not agents_found:
            issues.append(f"Agent column {headers[agent_column]!r} is empty in every sample row.")
        elif empty_agents:
            issues.append(
                f"{empty_agents} sample row(s) have an empty {headers[agent_column]!r} value."
            )

    date_column = first_header_index(headers, DATE_HEADER_KEYWORDS)
    date_range = DateRange()
    if date_column is not None:
        observed = [value for value in (_cell(row, date_column) for row in sample_rows) if value]
        if observed:
            date_range = DateRange(start=observed[0], end=observed[-1])
        elif sample_rows:
            issues.append(f"Date column {headers[date_column]!r} is empty in every sample row.")
        for value in observed:
            _, ok = normalize_date(value)
            if not ok:
                issues.append(f"Unparseable date value {value!r} in column {headers[date_column]!r}.")

    return SampleInspection(
        agent_column=agent_column,
        date_column=date_column,
        agents_found=agents_found,
        date_range=date_range,
        detected_columns=describe_columns(headers, semantics),
        issues=issues,
    )


def merge_issues(*groups: Sequence[str]) -> list[str]:
    """
    Union of issue lists, preserving first-seen order.
    """

    merged: dict[str, None] = {}
    for group in groups:
        for issue in group:
            text = str(issue).strip()
            if text:
                merged.setdefault(text, None)
    return list(merged)


def _cell(row: Sequence[Any], column: int) -> str:
    if column >= len(row):
        return ""
    value = row[column]
    if value is None:
        return ""
    return str(value).strip()
