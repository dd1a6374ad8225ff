"""Structured prompt builder for remote report classification."""

import json
from typing import Any, Sequence

from classification.schema import ClassifierResponse

_SCHEMA_JSON = json.dumps(ClassifierResponse.model_json_schema(by_alias=True), indent=2)

SYSTEM_PROMPT = (
    "You are a data analyst specializing in call center performance reports. "
    "Identify report types, spot data quality issues, and always return "
    "structured JSON responses with no additional text."
)

_PROMPT_TEMPLATE = """\
You are analyzing an uploaded file to determine what type of call center report it is.

FILE NAME: {file_name}

HEADERS:
{headers}

FIRST {row_count} ROWS OF DATA:
{rows}

DETERMINE:
1. Report Type: quality, aht (handle time), srr (save/retention rate), voc (voice of customer), hold, audit, or unknown.
2. Date Range: first and last date observed in the rows, as YYYY-MM-DD.
3. Agents: agent names exactly as they appear.
4. Columns: what each column represents (agent_name, date, quality_score, aht_seconds, srr_percentage, voc_score, hold_time, audit_score, unknown).
5. Data Quality: missing values, formatting problems, unparseable dates.

RULES:
- If you cannot determine the report type with confidence above 70, use "unknown".
- confidence is an integer from 0 to 100.
- Return strictly valid JSON matching the schema below, with no text outside the JSON object.

SCHEMA:
{schema}
"""


class ClassificationPromptBuilder:
    """Builds a deterministic classification prompt from report samples."""

    def __init__(self, max_rows: int = 5) -> None:
        self._max_rows = max(1, max_rows)

    def build_prompt(
        self,
        file_name: str,
        headers: Sequence[str],
        sample_rows: Sequence[Sequence[Any]],
    ) -> str:
        """Render the prompt.

        Args:
            file_name: Original upload file name.
            headers: Header cells.
            sample_rows: Data rows; only the first ``max_rows`` are included.

        Returns:
            The formatted prompt string.
        """
        rows = list(sample_rows)[: self._max_rows]
        rendered_rows = "\n".join(
            f"Row {position}: " + " | ".join("" if cell is None else str(cell) for cell in row)
            for position, row in enumerate(rows, start=1)
        ) or "(no data rows)"
        return _PROMPT_TEMPLATE.format(
            file_name=file_name or "(unnamed)",
            headers=" | ".join(str(header) for header in headers) or "(no headers)",
            row_count=len(rows),
            rows=rendered_rows,
            schema=_SCHEMA_JSON,
        )
