"""
ingestion/tabular.py

Parses pasted clipboard tables, delimited text files, and spreadsheet rows
into a normalized row model.

Without a header row the clipboard layout applies, by position:

    Agent, Date, Quality, AHT, SRR, VOC

Malformed lines become row-level errors and parsing continues; the batch only
fails when no valid row remains.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Sequence

from app.domain.metrics import (
    CUSTOMER_VOICE_SCORE,
    HANDLE_TIME_SECONDS,
    QUALITY,
    RETENTION_RATE,
)
from app.domain.classification import ReportType
from app.domain.tabular import IngestResult, RawRow, TabularLayout
from app.errors import ParseError
from ingestion.dates import normalize_date
from ingestion.delimited import MalformedLineError, detect_delimiter, split_line

logger = logging.getLogger(__name__)

DEFAULT_HEADER_KEYWORDS: tuple[str, ...] = (
    "agent",
    "name",
    "date",
    "quality",
    "aht",
    "handle",
    "srr",
    "save",
    "retention",
    "voc",
    "voice",
    "customer",
)

AGENT_COLUMN_KEYWORDS: tuple[str, ...] = ("agent", "name", "employee")
DATE_COLUMN_KEYWORDS: tuple[str, ...] = ("date",)

DEFAULT_METRIC_COLUMN_KEYWORDS: dict[str, tuple[str, ...]] = {
    QUALITY: ("quality",),
    HANDLE_TIME_SECONDS: ("aht", "handle", "handling"),
    RETENTION_RATE: ("srr", "save", "retention"),
    CUSTOMER_VOICE_SCORE: ("voc", "voice", "customer"),
}

CLIPBOARD_HEADERS: tuple[str, ...] = ("Agent Name", "Date", "Quality", "AHT", "SRR", "VOC")

CLIPBOARD_LAYOUT = TabularLayout(
    agent_column=0,
    date_column=1,
    metric_columns={
        QUALITY: 2,
        HANDLE_TIME_SECONDS: 3,
        RETENTION_RATE: 4,
        CUSTOMER_VOICE_SCORE: 5,
    },
)

MIN_COLUMNS = 2

# Single-metric report types and the metric each one feeds.
REPORT_TYPE_METRICS: dict[str, str] = {
    ReportType.QUALITY: QUALITY,
    ReportType.HANDLE_TIME: HANDLE_TIME_SECONDS,
    ReportType.RETENTION_RATE: RETENTION_RATE,
    ReportType.CUSTOMER_VOICE: CUSTOMER_VOICE_SCORE,
}

# Generic value headers of single-metric reports, e.g. "Score".
VALUE_COLUMN_KEYWORDS: tuple[str, ...] = ("score", "value")


@dataclass
class _Collector:
    max_errors: int
    log_errors: bool
    rows: list[RawRow] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    dropped_errors: int = 0

    def error(self, line_number: int, message: str) -> None:
        text = f"Line {line_number}: {message}"
        if self.log_errors:
            logger.warning("Tabular ingest error line=%s message=%s", line_number, message)
        if len(self.errors) < self.max_errors:
            self.errors.append(text)
        else:
            self.dropped_errors += 1

    def warning(self, message: str) -> None:
        self.warnings.append(message)


class TabularIngestor:
    """
    Converts raw tabular input into ``RawRow`` objects with ISO dates.
    """

    def __init__(
        self,
        *,
        header_keywords: Sequence[str] = DEFAULT_HEADER_KEYWORDS,
        metric_column_keywords: Mapping[str, Sequence[str]] | None = None,
        max_row_errors: int = 500,
        log_row_errors: bool = True,
    ) -> None:
        self._header_keywords = tuple(keyword.lower() for keyword in header_keywords)
        self._metric_column_keywords: dict[str, tuple[str, ...]] = {
            metric: tuple(keyword.lower() for keyword in keywords)
            for metric, keywords in (metric_column_keywords or DEFAULT_METRIC_COLUMN_KEYWORDS).items()
        }
        self._max_row_errors = max(1, max_row_errors)
        self._log_row_errors = log_row_errors

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def ingest_text(self, text: str) -> IngestResult:
        """
        Parse tab- or comma-delimited text.

        Raises ParseError when the text is empty or no valid row remains.
        """

        numbered_lines = [
            (line_number, line)
            for line_number, line in enumerate((text or "").splitlines(), start=1)
            if line.strip()
        ]
        if not numbered_lines:
            raise ParseError("Input is empty.", errors=["Input is empty."])

        collector = self._collector()
        first_number, first_line = numbered_lines[0]
        delimiter = detect_delimiter(first_line)

        had_header = self.is_header(first_line)
        headers: tuple[str, ...] = ()
        layout = CLIPBOARD_LAYOUT
        body = numbered_lines
        if had_header:
            try:
                headers = tuple(cell.strip() for cell in split_line(first_line, delimiter))
            except MalformedLineError:
                headers = (first_line.strip(),)
            layout = self.layout_from_headers(headers)
            body = numbered_lines[1:]
            collector.warning("Detected header row - skipping first line.")

        for line_number, line in body:
            try:
                cells = split_line(line, delimiter)
            except MalformedLineError as exc:
                collector.error(line_number, str(exc))
                continue
            self._accept(line_number, cells, layout, collector)

        return self._finish(collector, had_header=had_header, headers=headers, layout=layout)

    def ingest_cells(self, rows: Sequence[Sequence[Any]]) -> IngestResult:
        """
        Parse spreadsheet-shaped input: a sequence of rows of typed cells.

        Delimiter detection is skipped. Completely empty rows are ignored.
        """

        numbered_rows = [
            (row_number, [cell_to_text(cell) for cell in row])
            for row_number, row in enumerate(rows, start=1)
        ]
        numbered_rows = [(number, cells) for number, cells in numbered_rows if any(cells)]
        if not numbered_rows:
            raise ParseError("Spreadsheet contains no data.", errors=["Spreadsheet contains no data."])

        collector = self._collector()
        _, first_cells = numbered_rows[0]

        had_header = self.is_header(" ".join(first_cells))
        headers: tuple[str, ...] = ()
        layout = CLIPBOARD_LAYOUT
        body = numbered_rows
        if had_header:
            headers = tuple(first_cells)
            layout = self.layout_from_headers(headers)
            body = numbered_rows[1:]
            collector.warning("Detected header row - skipping first line.")

        for row_number, cells in body:
            self._accept(row_number, cells, layout, collector)

        return self._finish(collector, had_header=had_header, headers=headers, layout=layout)

    # ------------------------------------------------------------------
    # Header and layout detection
    # ------------------------------------------------------------------

    def is_header(self, first_line: str) -> bool:
        lowered = first_line.lower()
        return any(keyword in lowered for keyword in self._header_keywords)

    def layout_from_headers(self, headers: Sequence[str]) -> TabularLayout:
        """
        Locate agent, date, and metric columns by header keywords.

        A column claimed by an earlier field is not reused by a later one.
        """

        lowered = [header.strip().lower() for header in headers]
        used: set[int] = set()

        agent_column = _first_column(lowered, AGENT_COLUMN_KEYWORDS, used)
        if agent_column is None:
            agent_column = 0
        used.add(agent_column)

        date_column = _first_column(lowered, DATE_COLUMN_KEYWORDS, used)
        if date_column is not None:
            used.add(date_column)

        metric_columns: dict[str, int] = {}
        for metric, keywords in self._metric_column_keywords.items():
            column = _first_column(lowered, keywords, used)
            if column is not None:
                metric_columns[metric] = column
                used.add(column)

        return TabularLayout(
            agent_column=agent_column,
            date_column=date_column,
            metric_columns=metric_columns,
        )

    def focus_layout(
        self,
        layout: TabularLayout,
        headers: Sequence[str],
        report_type: str | None,
    ) -> TabularLayout:
        """
        Narrow a layout to the one metric a single-metric report type feeds.

        When that metric has no dedicated column, a generic value column
        ("Score", "Value") is used instead. Other report types keep the layout.
        """

        metric = REPORT_TYPE_METRICS.get((report_type or "").strip().lower())
        if metric is None:
            return layout

        column = layout.metric_columns.get(metric)
        if column is None:
            claimed = (layout.agent_column, layout.date_column, *layout.metric_columns.values())
            used = {position for position in claimed if position is not None}
            column = _first_column([header.strip().lower() for header in headers], VALUE_COLUMN_KEYWORDS, used)

        return TabularLayout(
            agent_column=layout.agent_column,
            date_column=layout.date_column,
            metric_columns={metric: column} if column is not None else {},
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _collector(self) -> _Collector:
        return _Collector(max_errors=self._max_row_errors, log_errors=self._log_row_errors)

    def _accept(
        self,
        line_number: int,
        raw_cells: Iterable[str],
        layout: TabularLayout,
        collector: _Collector,
    ) -> None:
        cells = [cell.strip() for cell in raw_cells]

        if len(cells) < MIN_COLUMNS:
            collector.error(line_number, "Insufficient columns (need at least agent name and date).")
            return

        agent_column = layout.agent_column
        if agent_column >= len(cells) or not cells[agent_column]:
            collector.error(line_number, "Agent name is required.")
            return

        date_column = layout.date_column
        if date_column is not None and date_column < len(cells) and cells[date_column]:
            normalized, ok = normalize_date(cells[date_column])
            if ok:
                cells[date_column] = normalized
            else:
                collector.warning(
                    f"Line {line_number}: could not parse date {cells[date_column]!r}; kept as-is."
                )

        collector.rows.append(RawRow(row_index=line_number, cells=tuple(cells)))

    def _finish(
        self,
        collector: _Collector,
        *,
        had_header: bool,
        headers: tuple[str, ...],
        layout: TabularLayout,
    ) -> IngestResult:
        if collector.dropped_errors:
            collector.errors.append(
                f"{collector.dropped_errors} additional row error(s) were not recorded."
            )

        if not collector.rows:
            raise ParseError(
                "No valid data rows found.",
                errors=[*collector.errors, "No valid data rows found."],
                warnings=collector.warnings,
            )

        logger.info(
            "Tabular ingest complete rows=%d errors=%d warnings=%d had_header=%s",
            len(collector.rows),
            len(collector.errors),
            len(collector.warnings),
            had_header,
        )
        return IngestResult(
            rows=collector.rows,
            had_header=had_header,
            headers=headers,
            layout=layout,
            errors=collector.errors,
            warnings=collector.warnings,
        )


def cell_to_text(value: Any) -> str:
    """
    Render a typed spreadsheet cell as text.
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    return str(value).strip()


def _first_column(
    lowered_headers: Sequence[str],
    keywords: Sequence[str],
    used: set[int],
) -> int | None:
    for position, header in enumerate(lowered_headers):
        if position in used:
            continue
        if any(keyword in header for keyword in keywords):
            return position
    return None
