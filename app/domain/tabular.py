"""
app/domain/tabular.py

Row model produced by the tabular ingestor.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RawRow:
    """
    One data line split into string cells.

    ``row_index`` is the 1-based line number in the source input, so it can
    be quoted back to the operator as-is.
    """

    row_index: int
    cells: tuple[str, ...]

    def value(self, column: int | None) -> str | None:
        """
        Return the stripped cell at ``column``, or None when absent or blank.
        """

        if column is None or column < 0 or column >= len(self.cells):
            return None
        text = self.cells[column].strip()
        return text or None


@dataclass(frozen=True)
class TabularLayout:
    """
    Column positions of the semantic fields found in a table.
    """

    agent_column: int = 0
    date_column: int | None = 1
    metric_columns: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class IngestResult:
    """
    Normalized rows plus the row-level diagnostics collected while parsing.
    """

    rows: list[RawRow]
    had_header: bool
    headers: tuple[str, ...] = ()
    layout: TabularLayout = field(default_factory=TabularLayout)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def sample_rows(self) -> list[list[str]]:
        return [list(row.cells) for row in self.rows]
