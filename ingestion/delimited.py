"""
ingestion/delimited.py

Delimiter detection and line splitting for pasted or uploaded text tables.
"""

from __future__ import annotations

import csv

TAB = "\t"
COMMA = ","


class MalformedLineError(ValueError):
    """
    Raised when a single line cannot be split into cells.
    """


def detect_delimiter(first_line: str) -> str:
    """
    Tab when the first line contains one, comma otherwise.
    """

    return TAB if TAB in first_line else COMMA


def split_line(line: str, delimiter: str) -> list[str]:
    """
    Split one line into raw cells.

    Tab-delimited lines are split verbatim. Comma-delimited lines honour
    double-quoted fields (``csv`` rules, strict), with ``""`` inside quotes as an
    escaped quote.
    """

    if delimiter != COMMA:
        return line.split(delimiter)
    return split_csv_line(line)


def split_csv_line(line: str) -> list[str]:
    try:
        return next(csv.reader([line], strict=True), [])
    except csv.Error as exc:
        raise MalformedLineError("Malformed quoted field.") from exc
