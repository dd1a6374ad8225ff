"""
ingestion/dates.py

Date cell normalization to ISO ``YYYY-MM-DD``.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from dateutil import parser as date_parser

_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_US_DATE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")


def normalize_date(value: str) -> tuple[str, bool]:
    """Normalize a date cell.

    ``YYYY-MM-DD`` passes through, ``MM/DD/YYYY`` and ``MM-DD-YYYY`` are
    reinterpreted by position, and anything else goes through dateutil's
    generic parser.

    Args:
        value: Raw cell text.

    Returns:
        ``(text, ok)`` where ``text`` is the ISO date when ``ok`` is True and
        the original (stripped) value otherwise.
    """
    raw = (value or "").strip()
    if not raw:
        return raw, False

    iso = _ISO_DATE.match(raw)
    if iso:
        return _format_parts(raw, int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))

    us = _US_DATE.match(raw)
    if us:
        return _format_parts(raw, int(us.group(3)), int(us.group(1)), int(us.group(2)))

    try:
        parsed = date_parser.parse(raw)
    except (ValueError, OverflowError):
        return raw, False
    return parsed.date().isoformat(), True


def parse_iso_date(value: str | date | datetime | None) -> date | None:
    """
    Convert an already-normalized value into a ``date``; None when not ISO.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        return None


def _format_parts(raw: str, year: int, month: int, day: int) -> tuple[str, bool]:
    try:
        return date(year, month, day).isoformat(), True
    except ValueError:
        return raw, False
