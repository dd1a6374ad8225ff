"""
metrics/validation.py

Per-field validation of incoming KPI values.

A rejected field never blocks the other fields of the same row.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from app.domain.metrics import (
    CUSTOMER_VOICE_SCORE,
    HANDLE_TIME_SECONDS,
    METRIC_FIELD_ALIASES,
    QUALITY,
    RETENTION_RATE,
    FieldRejection,
)
from app.errors import FieldValidationError

# (minimum, maximum); None means unbounded.
METRIC_RANGES: dict[str, tuple[float | None, float | None]] = {
    QUALITY: (0.0, 100.0),
    HANDLE_TIME_SECONDS: (0.0, None),
    RETENTION_RATE: (0.0, 100.0),
    CUSTOMER_VOICE_SCORE: (0.0, 100.0),
}


def canonical_field_name(name: str) -> str | None:
    """
    Map a short or full metric name to its canonical field, or None.
    """

    return METRIC_FIELD_ALIASES.get(str(name).strip().lower())


def parse_metric_value(value: Any, *, field: str) -> float | None:
    """
    Parse a raw cell into a float. Blank cells parse to None.

    Percent signs and thousands separators are tolerated ("92%", "1,250").
    """

    if value is None:
        return None
    if isinstance(value, bool):
        raise FieldValidationError(field=field, value=value, message=f"{field} must be numeric.")
    if isinstance(value, (int, float)):
        parsed = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        cleaned = text.replace(",", "").rstrip("%").strip()
        try:
            parsed = float(cleaned)
        except ValueError as exc:
            raise FieldValidationError(
                field=field,
                value=value,
                message=f"{field} must be numeric, got {text!r}.",
            ) from exc

    if not math.isfinite(parsed):
        raise FieldValidationError(field=field, value=value, message=f"{field} must be a finite number.")
    return parsed


def validate_metric_value(field: str, value: float | None) -> float | None:
    """
    Range-check one parsed value. Raises FieldValidationError when out of range.
    """

    if value is None:
        return None
    minimum, maximum = METRIC_RANGES[field]
    if minimum is not None and value < minimum:
        if maximum is None:
            message = f"{field} must be >= {minimum:g}, got {value:g}."
        else:
            message = f"{field} must be between {minimum:g} and {maximum:g}, got {value:g}."
        raise FieldValidationError(field=field, value=value, message=message)
    if maximum is not None and value > maximum:
        message = f"{field} must be between {minimum:g} and {maximum:g}, got {value:g}."
        raise FieldValidationError(field=field, value=value, message=message)
    return value


def validate_metric_fields(
    fields: Mapping[str, Any],
) -> tuple[dict[str, float | None], list[FieldRejection]]:
    """
    Validate a partial metric mapping.

    Returns the accepted canonical fields (None values included, they are
    non-destructive downstream) and a rejection per refused field.
    """

    accepted: dict[str, float | None] = {}
    rejections: list[FieldRejection] = []

    for raw_name, raw_value in fields.items():
        field = canonical_field_name(raw_name)
        if field is None:
            rejections.append(
                FieldRejection(field=str(raw_name), value=raw_value, message=f"Unknown metric field {raw_name!r}.")
            )
            continue
        try:
            accepted[field] = validate_metric_value(field, parse_metric_value(raw_value, field=field))
        except FieldValidationError as exc:
            rejections.append(FieldRejection(field=field, value=exc.value, message=exc.message))

    return accepted, rejections
