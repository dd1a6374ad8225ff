"""
app/errors.py

Error taxonomy shared by the ingestion, matching, merge, and sync layers.

Row-level problems are collected and returned rather than raised; only the
conditions below interrupt a call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from app.domain.roster import MatchResult


class ReportCoreError(Exception):
    """Base exception for every failure raised by the report core."""


class ParseError(ReportCoreError):
    """
    Raised when input is unreadable, empty, or yields zero valid rows.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: Sequence[str] = (),
        warnings: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)
        self.warnings = tuple(warnings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


class ClassificationUnavailable(ReportCoreError):
    """
    Raised by a remote classifier when the call or its response is unusable.

    Never escapes ``ReportClassifier.classify``; it triggers the heuristic path.
    """


class MatchAmbiguous(ReportCoreError):
    """
    Raised by callers that require a confident match and did not get one.
    """

    def __init__(self, input_name: str, result: "MatchResult") -> None:
        super().__init__(
            f"Agent name {input_name!r} could not be matched with enough confidence "
            f"(best confidence {result.confidence})."
        )
        self.input_name = input_name
        self.result = result


class FieldValidationError(ReportCoreError):
    """
    One metric field failed range or type validation.
    """

    def __init__(self, *, field: str, value: Any, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.value = value
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "value": self.value, "message": self.message}


class ConflictError(ReportCoreError):
    """
    Raised by a metric store when a concurrent writer created the same key first.
    """

    def __init__(self, *, agent_id: int, day: Any) -> None:
        super().__init__(f"Concurrent write detected for agent_id={agent_id} date={day}.")
        self.agent_id = agent_id
        self.day = day


class DuplicateRosterNameError(ReportCoreError):
    """
    Raised when two roster agents normalize to the same name.
    """

    def __init__(self, duplicates: dict[str, list[int]]) -> None:
        described = "; ".join(
            f"{name!r} -> agent ids {sorted(ids)}" for name, ids in sorted(duplicates.items())
        )
        super().__init__(f"Roster contains duplicate normalized names: {described}.")
        self.duplicates = {name: sorted(ids) for name, ids in duplicates.items()}

    def to_dict(self) -> dict[str, Any]:
        return {"message": str(self), "duplicates": self.duplicates}
