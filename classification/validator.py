"""Parsing and schema validation of raw remote classifier output."""

import json
import re
from typing import Any, List

from pydantic import ValidationError

from classification.schema import ClassifierResponse

STAGE_JSON_PARSE = "json_parse"
STAGE_SCHEMA = "schema"

_FENCED = re.compile(r"^```[a-zA-Z]*\s*\n?(?P<body>.*?)\n?\s*```$", re.DOTALL)


class ClassifierOutputValidationError(Exception):
    """Raised when classifier output cannot be turned into a ClassifierResponse.

    Attributes:
        stage: ``json_parse`` or ``schema``.
        errors: Human-readable problems found at that stage.
        raw_response: The untouched model output.
    """

    def __init__(self, stage: str, errors: List[str], raw_response: str) -> None:
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        super().__init__(f"Classifier output rejected at stage '{stage}': " + "; ".join(errors))


def unwrap_fences(text: str) -> str:
    """Return the body of a Markdown code fence, or the stripped text when unfenced."""
    stripped = (text or "").strip()
    fenced = _FENCED.match(stripped)
    return fenced.group("body").strip() if fenced else stripped


def _load_object(raw_response: str) -> Any:
    try:
        return json.loads(unwrap_fences(raw_response))
    except (json.JSONDecodeError, TypeError) as exc:
        raise ClassifierOutputValidationError(STAGE_JSON_PARSE, [str(exc)], raw_response) from exc


def _describe(exc: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or '(root)'}: {error['msg']}"
        for error in exc.errors()
    ]


def validate_classifier_output(raw_response: str) -> ClassifierResponse:
    """Parse a raw response and validate it against ClassifierResponse.

    Raises:
        ClassifierOutputValidationError: ``json_parse`` when the text is not
            JSON; ``schema`` when it is not an object or fails validation.
    """
    data = _load_object(raw_response)
    if not isinstance(data, dict):
        raise ClassifierOutputValidationError(
            STAGE_SCHEMA,
            [f"expected a JSON object, got {type(data).__name__}"],
            raw_response,
        )

    try:
        return ClassifierResponse.model_validate(data)
    except ValidationError as exc:
        raise ClassifierOutputValidationError(STAGE_SCHEMA, _describe(exc), raw_response) from exc
