"""Remote (LLM-backed) report classifier.

Retries only on JSON parse or schema validation failures. Transport errors
and exhausted retries surface as ClassificationUnavailable so the caller can
fall back to the heuristic classifier.
"""

import logging
from typing import Any, List, Sequence

from app.domain.classification import ClassifiedBatch
from app.errors import ClassificationUnavailable
from classification.adapter import BaseLLMAdapter
from classification.base import BaseClassifier
from classification.inspection import inspect_sample, merge_issues
from classification.prompt_builder import ClassificationPromptBuilder
from classification.schema import ClassifierResponse
from classification.validator import (
    STAGE_JSON_PARSE,
    STAGE_SCHEMA,
    ClassifierOutputValidationError,
    validate_classifier_output,
)

logger = logging.getLogger(__name__)

_RETRYABLE_STAGES = frozenset({STAGE_JSON_PARSE, STAGE_SCHEMA})


class RemoteClassifier(BaseClassifier):
    """Delegates report typing to an LLM and validates its answer.

    Agent discovery, the sample-order date range, and structural issues are
    always recomputed locally and unioned with whatever the model reports.
    """

    name = "remote"

    def __init__(
        self,
        adapter: BaseLLMAdapter,
        prompt_builder: ClassificationPromptBuilder | None = None,
        max_retries: int = 1,
    ) -> None:
        """
        Args:
            adapter: LLM adapter implementing ``generate(prompt) -> str``.
            prompt_builder: Prompt builder; a default one is created if omitted.
            max_retries: Additional attempts after a formatting failure.
        """
        self._adapter = adapter
        self._prompt_builder = prompt_builder or ClassificationPromptBuilder()
        self._max_retries = max(0, max_retries)

    def classify(
        self,
        file_name: str,
        headers: Sequence[str],
        sample_rows: Sequence[Sequence[Any]],
    ) -> ClassifiedBatch:
        prompt = self._prompt_builder.build_prompt(file_name, headers, sample_rows)
        response = self._generate_with_retry(prompt)
        inspection = inspect_sample(headers, sample_rows)

        detected_columns = {column.name: column.type or "unknown" for column in response.columns}
        if not detected_columns:
            detected_columns = inspection.detected_columns

        return ClassifiedBatch(
            report_type=response.report_type,
            confidence=int(round(response.confidence)),
            detected_columns=detected_columns,
            date_range=inspection.date_range,
            agents_found=inspection.agents_found or list(dict.fromkeys(response.agents_found)),
            issues=merge_issues(inspection.issues, response.issues),
            source=self.name,
        )

    def _generate_with_retry(self, prompt: str) -> ClassifierResponse:
        errors: List[ClassifierOutputValidationError] = []
        total_attempts = 1 + self._max_retries

        for attempt in range(1, total_attempts + 1):
            try:
                raw = self._adapter.generate(prompt)
            except Exception as exc:  # noqa: BLE001
                raise ClassificationUnavailable(f"Classifier call failed: {exc}") from exc

            try:
                result = validate_classifier_output(raw)
                if attempt > 1:
                    logger.info(
                        "Classifier output validated on attempt %d/%d",
                        attempt,
                        total_attempts,
                    )
                return result
            except ClassifierOutputValidationError as exc:
                if exc.stage not in _RETRYABLE_STAGES:
                    raise ClassificationUnavailable(str(exc)) from exc
                errors.append(exc)
                logger.warning(
                    "Classifier attempt %d/%d failed at stage '%s': %s",
                    attempt,
                    total_attempts,
                    exc.stage,
                    "; ".join(exc.errors),
                )

        raise ClassificationUnavailable(
            f"Classifier output invalid after {total_attempts} attempt(s). "
            f"Last error: {errors[-1]}"
        )
