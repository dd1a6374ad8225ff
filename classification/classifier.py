"""
classification/classifier.py

Report classifier facade: remote classifier first, heuristic fallback always.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Sequence

from app.config import ClassifierSettings
from app.domain.classification import ClassifiedBatch
from app.errors import ClassificationUnavailable
from classification.adapter import OpenAILLMAdapter
from classification.base import BaseClassifier
from classification.heuristic import HeuristicClassifier
from classification.prompt_builder import SYSTEM_PROMPT, ClassificationPromptBuilder
from classification.remote import RemoteClassifier

logger = logging.getLogger(__name__)

FALLBACK_ISSUE = (
    "Automatic classification unavailable; report type inferred from keywords. "
    "Please verify the data manually."
)


class ReportClassifier:
    """
    Classifies a report and never fails: any primary-classifier failure is
    absorbed and the heuristic result is returned instead.
    """

    def __init__(
        self,
        *,
        primary: BaseClassifier | None = None,
        fallback: BaseClassifier | None = None,
        sample_size: int = 5,
    ) -> None:
        self._primary = primary
        self._fallback = fallback or HeuristicClassifier()
        self._sample_size = max(1, sample_size)

    def classify(
        self,
        file_name: str,
        headers: Sequence[str],
        sample_rows: Sequence[Sequence[Any]],
    ) -> ClassifiedBatch:
        """
        Classify from the file name, headers, and the first few data rows.
        """

        sample = [list(row) for row in list(sample_rows)[: self._sample_size]]
        header_list = [str(header) for header in headers]

        if self._primary is not None:
            try:
                return self._primary.classify(file_name, header_list, sample)
            except ClassificationUnavailable as exc:
                logger.warning(
                    "Primary classifier %s unavailable file=%r: %s",
                    self._primary.name,
                    file_name,
                    exc,
                )
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Primary classifier %s failed unexpectedly file=%r",
                    self._primary.name,
                    file_name,
                )
            batch = self._fallback.classify(file_name, header_list, sample)
            return replace(batch, issues=[*batch.issues, FALLBACK_ISSUE])

        return self._fallback.classify(file_name, header_list, sample)


def build_report_classifier(
    settings: ClassifierSettings,
    *,
    sample_size: int = 5,
) -> ReportClassifier:
    """
    Assemble the classifier from settings. ``adapter="none"`` keeps it heuristic-only.
    """

    if settings.adapter == "none":
        logger.info("Remote classifier disabled; using keyword heuristics only")
        return ReportClassifier(sample_size=sample_size)

    if settings.adapter != "openai":
        raise ValueError(f"Unsupported classifier adapter: {settings.adapter!r}")

    adapter = OpenAILLMAdapter(
        model=settings.model,
        max_tokens=settings.max_tokens,
        api_key=settings.api_key,
        base_url=settings.base_url,
        timeout_seconds=settings.timeout_seconds,
        json_mode=settings.json_mode,
        system_prompt=SYSTEM_PROMPT,
    )
    remote = RemoteClassifier(adapter, ClassificationPromptBuilder(max_rows=sample_size))
    return ReportClassifier(primary=remote, sample_size=sample_size)
