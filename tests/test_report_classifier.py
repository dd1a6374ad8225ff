"""
tests/test_report_classifier.py

Unit tests for report classification: keyword heuristics, remote output
validation, and fallback when the remote classifier is unusable.

All tests are pure Python: the LLM adapter is a scripted stub.
"""

from __future__ import annotations

import json
from typing import Any, Sequence

import pytest

from app.config import ClassifierSettings
from app.domain.classification import ClassifiedBatch, ReportType
from app.errors import ClassificationUnavailable
from classification.adapter import BaseLLMAdapter
from classification.base import BaseClassifier
from classification.classifier import FALLBACK_ISSUE, ReportClassifier, build_report_classifier
from classification.heuristic import HeuristicClassifier
from classification.inspection import inspect_sample, merge_issues
from classification.prompt_builder import ClassificationPromptBuilder
from classification.remote import RemoteClassifier
from classification.validator import ClassifierOutputValidationError, validate_classifier_output

HEADERS = ["Agent Name", "Date", "Quality", "AHT"]
ROWS = [
    ["John Smith", "2025-03-05", "92", "300"],
    ["Jane Doe", "2025-03-01", "88", "310"],
    ["John Smith", "2025-03-03", "90", "305"],
]


class ScriptedAdapter(BaseLLMAdapter):
    """Returns queued responses in order; an Exception entry is raised instead."""

    def __init__(self, responses: Sequence[object]) -> None:
        self._responses = list(responses)
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return str(response)


class BrokenClassifier(BaseClassifier):
    """Primary classifier with a bug: raises something other than ClassificationUnavailable."""

    name = "broken"

    def classify(
        self,
        file_name: str,
        headers: Sequence[str],
        sample_rows: Sequence[Sequence[Any]],
    ) -> ClassifiedBatch:
        raise KeyError("report_type")


def _valid_payload(**overrides: object) -> str:
    payload: dict[str, object] = {
        "reportType": "SRR",
        "confidence": 88.4,
        "agentsFound": ["John Smith"],
        "issues": ["Row 3 is missing an SRR value."],
    }
    payload.update(overrides)
    return json.dumps(payload)


# ---------------------------------------------------------------------------
# Heuristic classifier
# ---------------------------------------------------------------------------


class TestHeuristicClassifier:
    @pytest.mark.parametrize(
        ("file_name", "headers", "expected"),
        [
            ("quality_report.csv", ["Agent", "Date"], ReportType.QUALITY),
            ("weekly.csv", ["Agent Name", "Date", "AHT"], ReportType.HANDLE_TIME),
            ("weekly.csv", ["Agent Name", "Date", "Saves"], ReportType.RETENTION_RATE),
            ("customer_voice.xlsx", ["Agent", "Date"], ReportType.CUSTOMER_VOICE),
            ("weekly.csv", ["Agent Name", "Date", "Hold Time"], ReportType.HOLD_TIME),
            ("march_audit.csv", ["Agent", "Date"], ReportType.AUDIT),
        ],
    )
    def test_keywords_select_report_type(self, file_name: str, headers: list[str], expected: str) -> None:
        report_type, confidence = HeuristicClassifier().detect_report_type(file_name, headers)
        assert report_type == expected
        assert confidence == 70

    def test_earlier_report_type_wins(self) -> None:
        report_type, _ = HeuristicClassifier().detect_report_type("voc_quality.csv", [])
        assert report_type == ReportType.QUALITY

    def test_no_keyword_is_unknown(self) -> None:
        report_type, confidence = HeuristicClassifier().detect_report_type("export.csv", ["Agent", "Date"])
        assert report_type == ReportType.UNKNOWN
        assert confidence == 50

    def test_classify_reports_agents_and_sample_order_range(self) -> None:
        batch = HeuristicClassifier().classify("quality.csv", HEADERS, ROWS)

        assert batch.source == "heuristic"
        assert batch.agents_found == ["John Smith", "Jane Doe"]
        assert batch.date_range.start == "2025-03-05"
        assert batch.date_range.end == "2025-03-03"
        assert batch.detected_columns["Quality"] == "quality_score"
        assert batch.detected_columns["AHT"] == "aht_seconds"
        assert batch.issues == []


class TestInspection:
    def test_structural_issues(self) -> None:
        inspection = inspect_sample(
            ["Agent", "Date", "Quality"],
            [["", "2025-01-01", "90"], ["Ann Lee", "garbage", "80"]],
        )

        assert inspection.issues == [
            "1 sample row(s) have an empty 'Agent' value.",
            "Unparseable date value 'garbage' in column 'Date'.",
        ]

    def test_missing_agent_column(self) -> None:
        inspection = inspect_sample(["Date", "Score"], [["2025-01-01", "90"]])
        assert "No agent name column detected." in inspection.issues
        assert inspection.agents_found == []

    def test_merge_issues_is_ordered_union(self) -> None:
        assert merge_issues(["a", "b"], ["b", " ", "c"]) == ["a", "b", "c"]


# ---------------------------------------------------------------------------
# Remote output validation
# ---------------------------------------------------------------------------


class TestValidator:
    def test_markdown_fences_are_stripped(self) -> None:
        response = validate_classifier_output(f"```json\n{_valid_payload()}\n```")
        assert response.report_type == "srr"
        assert response.confidence == pytest.approx(88.4)

    def test_invalid_json_stage(self) -> None:
        with pytest.raises(ClassifierOutputValidationError) as exc_info:
            validate_classifier_output("not json at all")
        assert exc_info.value.stage == "json_parse"

    def test_missing_report_type_is_schema_error(self) -> None:
        with pytest.raises(ClassifierOutputValidationError) as exc_info:
            validate_classifier_output(json.dumps({"confidence": 90}))
        assert exc_info.value.stage == "schema"

    def test_confidence_out_of_range_is_schema_error(self) -> None:
        with pytest.raises(ClassifierOutputValidationError) as exc_info:
            validate_classifier_output(_valid_payload(confidence=140))
        assert exc_info.value.stage == "schema"

    def test_extra_fields_are_ignored(self) -> None:
        response = validate_classifier_output(_valid_payload(reasoning="looked at headers"))
        assert response.report_type == "srr"


# ---------------------------------------------------------------------------
# Remote classifier and fallback
# ---------------------------------------------------------------------------


class TestRemoteClassifier:
    def test_valid_response_is_used(self) -> None:
        adapter = ScriptedAdapter([_valid_payload()])
        batch = RemoteClassifier(adapter).classify("weekly.csv", HEADERS, ROWS)

        assert batch.source == "remote"
        assert batch.report_type == "srr"
        assert batch.confidence == 88
        assert batch.agents_found == ["John Smith", "Jane Doe"]
        assert batch.date_range.start == "2025-03-05"
        assert "Row 3 is missing an SRR value." in batch.issues

    def test_retries_once_after_bad_json(self) -> None:
        adapter = ScriptedAdapter(["{broken", _valid_payload()])
        batch = RemoteClassifier(adapter, max_retries=1).classify("weekly.csv", HEADERS, ROWS)

        assert batch.report_type == "srr"
        assert len(adapter.prompts) == 2

    def test_exhausted_retries_raise_unavailable(self) -> None:
        adapter = ScriptedAdapter(["{broken", "still broken"])
        with pytest.raises(ClassificationUnavailable):
            RemoteClassifier(adapter, max_retries=1).classify("weekly.csv", HEADERS, ROWS)

    def test_transport_error_is_not_retried(self) -> None:
        adapter = ScriptedAdapter([RuntimeError("connection reset"), _valid_payload()])
        with pytest.raises(ClassificationUnavailable, match="connection reset"):
            RemoteClassifier(adapter).classify("weekly.csv", HEADERS, ROWS)
        assert len(adapter.prompts) == 1

    def test_prompt_includes_headers_and_limited_rows(self) -> None:
        builder = ClassificationPromptBuilder(max_rows=2)
        prompt = builder.build_prompt("weekly.csv", HEADERS, ROWS)

        assert "weekly.csv" in prompt
        assert "Agent Name" in prompt
        assert "2025-03-01" in prompt
        assert "2025-03-03" not in prompt


class TestReportClassifier:
    def test_invalid_remote_output_falls_back_to_heuristic(self) -> None:
        adapter = ScriptedAdapter(["nope", "nope again"])
        classifier = ReportClassifier(primary=RemoteClassifier(adapter, max_retries=1))

        batch = classifier.classify("quality_march.csv", HEADERS, ROWS)

        assert batch.source == "heuristic"
        assert batch.report_type == ReportType.QUALITY
        assert batch.confidence == 70
        assert batch.issues[-1] == FALLBACK_ISSUE
        assert len(adapter.prompts) == 2

    def test_remote_exception_falls_back(self) -> None:
        adapter = ScriptedAdapter([TimeoutError("timed out")])
        classifier = ReportClassifier(primary=RemoteClassifier(adapter))

        batch = classifier.classify("export.csv", ["Agent", "Date"], [["Ann Lee", "2025-03-01"]])

        assert batch.report_type == ReportType.UNKNOWN
        assert batch.confidence == 50
        assert FALLBACK_ISSUE in batch.issues

    def test_unexpected_primary_error_falls_back(self) -> None:
        classifier = ReportClassifier(primary=BrokenClassifier())

        batch = classifier.classify("aht.csv", ["Agent Name", "Date", "AHT"], ROWS)

        assert batch.source == "heuristic"
        assert batch.report_type == ReportType.HANDLE_TIME
        assert batch.issues[-1] == FALLBACK_ISSUE

    def test_remote_success_has_no_fallback_issue(self) -> None:
        classifier = ReportClassifier(primary=RemoteClassifier(ScriptedAdapter([_valid_payload()])))
        batch = classifier.classify("weekly.csv", HEADERS, ROWS)
        assert FALLBACK_ISSUE not in batch.issues

    def test_sample_is_truncated(self) -> None:
        adapter = ScriptedAdapter([_valid_payload()])
        classifier = ReportClassifier(
            primary=RemoteClassifier(adapter, ClassificationPromptBuilder(max_rows=10)),
            sample_size=1,
        )

        classifier.classify("weekly.csv", HEADERS, ROWS)

        assert "Jane Doe" not in adapter.prompts[0]

    def test_heuristic_only_when_no_primary(self) -> None:
        batch = ReportClassifier().classify("aht.csv", ["Agent Name", "Date", "AHT"], ROWS)
        assert batch.report_type == ReportType.HANDLE_TIME
        assert FALLBACK_ISSUE not in batch.issues


class TestBuildReportClassifier:
    def test_none_adapter_is_heuristic_only(self) -> None:
        classifier = build_report_classifier(ClassifierSettings(adapter="none"))
        assert classifier.classify("aht.csv", HEADERS, ROWS).source == "heuristic"

    def test_unknown_adapter_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            build_report_classifier(ClassifierSettings(adapter="carrier-pigeon"))
