"""
app/services/report_pipeline_service.py

Upload pipeline: ingest -> classify -> resolve -> merge.

``ReportPipeline`` is storage-agnostic: it takes the roster and a
MetricMergeEngine from the caller. ``ReportUploadService`` binds it to a
database session, commits the merged rows, records an upload log, and then
triggers coaching effectiveness evaluation for every touched agent.

Row-level failures are accumulated in ``errors``; only input that yields no
usable rows raises ParseError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import (
    get_classifier_settings,
    get_ingestion_settings,
    get_matching_settings,
    get_merge_settings,
)
from app.domain.classification import ClassifiedBatch
from app.domain.metrics import MetricRecord
from app.domain.roster import MatchResult, RosterAgent
from app.domain.tabular import IngestResult
from app.errors import ConflictError
from app.services.sync_service import get_sync_service
from classification.classifier import ReportClassifier, build_report_classifier
from db.repositories.daily_kpi_repository import DailyKPIRepository
from db.repositories.roster_repository import RosterRepository
from db.repositories.upload_log_repository import UploadLogRepository
from identity.nicknames import DEFAULT_NICKNAMES
from identity.resolver import EXACT_CONFIDENCE, IdentityResolver, RosterIndex
from ingestion.dates import parse_iso_date
from ingestion.spreadsheet import DecodedUpload, decode_upload
from ingestion.tabular import CLIPBOARD_HEADERS, TabularIngestor
from metrics.locks import KeyedLockRegistry
from metrics.merge import MetricMergeEngine

logger = logging.getLogger(__name__)

PASTE_FILE_NAME = "clipboard-paste"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReportAnalysis:
    """
    Preview of an upload: parsed rows and their classification. Nothing is written.
    """

    file_name: str
    file_type: str
    ingest: IngestResult
    classification: ClassifiedBatch


@dataclass(frozen=True)
class PipelineResult:
    records_processed: int
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    report_type: str = "unknown"
    classification: ClassifiedBatch | None = None
    unmatched: dict[str, MatchResult] = field(default_factory=dict)
    merged: list[MetricRecord] = field(default_factory=list)

    @property
    def status(self) -> str:
        if self.records_processed == 0:
            return "failed"
        if self.errors:
            return "partial"
        return "completed"


# ---------------------------------------------------------------------------
# Core pipeline
# ---------------------------------------------------------------------------


class ReportPipeline:
    """
    Runs one report through parsing, classification, name resolution, and merge.
    """

    def __init__(
        self,
        *,
        ingestor: TabularIngestor,
        classifier: ReportClassifier,
        resolver: IdentityResolver,
        sample_rows: int = 5,
    ) -> None:
        self._ingestor = ingestor
        self._classifier = classifier
        self._resolver = resolver
        self._sample_rows = max(1, sample_rows)

    def ingest(self, upload: DecodedUpload) -> IngestResult:
        if upload.cells is not None:
            return self._ingestor.ingest_cells(upload.cells)
        return self._ingestor.ingest_text(upload.text or "")

    def analyze(self, upload: DecodedUpload) -> ReportAnalysis:
        ingest = self.ingest(upload)
        return ReportAnalysis(
            file_name=upload.file_name,
            file_type=upload.file_type,
            ingest=ingest,
            classification=self.classify(upload.file_name, ingest),
        )

    def classify(self, file_name: str, ingest: IngestResult) -> ClassifiedBatch:
        headers = ingest.headers if ingest.had_header else CLIPBOARD_HEADERS
        return self._classifier.classify(file_name, headers, ingest.sample_rows[: self._sample_rows])

    def process(
        self,
        *,
        upload: DecodedUpload,
        roster: Sequence[RosterAgent],
        merge_engine: MetricMergeEngine,
        fallback_date: date | None = None,
        report_type: str | None = None,
    ) -> PipelineResult:
        """
        Parse, classify, resolve, and merge one upload.

        Raises ParseError when the upload yields no valid rows and
        DuplicateRosterNameError when the roster cannot be matched against.
        """

        analysis = self.analyze(upload)
        return self.process_rows(
            analysis=analysis,
            roster=roster,
            merge_engine=merge_engine,
            fallback_date=fallback_date,
            report_type=report_type,
        )

    def process_rows(
        self,
        *,
        analysis: ReportAnalysis,
        roster: Sequence[RosterAgent],
        merge_engine: MetricMergeEngine,
        fallback_date: date | None = None,
        report_type: str | None = None,
    ) -> PipelineResult:
        """
        Resolve and merge already-analyzed rows.

        An explicit single-metric ``report_type`` restricts the merge to that
        metric. A classified type only picks a generic value column when no
        metric column was recognized.
        """

        ingest = analysis.ingest
        resolved_type = report_type or analysis.classification.report_type
        layout = ingest.layout
        if report_type or not layout.metric_columns:
            layout = self._ingestor.focus_layout(layout, ingest.headers, resolved_type)
        errors = list(ingest.errors)
        warnings = list(ingest.warnings)

        index = RosterIndex(roster)
        names = [name for name in (row.value(layout.agent_column) for row in ingest.rows) if name]
        matches = self._resolver.resolve_batch(names, index)
        names_by_id = {agent.id: agent.canonical_name for agent in roster}

        for name, match in matches.items():
            if match.matched and match.confidence < EXACT_CONFIDENCE:
                warnings.append(
                    f'Matched "{name}" to "{names_by_id.get(match.agent_id, match.agent_id)}" '
                    f"with {match.confidence}% confidence ({match.strategy}); please verify."
                )

        unmatched: dict[str, MatchResult] = {}
        merged: list[MetricRecord] = []
        records_processed = 0

        for row in ingest.rows:
            label = f"Row {row.row_index}"
            agent_name = row.value(layout.agent_column) or ""
            match = matches.get(agent_name, MatchResult.no_match())
            if not match.matched or match.agent_id is None:
                errors.append(f'{label}: Could not match agent "{agent_name}"')
                unmatched[agent_name] = match
                continue

            raw_date = row.value(layout.date_column)
            day = parse_iso_date(raw_date)
            if day is None:
                if raw_date is None and fallback_date is not None:
                    day = fallback_date
                else:
                    errors.append(f'{label}: Invalid or missing date "{raw_date or ""}"')
                    continue

            fields = {metric: row.value(column) for metric, column in layout.metric_columns.items()}
            if all(value is None for value in fields.values()):
                warnings.append(f"{label}: No metric values found; skipped.")
                continue

            try:
                result = merge_engine.merge(match.agent_id, day, fields)
            except ConflictError as exc:
                errors.append(f"{label}: {exc}")
                continue

            errors.extend(f"{label}: {rejection.message}" for rejection in result.rejections)
            if result.applied_fields:
                records_processed += 1
                merged.append(result.record)

        logger.info(
            "Report processed file=%r type=%s rows=%d processed=%d errors=%d unmatched=%d",
            analysis.file_name,
            resolved_type,
            len(ingest.rows),
            records_processed,
            len(errors),
            len(unmatched),
        )
        return PipelineResult(
            records_processed=records_processed,
            errors=errors,
            warnings=warnings,
            report_type=resolved_type,
            classification=analysis.classification,
            unmatched=unmatched,
            merged=merged,
        )


# ---------------------------------------------------------------------------
# Database-bound service
# ---------------------------------------------------------------------------


class ReportUploadService:
    """
    Commits pipeline output and triggers effectiveness sync for touched agents.
    """

    def __init__(
        self,
        *,
        pipeline: ReportPipeline,
        merge_max_attempts: int = 3,
    ) -> None:
        self._pipeline = pipeline
        self._merge_max_attempts = max(1, merge_max_attempts)
        self._locks = KeyedLockRegistry()

    def analyze(self, *, file_name: str, content: bytes) -> ReportAnalysis:
        return self._pipeline.analyze(decode_upload(file_name, content))

    def process_upload(
        self,
        *,
        file_name: str,
        content: bytes,
        db: Session,
        fallback_date: date | None = None,
        report_type: str | None = None,
    ) -> PipelineResult:
        return self._process(
            upload=decode_upload(file_name, content),
            db=db,
            fallback_date=fallback_date,
            report_type=report_type,
        )

    def process_paste(
        self,
        *,
        text: str,
        db: Session,
        fallback_date: date | None = None,
    ) -> PipelineResult:
        upload = DecodedUpload(file_name=PASTE_FILE_NAME, file_type="paste", text=text)
        return self._process(upload=upload, db=db, fallback_date=fallback_date, report_type=None)

    def _process(
        self,
        *,
        upload: DecodedUpload,
        db: Session,
        fallback_date: date | None,
        report_type: str | None,
    ) -> PipelineResult:
        roster = RosterRepository(db).list_agents()
        merge_engine = MetricMergeEngine(
            DailyKPIRepository(db, lock_rows=True),
            max_attempts=self._merge_max_attempts,
            locks=self._locks,
        )

        try:
            result = self._pipeline.process(
                upload=upload,
                roster=roster,
                merge_engine=merge_engine,
                fallback_date=fallback_date,
                report_type=report_type,
            )
            UploadLogRepository(db).record(
                file_name=upload.file_name,
                file_type=upload.file_type,
                report_type=result.report_type,
                status=result.status,
                records_processed=result.records_processed,
                errors=result.errors,
                warnings=result.warnings,
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        if result.merged:
            get_sync_service().observe_merged(db=db, records=result.merged)
        return result


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def build_report_pipeline() -> ReportPipeline:
    ingestion = get_ingestion_settings()
    matching = get_matching_settings()
    return ReportPipeline(
        ingestor=TabularIngestor(
            max_row_errors=ingestion.max_row_errors,
            log_row_errors=ingestion.log_row_errors,
        ),
        classifier=build_report_classifier(get_classifier_settings(), sample_size=ingestion.sample_rows),
        resolver=IdentityResolver(
            nicknames=DEFAULT_NICKNAMES,
            max_distance=matching.max_distance,
            accept_confidence=matching.accept_confidence,
            suggestion_limit=matching.suggestion_limit,
            batch_workers=matching.batch_workers,
        ),
        sample_rows=ingestion.sample_rows,
    )


@lru_cache(maxsize=1)
def get_report_upload_service() -> ReportUploadService:
    """
    Build and cache the upload service with env-driven settings.
    """
    return ReportUploadService(
        pipeline=build_report_pipeline(),
        merge_max_attempts=get_merge_settings().max_attempts,
    )
