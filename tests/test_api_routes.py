"""
tests/test_api_routes.py

HTTP contract tests for the upload and sync routers.

The routers are mounted on a bare FastAPI app; the database session and the
service factories are replaced through dependency overrides so no database
or remote classifier is touched.
"""

from __future__ import annotations

from datetime import date

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.routers import sync_router, upload_router
from app.domain.roster import RosterAgent
from app.domain.sync import CoachingSession, LeaveRecord, LeaveStatus
from app.services.manual_kpi_service import ManualEntryResult, get_manual_kpi_service, merge_manual_records
from app.services.report_pipeline_service import (
    ReportPipeline,
    ReportUploadService,
    get_report_upload_service,
)
from app.services.sync_service import EntityNotFoundError, get_sync_service
from classification.classifier import ReportClassifier
from db.session import get_db
from identity.resolver import IdentityResolver
from ingestion.spreadsheet import DecodedUpload
from ingestion.tabular import TabularIngestor
from metrics.merge import MetricMergeEngine
from metrics.store import InMemoryMetricStore
from sync.engine import CrossEntitySyncEngine
from sync.store import InMemorySyncStore

TODAY = date(2025, 3, 10)
ROSTER = [RosterAgent(id=1, canonical_name="John Smith")]


def _pipeline() -> ReportPipeline:
    return ReportPipeline(
        ingestor=TabularIngestor(log_row_errors=False),
        classifier=ReportClassifier(),
        resolver=IdentityResolver(batch_workers=1),
    )


class InMemoryUploadService(ReportUploadService):
    """Runs the real pipeline against an in-memory roster and metric store."""

    def __init__(self) -> None:
        super().__init__(pipeline=_pipeline())
        self.store = InMemoryMetricStore()

    def _process(self, *, upload: DecodedUpload, db, fallback_date, report_type):
        return self._pipeline.process(
            upload=upload,
            roster=ROSTER,
            merge_engine=MetricMergeEngine(self.store),
            fallback_date=fallback_date,
            report_type=report_type,
        )


class InMemoryKPIService:
    def __init__(self) -> None:
        self.store = InMemoryMetricStore()

    def submit(self, *, db, records) -> ManualEntryResult:
        return merge_manual_records(records, MetricMergeEngine(self.store))


class InMemorySyncService:
    def __init__(self, store: InMemorySyncStore) -> None:
        self._engine = CrossEntitySyncEngine(store, clock=lambda: TODAY)

    def audit_scored(self, *, db, audit_id: int):
        raise EntityNotFoundError("Audit", audit_id)

    def availability(self, *, db, agent_id: int, horizon_days: int | None = None):
        return self._engine.availability(agent_id, horizon_days)


@pytest.fixture()
def upload_service() -> InMemoryUploadService:
    return InMemoryUploadService()


@pytest.fixture()
def kpi_service() -> InMemoryKPIService:
    return InMemoryKPIService()


@pytest.fixture()
def client(upload_service: InMemoryUploadService, kpi_service: InMemoryKPIService) -> TestClient:
    sync_store = InMemorySyncStore(
        sessions=[CoachingSession(id=1, agent_id=1, scheduled_date=date(2025, 3, 11))],
        leave=[
            LeaveRecord(
                id=5,
                agent_id=1,
                start_date=date(2025, 3, 8),
                end_date=date(2025, 3, 12),
                status=LeaveStatus.APPROVED,
            )
        ],
    )

    app = FastAPI()
    app.include_router(upload_router)
    app.include_router(sync_router)
    app.dependency_overrides[get_db] = lambda: None
    app.dependency_overrides[get_report_upload_service] = lambda: upload_service
    app.dependency_overrides[get_manual_kpi_service] = lambda: kpi_service
    app.dependency_overrides[get_sync_service] = lambda: InMemorySyncService(sync_store)
    return TestClient(app)


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


def test_analyze_returns_classification(client: TestClient) -> None:
    response = client.post(
        "/uploads/analyze",
        files={"file": ("quality.csv", b"Agent,Date,Quality\nJohn Smith,03/01/2025,90\n", "text/csv")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["row_count"] == 1
    assert body["had_header"] is True
    assert body["sample_rows"] == [["John Smith", "2025-03-01", "90"]]
    assert body["classification"]["report_type"] == "quality"
    assert body["classification"]["source"] == "heuristic"


def test_unsupported_extension_is_rejected(client: TestClient) -> None:
    response = client.post("/uploads/analyze", files={"file": ("report.pdf", b"%PDF-1.4", "application/pdf")})
    assert response.status_code == 400


def test_unreadable_upload_returns_parse_error(client: TestClient) -> None:
    response = client.post("/uploads/analyze", files={"file": ("quality.csv", b"\n\n", "text/csv")})

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Input is empty."


def test_process_upload_merges_rows(client: TestClient, upload_service: InMemoryUploadService) -> None:
    response = client.post(
        "/uploads/process",
        files={"file": ("aht.csv", b"Agent,Date,AHT\nJohn Smith,2025-03-01,310\nJon Smyth,2025-03-01,300\n", "text/csv")},
        data={"report_type": "aht"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["records_processed"] == 1
    assert body["report_type"] == "aht"
    assert body["errors"] == ['Row 3: Could not match agent "Jon Smyth"']
    assert body["unmatched"][0]["name"] == "Jon Smyth"
    assert body["unmatched"][0]["suggestions"][0]["agent_id"] == 1
    assert upload_service.store.get(1, date(2025, 3, 1)).handle_time_seconds == 310.0


def test_process_rejects_unknown_report_type(client: TestClient) -> None:
    response = client.post(
        "/uploads/process",
        files={"file": ("aht.csv", b"Agent,Date,AHT\nJohn Smith,2025-03-01,310\n", "text/csv")},
        data={"report_type": "weather"},
    )
    assert response.status_code == 400


def test_paste_uses_fallback_date(client: TestClient, upload_service: InMemoryUploadService) -> None:
    response = client.post(
        "/uploads/paste",
        json={"text": "John Smith\t\t92\t300\t85\t90", "fallback_date": "2025-03-15"},
    )

    assert response.status_code == 200
    assert response.json()["records_processed"] == 1
    assert upload_service.store.get(1, date(2025, 3, 15)).quality == 92.0


# ---------------------------------------------------------------------------
# Sync endpoints
# ---------------------------------------------------------------------------


def test_manual_kpi_entry(client: TestClient, kpi_service: InMemoryKPIService) -> None:
    response = client.post(
        "/kpis/manual",
        json={
            "records": [
                {"agent_id": 1, "date": "2025-03-15", "quality": 91},
                {"agent_id": 1, "date": "2025-03-16", "voc": 140},
            ]
        },
    )

    assert response.status_code == 200
    assert response.json() == {
        "records_processed": 1,
        "errors": ["Record 2: customer_voice_score must be between 0 and 100, got 140."],
    }
    assert kpi_service.store.get(1, date(2025, 3, 15)).quality == 91.0


def test_manual_kpi_rejects_unknown_fields(client: TestClient) -> None:
    response = client.post(
        "/kpis/manual",
        json={"records": [{"agent_id": 1, "date": "2025-03-15", "mood": 3}]},
    )
    assert response.status_code == 422


def test_availability(client: TestClient) -> None:
    response = client.get("/agents/1/availability", params={"horizon_days": 7})

    assert response.status_code == 200
    body = response.json()
    assert body["on_leave"] is True
    assert body["available"] is False
    assert body["return_date"] == "2025-03-12"
    assert body["scheduled_sessions"] == [{"session_id": 1, "scheduled_date": "2025-03-11"}]


def test_audit_not_found(client: TestClient) -> None:
    response = client.post("/audits/404/sync")
    assert response.status_code == 404
