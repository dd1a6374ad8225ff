"""
app/services package marker.
"""

from app.services.manual_kpi_service import ManualKPIService, get_manual_kpi_service
from app.services.report_pipeline_service import (
    PipelineResult,
    ReportPipeline,
    ReportUploadService,
    get_report_upload_service,
)
from app.services.sync_service import (
    EntityNotFoundError,
    InvalidLeaveTransitionError,
    SyncService,
    get_sync_service,
)

__all__ = [
    "EntityNotFoundError",
    "InvalidLeaveTransitionError",
    "ManualKPIService",
    "get_manual_kpi_service",
    "PipelineResult",
    "ReportPipeline",
    "ReportUploadService",
    "get_report_upload_service",
    "SyncService",
    "get_sync_service",
]
