"""
app/schemas package marker.
"""

from app.schemas.sync import (
    AvailabilityResponse,
    LeaveChangeResponse,
    LeaveStatusUpdateRequest,
    ManualKPIRequest,
    ManualKPIResponse,
    SyncOutcomeResponse,
)
from app.schemas.upload import (
    ClassificationResponse,
    PasteUploadRequest,
    UnmatchedNameResponse,
    UploadAnalysisResponse,
    UploadProcessResponse,
)

__all__ = [
    "AvailabilityResponse",
    "ClassificationResponse",
    "LeaveChangeResponse",
    "LeaveStatusUpdateRequest",
    "ManualKPIRequest",
    "ManualKPIResponse",
    "PasteUploadRequest",
    "SyncOutcomeResponse",
    "UnmatchedNameResponse",
    "UploadAnalysisResponse",
    "UploadProcessResponse",
]
