"""
app/api/routers/upload_router.py

Report upload HTTP endpoints: preview, file processing, and clipboard paste.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import get_report_upload
from app.domain.classification import ALL_REPORT_TYPES
from app.errors import DuplicateRosterNameError, ParseError
from app.schemas.upload import (
    ClassificationResponse,
    PasteUploadRequest,
    UnmatchedNameResponse,
    UploadAnalysisResponse,
    UploadProcessResponse,
)
from app.services.report_pipeline_service import (
    PipelineResult,
    ReportUploadService,
    get_report_upload_service,
)
from db.session import get_db

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/analyze", response_model=UploadAnalysisResponse)
def analyze_upload(
    file: UploadFile = Depends(get_report_upload),
    upload_service: ReportUploadService = Depends(get_report_upload_service),
) -> UploadAnalysisResponse:
    """
    Parse and classify a report without writing anything.
    """

    file_name = file.filename or ""
    try:
        analysis = upload_service.analyze(file_name=file_name, content=file.file.read())
    except ParseError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc
    finally:
        file.file.close()

    ingest = analysis.ingest
    return UploadAnalysisResponse(
        file_name=analysis.file_name,
        file_type=analysis.file_type,
        row_count=len(ingest.rows),
        had_header=ingest.had_header,
        headers=list(ingest.headers),
        sample_rows=ingest.sample_rows[:5],
        classification=ClassificationResponse.from_domain(analysis.classification),
        errors=ingest.errors,
        warnings=ingest.warnings,
    )


@router.post("/process", response_model=UploadProcessResponse)
def process_upload(
    file: UploadFile = Depends(get_report_upload),
    report_type: str | None = Form(default=None),
    fallback_date: date | None = Form(default=None),
    db: Session = Depends(get_db),
    upload_service: ReportUploadService = Depends(get_report_upload_service),
) -> UploadProcessResponse:
    """
    Ingest a report and merge its metrics into the daily KPI store.
    """

    if report_type is not None and report_type not in ALL_REPORT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown report_type {report_type!r}.",
        )

    try:
        result = upload_service.process_upload(
            file_name=file.filename or "",
            content=file.file.read(),
            db=db,
            fallback_date=fallback_date,
            report_type=report_type,
        )
    except (ParseError, DuplicateRosterNameError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist KPI records.",
        ) from exc
    finally:
        file.file.close()

    return _to_response(result)


@router.post("/paste", response_model=UploadProcessResponse)
def process_paste(
    payload: PasteUploadRequest,
    db: Session = Depends(get_db),
    upload_service: ReportUploadService = Depends(get_report_upload_service),
) -> UploadProcessResponse:
    """
    Ingest tab- or comma-delimited text pasted from a spreadsheet.
    """

    try:
        result = upload_service.process_paste(
            text=payload.text,
            db=db,
            fallback_date=payload.fallback_date,
        )
    except (ParseError, DuplicateRosterNameError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist KPI records.",
        ) from exc

    return _to_response(result)


def _to_response(result: PipelineResult) -> UploadProcessResponse:
    return UploadProcessResponse(
        records_processed=result.records_processed,
        errors=result.errors,
        warnings=result.warnings,
        report_type=result.report_type,
        classification=(
            ClassificationResponse.from_domain(result.classification)
            if result.classification is not None
            else None
        ),
        unmatched=[
            UnmatchedNameResponse.from_domain(name, match)
            for name, match in result.unmatched.items()
        ],
    )
