"""
Repository for upload outcome logging.
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy.orm import Session

from db.models.upload_log import UploadLog


class UploadLogRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def record(
        self,
        *,
        file_name: str,
        file_type: str,
        report_type: str,
        status: str,
        records_processed: int,
        errors: Sequence[str] = (),
        warnings: Sequence[str] = (),
    ) -> UploadLog:
        log = UploadLog(
            file_name=file_name,
            file_type=file_type,
            report_type=report_type,
            status=status,
            records_processed=records_processed,
            errors=list(errors),
            warnings=list(warnings),
        )
        self._session.add(log)
        self._session.flush()
        return log
