"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, HTTPException, UploadFile, status

from ingestion.spreadsheet import SUPPORTED_EXTENSIONS, file_extension


def get_report_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded report has a supported extension.
    """

    extension = file_extension((file.filename or "").strip())
    if extension not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                "Only spreadsheet or delimited text reports are allowed "
                f"({', '.join(sorted(SUPPORTED_EXTENSIONS))})."
            ),
        )

    return file
