"""
ingestion/spreadsheet.py

Decodes uploaded report files into either delimited text or typed cell rows.
"""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from typing import Any

import pandas as pd

from app.errors import ParseError

TEXT_EXTENSIONS = frozenset({"csv", "tsv", "txt"})
WORKBOOK_EXTENSIONS = frozenset({"xlsx", "xls"})
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | WORKBOOK_EXTENSIONS


@dataclass(frozen=True)
class DecodedUpload:
    """
    Upload content in the shape the ingestor expects.

    Exactly one of ``text`` or ``cells`` is populated.
    """

    file_name: str
    file_type: str
    text: str | None = None
    cells: list[list[Any]] | None = None


def file_extension(file_name: str) -> str:
    _, _, extension = (file_name or "").rpartition(".")
    return extension.strip().lower()


def decode_upload(file_name: str, content: bytes) -> DecodedUpload:
    """
    Decode raw upload bytes by file extension.

    Raises ParseError for unsupported, empty, or unreadable files.
    """

    extension = file_extension(file_name)
    if extension not in SUPPORTED_EXTENSIONS:
        raise ParseError(
            f"Unsupported file type {extension or '(none)'!r}.",
            errors=[f"Supported file types: {', '.join(sorted(SUPPORTED_EXTENSIONS))}."],
        )
    if not content:
        raise ParseError("Uploaded file is empty.", errors=["Uploaded file is empty."])

    if extension in TEXT_EXTENSIONS:
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError("File must be UTF-8 encoded.", errors=[str(exc)]) from exc
        return DecodedUpload(file_name=file_name, file_type=extension, text=text)

    return DecodedUpload(
        file_name=file_name,
        file_type=extension,
        cells=read_workbook_rows(content),
    )


def read_workbook_rows(content: bytes) -> list[list[Any]]:
    """
    Read the first worksheet as rows of typed cells; empty cells become None.
    """

    try:
        frame = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object)
    except (ValueError, OSError, zipfile.BadZipFile) as exc:
        raise ParseError("Failed to read spreadsheet.", errors=[str(exc)]) from exc

    frame = frame.astype(object).where(pd.notna(frame), None)
    rows: list[list[Any]] = []
    for values in frame.itertuples(index=False, name=None):
        cells = [value.to_pydatetime() if isinstance(value, pd.Timestamp) else value for value in values]
        rows.append(cells)
    return rows
