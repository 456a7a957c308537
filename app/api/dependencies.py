"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from pathlib import PurePath

from fastapi import File, HTTPException, UploadFile, status

from app.services.ingestion_service import SUPPORTED_EXTENSIONS


def get_sheet_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV or Excel sheet by extension.
    """

    extension = PurePath((file.filename or "").strip().lower()).suffix
    if extension not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only {', '.join(SUPPORTED_EXTENSIONS)} files are allowed.",
        )

    return file
