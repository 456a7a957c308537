"""
app/api/routers/ingestion.py

Spreadsheet ingestion HTTP endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status

from app.api.dependencies import get_sheet_upload
from app.schemas.ingestion import IngestionResponse
from app.services.ingestion_service import (
    SheetIngestionService,
    UnsupportedFileError,
    get_sheet_ingestion_service,
)

router = APIRouter(tags=["ingestion"])


@router.post("/ingestion/upload", response_model=IngestionResponse)
def upload_sheet(
    file: UploadFile = Depends(get_sheet_upload),
    ingestion_service: SheetIngestionService = Depends(get_sheet_ingestion_service),
) -> IngestionResponse:
    """
    Normalize one CSV or Excel sheet into canonical product records.
    """

    try:
        result = ingestion_service.ingest(file_name=file.filename or "", content=file.file.read())
    except UnsupportedFileError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        file.file.close()

    return IngestionResponse(
        file_name=result.file_name,
        total_rows=result.total_rows,
        valid_rows=result.valid_rows,
        records=result.records,
        errors=result.errors,
        field_suggestions=ingestion_service.normalizer.field_mapping_suggestions(result.headers),
    )
