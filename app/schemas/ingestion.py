"""
app/schemas/ingestion.py

Response schemas for spreadsheet ingestion endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class IngestionResponse(BaseModel):
    """
    API response model for one normalized upload.
    """

    file_name: str | None = None
    total_rows: int = Field(..., ge=0)
    valid_rows: int = Field(..., ge=0)
    records: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    field_suggestions: dict[str, list[str]] = Field(default_factory=dict)
