"""
app/schemas/adaptation.py

Schemas for adaptation preview and batch job endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from app.domain.adaptation import AdaptationResult


class AdaptationRequest(BaseModel):
    records: list[dict[str, Any]] = Field(default_factory=list)
    overrides: dict[str, str] | None = Field(
        default=None,
        description="Optional explicit source -> target attribute mappings",
    )


class AttributeMappingResponse(BaseModel):
    source_attribute: str
    target_attribute: str
    transformation: str
    confidence: int
    rule: str | None = None
    fallback: Any | None = None


class AdaptationResultResponse(BaseModel):
    """
    API response model for one adapted record.
    """

    marketplace: str | None = None
    succeeded: bool
    confidence: int = Field(..., ge=0, le=100)
    mappings: list[AttributeMappingResponse] = Field(default_factory=list)
    new_attributes: list[str] = Field(default_factory=list)
    removed_attributes: list[str] = Field(default_factory=list)
    renamed_attributes: dict[str, str] = Field(default_factory=dict)
    transformations: dict[str, str] = Field(default_factory=dict)
    issues: list[str] = Field(default_factory=list)
    compliance_issues: list[str] = Field(default_factory=list)
    generated_fields: list[str] = Field(default_factory=list)
    inferred_fields: list[str] = Field(default_factory=list)
    original_record: dict[str, Any] | None = None
    adapted_record: dict[str, Any] | None = None

    @classmethod
    def from_domain(cls, result: AdaptationResult) -> "AdaptationResultResponse":
        return cls(
            marketplace=result.marketplace,
            succeeded=result.succeeded,
            confidence=result.confidence,
            mappings=[
                AttributeMappingResponse(
                    source_attribute=mapping.source_attribute,
                    target_attribute=mapping.target_attribute,
                    transformation=mapping.transformation,
                    confidence=mapping.confidence,
                    rule=mapping.rule,
                    fallback=mapping.fallback,
                )
                for mapping in result.mappings
            ],
            new_attributes=[attribute.name for attribute in result.new_attributes],
            removed_attributes=list(result.removed_attributes),
            renamed_attributes=dict(result.renamed_attributes),
            transformations=dict(result.transformations),
            issues=list(result.issues),
            compliance_issues=list(result.compliance_issues),
            generated_fields=list(result.generated_fields),
            inferred_fields=list(result.inferred_fields),
            original_record=result.original_record,
            adapted_record=result.adapted_record,
        )


class AdaptationPreviewResponse(BaseModel):
    marketplace: str
    results: list[AdaptationResultResponse] = Field(default_factory=list)


class AdaptationJobAcceptedResponse(BaseModel):
    job_id: UUID
    marketplace: str
    status: str
    total_items: int
    created_at: datetime


class AdaptationJobStatusResponse(BaseModel):
    job_id: UUID
    marketplace: str
    status: str
    total_items: int
    items_processed: int
    items_successful: int
    items_failed: int
    percentage: int = Field(..., ge=0, le=100)
    current_step: str | None = None
    average_confidence: float | None = None
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None


class AdaptationJobListResponse(BaseModel):
    jobs: list[AdaptationJobStatusResponse] = Field(default_factory=list)


class AdaptationJobResultsResponse(BaseModel):
    job_id: UUID
    status: str
    results: list[dict[str, Any]] = Field(default_factory=list)
