"""
app/domain/adaptation.py

Result-side domain models produced by ingestion and template adaptation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from app.domain.catalog import AttributeDefinition, ProductRecord

TransformationKind = Literal["direct", "mapped", "calculated", "generated", "split", "merged"]


@dataclass(frozen=True)
class AttributeMapping:
    """
    One resolved source -> target attribute correspondence.
    """

    source_attribute: str
    target_attribute: str
    transformation: TransformationKind
    confidence: int
    rule: str | None = None
    fallback: Any | None = None


@dataclass(frozen=True)
class AdaptationResult:
    """
    Outcome of adapting one record (or record set) to one marketplace template.

    The mapping-level fields are always populated. The record-level fields are
    filled by the orchestrator when a concrete record was adapted.
    """

    mappings: list[AttributeMapping] = field(default_factory=list)
    new_attributes: list[AttributeDefinition] = field(default_factory=list)
    removed_attributes: list[str] = field(default_factory=list)
    renamed_attributes: dict[str, str] = field(default_factory=dict)
    transformations: dict[str, str] = field(default_factory=dict)
    confidence: int = 0
    issues: list[str] = field(default_factory=list)
    marketplace: str | None = None
    original_record: ProductRecord | None = None
    adapted_record: ProductRecord | None = None
    generated_fields: list[str] = field(default_factory=list)
    inferred_fields: list[str] = field(default_factory=list)
    compliance_issues: list[str] = field(default_factory=list)
    succeeded: bool = True

    @classmethod
    def failure(
        cls,
        reason: str,
        *,
        marketplace: str | None = None,
        record: ProductRecord | None = None,
    ) -> "AdaptationResult":
        return cls(
            confidence=0,
            issues=[reason],
            marketplace=marketplace,
            original_record=dict(record) if record is not None else None,
            adapted_record=dict(record) if record is not None else None,
            succeeded=False,
        )


@dataclass(frozen=True)
class BatchProgress:
    """
    Progress snapshot emitted after each batch item.
    """

    current_item: int
    total_items: int
    items_processed: int
    items_successful: int
    items_failed: int
    current_step: str
    estimated_seconds_remaining: float

    @property
    def percentage(self) -> int:
        if self.total_items <= 0:
            return 100
        return round(self.items_processed * 100 / self.total_items)


@dataclass(frozen=True)
class IngestionResult:
    """
    Normalized records and diagnostics for one uploaded sheet.
    """

    records: list[ProductRecord]
    errors: list[str]
    total_rows: int
    valid_rows: int
    file_name: str | None = None
    headers: list[str] = field(default_factory=list)
