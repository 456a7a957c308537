"""
app/schemas/templates.py

Request and response schemas for marketplace template endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.domain.catalog import AttributeDefinition, MarketplaceTemplate


class AttributeValidationResponse(BaseModel):
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    enum: list[str] | None = None
    min: float | None = None
    max: float | None = None


class AttributeDefinitionResponse(BaseModel):
    name: str
    type: str
    required: bool
    priority: int
    validation: AttributeValidationResponse | None = None

    @classmethod
    def from_domain(cls, attribute: AttributeDefinition) -> "AttributeDefinitionResponse":
        validation = None
        if attribute.validation is not None and not attribute.validation.is_empty():
            rule = attribute.validation
            validation = AttributeValidationResponse(
                min_length=rule.min_length,
                max_length=rule.max_length,
                pattern=rule.pattern,
                enum=list(rule.enum) if rule.enum else None,
                min=rule.min,
                max=rule.max,
            )
        return cls(
            name=attribute.name,
            type=attribute.type,
            required=attribute.required,
            priority=attribute.priority,
            validation=validation,
        )


class ImageSpecResponse(BaseModel):
    width: int
    height: int
    format: str
    max_size_bytes: int
    aspect_ratio: str | None = None


class TemplateRulesResponse(BaseModel):
    category_mappings: dict[str, str] = Field(default_factory=dict)
    value_mappings: dict[str, dict[str, str]] = Field(default_factory=dict)
    conditional_fields: dict[str, list[str]] = Field(default_factory=dict)


class MarketplaceTemplateResponse(BaseModel):
    """
    API response model for one marketplace template.
    """

    id: str
    name: str
    version: str
    marketplace: str
    is_active: bool
    last_updated: datetime
    attributes: list[AttributeDefinitionResponse] = Field(default_factory=list)
    image_spec: ImageSpecResponse
    rules: TemplateRulesResponse

    @classmethod
    def from_domain(cls, template: MarketplaceTemplate) -> "MarketplaceTemplateResponse":
        return cls(
            id=template.id,
            name=template.name,
            version=template.version,
            marketplace=template.marketplace.value,
            is_active=template.is_active,
            last_updated=template.last_updated,
            attributes=[AttributeDefinitionResponse.from_domain(attribute) for attribute in template.attributes],
            image_spec=ImageSpecResponse(
                width=template.image_spec.width,
                height=template.image_spec.height,
                format=template.image_spec.format,
                max_size_bytes=template.image_spec.max_size_bytes,
                aspect_ratio=template.image_spec.aspect_ratio,
            ),
            rules=TemplateRulesResponse(
                category_mappings=dict(template.rules.category_mappings),
                value_mappings={name: dict(table) for name, table in template.rules.value_mappings.items()},
                conditional_fields={
                    name: list(fields) for name, fields in template.rules.conditional_fields.items()
                },
            ),
        )


class MarketplaceListResponse(BaseModel):
    marketplaces: list[str] = Field(default_factory=list)


class TemplateUpdateRequest(BaseModel):
    """
    Partial template update. Keys are validated by the registry, so immutable
    or unknown fields produce a structured 400 rather than a schema error.
    """

    changes: dict[str, Any] = Field(..., min_length=1)
