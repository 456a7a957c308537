"""
app/domain/catalog.py

Schema-side domain models: attribute definitions and marketplace templates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

AttributeType = Literal["string", "number", "boolean", "array", "object"]

ATTRIBUTE_TYPES: tuple[str, ...] = ("string", "number", "boolean", "array", "object")

# One catalog item: attribute name -> str | int | float | list[str] | bool | dict.
ProductRecord = dict[str, Any]


class Marketplace(str, Enum):
    """
    Closed set of supported marketplace keys.
    """

    NAMSHI = "namshi"
    AMAZON = "amazon"
    CENTREPOINT = "centrepoint"
    NOON = "noon"
    OUNASS = "ounass"
    SHARAF_DG = "sharaf_dg"

    @classmethod
    def parse(cls, value: "str | Marketplace") -> "Marketplace | None":
        if isinstance(value, Marketplace):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class AttributeValidation:
    """
    Declarative constraints attached to one attribute.
    """

    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    enum: tuple[str, ...] | None = None
    min: float | None = None
    max: float | None = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.min_length, self.max_length, self.pattern, self.enum, self.min, self.max)
        )


@dataclass(frozen=True)
class AttributeDefinition:
    """
    One schema field.
    """

    name: str
    type: AttributeType
    required: bool = False
    validation: AttributeValidation | None = None
    priority: int = 50

    @property
    def enum_values(self) -> tuple[str, ...]:
        if self.validation is None or not self.validation.enum:
            return ()
        return self.validation.enum


@dataclass(frozen=True)
class ImageSpec:
    """
    Image requirements of a marketplace.
    """

    width: int
    height: int
    format: str
    max_size_bytes: int
    aspect_ratio: str | None = None


@dataclass(frozen=True)
class TemplateRules:
    """
    Declarative transformation rules of a marketplace template.

    conditional_fields is informational: it records which optional attributes
    a category calls for but is not enforced by compliance validation.
    """

    category_mappings: dict[str, str] = field(default_factory=dict)
    value_mappings: dict[str, dict[str, str]] = field(default_factory=dict)
    conditional_fields: dict[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class MarketplaceTemplate:
    """
    Target schema for one marketplace. Replaced wholesale on update.
    """

    id: str
    name: str
    version: str
    marketplace: Marketplace
    attributes: tuple[AttributeDefinition, ...]
    image_spec: ImageSpec
    rules: TemplateRules = field(default_factory=TemplateRules)
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_active: bool = True

    def attribute(self, name: str) -> AttributeDefinition | None:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    @property
    def attribute_names(self) -> tuple[str, ...]:
        return tuple(attribute.name for attribute in self.attributes)

    @property
    def required_attributes(self) -> tuple[AttributeDefinition, ...]:
        return tuple(attribute for attribute in self.attributes if attribute.required)
