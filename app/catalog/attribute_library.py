"""
app/catalog/attribute_library.py

Shared catalog of known e-commerce attribute definitions, plus schema
inference for fields the catalog does not know.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from app.domain.catalog import AttributeDefinition, AttributeType, AttributeValidation, ProductRecord

REQUIRED_PRESENCE_RATE = 0.8

# (substrings, priority) checked in order; first hit wins.
_PRIORITY_KEYWORDS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("sku", "id"), 100),
    (("title", "name"), 95),
    (("price", "brand"), 90),
    (("category", "description"), 85),
    (("color", "size"), 80),
)

_DEFAULT_PRIORITY = 50
_REQUIRED_PRIORITY_BOOST = 20


def _attr(
    name: str,
    type_: AttributeType,
    required: bool,
    priority: int,
    **validation: Any,
) -> AttributeDefinition:
    if "enum" in validation:
        validation["enum"] = tuple(validation["enum"])
    return AttributeDefinition(
        name=name,
        type=type_,
        required=required,
        validation=AttributeValidation(**validation) if validation else None,
        priority=priority,
    )


COMMON_ATTRIBUTES: tuple[AttributeDefinition, ...] = (
    # Product identity
    _attr("sku", "string", True, 100),
    _attr("product_id", "string", True, 100),
    _attr("title", "string", True, 95, max_length=200),
    _attr("product_name", "string", True, 95, max_length=200),
    _attr("brand", "string", True, 90),
    _attr("manufacturer", "string", False, 70),
    # Categorization
    _attr("category", "string", True, 85),
    _attr("subcategory", "string", False, 75),
    _attr("product_type", "string", True, 85),
    _attr("department", "string", False, 70),
    # Physical attributes
    _attr("color", "string", True, 80),
    _attr("size", "string", False, 75),
    _attr("material", "string", False, 70),
    _attr("weight", "number", False, 60, min=0),
    _attr("dimensions", "string", False, 60),
    # Target demographics
    _attr("gender", "string", False, 75, enum=["Men", "Women", "Kids", "Unisex"]),
    _attr("age_group", "string", False, 65, enum=["Adult", "Teen", "Child", "Baby"]),
    # Pricing
    _attr("price", "number", True, 90, min=0),
    _attr("sale_price", "number", False, 70, min=0),
    _attr("currency", "string", False, 60, pattern=r"^[A-Z]{3}$"),
    # Content
    _attr("description", "string", True, 85, max_length=2000),
    _attr("short_description", "string", False, 70, max_length=500),
    _attr("features", "array", False, 65),
    _attr("specifications", "object", False, 65),
    # Media
    _attr("images", "array", True, 85),
    _attr("main_image", "string", True, 90),
    _attr("videos", "array", False, 50),
    # Inventory and logistics
    _attr("stock_quantity", "number", False, 70, min=0),
    _attr("availability", "string", False, 70, enum=["in_stock", "out_of_stock", "pre_order"]),
    _attr("shipping_weight", "number", False, 60, min=0),
    _attr("shipping_dimensions", "string", False, 60),
    # SEO and marketing
    _attr("meta_title", "string", False, 55, max_length=60),
    _attr("meta_description", "string", False, 55, max_length=160),
    _attr("keywords", "array", False, 50),
    _attr("tags", "array", False, 50),
    # Compliance and quality
    _attr("condition", "string", False, 65, enum=["new", "used", "refurbished"]),
    _attr("warranty", "string", False, 55),
    _attr("certifications", "array", False, 55),
    _attr("safety_warnings", "array", False, 60),
    # Marketplace identifiers
    _attr("barcode", "string", False, 65),
    _attr("upc", "string", False, 65, pattern=r"^[0-9]{12}$"),
    _attr("ean", "string", False, 65, pattern=r"^[0-9]{13}$"),
    _attr("isbn", "string", False, 60),
    # Fashion
    _attr("season", "string", False, 60, enum=["Spring", "Summer", "Fall", "Winter", "All Season"]),
    _attr("style", "string", False, 60),
    _attr("pattern", "string", False, 55),
    _attr("fit", "string", False, 55),
    _attr("care_instructions", "string", False, 55),
    # Electronics
    _attr("model_number", "string", False, 70),
    _attr("power_consumption", "string", False, 55),
    _attr("connectivity", "array", False, 55),
    _attr("operating_system", "string", False, 60),
    # Home and garden
    _attr("room_type", "string", False, 55),
    _attr("assembly_required", "boolean", False, 55),
    _attr("installation_type", "string", False, 50),
    # Beauty and health
    _attr("skin_type", "string", False, 55),
    _attr("ingredients", "array", False, 60),
    _attr("expiry_date", "string", False, 65),
    _attr("volume", "string", False, 60),
    # Sports and outdoors
    _attr("sport_type", "string", False, 55),
    _attr("skill_level", "string", False, 50, enum=["Beginner", "Intermediate", "Advanced", "Professional"]),
    _attr("weather_resistance", "string", False, 50),
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def infer_priority(name: str, required: bool) -> int:
    """
    Priority heuristic from keywords in the attribute name.
    """

    lowered = name.lower()
    for keywords, priority in _PRIORITY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return priority
    if required:
        return _DEFAULT_PRIORITY + _REQUIRED_PRIORITY_BOOST
    return _DEFAULT_PRIORITY


class AttributeSchemaLibrary:
    """
    Lookup and inference of attribute definitions.
    """

    def __init__(self, definitions: Iterable[AttributeDefinition] | None = None) -> None:
        self._definitions: dict[str, AttributeDefinition] = {
            definition.name: definition for definition in (definitions or COMMON_ATTRIBUTES)
        }

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def lookup(self, name: str) -> AttributeDefinition | None:
        return self._definitions.get(name)

    def get(self, name: str, **overrides: Any) -> AttributeDefinition:
        """
        Return the library definition for `name` with field overrides applied.

        Unknown names produce a fresh string definition so templates can
        declare marketplace-only fields through the same call.
        """

        if "validation" in overrides and isinstance(overrides["validation"], Mapping):
            validation = dict(overrides["validation"])
            if "enum" in validation:
                validation["enum"] = tuple(validation["enum"])
            overrides["validation"] = AttributeValidation(**validation)

        base = self._definitions.get(name)
        if base is None:
            base = AttributeDefinition(name=name, type="string")
        return dataclasses.replace(base, **overrides) if overrides else base

    def infer(
        self,
        name: str,
        sample_values: Sequence[Any],
        all_records: Sequence[ProductRecord],
    ) -> AttributeDefinition:
        """
        Infer a definition for an unknown field from observed values.
        """

        samples = [value for value in sample_values if value is not None]
        attr_type: AttributeType = "string"
        validation: dict[str, Any] = {}

        if samples and all(_is_number(value) for value in samples):
            attr_type = "number"
            validation["min"] = min(samples)
            validation["max"] = max(samples)
        elif samples and all(isinstance(value, bool) for value in samples):
            attr_type = "boolean"
        elif samples and all(isinstance(value, (list, tuple)) for value in samples):
            attr_type = "array"
        elif samples and all(isinstance(value, Mapping) for value in samples):
            attr_type = "object"
        else:
            lengths = [len(value) for value in samples if isinstance(value, str)]
            if lengths:
                validation["max_length"] = max(lengths)

        total = len(all_records)
        presence_rate = len(samples) / total if total else 0.0
        required = presence_rate > REQUIRED_PRESENCE_RATE

        return AttributeDefinition(
            name=name,
            type=attr_type,
            required=required,
            validation=AttributeValidation(**validation) if validation else None,
            priority=infer_priority(name, required),
        )

    def extract_attributes(self, records: Sequence[ProductRecord]) -> list[AttributeDefinition]:
        """
        Describe every field seen across `records`, in first-seen order.
        """

        extracted: dict[str, AttributeDefinition] = {}
        for record in records:
            for key in record:
                if key in extracted:
                    continue
                known = self._definitions.get(key)
                if known is not None:
                    extracted[key] = known
                    continue
                samples = [item.get(key) for item in records]
                extracted[key] = self.infer(key, samples, records)
        return list(extracted.values())


_default_library: AttributeSchemaLibrary | None = None


def get_attribute_library() -> AttributeSchemaLibrary:
    """Return the shared read-only library, creating it on first call."""
    global _default_library
    if _default_library is None:
        _default_library = AttributeSchemaLibrary()
    return _default_library
