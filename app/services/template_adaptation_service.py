"""
app/services/template_adaptation_service.py

Template adaptation: analyze a record set against a marketplace template and
apply the resulting mappings to individual records.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from app.catalog.attribute_library import AttributeSchemaLibrary, get_attribute_library
from app.config import AdaptationSettings, get_adaptation_settings
from app.domain.adaptation import AdaptationResult, AttributeMapping
from app.domain.catalog import AttributeDefinition, MarketplaceTemplate, ProductRecord
from app.mappers.field_mapper import (
    RULE_EXACT,
    RULE_FUZZY,
    RULE_OVERRIDE,
    RULE_SEMANTIC,
    FieldMappingEngine,
    synonym_group,
)
from app.services.ingestion_service import parse_image_urls, parse_price
from app.validators.compliance_validator import is_blank

logger = logging.getLogger(__name__)

NULL_RATE_SAMPLE_SIZE = 100
HIGH_CONFIDENCE_ABOVE = 80
MEDIUM_CONFIDENCE_ABOVE = 60

_RULE_PRECEDENCE = {RULE_OVERRIDE: 3, RULE_EXACT: 2, RULE_SEMANTIC: 1, RULE_FUZZY: 0}


def calculate_confidence(
    mappings: Sequence[AttributeMapping],
    new_attribute_count: int,
    removed_attribute_count: int,
    settings: AdaptationSettings,
) -> int:
    """
    Bucketed mapping confidence minus flat penalties, floored at 0.

    Mappings above 80 count as 100, those in (60, 80] count as 70, the rest
    count as 0. Each new attribute costs `new_attribute_penalty` points and
    each removed attribute `removed_attribute_penalty` points.
    """

    score = 0.0
    if mappings:
        high = sum(1 for mapping in mappings if mapping.confidence > HIGH_CONFIDENCE_ABOVE)
        medium = sum(
            1
            for mapping in mappings
            if MEDIUM_CONFIDENCE_ABOVE < mapping.confidence <= HIGH_CONFIDENCE_ABOVE
        )
        score = (high * 100 + medium * 70) / len(mappings)

    penalty = (
        new_attribute_count * settings.new_attribute_penalty
        + removed_attribute_count * settings.removed_attribute_penalty
    )
    return round(max(0.0, score - penalty))


def _convert(value: Any, target: AttributeDefinition) -> Any:
    """
    Convert a source value to the target attribute type; None when impossible.
    """

    if target.type == "number":
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return value
        return parse_price(value)
    if target.type == "string":
        if isinstance(value, (list, tuple)):
            if "image" in target.name:
                return str(value[0]) if value else None
            return ", ".join(str(item) for item in value)
        return str(value)
    if target.type == "array":
        if isinstance(value, (list, tuple)):
            return list(value)
        if "image" in target.name:
            return parse_image_urls(value)
        return [part.strip() for part in str(value).split(",") if part.strip()]
    if target.type == "boolean":
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "y"}
    return value


def _lookup(table: Mapping[str, str], value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if value in table:
        return table[value]
    lowered = value.strip().lower()
    for key, mapped in table.items():
        if key.lower() == lowered:
            return mapped
    return value


def _mapping_precedence(mapping: AttributeMapping) -> tuple[int, int, bool]:
    return (
        mapping.confidence,
        _RULE_PRECEDENCE.get(mapping.rule or "", -1),
        mapping.source_attribute == mapping.target_attribute,
    )


class TemplateAdaptationService:
    """
    Builds adaptation results and adapted records for one template.
    """

    def __init__(
        self,
        *,
        library: AttributeSchemaLibrary | None = None,
        mapper: FieldMappingEngine | None = None,
        settings: AdaptationSettings | None = None,
    ) -> None:
        self._library = library or get_attribute_library()
        self._mapper = mapper or FieldMappingEngine()
        self._settings = settings or get_adaptation_settings()

    @property
    def library(self) -> AttributeSchemaLibrary:
        return self._library

    def analyze(
        self,
        records: Sequence[ProductRecord],
        template: MarketplaceTemplate,
        *,
        overrides: Mapping[str, str] | None = None,
    ) -> AdaptationResult:
        """
        Map the attributes seen in `records` onto `template`.
        """

        source_attrs = self._library.extract_attributes(records)
        target_attrs = list(template.attributes)
        mappings = self._mapper.map_attributes(source_attrs, target_attrs, overrides)

        mapped_targets = {mapping.target_attribute for mapping in mappings}
        new_attributes = [
            target for target in target_attrs if target.required and target.name not in mapped_targets
        ]
        target_names = set(template.attribute_names)
        removed_attributes = [source.name for source in source_attrs if source.name not in target_names]
        renamed_attributes = {
            mapping.source_attribute: mapping.target_attribute
            for mapping in mappings
            if mapping.source_attribute != mapping.target_attribute and mapping.transformation == "direct"
        }
        source_types = {source.name: source.type for source in source_attrs}

        result = AdaptationResult(
            mappings=mappings,
            new_attributes=new_attributes,
            removed_attributes=removed_attributes,
            renamed_attributes=renamed_attributes,
            transformations=self._describe_transformations(mappings, template, source_types),
            confidence=calculate_confidence(
                mappings,
                len(new_attributes),
                len(removed_attributes),
                self._settings,
            ),
            issues=self._identify_issues(mappings, new_attributes, records),
            marketplace=template.marketplace.value,
        )
        logger.debug(
            "Template analysis marketplace=%s mappings=%s new=%s removed=%s confidence=%s",
            template.marketplace.value,
            len(mappings),
            len(new_attributes),
            len(removed_attributes),
            result.confidence,
        )
        return result

    def apply_mappings(
        self,
        record: ProductRecord,
        result: AdaptationResult,
        template: MarketplaceTemplate,
    ) -> ProductRecord:
        """
        Return a new record carrying mapped values under target names.

        When several sources map onto one target, the highest-confidence
        mapping with a usable value wins. Equal confidences fall back to rule
        precedence (override, exact, semantic, fuzzy) and then to the source
        that already carries the target name. Removed source attributes are dropped.
        """

        adapted: ProductRecord = dict(record)
        for name in result.removed_attributes:
            adapted.pop(name, None)

        assigned: set[str] = set()
        ordered = sorted(result.mappings, key=_mapping_precedence, reverse=True)
        for mapping in ordered:
            target = template.attribute(mapping.target_attribute)
            if target is None or mapping.target_attribute in assigned:
                continue

            value = self._transform(record.get(mapping.source_attribute), mapping, target, template)
            if is_blank(value):
                value = mapping.fallback
            if value is None:
                continue
            adapted[mapping.target_attribute] = value
            assigned.add(mapping.target_attribute)
        return adapted

    def _transform(
        self,
        value: Any,
        mapping: AttributeMapping,
        target: AttributeDefinition,
        template: MarketplaceTemplate,
    ) -> Any:
        if is_blank(value):
            return None

        if mapping.transformation == "calculated":
            value = _convert(value, target)
            if value is None:
                return None

        value_table = template.rules.value_mappings.get(target.name)
        if value_table:
            value = _lookup(value_table, value)
        if synonym_group(target.name) == "category" and template.rules.category_mappings:
            value = _lookup(template.rules.category_mappings, value)
        return value

    def _describe_transformations(
        self,
        mappings: Sequence[AttributeMapping],
        template: MarketplaceTemplate,
        source_types: Mapping[str, str],
    ) -> dict[str, str]:
        descriptions: dict[str, str] = {}
        for mapping in mappings:
            target = template.attribute(mapping.target_attribute)
            if target is None:
                continue
            if mapping.transformation == "mapped" and target.enum_values:
                descriptions[target.name] = f"Map to enum: {', '.join(target.enum_values)}"
            elif mapping.transformation == "calculated":
                source_type = source_types.get(mapping.source_attribute, "unknown")
                descriptions[target.name] = (
                    f"Convert {mapping.source_attribute} from {source_type} to {target.type}"
                )
        return descriptions

    def _identify_issues(
        self,
        mappings: Sequence[AttributeMapping],
        new_attributes: Sequence[AttributeDefinition],
        records: Sequence[ProductRecord],
    ) -> list[str]:
        issues = [
            f"Required field '{attribute.name}' has no mapping and will need to be generated"
            for attribute in new_attributes
        ]

        threshold = self._settings.low_confidence_threshold
        issues.extend(
            f"Low confidence mapping: {mapping.source_attribute} → {mapping.target_attribute} ({mapping.confidence}%)"
            for mapping in mappings
            if mapping.confidence < threshold
        )

        sample = list(records[:NULL_RATE_SAMPLE_SIZE])
        if sample:
            for mapping in mappings:
                nulls = sum(1 for item in sample if is_blank(item.get(mapping.source_attribute)))
                null_rate = nulls / len(sample)
                if null_rate > self._settings.null_rate_threshold:
                    issues.append(f"High null rate ({round(null_rate * 100)}%) for {mapping.source_attribute}")
        return issues
