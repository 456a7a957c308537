"""
app/mappers/field_mapper.py

Field-mapping engine: match source attributes to a target marketplace schema.

Each source attribute gets at most one mapping, to its best-scoring target.
Scoring strategies, in precedence order:

1. exact name match
2. both names in the same curated synonym group
3. type-compatible fuzzy match on normalized names

Required targets receive a boost; a candidate is accepted only when its score
exceeds the acceptance threshold. All constants come from `MappingSettings`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from app.config import MappingSettings, get_mapping_settings
from app.domain.adaptation import AttributeMapping, TransformationKind
from app.domain.catalog import AttributeDefinition
from app.mappers.similarity import normalize_attribute_name, string_similarity
from app.validators.mapping_validator import MappingValidator

logger = logging.getLogger(__name__)

RULE_EXACT = "exact_match"
RULE_SEMANTIC = "semantic_match"
RULE_FUZZY = "type_compatible"
RULE_OVERRIDE = "override"

SYNONYM_GROUPS: dict[str, frozenset[str]] = {
    "title": frozenset({"title", "product_name", "item_name", "name", "product_title"}),
    "brand": frozenset({"brand", "brand_name", "manufacturer", "make"}),
    "category": frozenset({"category", "product_type", "item_type", "type"}),
    "color": frozenset({"color", "colour", "color_name", "primary_color"}),
    "size": frozenset({"size", "size_name", "size_info", "dimensions"}),
    "price": frozenset({"price", "list_price", "selling_price", "retail_price", "cost"}),
    "description": frozenset(
        {"description", "product_description", "long_description", "details"}
    ),
    "images": frozenset({"images", "image_urls", "main_image_url", "photos", "pictures"}),
    "gender": frozenset({"gender", "target_gender", "department_name", "sex"}),
    "material": frozenset({"material", "material_type", "fabric_material", "fabric"}),
}

_COMPATIBLE_TYPES: frozenset[frozenset[str]] = frozenset(
    {
        frozenset({"string", "number"}),
        frozenset({"string", "array"}),
    }
)


@dataclass(frozen=True)
class MatchCandidate:
    """
    Unaccepted score of one source/target pair.
    """

    target: AttributeDefinition
    score: float
    rule: str


def synonym_group(name: str) -> str | None:
    """
    Return the synonym group a normalized attribute name belongs to.
    """

    normalized = normalize_attribute_name(name)
    for group, members in SYNONYM_GROUPS.items():
        if normalized in members:
            return group
    return None


def types_compatible(source_type: str, target_type: str) -> bool:
    if source_type == target_type:
        return True
    return frozenset({source_type, target_type}) in _COMPATIBLE_TYPES


def choose_transformation(source: AttributeDefinition, target: AttributeDefinition) -> TransformationKind:
    if source.name == target.name and source.type == target.type:
        return "direct"
    if source.type != target.type:
        return "calculated"
    if target.enum_values:
        return "mapped"
    return "direct"


def fallback_value(target: AttributeDefinition) -> str | None:
    """
    Placeholder for required targets whose mapped source turns out empty.
    """

    if not target.required:
        return None
    if target.enum_values:
        return target.enum_values[0]
    if target.type == "string":
        return f"Generated {target.name}"
    return None


class FieldMappingEngine:
    """
    Resolve source attributes to target schema attributes with confidence scores.
    """

    def __init__(
        self,
        *,
        settings: MappingSettings | None = None,
        validator: MappingValidator | None = None,
    ) -> None:
        self._settings = settings or get_mapping_settings()
        self._validator = validator or MappingValidator()

    @property
    def settings(self) -> MappingSettings:
        return self._settings

    def score_match(
        self,
        source: AttributeDefinition,
        target: AttributeDefinition,
    ) -> MatchCandidate | None:
        """
        Score one pair before the acceptance threshold is applied.

        Returns None when no strategy matches at all.
        """

        settings = self._settings
        source_name = normalize_attribute_name(source.name)
        target_name = normalize_attribute_name(target.name)

        if source.name == target.name:
            score, rule = 100.0, RULE_EXACT
        else:
            source_group = synonym_group(source_name)
            if source_group is not None and source_group == synonym_group(target_name):
                score, rule = settings.semantic_confidence, RULE_SEMANTIC
            elif types_compatible(source.type, target.type):
                similarity = string_similarity(source_name, target_name)
                if similarity <= settings.fuzzy_similarity_threshold:
                    return None
                score, rule = similarity * settings.fuzzy_weight, RULE_FUZZY
            else:
                return None

        if target.required:
            score += settings.required_boost
        return MatchCandidate(target=target, score=min(100.0, score), rule=rule)

    def best_match(
        self,
        source: AttributeDefinition,
        targets: Sequence[AttributeDefinition],
    ) -> AttributeMapping | None:
        best: MatchCandidate | None = None
        for target in targets:
            candidate = self.score_match(source, target)
            if candidate is None or candidate.score <= self._settings.acceptance_threshold:
                continue
            if best is None or candidate.score > best.score:
                best = candidate

        if best is None:
            return None
        return AttributeMapping(
            source_attribute=source.name,
            target_attribute=best.target.name,
            transformation=choose_transformation(source, best.target),
            confidence=round(best.score),
            rule=best.rule,
            fallback=fallback_value(best.target),
        )

    def map_attributes(
        self,
        source_attrs: Sequence[AttributeDefinition],
        target_attrs: Sequence[AttributeDefinition],
        overrides: Mapping[str, str] | None = None,
    ) -> list[AttributeMapping]:
        """
        Map every source attribute to at most one target, in source order.

        `overrides` pins source -> target pairs ahead of scoring; pinned
        targets are no longer offered to other sources.
        """

        targets_by_name = {target.name: target for target in target_attrs}
        pinned: dict[str, str] = {}
        if overrides:
            self._validator.validate_overrides(
                overrides=overrides,
                source_attributes=[source.name for source in source_attrs],
                target_attributes=list(targets_by_name),
            )
            pinned = dict(overrides)

        open_targets = [target for target in target_attrs if target.name not in set(pinned.values())]
        mappings: list[AttributeMapping] = []
        for source in source_attrs:
            if source.name in pinned:
                target = targets_by_name[pinned[source.name]]
                mappings.append(
                    AttributeMapping(
                        source_attribute=source.name,
                        target_attribute=target.name,
                        transformation=choose_transformation(source, target),
                        confidence=100,
                        rule=RULE_OVERRIDE,
                        fallback=fallback_value(target),
                    )
                )
                continue

            mapping = self.best_match(source, open_targets)
            if mapping is None:
                logger.debug("No target above threshold for source attribute %s", source.name)
                continue
            mappings.append(mapping)

        logger.debug(
            "Mapped %s of %s source attributes onto %s target attributes",
            len(mappings),
            len(source_attrs),
            len(target_attrs),
        )
        return mappings
