"""
tests/test_field_mapper.py

Pytest unit tests for FieldMappingEngine scoring and attribute mapping.

Coverage
--------
- Exact and synonym matches
- Fuzzy threshold boundary (strictly above 0.5 similarity)
- Required-target boost and the 100 cap
- Transformation kinds and required-target fallbacks
- Manual overrides and their validation
"""

from __future__ import annotations

import pytest

from app.config import MappingSettings
from app.domain.catalog import AttributeDefinition, AttributeValidation
from app.mappers.field_mapper import (
    RULE_EXACT,
    RULE_FUZZY,
    RULE_OVERRIDE,
    RULE_SEMANTIC,
    FieldMappingEngine,
    choose_transformation,
    fallback_value,
    synonym_group,
)
from app.validators.mapping_validator import FieldMappingError


def _string(name: str, required: bool = False, enum: list[str] | None = None) -> AttributeDefinition:
    validation = AttributeValidation(enum=tuple(enum)) if enum else None
    return AttributeDefinition(name=name, type="string", required=required, validation=validation)


# Normalized names 100 characters long, differing in 50 / 49 positions.
_BASE = "a" * 100
_HALF_SIMILAR = "a" * 50 + "b" * 50
_JUST_ABOVE_HALF = "a" * 51 + "b" * 49


@pytest.fixture()
def engine() -> FieldMappingEngine:
    return FieldMappingEngine(settings=MappingSettings())


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class TestScoreMatch:
    def test_exact_match_is_100_direct(self, engine: FieldMappingEngine) -> None:
        mapping = engine.best_match(_string("title"), [_string("title")])
        assert mapping is not None
        assert mapping.confidence == 100
        assert mapping.rule == RULE_EXACT
        assert mapping.transformation == "direct"

    def test_synonym_match_scores_semantic_confidence(self, engine: FieldMappingEngine) -> None:
        candidate = engine.score_match(_string("product_name"), _string("title"))
        assert candidate is not None
        assert candidate.score == 95
        assert candidate.rule == RULE_SEMANTIC

    def test_required_boost_is_capped_at_100(self, engine: FieldMappingEngine) -> None:
        candidate = engine.score_match(_string("product_name"), _string("title", required=True))
        assert candidate is not None
        assert candidate.score == 100

    def test_similarity_exactly_half_is_not_a_match(self, engine: FieldMappingEngine) -> None:
        assert engine.score_match(_string(_BASE), _string(_HALF_SIMILAR)) is None
        assert engine.score_match(_string(_BASE), _string(_HALF_SIMILAR, required=True)) is None

    def test_similarity_just_above_half_is_scored(self, engine: FieldMappingEngine) -> None:
        candidate = engine.score_match(_string(_BASE), _string(_JUST_ABOVE_HALF))
        assert candidate is not None
        assert candidate.rule == RULE_FUZZY
        assert candidate.score == pytest.approx(0.51 * 70)

        boosted = engine.score_match(_string(_BASE), _string(_JUST_ABOVE_HALF, required=True))
        assert boosted is not None
        assert boosted.score == pytest.approx(0.51 * 70 + 10)

    def test_fuzzy_boundary_with_open_acceptance(self) -> None:
        engine = FieldMappingEngine(settings=MappingSettings(acceptance_threshold=0.0))

        accepted = engine.map_attributes([_string(_BASE)], [_string(_JUST_ABOVE_HALF)])
        rejected = engine.map_attributes([_string(_BASE)], [_string(_HALF_SIMILAR)])

        assert len(accepted) == 1
        assert accepted[0].confidence == round(0.51 * 70)
        assert rejected == []

    def test_incompatible_types_do_not_fuzzy_match(self, engine: FieldMappingEngine) -> None:
        source = AttributeDefinition(name="in_stock", type="boolean")
        assert engine.score_match(source, _string("in_stocks")) is None

    def test_score_must_exceed_acceptance_threshold(self, engine: FieldMappingEngine) -> None:
        # 0.7 * 70 = 49, below 50 even though similarity passes.
        source = _string("abcdefghij")
        target = _string("abcdefgxyz")
        candidate = engine.score_match(source, target)
        assert candidate is not None
        assert candidate.score == pytest.approx(49.0)
        assert engine.best_match(source, [target]) is None


class TestSynonymGroups:
    @pytest.mark.parametrize(
        ("name", "group"),
        [
            ("Product Name", "title"),
            ("colour", "color"),
            ("list_price", "price"),
            ("department_name", "gender"),
            ("sku", None),
        ],
    )
    def test_group_lookup_normalizes_names(self, name: str, group: str | None) -> None:
        assert synonym_group(name) == group


# ---------------------------------------------------------------------------
# Transformations and fallbacks
# ---------------------------------------------------------------------------


class TestTransformation:
    def test_different_types_are_calculated(self) -> None:
        source = AttributeDefinition(name="price", type="number")
        target = _string("price")
        assert choose_transformation(source, target) == "calculated"

    def test_enum_target_is_mapped(self) -> None:
        assert choose_transformation(_string("sex"), _string("gender", enum=["Men", "Women"])) == "mapped"

    def test_renamed_same_type_is_direct(self) -> None:
        assert choose_transformation(_string("brand"), _string("brand_name")) == "direct"

    def test_fallback_only_for_required_targets(self) -> None:
        assert fallback_value(_string("style")) is None
        assert fallback_value(_string("style", required=True)) == "Generated style"
        assert fallback_value(_string("gender", required=True, enum=["Women", "Men"])) == "Women"
        assert fallback_value(AttributeDefinition(name="price", type="number", required=True)) is None


# ---------------------------------------------------------------------------
# map_attributes
# ---------------------------------------------------------------------------


class TestMapAttributes:
    def test_each_source_maps_at_most_once_in_source_order(self, engine: FieldMappingEngine) -> None:
        sources = [_string("product_name"), _string("brand"), _string("zz_internal_code")]
        targets = [_string("title", required=True), _string("brand_name", required=True)]

        mappings = engine.map_attributes(sources, targets)

        assert [(m.source_attribute, m.target_attribute) for m in mappings] == [
            ("product_name", "title"),
            ("brand", "brand_name"),
        ]
        assert all(m.confidence == 100 for m in mappings)

    def test_first_target_wins_ties(self, engine: FieldMappingEngine) -> None:
        mappings = engine.map_attributes([_string("colour")], [_string("color"), _string("primary_color")])
        assert mappings[0].target_attribute == "color"

    def test_override_pins_target_with_full_confidence(self, engine: FieldMappingEngine) -> None:
        sources = [_string("headline"), _string("title")]
        targets = [_string("title", required=True), _string("subtitle")]

        mappings = engine.map_attributes(sources, targets, overrides={"headline": "title"})

        pinned = mappings[0]
        assert pinned.source_attribute == "headline"
        assert pinned.target_attribute == "title"
        assert pinned.confidence == 100
        assert pinned.rule == RULE_OVERRIDE
        assert all(m.target_attribute != "title" for m in mappings[1:])

    def test_invalid_override_raises_structured_error(self, engine: FieldMappingEngine) -> None:
        with pytest.raises(FieldMappingError) as exc_info:
            engine.map_attributes([_string("headline")], [_string("title")], overrides={"headline": "name"})

        payload = exc_info.value.to_dict()
        assert payload["errors"][0]["code"] == "invalid_override_target"
