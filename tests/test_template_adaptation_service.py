"""
tests/test_template_adaptation_service.py

Pytest unit tests for TemplateAdaptationService analysis, confidence and
mapping application.
"""

from __future__ import annotations

import dataclasses

import pytest

from app.catalog.template_registry import MarketplaceTemplateRegistry
from app.config import AdaptationSettings
from app.domain.adaptation import AttributeMapping
from app.domain.catalog import AttributeDefinition
from app.services.template_adaptation_service import TemplateAdaptationService, calculate_confidence

RECORD = {
    "sku": "TSH001",
    "title": "Premium Cotton T-Shirt",
    "brand": "FashionCo",
    "category": "T-Shirts",
    "material": "Cotton",
    "color": "Navy Blue",
    "price": 29.99,
    "images": ["https://x/a.jpg"],
}


def _mapping(confidence: int) -> AttributeMapping:
    return AttributeMapping(
        source_attribute="a",
        target_attribute="b",
        transformation="direct",
        confidence=confidence,
    )


@pytest.fixture()
def registry() -> MarketplaceTemplateRegistry:
    return MarketplaceTemplateRegistry()


@pytest.fixture()
def service(registry: MarketplaceTemplateRegistry) -> TemplateAdaptationService:
    return TemplateAdaptationService(library=registry.library, settings=AdaptationSettings())


# ---------------------------------------------------------------------------
# calculate_confidence
# ---------------------------------------------------------------------------


class TestCalculateConfidence:
    def test_all_high_confidence_mappings(self) -> None:
        assert calculate_confidence([_mapping(100), _mapping(95)], 0, 0, AdaptationSettings()) == 100

    def test_buckets_high_medium_and_low(self) -> None:
        mappings = [_mapping(90), _mapping(70), _mapping(40)]
        assert calculate_confidence(mappings, 0, 0, AdaptationSettings()) == 57

    def test_bucket_edges(self) -> None:
        # 80 is medium, 60 is low.
        assert calculate_confidence([_mapping(80)], 0, 0, AdaptationSettings()) == 70
        assert calculate_confidence([_mapping(60)], 0, 0, AdaptationSettings()) == 0

    def test_penalties_and_floor(self) -> None:
        assert calculate_confidence([_mapping(100)], 2, 1, AdaptationSettings()) == 87
        assert calculate_confidence([], 3, 0, AdaptationSettings()) == 0

    def test_monotonic_in_new_attribute_count(self) -> None:
        mappings = [_mapping(100), _mapping(75), _mapping(85)]
        scores = [calculate_confidence(mappings, count, 1, AdaptationSettings()) for count in range(25)]
        assert all(later <= earlier for earlier, later in zip(scores, scores[1:]))


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------


class TestAnalyze:
    def test_fashion_record_against_namshi(
        self, service: TemplateAdaptationService, registry: MarketplaceTemplateRegistry
    ) -> None:
        result = service.analyze([RECORD], registry.require("namshi"))

        targets = {mapping.source_attribute: mapping.target_attribute for mapping in result.mappings}
        assert targets == {
            "title": "title",
            "brand": "brand",
            "category": "category",
            "material": "material",
            "color": "color",
            "price": "price",
            "images": "images",
        }
        assert [attribute.name for attribute in result.new_attributes] == ["gender", "description"]
        assert result.removed_attributes == ["sku"]
        assert result.confidence == 87
        assert result.issues == [
            "Required field 'gender' has no mapping and will need to be generated",
            "Required field 'description' has no mapping and will need to be generated",
        ]
        assert result.marketplace == "namshi"

    def test_renames_and_conversions_against_amazon(
        self, service: TemplateAdaptationService, registry: MarketplaceTemplateRegistry
    ) -> None:
        result = service.analyze([RECORD], registry.require("amazon"))

        assert result.renamed_attributes["title"] == "item_name"
        assert result.renamed_attributes["price"] == "list_price"
        assert result.transformations["main_image_url"] == "Convert images from array to string"

    def test_more_unmapped_required_targets_never_raise_confidence(
        self, service: TemplateAdaptationService, registry: MarketplaceTemplateRegistry
    ) -> None:
        namshi = registry.require("namshi")
        scores = []
        for extra in range(4):
            attributes = namshi.attributes + tuple(
                AttributeDefinition(name=f"hs_tariff_code_{index}", type="string", required=True)
                for index in range(extra)
            )
            template = dataclasses.replace(namshi, attributes=attributes)
            scores.append(service.analyze([RECORD], template).confidence)

        assert scores == sorted(scores, reverse=True)
        assert scores[0] > scores[-1]

    def test_null_rate_issue(self, service: TemplateAdaptationService, registry: MarketplaceTemplateRegistry) -> None:
        records = [{"sku": f"S{index}", "brand": None if index < 2 else "Acme"} for index in range(5)]

        result = service.analyze(records, registry.require("noon"))

        assert "High null rate (40%) for brand" in result.issues

    def test_low_confidence_issue(self, service: TemplateAdaptationService, registry: MarketplaceTemplateRegistry) -> None:
        template = dataclasses.replace(
            registry.require("noon"),
            attributes=(AttributeDefinition(name="style_name", type="string", required=True),),
        )

        result = service.analyze([{"style_code": "SC-1"}], template)

        assert result.mappings[0].confidence == 59
        assert "Low confidence mapping: style_code → style_name (59%)" in result.issues


# ---------------------------------------------------------------------------
# apply_mappings
# ---------------------------------------------------------------------------


class TestApplyMappings:
    def test_category_and_value_tables_are_applied(
        self, service: TemplateAdaptationService, registry: MarketplaceTemplateRegistry
    ) -> None:
        namshi = registry.require("namshi")
        record = {**RECORD, "gender": "M"}

        adapted = service.apply_mappings(record, service.analyze([record], namshi), namshi)

        assert adapted["category"] == "Tops/T-Shirts"
        assert adapted["gender"] == "Men"
        assert "sku" not in adapted
        assert record["category"] == "T-Shirts"

    def test_calculated_image_takes_first_url(
        self, service: TemplateAdaptationService, registry: MarketplaceTemplateRegistry
    ) -> None:
        amazon = registry.require("amazon")
        record = {**RECORD, "images": ["https://x/a.jpg", "https://x/b.jpg"]}

        adapted = service.apply_mappings(record, service.analyze([record], amazon), amazon)

        assert adapted["main_image_url"] == "https://x/a.jpg"
        assert adapted["item_name"] == "Premium Cotton T-Shirt"
        assert adapted["item_type"] == "Clothing/Shirts/T-Shirts"
        assert adapted["list_price"] == 29.99

    def test_blank_required_source_uses_fallback(
        self, service: TemplateAdaptationService, registry: MarketplaceTemplateRegistry
    ) -> None:
        namshi = registry.require("namshi")
        record = {**RECORD, "brand": "  "}

        adapted = service.apply_mappings(record, service.analyze([record], namshi), namshi)

        assert adapted["brand"] == "Generated brand"

    def test_override_wins_over_scored_mapping(
        self, service: TemplateAdaptationService, registry: MarketplaceTemplateRegistry
    ) -> None:
        namshi = registry.require("namshi")
        record = {**RECORD, "headline": "Navy Tee"}

        result = service.analyze([record], namshi, overrides={"headline": "title"})
        adapted = service.apply_mappings(record, result, namshi)

        assert adapted["title"] == "Navy Tee"
        assert result.mappings[-1].rule == "override"

    def test_exact_source_beats_synonym_on_shared_required_target(
        self, service: TemplateAdaptationService, registry: MarketplaceTemplateRegistry
    ) -> None:
        namshi = registry.require("namshi")
        record = {"name": "Tee", **RECORD}

        result = service.analyze([record], namshi)
        adapted = service.apply_mappings(record, result, namshi)

        by_source = {mapping.source_attribute: mapping for mapping in result.mappings}
        assert by_source["name"].confidence == by_source["title"].confidence == 100
        assert adapted["title"] == "Premium Cotton T-Shirt"
