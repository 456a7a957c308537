"""
tests/test_attribute_library.py

Pytest unit tests for AttributeSchemaLibrary lookup and inference.
"""

from __future__ import annotations

import pytest

from app.catalog.attribute_library import AttributeSchemaLibrary, infer_priority


@pytest.fixture()
def library() -> AttributeSchemaLibrary:
    return AttributeSchemaLibrary()


class TestLookup:
    def test_known_attribute_is_returned_as_defined(self, library: AttributeSchemaLibrary) -> None:
        price = library.lookup("price")
        assert price is not None
        assert price.type == "number"
        assert price.required is True
        assert price.validation is not None and price.validation.min == 0

    def test_get_applies_overrides_without_touching_library(self, library: AttributeSchemaLibrary) -> None:
        description = library.get("description", validation={"max_length": 1000})
        assert description.validation is not None
        assert description.validation.max_length == 1000
        assert library.lookup("description").validation.max_length == 2000

    def test_get_unknown_name_builds_string_attribute(self, library: AttributeSchemaLibrary) -> None:
        attribute = library.get("sustainability_info", priority=50)
        assert attribute.name == "sustainability_info"
        assert attribute.type == "string"
        assert attribute.required is False


class TestInference:
    def test_numeric_samples_infer_number_with_range(self, library: AttributeSchemaLibrary) -> None:
        records = [{"stock": 3}, {"stock": 10}, {"stock": 7}]
        attribute = library.infer("stock", [3, 10, 7], records)
        assert attribute.type == "number"
        assert attribute.validation.min == 3
        assert attribute.validation.max == 10
        assert attribute.required is True

    def test_string_samples_record_max_length(self, library: AttributeSchemaLibrary) -> None:
        records = [{"fit": "slim"}, {"fit": "regular"}]
        attribute = library.infer("fit_label", ["slim", "regular"], records)
        assert attribute.type == "string"
        assert attribute.validation.max_length == 7

    def test_boolean_array_and_object_samples(self, library: AttributeSchemaLibrary) -> None:
        records = [{}, {}]
        assert library.infer("flag", [True, False], records).type == "boolean"
        assert library.infer("tags_list", [["a"], ["b", "c"]], records).type == "array"
        assert library.infer("specs", [{"a": 1}, {"b": 2}], records).type == "object"

    def test_mixed_samples_fall_back_to_string(self, library: AttributeSchemaLibrary) -> None:
        assert library.infer("mixed", [1, "two"], [{}, {}]).type == "string"

    def test_required_needs_more_than_eighty_percent_presence(self, library: AttributeSchemaLibrary) -> None:
        records = [{"x": "a"}] * 4 + [{}]
        attribute = library.infer("x", ["a", "a", "a", "a", None], records)
        assert attribute.required is False

    def test_extract_attributes_keeps_first_seen_order(self, library: AttributeSchemaLibrary) -> None:
        records = [{"title": "Shirt", "fabric_weight": 180}, {"title": "Dress", "brand": "Acme"}]
        names = [attribute.name for attribute in library.extract_attributes(records)]
        assert names == ["title", "fabric_weight", "brand"]


class TestPriority:
    @pytest.mark.parametrize(
        ("name", "required", "expected"),
        [
            ("vendor_sku", False, 100),
            ("display_name", False, 95),
            ("base_price", False, 90),
            ("sub_category", False, 85),
            ("shoe_size", False, 80),
            ("warranty_years", False, 50),
            ("warranty_years", True, 70),
        ],
    )
    def test_keyword_priorities(self, name: str, required: bool, expected: int) -> None:
        assert infer_priority(name, required) == expected
