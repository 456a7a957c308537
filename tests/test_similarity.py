from __future__ import annotations

import unittest

from app.mappers.similarity import (
    levenshtein_distance,
    name_similarity,
    normalize_attribute_name,
    string_similarity,
)


class TestSimilarity(unittest.TestCase):
    def test_levenshtein_classic_pairs(self) -> None:
        self.assertEqual(levenshtein_distance("kitten", "sitting"), 3)
        self.assertEqual(levenshtein_distance("", "abc"), 3)
        self.assertEqual(levenshtein_distance("abc", ""), 3)
        self.assertEqual(levenshtein_distance("same", "same"), 0)

    def test_string_similarity_uses_longer_length(self) -> None:
        self.assertAlmostEqual(string_similarity("kitten", "sitting"), 4 / 7)
        self.assertEqual(string_similarity("", ""), 1.0)
        self.assertEqual(string_similarity("abc", "xyz"), 0.0)

    def test_normalize_replaces_each_non_alphanumeric_character(self) -> None:
        self.assertEqual(normalize_attribute_name("Item Name"), "item_name")
        self.assertEqual(normalize_attribute_name("Colour-Name!"), "colour_name_")

    def test_name_similarity_ignores_case_and_separators(self) -> None:
        self.assertEqual(name_similarity("Brand Name", "brand_name"), 1.0)
