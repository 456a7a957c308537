"""
app/mappers/similarity.py

Shared string-similarity helpers for attribute name matching.
"""

from __future__ import annotations

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_attribute_name(name: str) -> str:
    """
    Lower-case a name and replace every non-alphanumeric character with `_`.
    """

    return _NON_ALNUM.sub("_", name.lower())


def levenshtein_distance(left: str, right: str) -> int:
    """
    Classic edit distance (insert, delete, substitute all cost 1).
    """

    if left == right:
        return 0
    if not left:
        return len(right)
    if not right:
        return len(left)

    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            if left_char == right_char:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def string_similarity(left: str, right: str) -> float:
    """
    Return (longer_len - distance) / longer_len, or 1.0 for two empty strings.
    """

    longer_length = max(len(left), len(right))
    if longer_length == 0:
        return 1.0
    return (longer_length - levenshtein_distance(left, right)) / longer_length


def name_similarity(left: str, right: str) -> float:
    """
    Similarity of two attribute names after normalization.
    """

    return string_similarity(normalize_attribute_name(left), normalize_attribute_name(right))
