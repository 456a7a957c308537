"""
app/mappers package marker.
"""

from app.mappers.field_mapper import (
    SYNONYM_GROUPS,
    FieldMappingEngine,
    MatchCandidate,
    choose_transformation,
    fallback_value,
    synonym_group,
    types_compatible,
)
from app.mappers.similarity import (
    levenshtein_distance,
    name_similarity,
    normalize_attribute_name,
    string_similarity,
)

__all__ = [
    "SYNONYM_GROUPS",
    "FieldMappingEngine",
    "MatchCandidate",
    "choose_transformation",
    "fallback_value",
    "levenshtein_distance",
    "name_similarity",
    "normalize_attribute_name",
    "string_similarity",
    "synonym_group",
    "types_compatible",
]
