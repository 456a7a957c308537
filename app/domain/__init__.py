"""
app/domain package marker.
"""

from app.domain.adaptation import (
    AdaptationResult,
    AttributeMapping,
    BatchProgress,
    IngestionResult,
    TransformationKind,
)
from app.domain.catalog import (
    AttributeDefinition,
    AttributeType,
    AttributeValidation,
    ImageSpec,
    Marketplace,
    MarketplaceTemplate,
    ProductRecord,
    TemplateRules,
)

__all__ = [
    "AdaptationResult",
    "AttributeDefinition",
    "AttributeMapping",
    "AttributeType",
    "AttributeValidation",
    "BatchProgress",
    "ImageSpec",
    "IngestionResult",
    "Marketplace",
    "MarketplaceTemplate",
    "ProductRecord",
    "TemplateRules",
    "TransformationKind",
]
