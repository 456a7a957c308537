"""
app/catalog package marker.
"""

from app.catalog.attribute_library import (
    COMMON_ATTRIBUTES,
    AttributeSchemaLibrary,
    get_attribute_library,
    infer_priority,
)
from app.catalog.marketplace_templates import build_default_templates
from app.catalog.template_registry import (
    MarketplaceTemplateRegistry,
    TemplateUpdateError,
    UnknownMarketplaceError,
    get_template_registry,
    increment_version,
)

__all__ = [
    "COMMON_ATTRIBUTES",
    "AttributeSchemaLibrary",
    "MarketplaceTemplateRegistry",
    "TemplateUpdateError",
    "UnknownMarketplaceError",
    "build_default_templates",
    "get_attribute_library",
    "get_template_registry",
    "increment_version",
    "infer_priority",
]
