"""
app/validators package marker.
"""

from app.validators.compliance_validator import ComplianceValidator, is_blank, is_valid_image_url
from app.validators.mapping_validator import FieldMappingError, MappingErrorDetail, MappingValidator

__all__ = [
    "ComplianceValidator",
    "FieldMappingError",
    "MappingErrorDetail",
    "MappingValidator",
    "is_blank",
    "is_valid_image_url",
]
