"""
app/validators/compliance_validator.py

Marketplace compliance checks for adapted product records.

Issues are returned as human-readable strings; nothing here raises for a
non-compliant record. Callers decide whether issues block export.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlparse

from app.domain.catalog import AttributeDefinition, MarketplaceTemplate, ProductRecord

IMAGE_EXTENSION_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)
_IMAGE_FIELD_PATTERN = re.compile(r"image(_url)?\d*$")
_IMAGE_LIST_FIELD = "images"


def is_blank(value: Any) -> bool:
    """
    True for values that do not satisfy a required check.
    """

    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def is_valid_image_url(url: Any) -> bool:
    """
    Absolute http(s) URL whose path ends in a known image extension.
    """

    if not isinstance(url, str) or not url.strip():
        return False
    parsed = urlparse(url.strip())
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return False
    return IMAGE_EXTENSION_PATTERN.search(parsed.path) is not None


def _format_bound(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


class ComplianceValidator:
    """
    Validates a candidate record against a marketplace template.
    """

    def validate(self, record: ProductRecord, template: MarketplaceTemplate) -> list[str]:
        issues: list[str] = []
        for attribute in template.attributes:
            issues.extend(self.validate_attribute(attribute, record.get(attribute.name)))
        issues.extend(self._validate_image_list(record.get(_IMAGE_LIST_FIELD)))
        return issues

    def validate_attribute(self, attribute: AttributeDefinition, value: Any) -> list[str]:
        """
        Check one value against one attribute definition.
        """

        name = attribute.name
        if is_blank(value):
            return [f"Missing required field: {name}"] if attribute.required else []

        issues: list[str] = []
        validation = attribute.validation

        if validation is not None and isinstance(value, str):
            if validation.max_length is not None and len(value) > validation.max_length:
                issues.append(f"Field '{name}' exceeds maximum length of {validation.max_length} characters")
            if validation.min_length is not None and len(value) < validation.min_length:
                issues.append(f"Field '{name}' must be at least {validation.min_length} characters")

        if attribute.enum_values and value not in attribute.enum_values:
            issues.append(f"Field '{name}' must be one of: {', '.join(attribute.enum_values)}")

        if attribute.type == "number":
            number = _as_number(value)
            if number is None:
                issues.append(f"Field '{name}' must be a valid number")
            elif validation is not None:
                if validation.min is not None and number < validation.min:
                    issues.append(f"Field '{name}' must be at least {_format_bound(validation.min)}")
                if validation.max is not None and number > validation.max:
                    issues.append(f"Field '{name}' must be at most {_format_bound(validation.max)}")

        if validation is not None and validation.pattern and isinstance(value, str):
            if re.search(validation.pattern, value) is None:
                issues.append(f"Field '{name}' does not match required pattern")

        if name != _IMAGE_LIST_FIELD and _IMAGE_FIELD_PATTERN.search(name):
            issues.extend(self._validate_image_field(name, value))

        return issues

    def _validate_image_list(self, images: Any) -> list[str]:
        if not isinstance(images, (list, tuple)):
            return []
        if not images:
            return ["At least one product image is required"]
        return [
            f"Invalid image URL at position {position}"
            for position, url in enumerate(images, start=1)
            if not is_blank(url) and not is_valid_image_url(url)
        ]

    def _validate_image_field(self, name: str, value: Any) -> list[str]:
        urls = value if isinstance(value, (list, tuple)) else [value]
        return [
            f"Field '{name}' has an invalid image URL at position {position}"
            for position, url in enumerate(urls, start=1)
            if not is_blank(url) and not is_valid_image_url(url)
        ]
