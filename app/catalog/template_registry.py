"""
app/catalog/template_registry.py

Marketplace template registry with versioned, copy-on-write updates.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from app.catalog.attribute_library import AttributeSchemaLibrary, get_attribute_library
from app.catalog.marketplace_templates import build_default_templates
from app.domain.catalog import (
    AttributeDefinition,
    AttributeValidation,
    ImageSpec,
    Marketplace,
    MarketplaceTemplate,
    TemplateRules,
)
from app.repositories.template_store import InMemoryTemplateStore, TemplateStore
from app.validators.mapping_validator import MappingErrorDetail

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "attributes", "image_spec", "rules", "is_active"})
IMMUTABLE_FIELDS = frozenset({"id", "marketplace", "version", "last_updated"})


class UnknownMarketplaceError(KeyError):
    """
    Raised when a marketplace key resolves to no active template.
    """

    def __init__(self, marketplace: str) -> None:
        super().__init__(marketplace)
        self.marketplace = marketplace

    def __str__(self) -> str:
        return f"Unknown marketplace: {self.marketplace}"


class TemplateUpdateError(ValueError):
    """
    Raised when a partial template update cannot be applied.
    """

    def __init__(self, *, message: str, errors: Sequence[MappingErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": [error.to_dict() for error in self.errors],
        }


def increment_version(version: str) -> str:
    """
    Bump the trailing numeric segment: "3.0" -> "3.1", "4.2.9" -> "4.2.10".
    """

    parts = version.strip().split(".")
    if parts and parts[-1].isdigit():
        parts[-1] = str(int(parts[-1]) + 1)
        return ".".join(parts)
    return f"{version.strip()}.1" if version.strip() else "1"


class MarketplaceTemplateRegistry:
    """
    Read-mostly registry of one template per marketplace.
    """

    def __init__(
        self,
        *,
        store: TemplateStore | None = None,
        library: AttributeSchemaLibrary | None = None,
    ) -> None:
        self._library = library or get_attribute_library()
        if store is None:
            store = InMemoryTemplateStore(build_default_templates(self._library).values())
        self._store = store

    @property
    def library(self) -> AttributeSchemaLibrary:
        return self._library

    def get_by_marketplace(self, key: str | Marketplace) -> MarketplaceTemplate | None:
        """
        Resolve an active template by marketplace key, falling back to template id.
        """

        marketplace = Marketplace.parse(key)
        if marketplace is not None:
            template = self._store.get(marketplace)
            if template is not None and template.is_active:
                return template

        raw_key = key.value if isinstance(key, Marketplace) else key.strip()
        for template in self._store.all():
            if template.id == raw_key:
                return template
        return None

    def require(self, key: str | Marketplace) -> MarketplaceTemplate:
        template = self.get_by_marketplace(key)
        if template is None:
            raise UnknownMarketplaceError(key.value if isinstance(key, Marketplace) else str(key))
        return template

    def list_supported_marketplaces(self) -> list[str]:
        seen: list[str] = []
        for template in self._store.all():
            if template.is_active and template.marketplace.value not in seen:
                seen.append(template.marketplace.value)
        return seen

    def update_template(self, key: str | Marketplace, partial: Mapping[str, Any]) -> None:
        """
        Replace the template with a merged copy carrying the next version.
        """

        existing = self.require(key)
        changes = self._coerce_changes(partial)
        updated = dataclasses.replace(
            existing,
            **changes,
            version=increment_version(existing.version),
            last_updated=datetime.now(timezone.utc),
        )
        self._store.put(updated)
        logger.info(
            "Marketplace template updated marketplace=%s id=%s version=%s->%s fields=%s",
            updated.marketplace.value,
            updated.id,
            existing.version,
            updated.version,
            sorted(changes),
        )

    def _coerce_changes(self, partial: Mapping[str, Any]) -> dict[str, Any]:
        errors: list[MappingErrorDetail] = []
        changes: dict[str, Any] = {}

        for field_name, value in partial.items():
            if field_name in IMMUTABLE_FIELDS:
                errors.append(
                    MappingErrorDetail(
                        code="immutable_template_field",
                        message="Template field cannot be changed by an update.",
                        context={"field": field_name},
                    )
                )
                continue
            if field_name not in UPDATABLE_FIELDS:
                errors.append(
                    MappingErrorDetail(
                        code="unknown_template_field",
                        message="Template has no such field.",
                        context={"field": field_name, "allowed": sorted(UPDATABLE_FIELDS)},
                    )
                )
                continue

            try:
                changes[field_name] = self._coerce_field(field_name, value)
            except (TypeError, ValueError) as exc:
                errors.append(
                    MappingErrorDetail(
                        code="invalid_template_value",
                        message=str(exc),
                        context={"field": field_name},
                    )
                )

        if errors:
            fields = ", ".join(sorted({str((error.context or {}).get("field")) for error in errors}))
            raise TemplateUpdateError(
                message=f"Template update rejected for fields: {fields}.",
                errors=errors,
            )
        return changes

    def _coerce_field(self, field_name: str, value: Any) -> Any:
        if field_name == "name":
            if not isinstance(value, str) or not value.strip():
                raise ValueError("Template name must be a non-empty string.")
            return value.strip()
        if field_name == "is_active":
            if not isinstance(value, bool):
                raise TypeError("is_active must be a boolean.")
            return value
        if field_name == "attributes":
            return self._coerce_attributes(value)
        if field_name == "image_spec":
            if isinstance(value, ImageSpec):
                return value
            return ImageSpec(**dict(value))
        if isinstance(value, TemplateRules):
            return value
        raw = dict(value)
        return TemplateRules(
            category_mappings=dict(raw.get("category_mappings") or {}),
            value_mappings={k: dict(v) for k, v in (raw.get("value_mappings") or {}).items()},
            conditional_fields={k: tuple(v) for k, v in (raw.get("conditional_fields") or {}).items()},
        )

    def _coerce_attributes(self, value: Any) -> tuple[AttributeDefinition, ...]:
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise TypeError("attributes must be a list of attribute definitions.")

        attributes: list[AttributeDefinition] = []
        names: set[str] = set()
        for item in value:
            if isinstance(item, AttributeDefinition):
                definition = item
            else:
                raw = dict(item)
                name = raw.pop("name", None)
                if not isinstance(name, str) or not name.strip():
                    raise ValueError("Every attribute needs a name.")
                validation = raw.pop("validation", None)
                if isinstance(validation, Mapping):
                    validation_fields = dict(validation)
                    if validation_fields.get("enum") is not None:
                        validation_fields["enum"] = tuple(validation_fields["enum"])
                    raw["validation"] = AttributeValidation(**validation_fields)
                elif validation is not None:
                    raw["validation"] = validation
                definition = self._library.get(name.strip(), **raw)
            if definition.name in names:
                raise ValueError(f"Duplicate attribute name '{definition.name}'.")
            names.add(definition.name)
            attributes.append(definition)
        return tuple(attributes)


_default_registry: MarketplaceTemplateRegistry | None = None


def get_template_registry() -> MarketplaceTemplateRegistry:
    """Return the shared registry, creating it on first call."""
    global _default_registry
    if _default_registry is None:
        _default_registry = MarketplaceTemplateRegistry()
    return _default_registry
