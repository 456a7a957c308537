"""
app/validators/mapping_validator.py

Validation for manual attribute mapping overrides.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass
from typing import Any, Sequence


@dataclass(frozen=True)
class MappingErrorDetail:
    """
    Structured mapping error detail.
    """

    code: str
    message: str
    target_attribute: str | None = None
    source_attribute: str | None = None
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "target_attribute": self.target_attribute,
            "source_attribute": self.source_attribute,
            "context": self.context,
        }


class FieldMappingError(ValueError):
    """
    Raised when requested attribute mappings cannot be honoured.
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


class MappingValidator:
    """
    Validates manual source -> target overrides against both schemas.
    """

    def validate_overrides(
        self,
        *,
        overrides: Mapping[str, str],
        source_attributes: Collection[str],
        target_attributes: Collection[str],
    ) -> None:
        """
        Raise FieldMappingError listing every override that cannot be applied.
        """

        errors: list[MappingErrorDetail] = []
        source_set = set(source_attributes)
        target_set = set(target_attributes)
        claimed: dict[str, str] = {}

        for source, target in overrides.items():
            if source not in source_set:
                errors.append(
                    MappingErrorDetail(
                        code="override_source_not_found",
                        message="Override points to a source attribute not present in the records.",
                        target_attribute=target,
                        source_attribute=source,
                        context={"source_attributes": sorted(source_set)},
                    )
                )
            if target not in target_set:
                errors.append(
                    MappingErrorDetail(
                        code="invalid_override_target",
                        message="Override points to an attribute the marketplace template does not define.",
                        target_attribute=target,
                        source_attribute=source,
                    )
                )
            elif target in claimed:
                errors.append(
                    MappingErrorDetail(
                        code="duplicate_override_target",
                        message="Two overrides point to the same target attribute.",
                        target_attribute=target,
                        source_attribute=source,
                        context={"first_source": claimed[target]},
                    )
                )
            else:
                claimed[target] = source

        if errors:
            invalid = ", ".join(sorted({error.source_attribute or "" for error in errors})) or "unknown"
            raise FieldMappingError(
                message=f"Mapping override validation failed for source attributes: {invalid}.",
                errors=errors,
            )
