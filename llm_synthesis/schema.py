"""Request and result contracts for product content generation."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FieldType = Literal["string", "number", "boolean", "array", "object"]


class FieldSpec(BaseModel):
    """One attribute the generator is asked to fill."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    type: FieldType = "string"
    required: bool = True
    enum: List[str] = Field(default_factory=list)
    max_length: Optional[int] = Field(default=None, ge=1)
    value_map: Dict[str, str] = Field(default_factory=dict)


class ContentGenerationRequest(BaseModel):
    """Everything a content generator may use for one product."""

    model_config = ConfigDict(frozen=True)

    existing_fields: Dict[str, Any] = Field(default_factory=dict)
    missing_fields: List[FieldSpec] = Field(default_factory=list)
    marketplace: str = Field(min_length=1)

    @property
    def field_names(self) -> List[str]:
        return [spec.name for spec in self.missing_fields]


@dataclass(frozen=True)
class GenerationResult:
    """Generated values, or the reason nothing usable was produced.

    Attributes:
        values: Flat mapping of field name to generated value.
        source: Name of the generator that produced the values.
        error: Failure description; ``None`` on success.
    """

    values: Dict[str, Any] = field(default_factory=dict)
    source: str = "rules"
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, source: str, reason: str) -> "GenerationResult":
        return cls(values={}, source=source, error=reason)
