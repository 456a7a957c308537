"""Checks raw generated content against the fields that were asked for.

Only requested fields whose values coerce to the declared type survive;
anything else in the model's answer is dropped.
"""

import json
import re
from typing import Any, Dict, List

from llm_synthesis.schema import ContentGenerationRequest, FieldSpec

_FENCED_JSON = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class ContentValidationError(ValueError):
    """Generated content was unusable.

    ``stage`` is "json_parse" (not JSON), "schema" (wrong shape or types) or
    "empty" (none of the requested fields present).
    """

    def __init__(self, stage: str, errors: List[str], raw_response: str) -> None:
        self.stage = stage
        self.errors = list(errors)
        self.raw_response = raw_response
        super().__init__(f"[{stage}] " + "; ".join(self.errors))


def _unwrap(text: str) -> str:
    stripped = text.strip()
    fenced = _FENCED_JSON.match(stripped)
    return fenced.group(1) if fenced else stripped


def _coerce_value(spec: FieldSpec, value: Any) -> Any:
    """Coerce one generated value to its declared type.

    Raises:
        ValueError: If the value cannot represent the field type.
    """
    if value is None:
        raise ValueError("value is null")
    if spec.type == "string":
        if isinstance(value, list):
            value = ", ".join(str(item) for item in value)
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValueError("expected a string")
        text = str(value).strip()
        if not text:
            raise ValueError("empty string")
        if spec.enum and text not in spec.enum:
            raise ValueError(f"must be one of: {', '.join(spec.enum)}")
        if spec.max_length is not None:
            text = text[: spec.max_length]
        return text
    if spec.type == "number":
        if isinstance(value, bool):
            raise ValueError("expected a number")
        return float(value)
    if spec.type == "boolean":
        if not isinstance(value, bool):
            raise ValueError("expected a boolean")
        return value
    if spec.type == "array":
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if not isinstance(value, list):
            raise ValueError("expected an array")
        return value
    if not isinstance(value, dict):
        raise ValueError("expected an object")
    return value


def validate_generated_content(
    raw_response: str,
    request: ContentGenerationRequest,
) -> Dict[str, Any]:
    """Return the requested field values found in ``raw_response``.

    The answer may be wrapped in a markdown code fence. The result can hold
    fewer fields than were requested; ContentValidationError is raised when
    it would hold none.
    """
    try:
        data = json.loads(_unwrap(raw_response))
    except (json.JSONDecodeError, TypeError) as exc:
        raise ContentValidationError("json_parse", [str(exc)], raw_response) from exc

    if not isinstance(data, dict):
        raise ContentValidationError("schema", ["top-level JSON must be an object"], raw_response)

    accepted: Dict[str, Any] = {}
    errors: List[str] = []
    for spec in request.missing_fields:
        if spec.name not in data:
            continue
        try:
            accepted[spec.name] = _coerce_value(spec, data[spec.name])
        except (TypeError, ValueError) as exc:
            errors.append(f"{spec.name}: {exc}")

    if not accepted:
        raise ContentValidationError(
            stage="schema" if errors else "empty",
            errors=errors or ["response contains none of the requested fields"],
            raw_response=raw_response,
        )
    return accepted
