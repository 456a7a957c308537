"""Structured prompt builder for product content generation."""

import json
from typing import List

from llm_synthesis.schema import ContentGenerationRequest, FieldSpec

_INSTRUCTIONS = """\
Generate missing product content for the {marketplace} marketplace.

STRICT RULES:
- Generate compelling, SEO-optimized content.
- Ensure marketplace compliance: respect allowed values and length limits.
- Maintain consistency with the existing product data.
- Use an appropriate tone for the product category.
- Return strictly valid JSON: one flat object keyed by field name.
- Include ONLY the missing fields listed below.
- Do NOT wrap the JSON in markdown code fences.
"""

_SECTION_TEMPLATE = """\
## {title}
```json
{data}
```
"""


class ContentPromptBuilder:
    """Builds a deterministic prompt for missing-field generation.

    The prompt lists the existing record, then one line per missing
    field with its type and constraints.
    """

    def build_prompt(self, request: ContentGenerationRequest) -> str:
        """Build the full generation prompt for one product.

        Args:
            request: Existing fields, missing field specs and marketplace.

        Returns:
            A fully formatted prompt string ready for LLM consumption.
        """
        existing = json.dumps(request.existing_fields, indent=2, default=str, sort_keys=True)
        return (
            f"{_INSTRUCTIONS.format(marketplace=request.marketplace)}\n"
            f"{_SECTION_TEMPLATE.format(title='Existing Product Data', data=existing)}\n"
            f"## Missing Fields to Generate\n\n"
            f"{self._describe_fields(request.missing_fields)}\n\n"
            f"# TASK\n\n"
            f"Return JSON with the generated fields only."
        )

    def _describe_fields(self, fields: List[FieldSpec]) -> str:
        """Describe each field on its own bullet line.

        Args:
            fields: Specs of the fields to generate.

        Returns:
            Newline-joined bullet list.
        """
        lines = []
        for spec in fields:
            details = [spec.type]
            if spec.required:
                details.append("required")
            if spec.max_length is not None:
                details.append(f"max {spec.max_length} characters")
            if spec.enum:
                details.append("one of: " + ", ".join(spec.enum))
            lines.append(f"- {spec.name} ({', '.join(details)})")
        return "\n".join(lines)
