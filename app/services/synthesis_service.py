"""
app/services/synthesis_service.py

Attribute synthesis: fill target attributes that no source field maps to.

Values come from deterministic text templates keyed on the attribute name.
When an external content generator is configured it is asked first, and
the rule-based generator fills whatever it did not return.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any

from app.config import ContentGenerationSettings, get_content_generation_settings
from app.domain.catalog import AttributeDefinition, MarketplaceTemplate, ProductRecord
from llm_synthesis.adapter import MockLLMAdapter, OpenAILLMAdapter
from llm_synthesis.generator import ContentGenerator, LLMContentGenerator
from llm_synthesis.schema import ContentGenerationRequest, FieldSpec, GenerationResult

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200
SHORT_TITLE_LENGTH = 50

# Record keys that carry the same concept under different marketplace names.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "product_name", "item_name", "product_title"),
    "brand": ("brand", "brand_name", "manufacturer"),
    "category": ("category", "product_type", "item_type"),
    "color": ("color", "colour", "color_name", "primary_color"),
    "material": ("material", "material_type", "fabric_material"),
    "size": ("size", "size_name", "size_info"),
    "gender": ("gender", "target_gender", "department_name", "department"),
    "description": ("description", "product_description", "long_description"),
}

TITLE_FIELDS = frozenset({"title", "product_name", "item_name", "product_title"})
DESCRIPTION_FIELDS = frozenset({"description", "product_description", "long_description"})
KEYWORD_FIELDS = frozenset({"search_terms", "keywords"})
GENDER_FIELDS = frozenset(FIELD_ALIASES["gender"])

ANCILLARY_FIELDS: tuple[str, ...] = ("gender", "age_group", "condition", "availability")

_WOMEN = re.compile(r"\b(women|womens|woman|female|ladies|lady)\b")
_MEN = re.compile(r"\b(men|mens|man|male)\b")
_KIDS = re.compile(r"\b(kid|kids|child|children)\b")
_BABY = re.compile(r"\b(baby|babies|infant|infants)\b")
_TEEN = re.compile(r"\b(teen|teens|teenager)\b")

_CALL_TO_ACTION = " Shop now for the best selection and fast shipping."


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value if item is not None).strip()
    return str(value).strip()


def pick(record: Mapping[str, Any], concept: str) -> str:
    """
    First non-blank value among the record keys that carry `concept`.
    """

    for key in FIELD_ALIASES.get(concept, (concept,)):
        value = _text(record.get(key))
        if value:
            return value
    return ""


def _keyword_text(record: Mapping[str, Any]) -> str:
    return f"{pick(record, 'title')} {pick(record, 'category')}".lower()


def infer_gender(record: Mapping[str, Any]) -> str:
    """
    Existing gender value, else a keyword scan of title and category.
    """

    existing = pick(record, "gender")
    if existing:
        return existing
    text = _keyword_text(record)
    if _WOMEN.search(text):
        return "Women"
    if _MEN.search(text):
        return "Men"
    if _KIDS.search(text):
        return "Kids"
    return "Unisex"


def infer_age_group(record: Mapping[str, Any]) -> str:
    text = _keyword_text(record)
    if _BABY.search(text):
        return "Baby"
    if _KIDS.search(text):
        return "Child"
    if _TEEN.search(text):
        return "Teen"
    return "Adult"


def _mentions(text: str, value: str) -> bool:
    return value.lower() in text.lower()


def generate_title(record: Mapping[str, Any]) -> str:
    brand = pick(record, "brand")
    title = pick(record, "title")
    category = pick(record, "category")
    color = pick(record, "color")
    material = pick(record, "material")

    parts: list[str] = []
    if brand:
        parts.append(brand)
    if title and title != brand:
        parts.append(title)
    elif category:
        parts.append(category)
    if color and not _mentions(" ".join(parts), color):
        parts.append(f"in {color}")
    if material and not _mentions(" ".join(parts), material):
        parts.append(f"({material})")
    return " ".join(parts)[:TITLE_MAX_LENGTH]


def generate_description(record: Mapping[str, Any]) -> str:
    existing = pick(record, "description")
    if existing:
        return existing

    category = pick(record, "category") or "product"
    brand = pick(record, "brand") or "our premium collection"
    material = pick(record, "material")
    color = pick(record, "color")
    size = pick(record, "size")
    gender = pick(record, "gender")

    parts = [f"Discover the perfect {category} from {brand}."]
    if material:
        parts.append(f"Expertly crafted from high-quality {material} for exceptional comfort and durability.")
    if color:
        parts.append(f"This stunning piece comes in {color}, perfect for any occasion.")
    if size:
        parts.append(f"Available in size {size} for the perfect fit.")
    if gender:
        if gender.lower() == "unisex":
            parts.append("Thoughtfully suitable for everyone.")
        else:
            parts.append(f"Thoughtfully designed for {gender.lower()}.")
    parts.append("Perfect for everyday wear and special occasions alike.")
    return " ".join(parts)


def generate_keywords(record: Mapping[str, Any]) -> str:
    keywords = [
        value.lower()
        for value in (
            pick(record, "brand"),
            pick(record, "category"),
            pick(record, "color"),
            pick(record, "material"),
            pick(record, "gender"),
        )
        if value
    ]
    category = pick(record, "category").lower()
    if "shirt" in category:
        keywords.extend(["clothing", "apparel", "fashion"])
    elif "shoe" in category:
        keywords.extend(["footwear", "sneakers", "fashion"])
    return ", ".join(keywords)


def generate_meta_title(record: Mapping[str, Any]) -> str:
    lead = pick(record, "title") or pick(record, "brand")
    category = pick(record, "category")
    return " - ".join(part for part in (lead, category) if part)


def generate_meta_description(record: Mapping[str, Any]) -> str:
    lead = " ".join(part for part in (pick(record, "title") or pick(record, "brand"), pick(record, "category")) if part)
    color = pick(record, "color")
    parts = [f"Shop {lead}." if lead else "Shop now."]
    if color:
        parts.append(f"Available in {color}.")
    parts.append("Free shipping available.")
    return " ".join(parts)


def resolve_enum_value(value: str, spec: FieldSpec) -> str:
    """
    Map a raw value through the field's value table into its enum.
    """

    mapped = spec.value_map.get(value, value)
    if not spec.enum:
        return mapped
    if mapped in spec.enum:
        return mapped
    for option in spec.enum:
        if option.lower() == mapped.lower():
            return option
    return spec.enum[0]


class RuleBasedContentGenerator:
    """
    Deterministic templated content. Always available.
    """

    name = "rules"

    def generate(self, request: ContentGenerationRequest) -> GenerationResult:
        record = request.existing_fields
        return GenerationResult(
            values={spec.name: self.generate_value(spec, record) for spec in request.missing_fields},
            source=self.name,
        )

    def generate_value(self, spec: FieldSpec, record: Mapping[str, Any]) -> Any:
        name = spec.name.lower()
        value: Any
        if name in TITLE_FIELDS:
            value = generate_title(record)
        elif name in DESCRIPTION_FIELDS:
            value = generate_description(record)
        elif name == "bullet_point1":
            value = f"Premium {pick(record, 'category') or 'product'} from {pick(record, 'brand') or 'top brand'}"
        elif name == "bullet_point2":
            value = f"High-quality {pick(record, 'material') or 'materials'} for durability and comfort"
        elif name in KEYWORD_FIELDS:
            keywords = generate_keywords(record)
            value = [part.strip() for part in keywords.split(",") if part.strip()] if spec.type == "array" else keywords
        elif name == "meta_title":
            value = generate_meta_title(record)
        elif name == "meta_description":
            value = generate_meta_description(record)
        elif name in GENDER_FIELDS:
            value = resolve_enum_value(infer_gender(record), spec)
        elif spec.enum:
            value = spec.enum[0]
        else:
            return self._zero_value(spec)

        if isinstance(value, str) and spec.max_length is not None:
            value = value[: spec.max_length]
        return value

    def _zero_value(self, spec: FieldSpec) -> Any:
        if spec.type == "number":
            return 0
        if spec.type == "array":
            return []
        if spec.type == "boolean":
            return False
        if spec.type == "object":
            return {}
        return ""


def field_spec(attribute: AttributeDefinition, template: MarketplaceTemplate | None = None) -> FieldSpec:
    validation = attribute.validation
    value_map: dict[str, str] = {}
    if template is not None:
        value_map = dict(template.rules.value_mappings.get(attribute.name, {}))
    return FieldSpec(
        name=attribute.name,
        type=attribute.type,
        required=attribute.required,
        enum=list(attribute.enum_values),
        max_length=validation.max_length if validation is not None else None,
        value_map=value_map,
    )


class AttributeSynthesisEngine:
    """
    Produces values for attributes that have no mapped source.
    """

    def __init__(
        self,
        *,
        generator: ContentGenerator | None = None,
        fallback: RuleBasedContentGenerator | None = None,
    ) -> None:
        self._fallback = fallback or RuleBasedContentGenerator()
        self._generator = generator or self._fallback

    @property
    def generator_name(self) -> str:
        return getattr(self._generator, "name", type(self._generator).__name__)

    def synthesize(
        self,
        record: ProductRecord,
        missing_required_attrs: Sequence[AttributeDefinition],
        marketplace: str,
        template: MarketplaceTemplate | None = None,
    ) -> dict[str, Any]:
        """
        Return generated values keyed by attribute name.

        External output wins for the fields it returns; rules fill the rest.
        """

        if not missing_required_attrs:
            return {}

        request = ContentGenerationRequest(
            existing_fields=dict(record),
            missing_fields=[field_spec(attribute, template) for attribute in missing_required_attrs],
            marketplace=marketplace,
        )

        external: dict[str, Any] = {}
        if self._generator is not self._fallback:
            external = self._generate_external(request)

        remaining = [spec for spec in request.missing_fields if spec.name not in external]
        values = dict(external)
        if remaining:
            fallback = self._fallback.generate(request.model_copy(update={"missing_fields": remaining}))
            values.update(fallback.values)
        return {spec.name: values[spec.name] for spec in request.missing_fields if spec.name in values}

    def _generate_external(self, request: ContentGenerationRequest) -> dict[str, Any]:
        try:
            result = self._generator.generate(request)
        except Exception as exc:
            logger.warning(
                "Content generator %s raised; using rules marketplace=%s error=%s",
                self.generator_name,
                request.marketplace,
                exc,
                exc_info=True,
            )
            return {}

        if not result.ok:
            logger.info(
                "Content generator %s failed; using rules marketplace=%s error=%s",
                result.source,
                request.marketplace,
                result.error,
            )
            return {}

        requested = set(request.field_names)
        return {name: value for name, value in result.values.items() if name in requested}

    def infer_ancillary_attributes(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """
        Values for gender, age_group, condition and availability the record lacks.
        """

        inferred: dict[str, Any] = {}
        if not _text(record.get("gender")):
            inferred["gender"] = infer_gender(record)
        if not _text(record.get("age_group")):
            inferred["age_group"] = infer_age_group(record)
        if not _text(record.get("condition")):
            inferred["condition"] = "new"
        if not _text(record.get("availability")):
            inferred["availability"] = "in_stock"
        return inferred

    def enhance_title(
        self,
        title: str,
        record: Mapping[str, Any],
        max_length: int | None = None,
    ) -> str:
        if len(title) >= SHORT_TITLE_LENGTH:
            return title

        limit = min(TITLE_MAX_LENGTH, max_length) if max_length is not None else TITLE_MAX_LENGTH

        enhanced = title
        brand = pick(record, "brand")
        if brand and not _mentions(enhanced, brand):
            enhanced = f"{brand} {enhanced}"

        extras = [
            value
            for value in (pick(record, "color"), pick(record, "material"))
            if value and not _mentions(enhanced, value)
        ]
        if extras:
            enhanced = f"{enhanced} - {', '.join(extras)}"
        return enhanced[:limit]

    def enhance_description(
        self,
        description: str,
        record: Mapping[str, Any],
        max_length: int | None = None,
    ) -> str:
        enhanced = description
        additions: list[str] = []
        for concept in ("brand", "material", "color", "size"):
            value = pick(record, concept)
            if value and not _mentions(enhanced, value):
                additions.append(f" Features {value} for enhanced quality.")

        lowered = enhanced.lower()
        if "shop" not in lowered and "buy" not in lowered:
            additions.append(_CALL_TO_ACTION)

        for addition in additions:
            if max_length is not None and len(enhanced) + len(addition) > max_length:
                continue
            enhanced += addition
        return enhanced

    def enhance(
        self,
        record: ProductRecord,
        *,
        title_field: str | None,
        description_field: str | None,
        context: Mapping[str, Any] | None = None,
        title_max_length: int | None = None,
        description_max_length: int | None = None,
    ) -> ProductRecord:
        """
        Return a copy of `record` with an optimized title and description.
        """

        source = context if context is not None else record
        enhanced = dict(record)
        if title_field and isinstance(enhanced.get(title_field), str) and enhanced[title_field]:
            enhanced[title_field] = self.enhance_title(enhanced[title_field], source, max_length=title_max_length)
        if description_field and isinstance(enhanced.get(description_field), str) and enhanced[description_field]:
            enhanced[description_field] = self.enhance_description(
                enhanced[description_field],
                source,
                max_length=description_max_length,
            )
        return enhanced


def build_content_generator(settings: ContentGenerationSettings) -> ContentGenerator:
    """
    Instantiate the generator selected by CONTENT_GENERATOR.

    rules  -> RuleBasedContentGenerator (default)
    mock   -> LLMContentGenerator over MockLLMAdapter
    openai -> LLMContentGenerator over OpenAILLMAdapter; rules without an API key
    """

    if settings.generator == "mock":
        return LLMContentGenerator(MockLLMAdapter(), max_retries=settings.max_retries)
    if settings.generator != "openai":
        return RuleBasedContentGenerator()

    if not settings.api_key:
        logger.warning("CONTENT_GENERATOR=openai but no API key is configured; using rule-based content")
        return RuleBasedContentGenerator()
    adapter = OpenAILLMAdapter(
        model=settings.model,
        max_tokens=settings.max_tokens,
        api_key=settings.api_key,
        base_url=settings.base_url,
        timeout_seconds=settings.timeout_seconds,
    )
    return LLMContentGenerator(adapter, max_retries=settings.max_retries)


@lru_cache(maxsize=1)
def get_synthesis_engine() -> AttributeSynthesisEngine:
    """
    Return singleton synthesis engine configured from environment settings.
    """

    return AttributeSynthesisEngine(generator=build_content_generator(get_content_generation_settings()))
