"""
app/catalog/marketplace_templates.py

Static marketplace template definitions loaded into the registry at startup.

Attributes reuse the shared attribute library wherever a marketplace field
has the same meaning as a library field; marketplace-only fields are
declared through the same `library.get` call.
"""

from __future__ import annotations

from app.catalog.attribute_library import AttributeSchemaLibrary
from app.domain.catalog import ImageSpec, Marketplace, MarketplaceTemplate, TemplateRules

_MB = 1024 * 1024

_GENDERS = ["Men", "Women", "Kids", "Unisex"]


def _namshi(library: AttributeSchemaLibrary) -> MarketplaceTemplate:
    return MarketplaceTemplate(
        id="namshi_v3",
        name="Namshi Fashion Template",
        version="3.0",
        marketplace=Marketplace.NAMSHI,
        attributes=(
            library.get("title", required=True, priority=95),
            library.get("brand", required=True, priority=90),
            library.get("category", required=True, priority=85),
            library.get("gender", required=True, priority=80),
            library.get("color", required=True, priority=80),
            library.get("size", required=False, priority=75),
            library.get("material", required=False, priority=70),
            library.get("description", required=True, validation={"max_length": 1000}, priority=85),
            library.get("price", required=True, priority=90),
            library.get("images", required=True, priority=85),
            library.get("season", validation={"enum": ["Spring", "Summer", "Fall", "Winter"]}, priority=60),
            library.get("style", priority=60),
            library.get("care_instructions", priority=55),
            library.get("sustainability_info", priority=50),
        ),
        image_spec=ImageSpec(width=1000, height=1333, format="JPEG", max_size_bytes=2 * _MB, aspect_ratio="3:4"),
        rules=TemplateRules(
            category_mappings={
                "T-Shirts": "Tops/T-Shirts",
                "Dresses": "Clothing/Dresses",
                "Shoes": "Footwear/Shoes",
            },
            value_mappings={
                "gender": {"M": "Men", "F": "Women", "U": "Unisex", "Male": "Men", "Female": "Women"},
            },
            conditional_fields={
                "Footwear": ("shoe_size", "heel_height"),
                "Clothing": ("size", "fit_type"),
            },
        ),
    )


def _amazon(library: AttributeSchemaLibrary) -> MarketplaceTemplate:
    return MarketplaceTemplate(
        id="amazon_v4",
        name="Amazon Marketplace Template",
        version="4.2",
        marketplace=Marketplace.AMAZON,
        attributes=(
            library.get("item_name", required=True, validation={"max_length": 500}, priority=95),
            library.get("brand_name", required=True, priority=90),
            library.get("item_type", required=True, priority=85),
            library.get(
                "department_name",
                required=True,
                validation={"enum": ["mens", "womens", "boys", "girls", "baby", "unisex"]},
                priority=80,
            ),
            library.get("color_name", required=True, priority=80),
            library.get("size_name", priority=75),
            library.get("material_type", priority=70),
            library.get("product_description", required=True, validation={"max_length": 2000}, priority=85),
            library.get("list_price", type="number", required=True, validation={"min": 0}, priority=90),
            library.get("main_image_url", required=True, priority=90),
            library.get("other_image_url1", priority=70),
            library.get("bullet_point1", validation={"max_length": 255}, priority=75),
            library.get("bullet_point2", validation={"max_length": 255}, priority=70),
            library.get("search_terms", validation={"max_length": 1000}, priority=65),
            library.get("upc"),
            library.get("sustainability_features", type="array", priority=55),
        ),
        image_spec=ImageSpec(width=1000, height=1000, format="JPEG", max_size_bytes=10 * _MB, aspect_ratio="1:1"),
        rules=TemplateRules(
            category_mappings={
                "T-Shirts": "Clothing/Shirts/T-Shirts",
                "Dresses": "Clothing/Dresses",
                "Shoes": "Shoes",
            },
            value_mappings={
                "department_name": {
                    "Men": "mens",
                    "Women": "womens",
                    "Kids": "boys",
                    "Unisex": "unisex",
                    "Baby": "baby",
                },
            },
            conditional_fields={
                "Electronics": ("model_number", "power_consumption"),
                "Clothing": ("size_name", "material_type"),
            },
        ),
    )


def _centrepoint(library: AttributeSchemaLibrary) -> MarketplaceTemplate:
    return MarketplaceTemplate(
        id="centrepoint_v2",
        name="Centrepoint Retail Template",
        version="2.1",
        marketplace=Marketplace.CENTREPOINT,
        attributes=(
            library.get("product_name", required=True, validation={"max_length": 150}, priority=95),
            library.get("brand_name", required=True, priority=90),
            library.get("product_type", required=True, priority=85),
            library.get(
                "target_gender",
                required=True,
                validation={"enum": ["Male", "Female", "Kids", "Unisex"]},
                priority=80,
            ),
            library.get("primary_color", required=True, priority=80),
            library.get("size_info", priority=75),
            library.get("fabric_material", priority=70),
            library.get("product_description", required=True, validation={"max_length": 800}, priority=85),
            library.get("selling_price", type="number", required=True, validation={"min": 0}, priority=90),
            library.get("image_urls", type="array", required=True, priority=85),
        ),
        image_spec=ImageSpec(width=1080, height=1080, format="JPEG", max_size_bytes=int(1.5 * _MB), aspect_ratio="1:1"),
        rules=TemplateRules(
            category_mappings={
                "T-Shirts": "Men/Clothing/T-Shirts",
                "Shoes": "Footwear",
            },
            value_mappings={
                "target_gender": {"Men": "Male", "Women": "Female", "M": "Male", "F": "Female", "U": "Unisex"},
            },
            conditional_fields={
                "Footwear": ("size_info",),
            },
        ),
    )


def _noon(library: AttributeSchemaLibrary) -> MarketplaceTemplate:
    return MarketplaceTemplate(
        id="noon_v1",
        name="Noon General Merchandise Template",
        version="1.4",
        marketplace=Marketplace.NOON,
        attributes=(
            library.get("sku", required=True),
            library.get("product_title", required=True, validation={"max_length": 250}, priority=95),
            library.get("brand", required=True),
            library.get("product_type", required=True),
            library.get("colour", required=True, priority=80),
            library.get("size", priority=75),
            library.get("long_description", required=True, validation={"max_length": 3000}, priority=85),
            library.get("retail_price", type="number", required=True, validation={"min": 0}, priority=90),
            library.get("image_urls", type="array", required=True, priority=85),
            library.get("gender", validation={"enum": _GENDERS}),
            library.get("model_number"),
            library.get("keywords", type="string", validation={"max_length": 500}),
        ),
        image_spec=ImageSpec(width=1200, height=1200, format="JPEG", max_size_bytes=5 * _MB, aspect_ratio="1:1"),
        rules=TemplateRules(
            category_mappings={
                "T-Shirts": "Fashion/Men/Clothing/T-Shirts",
                "Shoes": "Fashion/Footwear",
                "Headphones": "Electronics/Audio/Headphones",
            },
            value_mappings={
                "gender": {"M": "Men", "F": "Women", "Male": "Men", "Female": "Women"},
            },
            conditional_fields={
                "Electronics": ("model_number",),
            },
        ),
    )


def _ounass(library: AttributeSchemaLibrary) -> MarketplaceTemplate:
    return MarketplaceTemplate(
        id="ounass_v2",
        name="Ounass Luxury Fashion Template",
        version="2.0",
        marketplace=Marketplace.OUNASS,
        attributes=(
            library.get("title", required=True, validation={"max_length": 120}),
            library.get("brand", required=True),
            library.get("category", required=True),
            library.get("gender", required=True, validation={"enum": ["Women", "Men", "Kids"]}),
            library.get("color", required=True),
            library.get("size", required=True),
            library.get("material", required=True, priority=80),
            library.get("description", required=True, validation={"min_length": 40, "max_length": 1500}),
            library.get("price", required=True),
            library.get("currency", required=True),
            library.get("images", required=True),
            library.get("care_instructions", priority=60),
            library.get("season", validation={"enum": ["Spring", "Summer", "Fall", "Winter", "All Season"]}),
        ),
        image_spec=ImageSpec(width=1200, height=1600, format="JPEG", max_size_bytes=3 * _MB, aspect_ratio="3:4"),
        rules=TemplateRules(
            category_mappings={
                "Dresses": "Clothing/Dresses",
                "Handbags": "Bags/Handbags",
                "Shoes": "Shoes",
            },
            value_mappings={
                "gender": {"F": "Women", "Female": "Women", "M": "Men", "Male": "Men"},
            },
            conditional_fields={
                "Shoes": ("heel_height",),
            },
        ),
    )


def _sharaf_dg(library: AttributeSchemaLibrary) -> MarketplaceTemplate:
    return MarketplaceTemplate(
        id="sharaf_dg_v1",
        name="Sharaf DG Electronics Template",
        version="1.0",
        marketplace=Marketplace.SHARAF_DG,
        attributes=(
            library.get("sku", required=True),
            library.get("product_name", required=True, validation={"max_length": 180}),
            library.get("brand", required=True),
            library.get("category", required=True),
            library.get("model_number", required=True),
            library.get("color", required=False),
            library.get("power_consumption"),
            library.get("connectivity"),
            library.get("warranty", required=True),
            library.get("description", required=True),
            library.get("price", required=True),
            library.get("ean"),
            library.get("images", required=True),
        ),
        image_spec=ImageSpec(width=1500, height=1500, format="PNG", max_size_bytes=5 * _MB, aspect_ratio="1:1"),
        rules=TemplateRules(
            category_mappings={
                "Headphones": "Audio/Headphones",
                "Laptops": "Computing/Laptops",
                "Phones": "Mobiles/Smartphones",
            },
            value_mappings={},
            conditional_fields={
                "Computing": ("operating_system",),
            },
        ),
    )


def build_default_templates(library: AttributeSchemaLibrary) -> dict[Marketplace, MarketplaceTemplate]:
    """
    Build one template per supported marketplace.
    """

    builders = {
        Marketplace.NAMSHI: _namshi,
        Marketplace.AMAZON: _amazon,
        Marketplace.CENTREPOINT: _centrepoint,
        Marketplace.NOON: _noon,
        Marketplace.OUNASS: _ounass,
        Marketplace.SHARAF_DG: _sharaf_dg,
    }
    missing = set(Marketplace) - set(builders)
    if missing:
        raise RuntimeError(f"No template builder for marketplaces: {sorted(m.value for m in missing)}")
    return {marketplace: build(library) for marketplace, build in builders.items()}
