# Expected field schemas per catalog category.
#
# Every required field other than ``name`` declares a ``default`` or a
# ``generator`` so the standardizer can always fill it.

from __future__ import annotations

from typing import Any, Dict

DEFAULT_SOURCE = "HealthScan Standard Library"

_COMMON: Dict[str, Dict[str, Any]] = {
    "name": {
        "label": "Name",
        "description": "Display name of the record",
        "type": "string",
        "required": True,
        "minLength": 2,
        "maxLength": 120,
        "example": "Vitamin C",
        "helpText": "Use the common English name, no brand names.",
    },
    "category": {
        "label": "Category",
        "description": "Classification tag inside the catalog",
        "type": "string",
        "required": True,
        "maxLength": 60,
        "example": "vitamin",
        "helpText": "Lowercase tag such as vitamin, mineral or amino acid.",
        "generator": "classification",
    },
    "description": {
        "label": "Description",
        "description": "Short user-facing description",
        "type": "string",
        "required": True,
        "minLength": 20,
        "maxLength": 600,
        "example": "Vitamin C is a water-soluble antioxidant needed for collagen synthesis.",
        "helpText": "One or two plain sentences.",
        "generator": "description",
    },
    "source": {
        "label": "Source",
        "description": "Provenance of the record",
        "type": "string",
        "required": True,
        "example": "USDA FoodData Central",
        "helpText": "Where the data was imported from.",
        "default": DEFAULT_SOURCE,
    },
    "image_url": {
        "label": "Image URL",
        "description": "Canonical catalog image",
        "type": "string",
        "required": True,
        "example": "https://images.healthscan.live/catalog/nutrient/vitamin-c.jpg",
        "helpText": "Hosted image, no placeholder services.",
        "generator": "image",
    },
    "sources": {
        "label": "Sources",
        "description": "All references backing the record",
        "type": "array",
        "required": False,
        "example": '["USDA", "EFSA"]',
        "helpText": "Merged across duplicates.",
    },
}


def _with_common(category_default: str, extra: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    fields = {key: dict(value) for key, value in _COMMON.items()}
    fields["category"]["default"] = category_default
    fields.update(extra)
    return fields


FIELD_DEFINITIONS: Dict[str, Dict[str, Dict[str, Any]]] = {
    "nutrient": _with_common(
        "nutrient",
        {
            "measurement_unit": {
                "label": "Measurement Unit",
                "description": "Unit used for amounts and daily values",
                "type": "string",
                "required": False,
                "maxLength": 10,
                "example": "mg",
                "helpText": "mg, mcg, g, kcal or IU.",
                "generator": "unit",
            },
            "daily_value": {
                "label": "Daily Value",
                "description": "Reference daily intake for adults",
                "type": "number",
                "required": False,
                "example": "90",
                "helpText": "In the measurement unit.",
                "generator": "daily_value",
            },
            "primary_function": {
                "label": "Primary Function",
                "description": "Main physiological role",
                "type": "string",
                "required": False,
                "minLength": 10,
                "example": "Antioxidant and cofactor in collagen synthesis",
                "helpText": "One short phrase.",
                "generator": "llm",
            },
            "technical_description": {
                "label": "Technical Description",
                "description": "Scientific description for the detail view",
                "type": "string",
                "required": False,
                "minLength": 40,
                "example": "Ascorbic acid acts as an electron donor for eight human enzymes...",
                "helpText": "Two to four sentences.",
                "generator": "llm",
            },
            "health_benefits": {
                "label": "Health Benefits",
                "description": "Documented benefits",
                "type": "array",
                "required": False,
                "example": '["Supports immune function"]',
                "helpText": "Short phrases.",
                "generator": "llm",
            },
            "deficiency_symptoms": {
                "label": "Deficiency Symptoms",
                "description": "Signs of insufficient intake",
                "type": "array",
                "required": False,
                "example": '["Fatigue", "Bleeding gums"]',
                "helpText": "Short phrases.",
                "generator": "llm",
            },
            "excess_symptoms": {
                "label": "Excess Symptoms",
                "description": "Signs of excessive intake",
                "type": "array",
                "required": False,
                "example": '["Digestive upset"]',
                "helpText": "Short phrases.",
                "generator": "llm",
            },
            "top_foods": {
                "label": "Top Foods",
                "description": "Richest food sources",
                "type": "array",
                "required": False,
                "example": '["Acerola", "Red pepper"]',
                "helpText": "Whole foods first.",
                "generator": "llm",
            },
            "synergistic_nutrients": {
                "label": "Synergistic Nutrients",
                "description": "Nutrients that improve uptake or effect",
                "type": "array",
                "required": False,
                "example": '["Iron"]',
                "helpText": "Catalog names.",
            },
        },
    ),
    "ingredient": _with_common(
        "whole food",
        {
            "nutrition_per_100g": {
                "label": "Nutrition per 100g",
                "description": "Macro and micro values per 100 g",
                "type": "object",
                "required": False,
                "example": '{"calories": 52, "protein_g": 0.3}',
                "helpText": "Keys follow the nutrient ids.",
            },
            "health_benefits": {
                "label": "Health Benefits",
                "description": "Documented benefits",
                "type": "array",
                "required": False,
                "example": '["Rich in fiber"]',
                "helpText": "Short phrases.",
                "generator": "llm",
            },
            "allergens": {
                "label": "Allergens",
                "description": "Declared allergens",
                "type": "array",
                "required": False,
                "example": '["gluten"]',
                "helpText": "Lowercase allergen names.",
            },
            "origin": {
                "label": "Origin",
                "description": "Typical origin",
                "type": "string",
                "required": False,
                "example": "Mediterranean",
                "helpText": "Region or country.",
            },
            "synonyms": {
                "label": "Synonyms",
                "description": "Alternative names",
                "type": "array",
                "required": False,
                "example": '["garbanzo bean"]',
                "helpText": "Used by search.",
            },
        },
    ),
    "pollutant": _with_common(
        "contaminant",
        {
            "risk_level": {
                "label": "Risk Level",
                "description": "Overall hazard classification",
                "type": "string",
                "required": True,
                "example": "high",
                "helpText": "low, moderate, high or unknown.",
                "default": "unknown",
            },
            "health_risks": {
                "label": "Health Risks",
                "description": "Known adverse effects",
                "type": "array",
                "required": False,
                "example": '["Neurotoxicity"]',
                "helpText": "Short phrases.",
                "generator": "llm",
            },
            "exposure_sources": {
                "label": "Exposure Sources",
                "description": "Where people encounter it",
                "type": "array",
                "required": False,
                "example": '["Large predatory fish"]',
                "helpText": "Foods or environments.",
            },
            "safe_limit": {
                "label": "Safe Limit",
                "description": "Tolerable intake or regulatory limit",
                "type": "string",
                "required": False,
                "example": "0.5 mg/kg",
                "helpText": "Include the unit.",
            },
        },
    ),
    "product": _with_common(
        "packaged food",
        {
            "brand": {
                "label": "Brand",
                "description": "Manufacturer or brand",
                "type": "string",
                "required": False,
                "example": "Nordic Naturals",
                "helpText": "As printed on the label.",
            },
            "barcode": {
                "label": "Barcode",
                "description": "EAN/UPC code",
                "type": "string",
                "required": False,
                "minLength": 8,
                "maxLength": 14,
                "example": "4006381333931",
                "helpText": "Digits only.",
            },
            "ingredients": {
                "label": "Ingredients",
                "description": "Ingredient list in label order",
                "type": "array",
                "required": False,
                "example": '["oats", "honey"]',
                "helpText": "Lowercase names.",
            },
            "nutrition_per_100g": {
                "label": "Nutrition per 100g",
                "description": "Label values per 100 g",
                "type": "object",
                "required": False,
                "example": '{"calories": 380}',
                "helpText": "Keys follow the nutrient ids.",
            },
            "nutrition_per_serving": {
                "label": "Nutrition per Serving",
                "description": "Label values per serving",
                "type": "object",
                "required": False,
                "example": '{"calories": 150}',
                "helpText": "Keys follow the nutrient ids.",
            },
            "serving_size": {
                "label": "Serving Size",
                "description": "Serving size with unit",
                "type": "string",
                "required": False,
                "example": "40 g",
                "helpText": "Amount and unit.",
            },
        },
    ),
}
