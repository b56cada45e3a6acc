"""Canonical nutrient reference data (unit, reference daily intake, group)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .duplicates import normalize_name


@dataclass(frozen=True)
class ReferenceNutrient:
    name: str
    unit: str
    group: str
    classification: str
    rdi: Optional[float] = None


# (group, classification, [(name, unit, rdi), ...])
_GROUPS: List[Tuple[str, str, List[Tuple[str, str, Optional[float]]]]] = [
    ("Macronutrients", "macronutrient", [
        ("Calories", "kcal", 2000), ("Protein", "g", 50), ("Total Fat", "g", 78),
        ("Carbohydrates", "g", 275), ("Fiber", "g", 28), ("Sugars", "g", None),
        ("Water Content", "g", None),
    ]),
    ("Fat-Soluble Vitamins", "vitamin", [
        ("Vitamin A (Retinol)", "mcg", 900), ("Vitamin D3", "mcg", 20),
        ("Vitamin E (Tocopherol)", "mg", 15), ("Vitamin K2", "mcg", 120),
    ]),
    ("Water-Soluble Vitamins", "vitamin", [
        ("Vitamin C", "mg", 90), ("Thiamine (B1)", "mg", 1.2), ("Riboflavin (B2)", "mg", 1.3),
        ("Niacin (B3)", "mg", 16), ("Pantothenic Acid (B5)", "mg", 5), ("Pyridoxine (B6)", "mg", 1.7),
        ("Biotin (B7)", "mcg", 30), ("Folate (B9)", "mcg", 400), ("Vitamin B12", "mcg", 2.4),
    ]),
    ("Major Minerals", "mineral", [
        ("Calcium", "mg", 1300), ("Phosphorus", "mg", 1250), ("Magnesium", "mg", 420),
        ("Sodium", "mg", 2300), ("Potassium", "mg", 4700), ("Chloride", "mg", 2300),
        ("Sulfur", "mg", None),
    ]),
    ("Trace Minerals", "mineral", [
        ("Iron", "mg", 18), ("Zinc", "mg", 11), ("Copper", "mg", 0.9), ("Manganese", "mg", 2.3),
        ("Selenium", "mcg", 55), ("Iodine", "mcg", 150), ("Chromium", "mcg", 35),
        ("Molybdenum", "mcg", 45), ("Fluoride", "mg", 4),
    ]),
    ("Essential Amino Acids", "amino acid", [
        ("Leucine", "g", None), ("Isoleucine", "g", None), ("Valine", "g", None),
        ("Lysine", "g", None), ("Methionine", "g", None), ("Phenylalanine", "g", None),
        ("Threonine", "g", None), ("Tryptophan", "g", None), ("Histidine", "g", None),
    ]),
    ("Conditional Amino Acids", "amino acid", [
        ("Arginine", "g", None), ("Tyrosine", "g", None), ("Cysteine", "g", None),
        ("Glutamine", "g", None), ("Glycine", "g", None), ("Proline", "g", None),
        ("Taurine", "mg", None), ("Citrulline", "g", None), ("Creatine", "g", None),
        ("L-Carnitine", "mg", None),
    ]),
    ("Fatty Acids", "fatty acid", [
        ("Omega-3 (EPA/DHA)", "mg", 1600), ("Omega-6", "g", 17), ("Saturated Fat", "g", None),
        ("Monounsaturated Fat", "g", None), ("Polyunsaturated Fat", "g", None),
    ]),
    ("Antioxidants & Carotenoids", "antioxidant", [
        ("Beta-Carotene", "mg", None), ("Lutein", "mg", None), ("Zeaxanthin", "mg", None),
        ("Lycopene", "mg", None), ("Astaxanthin", "mg", None), ("Resveratrol", "mg", None),
        ("Quercetin", "mg", None), ("Curcumin", "mg", None), ("Alpha-Lipoic Acid", "mg", None),
    ]),
    ("Essential & Functional Nutrients", "functional nutrient", [
        ("Choline", "mg", 550), ("Inositol", "mg", None), ("Coenzyme Q10", "mg", None),
        ("GABA", "mg", None), ("Melatonin", "mg", None),
    ]),
]

_UNIT_ALIASES = {
    "mg": "mg", "milligram": "mg", "milligrams": "mg",
    "mcg": "mcg", "µg": "mcg", "μg": "mcg", "ug": "mcg", "microgram": "mcg", "micrograms": "mcg",
    "g": "g", "gram": "g", "grams": "g", "gr": "g",
    "kcal": "kcal", "cal": "kcal", "calories": "kcal", "kilocalories": "kcal",
    "iu": "IU", "ie": "IU",
    "ml": "ml", "l": "l", "ppm": "ppm", "ppb": "ppb",
}


def normalize_unit(unit: Optional[str]) -> Optional[str]:
    if unit is None:
        return None
    cleaned = unit.strip().rstrip(".")
    if not cleaned:
        return None
    return _UNIT_ALIASES.get(cleaned.lower(), cleaned)


def _aliases(name: str) -> List[str]:
    keys = [normalize_name(name)]
    match = re.match(r"^(.*?)\s*\((.*)\)\s*$", name)
    if match:
        keys.append(normalize_name(match.group(1)))
        keys.extend(normalize_name(part) for part in match.group(2).split("/"))
    return [key for key in keys if key]


def _build_index() -> Dict[str, ReferenceNutrient]:
    index: Dict[str, ReferenceNutrient] = {}
    for group, classification, members in _GROUPS:
        for name, unit, rdi in members:
            entry = ReferenceNutrient(name=name, unit=unit, group=group, classification=classification, rdi=rdi)
            for key in _aliases(name):
                index.setdefault(key, entry)
    return index


REFERENCE_INDEX: Dict[str, ReferenceNutrient] = _build_index()


def lookup_nutrient(name: Optional[str]) -> Optional[ReferenceNutrient]:
    if not name:
        return None
    return REFERENCE_INDEX.get(normalize_name(name))
