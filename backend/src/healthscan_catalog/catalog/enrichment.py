"""Content used by the standardizer to fill missing fields.

Simple content (defaults, units, reference values, templated text) only
standardizes a record. Generated rich content (hosted images, LLM-written
scientific detail) additionally marks it as enhanced.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from healthscan_catalog.core.exceptions import GenerationError
from healthscan_catalog.utils.llm import llm_generate_json

from .duplicates import normalize_name
from .quality import is_present
from .reference import lookup_nutrient, normalize_unit
from .schemas import FieldDefinition

logger = logging.getLogger(__name__)

LLM_SYSTEM_PROMPT = (
    "You write factual, concise content for a nutrition catalog. "
    'Answer with one JSON object {"fields": {...}} containing exactly the requested keys. '
    "Array fields are arrays of short strings, text fields are plain strings. No placeholders."
)


@dataclass
class Generated:
    value: Any
    enriched: bool = False


@dataclass
class FillResult:
    patch: Dict[str, Any]
    enriched: bool
    unfilled: List[str]


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", normalize_name(name)).strip("-") or "record"


class LLMEnricher:
    """Asks an Ollama model for several fields of one record at once."""

    def __init__(
        self,
        endpoint: str,
        model: str,
        timeout: int = 100,
        client: Optional[Callable[..., Any]] = None,
    ):
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout
        self.client = client or llm_generate_json

    def _prompt(self, category: str, record: Mapping[str, Any], fields: Mapping[str, FieldDefinition]) -> str:
        wanted = {
            name: f"{definition.type}: {definition.description}" + (f" (e.g. {definition.example})" if definition.example else "")
            for name, definition in fields.items()
        }
        context = {key: value for key, value in record.items() if is_present(value) and key in ("name", "category", "description")}
        return (
            f"Catalog category: {category}\n"
            f"Record: {json.dumps(context, ensure_ascii=False)}\n"
            f"Fill these keys: {json.dumps(wanted, ensure_ascii=False)}"
        )

    def generate(
        self, category: str, record: Mapping[str, Any], fields: Mapping[str, FieldDefinition]
    ) -> Dict[str, Any]:
        try:
            data = self.client(
                LLM_SYSTEM_PROMPT,
                self._prompt(category, record, fields),
                model=self.model,
                endpoint=self.endpoint,
                json_root="fields",
                timeout=self.timeout,
            )
        except Exception as exc:
            raise GenerationError(", ".join(fields), exc) from exc
        if not isinstance(data, dict):
            raise GenerationError(", ".join(fields), ValueError("LLM returned no object"))

        values: Dict[str, Any] = {}
        for name, definition in fields.items():
            value = data.get(name)
            if definition.type == "array" and isinstance(value, str):
                value = [value]
            if definition.type == "array" and isinstance(value, list):
                value = [str(item).strip() for item in value if is_present(item)]
            if definition.type == "string" and value is not None and not isinstance(value, str):
                value = str(value)
            if is_present(value):
                values[name] = value
        logger.debug("LLM filled %d/%d fields for %r", len(values), len(fields), record.get("name"))
        return values


class ContentGenerator:
    def __init__(self, image_base_url: str, llm: Optional[LLMEnricher] = None):
        self.image_base_url = image_base_url.rstrip("/")
        self.llm = llm

    def image_url(self, category: str, name: str) -> str:
        return f"{self.image_base_url}/{category}/{slugify(name)}.jpg"

    def description(self, category: str, record: Mapping[str, Any]) -> str:
        name = str(record.get("name", "")).strip()
        reference = lookup_nutrient(name) if category == "nutrient" else None
        if reference is None:
            return f"{name} is a {category} record in the HealthScan catalog."
        text = f"{name} is a {reference.classification} from the {reference.group.lower()} group, measured in {reference.unit}."
        if reference.rdi is not None:
            text += f" The reference daily intake for adults is {reference.rdi:g} {reference.unit}."
        return text

    def generate(
        self, category: str, field_name: str, definition: FieldDefinition, record: Mapping[str, Any]
    ) -> Optional[Generated]:
        """Value for one field without calling out to the LLM."""
        name = str(record.get("name", ""))
        reference = lookup_nutrient(name) if category == "nutrient" else None
        kind = definition.generator

        if kind == "image" and name.strip():
            return Generated(self.image_url(category, name), enriched=True)
        if kind == "description" and name.strip():
            return Generated(self.description(category, record))
        if kind == "classification" and reference is not None:
            return Generated(reference.classification)
        if kind == "unit" and reference is not None:
            return Generated(normalize_unit(reference.unit))
        if kind == "daily_value" and reference is not None and reference.rdi is not None:
            return Generated(reference.rdi)
        if definition.default is not None:
            return Generated(copy.deepcopy(definition.default))
        return None

    def fill(
        self,
        category: str,
        record: Mapping[str, Any],
        schema: Mapping[str, FieldDefinition],
        fields: Sequence[str],
    ) -> FillResult:
        """Values for every listed field that can be produced; never touches present ones."""
        patch: Dict[str, Any] = {}
        enriched = False
        deferred: Dict[str, FieldDefinition] = {}

        for field_name in fields:
            definition = schema[field_name]
            if is_present(record.get(field_name)):
                continue
            if definition.generator == "llm" and self.llm is not None:
                deferred[field_name] = definition
                continue
            generated = self.generate(category, field_name, definition, record)
            if generated is not None and is_present(generated.value):
                patch[field_name] = generated.value
                enriched = enriched or generated.enriched

        if deferred:
            context = {**record, **patch}
            produced = self.llm.generate(category, context, deferred)
            patch.update(produced)
            enriched = enriched or bool(produced)

        unfilled = [name for name in fields if name not in patch and not is_present(record.get(name))]
        return FillResult(patch=patch, enriched=enriched, unfilled=unfilled)
