from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from healthscan_catalog.core.exceptions import SchemaError

from .field_definitions import FIELD_DEFINITIONS
from .schemas import FieldDefinition

_PYTHON_TYPES = {
    "string": (str,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list, tuple),
    "object": (dict,),
}


class FieldSchemaRegistry:
    """Static lookup of the expected field schema per category."""

    def __init__(self, definitions: Optional[Mapping[str, Mapping[str, Mapping[str, Any]]]] = None):
        raw = FIELD_DEFINITIONS if definitions is None else definitions
        self._schemas: Dict[str, Dict[str, FieldDefinition]] = {
            category: {name: FieldDefinition.model_validate(raw_field) for name, raw_field in fields.items()}
            for category, fields in raw.items()
        }

    def categories(self) -> List[str]:
        return sorted(self._schemas)

    def has_category(self, category: str) -> bool:
        return category in self._schemas

    def get_field_definitions(self, category: str) -> Dict[str, FieldDefinition]:
        """Unknown categories yield an empty schema so analysis can degrade."""
        return dict(self._schemas.get(category, {}))

    def require(self, category: str) -> Dict[str, FieldDefinition]:
        if category not in self._schemas:
            raise SchemaError(category)
        return self.get_field_definitions(category)

    def expected_fields(self, category: str) -> List[str]:
        return list(self._schemas.get(category, {}))


def validate_value(definition: FieldDefinition, value: Any) -> List[str]:
    """Constraint violations of a single (present) value."""
    problems: List[str] = []
    expected = _PYTHON_TYPES.get(definition.type)
    # bool is an int subclass; do not let True pass as a number.
    if expected and (not isinstance(value, expected) or (definition.type == "number" and isinstance(value, bool))):
        problems.append(f"expected {definition.type}, got {type(value).__name__}")
        return problems
    if isinstance(value, (str, list, tuple)):
        size = len(value.strip()) if isinstance(value, str) else len(value)
        if definition.min_length is not None and size < definition.min_length:
            problems.append(f"shorter than {definition.min_length}")
        if definition.max_length is not None and size > definition.max_length:
            problems.append(f"longer than {definition.max_length}")
    return problems
