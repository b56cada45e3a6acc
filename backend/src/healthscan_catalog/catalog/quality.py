"""Completeness and data-quality scoring.

completeness
    share of schema fields present on the record, in percent.

dataQuality
    the same share with required fields counted twice
    (``REQUIRED_WEIGHT`` vs ``OPTIONAL_WEIGHT``). A record missing k required
    fields therefore always scores lower than one missing k optional fields.

A value is present when it is not None and, for strings, not blank; for
lists, not empty; for mappings, at least one nested value is present.
Numbers and booleans are present whatever their value.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from healthscan_catalog.core.exceptions import RecordValidationError

from .duplicates import find_duplicate_groups
from .schemas import FieldDefinition, QualityAnalysisItem, QualityReport, QualitySummary

logger = logging.getLogger(__name__)

REQUIRED_WEIGHT = 2
OPTIONAL_WEIGHT = 1
DEFAULT_THRESHOLD = 90


def percent(part: float, whole: float) -> int:
    """Rounded percentage (half up), 0 when there is nothing to divide by."""
    if whole <= 0:
        return 0
    return max(0, min(100, int(math.floor(part / whole * 100 + 0.5))))


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set)):
        return len(value) > 0
    if isinstance(value, Mapping):
        return any(is_present(nested) for nested in value.values())
    return True


def validate_record(record: Any) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise RecordValidationError({}, "record is not an object")
    if not is_present(record.get("id")):
        raise RecordValidationError(record, "missing id")
    name = record.get("name")
    if not isinstance(name, str) or not name.strip():
        raise RecordValidationError(record, "missing name")
    return record


def split_valid(records: Iterable[Any]) -> Tuple[List[Mapping[str, Any]], List[str]]:
    """Separate scoreable records from invalid ones (returned as warnings)."""
    valid: List[Mapping[str, Any]] = []
    warnings: List[str] = []
    for record in records:
        try:
            valid.append(validate_record(record))
        except RecordValidationError as exc:
            logger.warning("Skipping record: %s", exc)
            warnings.append(str(exc))
    return valid, warnings


def score_record(record: Mapping[str, Any], schema: Mapping[str, FieldDefinition]) -> QualityAnalysisItem:
    present = 0
    weighted_present = 0
    weighted_total = 0
    missing: List[str] = []
    empty: List[str] = []

    for field_name, definition in schema.items():
        weight = REQUIRED_WEIGHT if definition.required else OPTIONAL_WEIGHT
        weighted_total += weight
        if is_present(record.get(field_name)):
            present += 1
            weighted_present += weight
        elif definition.required:
            missing.append(field_name)
        else:
            empty.append(field_name)

    total = len(schema)
    if total == 0:
        # Nothing is expected of an unknown category; nothing is missing either.
        completeness = data_quality = 100
    else:
        completeness = percent(present, total)
        data_quality = percent(weighted_present, weighted_total)

    return QualityAnalysisItem(
        id=str(record.get("id")),
        name=str(record.get("name") or ""),
        category=record.get("category"),
        completeness=completeness,
        data_quality=data_quality,
        missing_fields=missing,
        empty_fields=empty,
        present_fields=present,
        total_expected=total,
    )


class QualityAnalyzer:
    """Read-only scoring of a record set against an expected schema."""

    def __init__(self, threshold: int = DEFAULT_THRESHOLD):
        self.threshold = threshold

    def needs_standardization(self, item: QualityAnalysisItem) -> bool:
        return item.completeness < self.threshold

    def analyze(
        self,
        records: Iterable[Any],
        schema: Mapping[str, FieldDefinition],
        warnings: Optional[List[str]] = None,
    ) -> QualityReport:
        valid, skipped = split_valid(records)
        items = [score_record(record, schema) for record in valid]
        duplicates = find_duplicate_groups(valid)
        below = [item for item in items if self.needs_standardization(item)]

        count = len(items)
        summary = QualitySummary(
            total_nutrients=count,
            average_completeness=percent(sum(i.completeness for i in items), count * 100),
            average_data_quality=percent(sum(i.data_quality for i in items), count * 100),
            duplicate_groups=len(duplicates),
            total_duplicates=sum(group.count - 1 for group in duplicates),
            needs_standardization=len(below),
        )
        return QualityReport(
            summary=summary,
            quality_analysis=items,
            duplicates=duplicates,
            needs_standardization=below,
            expected_fields=list(schema),
            warnings=list(warnings or []) + skipped,
        )
