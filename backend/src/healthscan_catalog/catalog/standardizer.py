from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Sequence

from healthscan_catalog.core.exceptions import CatalogError
from healthscan_catalog.store.kv_store import RecordStore, record_key
from healthscan_catalog.utils.batching import paced_chunks

from .enrichment import ContentGenerator
from .quality import QualityAnalyzer, score_record
from .schemas import FieldDefinition, ProcessedRecord, StandardizationResult

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Standardizer:
    """Additive fill of under-complete records.

    Only fields that are absent or blank are written, so a second pass over
    unchanged data finds nothing to fill and reports ``standardized == 0``.
    """

    def __init__(
        self,
        store: RecordStore,
        analyzer: QualityAnalyzer,
        generator: ContentGenerator,
        batch_size: int = 50,
        batch_delay_seconds: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], str] = utc_now_iso,
    ):
        self.store = store
        self.analyzer = analyzer
        self.generator = generator
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self.sleep = sleep
        self.clock = clock

    def standardize(
        self,
        category: str,
        records: Sequence[Mapping[str, Any]],
        schema: Mapping[str, FieldDefinition],
    ) -> StandardizationResult:
        result = StandardizationResult(total=len(records))
        for chunk in paced_chunks(records, self.batch_size, self.batch_delay_seconds, self.sleep):
            for record in chunk:
                self._standardize_one(category, record, schema, result)

        logger.info(
            "Standardized %d/%d %s records (%d enhanced, %d errors)",
            result.standardized, result.total, category, result.enhanced, len(result.errors),
        )
        return result

    def _standardize_one(
        self,
        category: str,
        record: Mapping[str, Any],
        schema: Mapping[str, FieldDefinition],
        result: StandardizationResult,
    ) -> None:
        item = score_record(record, schema)
        if not self.analyzer.needs_standardization(item):
            return

        label = f"{item.name} ({item.id})"
        try:
            fill = self.generator.fill(category, record, schema, item.missing_fields + item.empty_fields)
        except CatalogError as exc:
            logger.warning("Standardization of %s failed: %s", label, exc)
            result.errors.append(f"{label}: {exc}")
            return

        unfilled_required = [name for name in item.missing_fields if name in fill.unfilled]
        if unfilled_required:
            result.errors.append(f"{label}: no value available for required field(s) {', '.join(unfilled_required)}")
        if not fill.patch:
            return

        updated: Dict[str, Any] = {**record, **fill.patch}
        rescored = score_record(updated, schema)
        now = self.clock()
        updated["quality_score"] = rescored.data_quality
        updated["standardized_at"] = now
        updated["updated_at"] = now
        updated["enhanced"] = bool(record.get("enhanced")) or fill.enriched

        try:
            self.store.set(record_key(category, item.id), updated)
        except CatalogError as exc:
            logger.warning("Could not persist %s: %s", label, exc)
            result.errors.append(f"{label}: {exc}")
            return

        result.standardized += 1
        if fill.enriched:
            result.enhanced += 1
        result.processed_records.append(
            ProcessedRecord(id=item.id, name=item.name, category=updated.get("category"), enhanced=fill.enriched)
        )
        logger.debug("Standardized %s: filled %s, completeness %d -> %d",
                     label, sorted(fill.patch), item.completeness, rescored.completeness)
