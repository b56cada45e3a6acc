"""Entry points of the catalog quality engine.

``CatalogQualityService`` is a plain object built from its collaborators
(record store, schema registry, content generator); it holds no state
between calls. Analysis is read-only and lock-free. Standardize and merge
take the category lock first and reject concurrent mutating runs.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

from healthscan_catalog.core.auth import AdminIdentity
from healthscan_catalog.core.config import Settings
from healthscan_catalog.store.kv_store import RecordStore, category_prefix, record_key

from .duplicates import find_duplicate_groups
from .enrichment import ContentGenerator, LLMEnricher
from .locks import CategoryLock
from .merge import MergeEngine
from .quality import DEFAULT_THRESHOLD, QualityAnalyzer, is_present, percent, score_record, split_valid
from .registry import FieldSchemaRegistry, validate_value
from .schemas import (
    CategoryStats,
    FieldDefinition,
    MergeResult,
    QualityReport,
    RecordView,
    StandardizationResult,
)
from .standardizer import Standardizer

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE_HOSTS = ("api.placeholder.com", "via.placeholder.com", "placehold.co")


def has_image(record: Mapping[str, Any]) -> bool:
    url = record.get("image_url")
    if not isinstance(url, str):
        return False
    url = url.strip()
    return bool(url) and url != "null" and not any(host in url for host in PLACEHOLDER_IMAGE_HOSTS)


def has_metadata(record: Mapping[str, Any]) -> bool:
    description = record.get("description")
    return (
        isinstance(description, str)
        and len(description.strip()) > 50
        and is_present(record.get("source"))
        and is_present(record.get("imported_at"))
    )


class CatalogQualityService:
    def __init__(
        self,
        store: RecordStore,
        registry: Optional[FieldSchemaRegistry] = None,
        generator: Optional[ContentGenerator] = None,
        threshold: int = DEFAULT_THRESHOLD,
        batch_size: int = 50,
        batch_delay_seconds: float = 0.0,
        lock_ttl_seconds: float = 900,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.registry = registry or FieldSchemaRegistry()
        self.analyzer = QualityAnalyzer(threshold=threshold)
        self.generator = generator or ContentGenerator("https://images.healthscan.live/catalog")
        self.lock = CategoryLock(store, ttl_seconds=lock_ttl_seconds)
        self.standardizer = Standardizer(
            store, self.analyzer, self.generator,
            batch_size=batch_size, batch_delay_seconds=batch_delay_seconds, sleep=sleep,
        )
        self.merger = MergeEngine(
            store, batch_size=batch_size, batch_delay_seconds=batch_delay_seconds, sleep=sleep,
        )

    @classmethod
    def from_settings(cls, store: RecordStore, settings: Settings, **overrides: Any) -> "CatalogQualityService":
        llm = None
        if settings.enrichment_llm_enabled:
            llm = LLMEnricher(
                endpoint=settings.ollama_endpoint,
                model=settings.ollama_model,
                timeout=settings.ollama_timeout,
            )
        options: Dict[str, Any] = {
            "generator": ContentGenerator(settings.image_base_url, llm=llm),
            "threshold": settings.completeness_threshold,
            "batch_size": settings.batch_size,
            "batch_delay_seconds": settings.batch_delay_seconds,
            "lock_ttl_seconds": settings.lock_ttl_seconds,
        }
        options.update(overrides)
        return cls(store, **options)

    # -- read-only -------------------------------------------------------

    def field_definitions(self, category: str) -> Dict[str, FieldDefinition]:
        return self.registry.get_field_definitions(category)

    def load_records(self, category: str) -> List[Dict[str, Any]]:
        return self.store.get_by_prefix(category_prefix(category))

    def analyze(self, category: str) -> QualityReport:
        schema = self.registry.get_field_definitions(category)
        warnings: List[str] = []
        if not schema:
            warnings.append(f"Unknown catalog category '{category}': no expected fields")
        report = self.analyzer.analyze(self.load_records(category), schema, warnings=warnings)
        logger.info(
            "Analyzed %d %s records: completeness %d%%, quality %d%%, %d duplicate groups",
            report.summary.total_nutrients, category, report.summary.average_completeness,
            report.summary.average_data_quality, report.summary.duplicate_groups,
        )
        return report

    def stats(self, category: str) -> CategoryStats:
        schema = self.registry.get_field_definitions(category)
        records, _ = split_valid(self.load_records(category))
        stats = CategoryStats(category=category, total=len(records))
        scores: List[int] = []
        violations: Dict[str, int] = {}

        for record in records:
            stats.with_images += has_image(record)
            stats.with_metadata += has_metadata(record)
            stats.from_api += bool(record.get("api_source") or record.get("external_id"))
            stats.standardized += is_present(record.get("standardized_at"))
            stats.enhanced += record.get("enhanced") is True
            stats.verified += record.get("verified") is True
            imported = record.get("imported_at")
            if isinstance(imported, str) and imported and (stats.last_import is None or imported > stats.last_import):
                stats.last_import = imported
            scores.append(score_record(record, schema).data_quality)
            for field_name, definition in schema.items():
                value = record.get(field_name)
                if is_present(value) and validate_value(definition, value):
                    violations[field_name] = violations.get(field_name, 0) + 1

        stats.average_quality_score = percent(sum(scores), len(scores) * 100)
        stats.constraint_violations = violations
        return stats

    def get_record(self, category: str, record_id: str) -> Optional[RecordView]:
        record = self.store.get(record_key(category, record_id))
        if record is None:
            return None
        return RecordView(record=record, structure=sorted(record))

    # -- mutating --------------------------------------------------------

    def standardize(self, category: str, admin: AdminIdentity) -> StandardizationResult:
        schema = self.registry.require(category)
        with self.lock.hold(category, "standardize", actor=admin.email):
            records, skipped = split_valid(self.load_records(category))
            logger.info("Standardization of %d %s records requested by %s", len(records), category, admin.email)
            result = self.standardizer.standardize(category, records, schema)
        result.errors = skipped + result.errors
        return result

    def merge_duplicates(self, category: str, admin: AdminIdentity) -> MergeResult:
        schema = self.registry.require(category)
        with self.lock.hold(category, "merge", actor=admin.email):
            records, skipped = split_valid(self.load_records(category))
            scores = {item.id: item for item in (score_record(record, schema) for record in records)}
            groups = find_duplicate_groups(records)
            logger.info("Merge of %d %s duplicate groups requested by %s", len(groups), category, admin.email)
            result = self.merger.merge_duplicates(category, groups, records, scores, schema)
            result.final_count = len(self.load_records(category))
        result.errors = skipped + result.errors
        return result
