import pytest

from healthscan_catalog.catalog.enrichment import LLMEnricher
from healthscan_catalog.catalog.locks import CategoryLock, lock_key
from healthscan_catalog.catalog.service import CatalogQualityService, has_image
from healthscan_catalog.core.config import Settings
from healthscan_catalog.core.exceptions import LockContentionError, SchemaError
from healthscan_catalog.store.kv_store import record_key


def _seed(store, records, category="nutrient"):
    for record in records:
        store.set(record_key(category, record["id"]), record)


def test_analyze_reports_duplicates_and_invalid_records(service, store):
    _seed(store, [
        {"id": "n1", "name": "Zinc", "sources": ["USDA"]},
        {"id": "n2", "name": "zinc", "sources": ["EFSA"]},
        {"id": "n3"},
    ])
    report = service.analyze("nutrient")

    assert report.summary.total_nutrients == 2
    assert report.summary.duplicate_groups == 1
    assert report.summary.total_duplicates == 1
    assert report.summary.needs_standardization == 2
    assert len(report.warnings) == 1 and "'n3'" in report.warnings[0]


def test_non_text_labels_do_not_break_reports(service, store, admin):
    _seed(store, [
        {"id": "n1", "name": "Zinc", "source": ["USDA"]},
        {"id": "n2", "name": "zinc", "source": 42, "category": ["mineral", "trace"]},
    ])
    report = service.analyze("nutrient")

    assert report.summary.duplicate_groups == 1
    group = report.duplicates[0]
    assert group.count == 2
    assert sorted(ref.source for ref in group.records) == ["42", "USDA"]
    by_id = {item.id: item for item in report.quality_analysis}
    assert by_id["n2"].category == "mineral, trace"

    result = service.standardize("nutrient", admin)
    assert {r.id: r.category for r in result.processed_records}["n2"] == "mineral, trace"



def test_analyze_unknown_category_degrades_to_warning(service, store):
    _seed(store, [{"id": "s1", "name": "Apollo"}], category="spaceship")
    report = service.analyze("spaceship")

    assert report.expected_fields == []
    assert report.summary.total_nutrients == 1
    assert report.quality_analysis[0].completeness == 100
    assert report.summary.needs_standardization == 0
    assert "spaceship" in report.warnings[0]


def test_mutating_runs_reject_unknown_category(service, admin):
    with pytest.raises(SchemaError):
        service.standardize("spaceship", admin)
    with pytest.raises(SchemaError):
        service.merge_duplicates("spaceship", admin)


def test_standardize_then_analyze_reflects_new_scores(service, store, admin):
    _seed(store, [{"id": "n1", "name": "Vitamin C"}, {"id": "n2", "name": "Zinc"}, {"id": "n3"}])
    before = service.analyze("nutrient")

    result = service.standardize("nutrient", admin)
    after = service.analyze("nutrient")

    assert result.standardized == 2
    assert result.total == 2
    assert len(result.errors) == 1 and "missing name" in result.errors[0]
    assert after.summary.average_completeness > before.summary.average_completeness
    assert service.standardize("nutrient", admin).standardized == 0
    assert not service.lock.is_locked("nutrient")


def test_concurrent_mutation_is_rejected(service, store, admin):
    _seed(store, [{"id": "n1", "name": "Zinc"}, {"id": "n2", "name": "Zinc"}])
    CategoryLock(store).acquire("nutrient", "standardize", actor="other@healthscan.live")

    with pytest.raises(LockContentionError):
        service.merge_duplicates("nutrient", admin)
    with pytest.raises(LockContentionError):
        service.standardize("nutrient", admin)
    assert len(service.load_records("nutrient")) == 2


def test_lock_is_released_when_a_run_fails(service, store, admin, monkeypatch):
    _seed(store, [{"id": "n1", "name": "Zinc"}])

    def explode(*args, **kwargs):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(service.standardizer, "standardize", explode)
    with pytest.raises(RuntimeError):
        service.standardize("nutrient", admin)
    assert store.get(lock_key("nutrient")) is None


def test_merge_duplicates_reports_final_count(service, store, admin):
    _seed(store, [
        {"id": "n1", "name": "Zinc", "sources": ["USDA"]},
        {"id": "n2", "name": "zinc", "sources": ["EFSA"], "description": "Trace mineral needed for immunity."},
        {"id": "n3", "name": "Iron"},
    ])
    result = service.merge_duplicates("nutrient", admin)

    assert result.merged == 1
    assert result.deleted == 1
    assert result.duplicate_groups == 1
    assert result.final_count == 2
    # n2 carries more required fields
    assert result.merge_results[0].primary_id == "n2"
    assert service.analyze("nutrient").duplicates == []

    again = service.merge_duplicates("nutrient", admin)
    assert again.merged == 0 and again.final_count == 2


def test_stats(service, store):
    _seed(store, [
        {
            "id": "n1",
            "name": "Vitamin C",
            "description": "Vitamin C " + "x" * 60,
            "source": "USDA",
            "image_url": "https://images.healthscan.live/catalog/nutrient/vitamin-c.jpg",
            "imported_at": "2025-01-02T00:00:00Z",
            "api_source": "usda",
            "verified": True,
        },
        {
            "id": "n2",
            "name": "Z",
            "image_url": "https://via.placeholder.com/150",
            "imported_at": "2025-02-01T00:00:00Z",
            "standardized_at": "2025-02-02T00:00:00Z",
            "enhanced": True,
            "daily_value": "eleven",
        },
        {"id": "n3"},
    ])
    stats = service.stats("nutrient")

    assert stats.total == 2
    assert stats.with_images == 1
    assert stats.with_metadata == 1
    assert stats.from_api == 1
    assert stats.last_import == "2025-02-01T00:00:00Z"
    assert stats.standardized == 1
    assert stats.enhanced == 1
    assert stats.verified == 1
    assert stats.average_quality_score == 33
    assert stats.constraint_violations == {"name": 1, "daily_value": 1}


def test_get_record(service, store):
    _seed(store, [{"id": "n1", "name": "Zinc", "category": "mineral"}])
    view = service.get_record("nutrient", "n1")
    assert view.record["name"] == "Zinc"
    assert view.structure == ["category", "id", "name"]
    assert service.get_record("nutrient", "nutrient_n1") is not None
    assert service.get_record("nutrient", "missing") is None


@pytest.mark.parametrize("url, expected", [
    ("https://images.healthscan.live/catalog/nutrient/zinc.jpg", True),
    ("https://api.placeholder.com/300/200", False),
    ("null", False),
    ("", False),
    (None, False),
])
def test_has_image(url, expected):
    assert has_image({"image_url": url}) is expected


def test_from_settings_wires_llm_when_enabled(store):
    settings = Settings(enrichment_llm_enabled=True, ollama_model="mistral", completeness_threshold=75)
    service = CatalogQualityService.from_settings(store, settings, batch_delay_seconds=0)

    assert isinstance(service.generator.llm, LLMEnricher)
    assert service.generator.llm.model == "mistral"
    assert service.analyzer.threshold == 75
    assert service.standardizer.batch_delay_seconds == 0

    plain = CatalogQualityService.from_settings(store, Settings(enrichment_llm_enabled=False))
    assert plain.generator.llm is None
