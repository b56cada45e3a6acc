import pytest

from healthscan_catalog.catalog.enrichment import ContentGenerator, LLMEnricher
from healthscan_catalog.catalog.field_definitions import DEFAULT_SOURCE
from healthscan_catalog.catalog.quality import QualityAnalyzer
from healthscan_catalog.catalog.registry import FieldSchemaRegistry
from healthscan_catalog.catalog.standardizer import Standardizer
from healthscan_catalog.core.exceptions import StoreError
from healthscan_catalog.store.kv_store import SqlRecordStore, record_key

CLOCK = "2025-03-01T12:00:00+00:00"
IMAGE_BASE = "https://images.healthscan.live/catalog"


@pytest.fixture
def nutrient_schema():
    return FieldSchemaRegistry().require("nutrient")


def _standardizer(store, llm=None, **kwargs):
    return Standardizer(
        store,
        QualityAnalyzer(threshold=90),
        ContentGenerator(IMAGE_BASE, llm=llm),
        clock=lambda: CLOCK,
        **kwargs,
    )


def _seed(store, records, category="nutrient"):
    for record in records:
        store.set(record_key(category, record["id"]), record)


def test_fills_missing_fields_from_reference_data(store, nutrient_schema):
    _seed(store, [{"id": "n1", "name": "Vitamin C"}])

    result = _standardizer(store).standardize("nutrient", store.get_by_prefix("nutrient_"), nutrient_schema)

    assert result.standardized == 1
    assert result.enhanced == 1
    assert result.total == 1
    assert result.errors == []
    assert result.processed_records[0].category == "vitamin"

    record = store.get("nutrient_n1")
    assert record["category"] == "vitamin"
    assert record["description"] == (
        "Vitamin C is a vitamin from the water-soluble vitamins group, measured in mg. "
        "The reference daily intake for adults is 90 mg."
    )
    assert record["source"] == DEFAULT_SOURCE
    assert record["image_url"] == f"{IMAGE_BASE}/nutrient/vitamin-c.jpg"
    assert record["measurement_unit"] == "mg"
    assert record["daily_value"] == 90
    assert record["quality_score"] == 60
    assert record["enhanced"] is True
    assert record["standardized_at"] == record["updated_at"] == CLOCK


def test_second_run_standardizes_nothing(store, nutrient_schema):
    _seed(store, [{"id": "n1", "name": "Vitamin C"}, {"id": "n2", "name": "Zinc"}])
    standardizer = _standardizer(store)

    first = standardizer.standardize("nutrient", store.get_by_prefix("nutrient_"), nutrient_schema)
    snapshot = store.get_by_prefix("nutrient_")
    second = standardizer.standardize("nutrient", snapshot, nutrient_schema)

    assert first.standardized == 2
    assert second.standardized == 0
    assert second.errors == []
    assert store.get_by_prefix("nutrient_") == snapshot


def test_existing_values_are_never_overwritten(store, nutrient_schema):
    original = {
        "id": "n1",
        "name": "Zinc",
        "category": "trace mineral",
        "description": "Zinc supports the immune system and wound healing.",
        "image_url": "https://cdn.example.org/zinc.png",
        "sources": ["USDA"],
    }
    _seed(store, [original])

    result = _standardizer(store).standardize("nutrient", [original], nutrient_schema)

    record = store.get("nutrient_n1")
    for field, value in original.items():
        assert record[field] == value
    assert record["source"] == DEFAULT_SOURCE
    assert record["measurement_unit"] == "mg"
    # only simple defaults were added, no generated content
    assert record["enhanced"] is False
    assert result.enhanced == 0


def test_records_at_or_above_threshold_are_left_alone(store, nutrient_schema):
    complete = {"id": "n1", "name": "Iron"}
    complete.update({field: "filled" for field in nutrient_schema if field != "name"})
    _seed(store, [complete])

    result = _standardizer(store).standardize("nutrient", [complete], nutrient_schema)

    assert result.standardized == 0
    assert store.get("nutrient_n1") == complete


def test_unknown_nutrient_gets_generic_content(store, nutrient_schema):
    _seed(store, [{"id": "n1", "name": "Mystery Compound"}])

    _standardizer(store).standardize("nutrient", store.get_by_prefix("nutrient_"), nutrient_schema)

    record = store.get("nutrient_n1")
    assert record["category"] == "nutrient"
    assert record["description"] == "Mystery Compound is a nutrient record in the HealthScan catalog."
    assert record["image_url"] == f"{IMAGE_BASE}/nutrient/mystery-compound.jpg"
    assert "measurement_unit" not in record
    assert "daily_value" not in record


def test_required_field_without_generator_is_reported(store):
    schema = FieldSchemaRegistry({
        "widget": {
            "name": {"label": "Name", "required": True},
            "code": {"label": "Code", "required": True},
            "image_url": {"label": "Image", "generator": "image"},
        }
    }).require("widget")
    _seed(store, [{"id": "w1", "name": "Gear"}], category="widget")

    result = _standardizer(store).standardize("widget", store.get_by_prefix("widget_"), schema)

    assert result.standardized == 1
    assert len(result.errors) == 1
    assert "Gear (w1)" in result.errors[0]
    assert "code" in result.errors[0]
    assert store.get("widget_w1")["image_url"] == f"{IMAGE_BASE}/widget/gear.jpg"


def test_llm_content_fills_optional_fields(store, nutrient_schema):
    calls = []

    def fake_client(system_prompt, user_prompt, **kwargs):
        calls.append(kwargs)
        return {
            "primary_function": "Antioxidant",
            "health_benefits": "Supports immune function",
            "top_foods": ["Oranges", "Kiwi", ""],
            "unexpected": "ignored",
        }

    llm = LLMEnricher("http://ollama:11434", "llama3.1", client=fake_client)
    _seed(store, [{"id": "n1", "name": "Vitamin C"}])

    result = _standardizer(store, llm=llm).standardize("nutrient", store.get_by_prefix("nutrient_"), nutrient_schema)

    assert result.standardized == 1
    assert len(calls) == 1
    assert calls[0]["json_root"] == "fields"
    record = store.get("nutrient_n1")
    assert record["primary_function"] == "Antioxidant"
    assert record["health_benefits"] == ["Supports immune function"]
    assert record["top_foods"] == ["Oranges", "Kiwi"]
    assert "unexpected" not in record
    assert record["enhanced"] is True


def test_llm_failure_is_reported_per_record(store, nutrient_schema):
    def broken_client(*args, **kwargs):
        raise ConnectionError("ollama is down")

    llm = LLMEnricher("http://ollama:11434", "llama3.1", client=broken_client)
    _seed(store, [{"id": "n1", "name": "Vitamin C"}])

    result = _standardizer(store, llm=llm).standardize("nutrient", store.get_by_prefix("nutrient_"), nutrient_schema)

    assert result.standardized == 0
    assert len(result.errors) == 1
    assert "ollama is down" in result.errors[0]
    assert store.get("nutrient_n1") == {"id": "n1", "name": "Vitamin C"}


class ReadOnlyStore(SqlRecordStore):
    def set(self, key, value):
        raise StoreError("set", key, RuntimeError("read-only"))


def test_store_failure_is_reported_and_run_continues(db_session, nutrient_schema):
    records = [{"id": "n1", "name": "Vitamin C"}, {"id": "n2", "name": "Zinc"}]

    result = _standardizer(ReadOnlyStore(db_session)).standardize("nutrient", records, nutrient_schema)

    assert result.standardized == 0
    assert result.total == 2
    assert len(result.errors) == 2


def test_batches_pause_between_chunks(store, nutrient_schema):
    _seed(store, [{"id": f"n{i}", "name": name} for i, name in enumerate(["Zinc", "Iron", "Copper"])])
    pauses = []

    result = _standardizer(store, batch_size=1, batch_delay_seconds=0.1, sleep=pauses.append).standardize(
        "nutrient", store.get_by_prefix("nutrient_"), nutrient_schema
    )

    assert result.standardized == 3
    assert pauses == [0.1, 0.1]
