from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


FieldType = Literal["string", "number", "boolean", "array", "object"]


def _as_text(value: Any) -> Any:
    """Imported records carry free-form JSON; labels like category may be lists or numbers."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value if item is not None)
    return str(value)


OptionalText = Annotated[Optional[str], BeforeValidator(_as_text)]


class FieldDefinition(CamelModel):
    label: str
    description: str = ""
    type: FieldType = "string"
    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    example: str = ""
    help_text: str = ""
    default: Optional[Any] = None
    generator: Optional[str] = None


class QualityAnalysisItem(CamelModel):
    id: str
    name: str
    category: OptionalText = None
    completeness: int = Field(ge=0, le=100)
    data_quality: int = Field(ge=0, le=100)
    missing_fields: List[str] = []
    empty_fields: List[str] = []
    present_fields: int = 0
    total_expected: int = 0


class DuplicateRecordRef(CamelModel):
    id: str
    category: OptionalText = None
    source: OptionalText = None


class DuplicateGroup(CamelModel):
    name: str
    count: int
    records: List[DuplicateRecordRef]


class QualitySummary(CamelModel):
    total_nutrients: int = 0
    average_completeness: int = 0
    average_data_quality: int = 0
    duplicate_groups: int = 0
    total_duplicates: int = 0
    needs_standardization: int = 0


class QualityReport(CamelModel):
    summary: QualitySummary
    quality_analysis: List[QualityAnalysisItem] = []
    duplicates: List[DuplicateGroup] = []
    needs_standardization: List[QualityAnalysisItem] = []
    expected_fields: List[str] = []
    warnings: List[str] = []


class ProcessedRecord(CamelModel):
    id: str
    name: str
    category: OptionalText = None
    enhanced: bool = False


class StandardizationResult(CamelModel):
    standardized: int = 0
    enhanced: int = 0
    total: int = 0
    errors: List[str] = []
    processed_records: List[ProcessedRecord] = []


class GroupMergeResult(CamelModel):
    name: str
    primary_id: str
    merged_ids: List[str] = []
    total_merged: int = 0


class MergeResult(CamelModel):
    merged: int = 0
    deleted: int = 0
    duplicate_groups: int = 0
    final_count: int = 0
    merge_results: List[GroupMergeResult] = []
    errors: List[str] = []


class CategoryStats(CamelModel):
    category: str
    total: int = 0
    with_images: int = 0
    with_metadata: int = 0
    from_api: int = 0
    last_import: Optional[str] = None
    standardized: int = 0
    enhanced: int = 0
    verified: int = 0
    average_quality_score: int = 0
    constraint_violations: Dict[str, int] = {}


class RecordView(CamelModel):
    record: Dict[str, Any]
    structure: List[str]
