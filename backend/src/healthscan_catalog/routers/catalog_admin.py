"""Admin endpoints of the catalog quality engine.

Every route requires an admin identity. Engine errors are turned into HTTP
responses by the handlers registered in ``main.create_app``.
"""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from healthscan_catalog.catalog.schemas import (
    CategoryStats,
    FieldDefinition,
    MergeResult,
    QualityReport,
    RecordView,
    StandardizationResult,
)
from healthscan_catalog.catalog.service import CatalogQualityService
from healthscan_catalog.core.auth import AdminIdentity, require_admin
from healthscan_catalog.core.config import get_settings
from healthscan_catalog.core.database import get_session
from healthscan_catalog.store.kv_store import SqlRecordStore

router = APIRouter(prefix="/admin/catalog", tags=["catalog-admin"])


def get_catalog_service(session: Session = Depends(get_session)) -> CatalogQualityService:
    return CatalogQualityService.from_settings(SqlRecordStore(session), get_settings())


@router.get("/{category}/analyze", response_model=QualityReport, summary="Completeness, quality and duplicates")
def analyze(
    category: str,
    admin: AdminIdentity = Depends(require_admin),
    service: CatalogQualityService = Depends(get_catalog_service),
):
    return service.analyze(category)


@router.post("/{category}/standardize", response_model=StandardizationResult, summary="Fill under-complete records")
def standardize(
    category: str,
    admin: AdminIdentity = Depends(require_admin),
    service: CatalogQualityService = Depends(get_catalog_service),
):
    return service.standardize(category, admin)


@router.post("/{category}/merge-duplicates", response_model=MergeResult, summary="Merge records sharing a name")
def merge_duplicates(
    category: str,
    admin: AdminIdentity = Depends(require_admin),
    service: CatalogQualityService = Depends(get_catalog_service),
):
    return service.merge_duplicates(category, admin)


@router.get("/{category}/field-definitions", response_model=Dict[str, FieldDefinition])
def field_definitions(
    category: str,
    admin: AdminIdentity = Depends(require_admin),
    service: CatalogQualityService = Depends(get_catalog_service),
):
    return service.field_definitions(category)


@router.get("/{category}/stats", response_model=CategoryStats, summary="Image, metadata and provenance counts")
def stats(
    category: str,
    admin: AdminIdentity = Depends(require_admin),
    service: CatalogQualityService = Depends(get_catalog_service),
):
    return service.stats(category)


@router.get("/{category}/records/{record_id}", response_model=RecordView)
def get_record(
    category: str,
    record_id: str,
    admin: AdminIdentity = Depends(require_admin),
    service: CatalogQualityService = Depends(get_catalog_service),
):
    view = service.get_record(category, record_id)
    if view is None:
        raise HTTPException(404, "Record not found")
    return view
