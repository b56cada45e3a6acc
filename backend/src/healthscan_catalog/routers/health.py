from fastapi import APIRouter

from healthscan_catalog.catalog.registry import FieldSchemaRegistry
from healthscan_catalog.core.config import get_settings

router = APIRouter()


@router.get("/health")
def health():
    settings = get_settings()
    return {
        "status": "ok",
        "version": settings.app_version,
        "categories": FieldSchemaRegistry().categories(),
    }
