from .registry import FieldSchemaRegistry
from .service import CatalogQualityService

__all__ = ["CatalogQualityService", "FieldSchemaRegistry"]
