"""Error taxonomy of the catalog quality engine.

Category-level errors (unknown category, lock contention) fail a whole call.
Record-level errors (invalid record, store or generation failure) are caught
by the batch loops and reported in the ``errors`` list of the run result.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


class CatalogError(Exception):
    """Base class for all engine errors."""


class SchemaError(CatalogError):
    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Unknown catalog category '{category}'")


class RecordValidationError(CatalogError):
    def __init__(self, record: Mapping[str, Any], reason: str):
        self.record_id = record.get("id") if isinstance(record, Mapping) else None
        self.reason = reason
        super().__init__(f"Invalid record {self.record_id!r}: {reason}")


class StoreError(CatalogError):
    def __init__(self, operation: str, key: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.key = key
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Store {operation} failed for '{key}'{detail}")


class GenerationError(CatalogError):
    def __init__(self, field: str, cause: Optional[BaseException] = None):
        self.field = field
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Could not generate content for '{field}'{detail}")


class LockContentionError(CatalogError):
    def __init__(self, category: str, operation: str, held_by: Optional[str] = None):
        self.category = category
        self.operation = operation
        self.held_by = held_by
        holder = f" (running: {held_by})" if held_by else ""
        super().__init__(
            f"Category '{category}' is busy{holder}; {operation} rejected, try again later"
        )


class AuthorizationError(CatalogError):
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)
