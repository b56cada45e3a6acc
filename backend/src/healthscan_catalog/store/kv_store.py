"""Key-value record store.

The engine only needs four primitives: get, set, delete and prefix scan.
``SqlRecordStore`` backs them with a single SQLModel table; anything that
offers the same methods can be handed to the engine instead.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from healthscan_catalog.core.exceptions import StoreError
from healthscan_catalog.models.kv import KVEntry, utc_now


class RecordStore(Protocol):
    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    def set(self, key: str, value: Dict[str, Any]) -> None: ...

    def delete(self, key: str) -> None: ...

    def get_by_prefix(self, prefix: str) -> List[Dict[str, Any]]: ...


def category_prefix(category: str) -> str:
    return f"{category}_"


def record_key(category: str, record_id: str) -> str:
    """Store key for a record; ids minted by the importer already carry the prefix."""
    prefix = category_prefix(category)
    record_id = str(record_id)
    return record_id if record_id.startswith(prefix) else f"{prefix}{record_id}"


class SqlRecordStore:
    """RecordStore on top of the ``kv_store`` table."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            entry = self.session.get(KVEntry, key, populate_existing=True)
        except SQLAlchemyError as exc:
            raise StoreError("get", key, exc) from exc
        return copy.deepcopy(entry.value) if entry else None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        try:
            entry = self.session.get(KVEntry, key, populate_existing=True)
            if entry is None:
                entry = KVEntry(key=key, value=copy.deepcopy(value))
            else:
                # JSON columns are not mutation-tracked; assign a fresh object.
                entry.value = copy.deepcopy(value)
                entry.updated_at = utc_now()
            self.session.add(entry)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError("set", key, exc) from exc

    def add(self, key: str, value: Dict[str, Any]) -> bool:
        """Insert only if the key is free; the primary key makes this atomic."""
        try:
            if self.session.get(KVEntry, key, populate_existing=True) is not None:
                return False
            self.session.add(KVEntry(key=key, value=copy.deepcopy(value)))
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            return False
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError("add", key, exc) from exc
        return True

    def delete(self, key: str) -> None:
        try:
            entry = self.session.get(KVEntry, key, populate_existing=True)
            if entry is not None:
                self.session.delete(entry)
                self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError("delete", key, exc) from exc

    def get_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        try:
            rows = self.session.exec(
                select(KVEntry)
                .where(KVEntry.key.startswith(prefix, autoescape=True))
                .order_by(KVEntry.key.asc())
                .execution_options(populate_existing=True)
            ).all()
        except SQLAlchemyError as exc:
            raise StoreError("get_by_prefix", prefix, exc) from exc
        return [copy.deepcopy(row.value) for row in rows]
