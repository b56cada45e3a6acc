from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import Column, DateTime, JSON
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class KVEntry(SQLModel, table=True):
    """One key-value pair of the record store."""

    __tablename__ = "kv_store"

    key: str = Field(primary_key=True)
    value: Dict[str, Any] = Field(sa_column=Column(JSON, nullable=False))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), index=True)
