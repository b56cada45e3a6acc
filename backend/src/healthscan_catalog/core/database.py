from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

from .config import get_settings

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def _sqlite_connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        # Threaded servers share connections; writers wait instead of failing fast.
        return {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SECONDS}
    return {}


def _enable_wal(dbapi_connection, connection_record) -> None:
    # Readers are not blocked by a standardize or merge run writing.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def build_engine(url: str, echo: bool = False):
    new_engine = create_engine(url, echo=echo, connect_args=_sqlite_connect_args(url))
    if url.startswith("sqlite") and ":memory:" not in url:
        event.listen(new_engine, "connect", _enable_wal)
    return new_engine


settings = get_settings()

engine = build_engine(settings.database_url, echo=settings.database_echo)


def init_db() -> None:
    # The record store is a single table; importing it registers the metadata.
    from healthscan_catalog.models import kv  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session() -> Iterator[Session]:
    with Session(engine) as session:
        yield session


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for scripts running outside a request."""
    with Session(engine) as session:
        yield session
