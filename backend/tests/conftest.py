import tempfile
from contextlib import suppress
from pathlib import Path
from typing import AsyncIterator, Iterator

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlmodel import Session, SQLModel

from healthscan_catalog.catalog.service import CatalogQualityService
from healthscan_catalog.core import database as core_database
from healthscan_catalog.core.auth import AdminIdentity, AllowlistAuthorizer, token_map_resolver
from healthscan_catalog.core.database import get_session
from healthscan_catalog.main import create_app
from healthscan_catalog.store.kv_store import SqlRecordStore

ADMIN_TOKEN = "admin-token"
USER_TOKEN = "user-token"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def engine() -> Iterator:
    # Fresh SQLite DB file in a temp dir per test for isolation
    tmp = tempfile.TemporaryDirectory()
    db_path = Path(tmp.name) / "test.db"
    test_engine = core_database.build_engine(f"sqlite:///{db_path}")

    from healthscan_catalog.models import kv  # noqa: F401
    SQLModel.metadata.create_all(test_engine)
    try:
        yield test_engine
    finally:
        with suppress(Exception):
            test_engine.dispose()
        tmp.cleanup()


@pytest.fixture
def db_session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def store(db_session) -> SqlRecordStore:
    return SqlRecordStore(db_session)


@pytest.fixture
def admin() -> AdminIdentity:
    return AdminIdentity(email="ops@healthscan.live")


@pytest.fixture
def service(store) -> CatalogQualityService:
    return CatalogQualityService(store, threshold=90, batch_size=2, batch_delay_seconds=0)


@pytest.fixture
def test_app(monkeypatch, engine) -> Iterator[FastAPI]:
    def _override_get_session():
        with Session(engine) as session:
            yield session

    # patch global engine/init_db so startup hooks operate on the test database
    monkeypatch.setattr(core_database, "engine", engine, raising=False)

    def _init_db():
        SQLModel.metadata.create_all(engine)

    monkeypatch.setattr(core_database, "init_db", _init_db, raising=False)

    app = create_app()
    app.dependency_overrides[get_session] = _override_get_session
    app.state.authorizer = AllowlistAuthorizer(
        resolve_email=token_map_resolver({ADMIN_TOKEN: "ops@healthscan.live", USER_TOKEN: "someone@example.com"}),
        domains=["healthscan.live"],
    )

    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
