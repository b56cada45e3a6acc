from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.requests import Request

from healthscan_catalog.core.auth import build_authorizer
from healthscan_catalog.core.config import get_settings
from healthscan_catalog.core.database import init_db
from healthscan_catalog.core.exceptions import LockContentionError, SchemaError, StoreError
from healthscan_catalog.routers import catalog_admin, health


CORE_ROUTERS = (
    (health.router, {"tags": ["health"]}),
    (catalog_admin.router, {}),
)

# Category-level failures end the whole call; per-record ones travel in `errors`.
ERROR_STATUS = (
    (SchemaError, 404),
    (LockContentionError, 409),
    (StoreError, 503),
)


def _error_responder(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url=settings.docs_url,
    )
    application.state.authorizer = build_authorizer()

    for exc_type, status_code in ERROR_STATUS:
        application.add_exception_handler(exc_type, _error_responder(status_code))

    @application.middleware("http")
    async def enforce_utf8_json(request: Request, call_next):
        response = await call_next(request)
        if response.headers.get("content-type", "").startswith("application/json"):
            response.headers["content-type"] = "application/json; charset=utf-8"
        return response

    for router, include_kwargs in CORE_ROUTERS:
        application.include_router(router, **include_kwargs)

    @application.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(settings.docs_url or "/docs")

    @application.on_event("startup")
    def _startup():
        init_db()

    return application


app = create_app()
