from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clipvault.api.v1 import get_api_router
from clipvault.core.config import get_settings
from clipvault.core.db import create_engine, create_schema, create_session_factory
from clipvault.core.errors import ClipvaultError
from clipvault.core.logging import bind_request_context, configure_logging, get_logger
from clipvault.core.storage import get_object_store
from clipvault.services.thumbnail_store import get_thumbnail_store

logger = get_logger(component="api")


def _envelope(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"code": code, "message": message})


async def _handle_clipvault_error(request: Request, exc: ClipvaultError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("request_failed", code=exc.code, status=exc.status_code, message=exc.message)
    return _envelope(exc.status_code, exc.code, exc.message)


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(exc.status_code, "http_error", str(exc.detail))


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}" for error in exc.errors()
    )
    return _envelope(400, "invalid_request", problems or "Malformed request")


def create_app() -> FastAPI:
    settings = get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    configure_logging(level=log_level)
    object_store = get_object_store(settings)
    thumbnails = get_thumbnail_store(settings)
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.object_store = object_store
        app.state.thumbnails = thumbnails
        app.state.engine = engine
        app.state.session_factory = session_factory
        if settings.create_schema_on_startup:
            await create_schema(engine)
        logger.info("api_started", environment=settings.environment, storage_backend=settings.storage_backend)
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan,
        openapi_url="/openapi.json",
        docs_url="/docs",
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        bind_request_context(request_id=request_id, method=request.method, path=request.url.path)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(ClipvaultError, _handle_clipvault_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.include_router(get_api_router())
    return app


__all__ = ["create_app"]
