"""FastAPI application with lifespan, error mapping and router mounting."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from payrecon.api.routes import health, imports, sessions, team, templates
from payrecon.api.services import Services, build_services
from payrecon.core.config import AppSettings
from payrecon.core.exceptions import (
    BatchValidationError,
    CacheError,
    ConfigurationError,
    DefaultTemplateError,
    PlatformError,
    StoreError,
    TemplateNotFoundError,
    TemplateValidationError,
)
from payrecon.core.logging import configure_logging

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PlatformError)
    async def _platform_error(request: Request, exc: PlatformError) -> JSONResponse:
        return JSONResponse(
            status_code=502,
            content={"detail": exc.reason, "upstreamStatus": exc.status_code},
        )

    @app.exception_handler(BatchValidationError)
    async def _batch_error(request: Request, exc: BatchValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "problems": {str(k): v for k, v in exc.problems.items()}},
        )

    @app.exception_handler(TemplateNotFoundError)
    async def _not_found(request: Request, exc: TemplateNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(TemplateValidationError)
    async def _invalid_template(request: Request, exc: TemplateValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(DefaultTemplateError)
    @app.exception_handler(StoreError)
    @app.exception_handler(CacheError)
    async def _store_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Store failure path=%s error=%s", request.url.path, exc)
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def _config_error(request: Request, exc: ConfigurationError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(services: Services | None = None, settings: AppSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``services`` replaces the production wiring (used by tests).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app_settings = settings or AppSettings()
        configure_logging(app_settings.log_level)
        app.state.settings = app_settings
        app.state.services = services or build_services(app_settings)
        logger.info("payrecon started environment=%s", app_settings.environment)
        yield
        app.state.services = None

    app = FastAPI(
        title="PayRecon Invoice Reconciliation",
        version="0.1.0",
        lifespan=lifespan,
    )
    _register_error_handlers(app)
    app.include_router(health.router)
    app.include_router(templates.router, prefix="/templates")
    app.include_router(imports.router, prefix="/imports")
    app.include_router(sessions.router, prefix="/sessions")
    app.include_router(team.router, prefix="/team")
    return app
