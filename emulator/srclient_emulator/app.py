"""
FastAPI application factory for the schema registry emulator.

This module creates the emulator app with:
- An in-process SchemaCatalog held on app state
- Registry REST routes
- Registry-shaped error bodies for every failure

Usage:
    uvicorn srclient_emulator.app:app --port 8081
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from srclient import SchemaCatalog, SchemaRegistryError
from srclient.errors import INTERNAL

from .config import Settings
from .routes import RegistryJSONResponse, router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log catalog state around the app's lifetime."""
    catalog: SchemaCatalog = app.state.catalog
    logger.info(f"Schema registry emulator started with {len(catalog)} schemas")
    yield
    logger.info(f"Schema registry emulator stopped with {len(catalog)} schemas")


def create_app(
    catalog: Optional[SchemaCatalog] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create and configure the emulator application.

    Args:
        catalog: Catalog to serve (a fresh one built from settings if omitted)
        settings: Emulator settings (environment if omitted)

    Returns:
        Configured FastAPI app
    """
    settings = settings or Settings()
    if catalog is None:
        if settings.seed:
            catalog = SchemaCatalog.seeded(compatibility=settings.compatibility_level)
        else:
            catalog = SchemaCatalog(compatibility=settings.compatibility_level)

    app = FastAPI(
        title="Schema Registry Emulator",
        description="In-process schema registry speaking the registry REST protocol.",
        version="1.0.0",
        lifespan=lifespan,
        default_response_class=RegistryJSONResponse,
    )
    app.state.catalog = catalog
    app.state.settings = settings

    @app.exception_handler(SchemaRegistryError)
    async def registry_error_handler(request: Request, exc: SchemaRegistryError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return RegistryJSONResponse(exc.to_body(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return RegistryJSONResponse(
            {"error_code": 400, "message": f"Invalid request: {exc.errors()}"},
            status_code=400,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return RegistryJSONResponse(
            {"error_code": exc.status_code, "message": str(exc.detail)},
            status_code=exc.status_code,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} failed")
        return RegistryJSONResponse(
            {"error_code": INTERNAL, "message": "Internal server error"},
            status_code=500,
        )

    app.include_router(router)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "schema-registry-emulator", "schemas": len(catalog)}

    return app


# Default app instance
app = create_app()
