"""
Vault Server Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures CORS and global exception handling, and provides a test-friendly
application factory.
"""

from __future__ import annotations

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .core.errors import storage_exception_handler, unhandled_exception_handler
from .db import create_tables
from .storage.base import StorageError

from .api import (
    file_routes,
    query_routes,
    health_routes,
)


logger = logging.getLogger("vault.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    app = FastAPI(
        title="vault-vector-server",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # --------------------------------------------------------------
    # CORS
    # --------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(StorageError, storage_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(file_routes.router)
    app.include_router(query_routes.router)

    # --------------------------------------------------------------
    # Startup Validation Hook
    # --------------------------------------------------------------

    @app.on_event("startup")
    async def _startup_validation() -> None:
        """
        Fail-fast validation at application startup.
        """
        logger.info("Starting vault-vector-server (storage=%s)", settings.storage_backend)

        # Touch critical secrets to force validation now (not at first use)
        if not settings.openai_api_key.get_secret_value():
            raise RuntimeError("OPENAI_API_KEY is not configured")

        if not settings.api_keys:
            logger.warning("No AUTHORIZED_API_KEYS configured, every request will be rejected")

        if settings.storage_backend == "postgres":
            await create_tables()

        logger.info("Configuration validated successfully")

    @app.on_event("shutdown")
    async def _shutdown_cleanup() -> None:
        logger.info("Shutting down vault-vector-server")

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
