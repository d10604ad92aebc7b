"""
Global Error Handling

This module defines application-wide exception handlers for the vault
server.

Design Goals
------------
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request
from fastapi.responses import JSONResponse

from ..storage.base import StorageError

logger = logging.getLogger("vault.errors")


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def storage_exception_handler(
    request: Request,
    exc: StorageError,
) -> JSONResponse:
    """
    Handler for storage collaborator failures that escape an operation.

    Returns a 500 naming the failure class without internal details.
    """
    logger.error(
        "Storage failure during request %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )

    payload: Dict[str, Any] = {
        "error": "storage_error",
        "detail": "Storage backend failure",
    }

    return JSONResponse(status_code=500, content=payload)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.

    Parameters
    ----------
    request : Request
        The incoming HTTP request that triggered the exception.

    exc : Exception
        The uncaught exception instance.

    Returns
    -------
    JSONResponse
        A JSON 500 response with a minimal error payload.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
