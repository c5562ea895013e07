"""
Fallback handling for errors that escape the relay's domain taxonomy.

Relay errors are mapped to status codes by the domain handler; anything else
is logged with request context and an error id and answered with a 500 that
carries the same id.
"""

import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from action_relay.core.errors import ActionRelayError
from action_relay.core.logging_config import get_logger

from .domain_handler import domain_exception_handler

logger = get_logger(__name__)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Log an unexpected failure and answer 500.

    The error id in the body matches the logged entry so operators can find
    the traceback for a failed execute or sync call.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    error_id = id(exc)

    logger.error(
        "Unhandled exception [%s] in %s %s: %s",
        error_id,
        request.method,
        request.url.path,
        exc,
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Install the domain and fallback handlers on the app.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(ActionRelayError, domain_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Relay exception handlers installed")
