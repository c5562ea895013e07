"""
Domain Exception Handler.

Maps the relay's error taxonomy onto HTTP status codes so callers get a
meaningful status and message instead of a generic 500.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from action_relay.core.errors import (
    ActionNotPermittedError,
    ActionRecordNotFoundError,
    ActionRelayError,
    CapabilitySourceNotFoundError,
    InvalidDescriptionError,
    InvalidTransitionError,
    MissingCredentialError,
    MissingPassthroughCredentialError,
    MissingRequiredArgumentError,
    ProtocolConnectionError,
    ProtocolError,
    ProtocolTimeoutError,
    ToolInactiveError,
    ToolNotFoundError,
    UnsupportedTransportError,
)
from action_relay.core.logging_config import get_logger

logger = get_logger(__name__)

# Most specific first
_STATUS_CODES = (
    (ActionRecordNotFoundError, 404),
    (CapabilitySourceNotFoundError, 404),
    (ToolNotFoundError, 404),
    (ToolInactiveError, 410),
    (ActionNotPermittedError, 403),
    (InvalidTransitionError, 409),
    (InvalidDescriptionError, 400),
    (MissingRequiredArgumentError, 400),
    (UnsupportedTransportError, 400),
    (MissingPassthroughCredentialError, 401),
    (MissingCredentialError, 401),
    (ProtocolTimeoutError, 504),
    (ProtocolConnectionError, 502),
    (ProtocolError, 502),
)


def status_code_for(exc: ActionRelayError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def domain_exception_handler(request: Request, exc: ActionRelayError) -> JSONResponse:
    """
    Translate an ActionRelayError into a JSON error response.

    Args:
        request: The HTTP request that caused the exception
        exc: The domain error

    Returns:
        JSONResponse carrying the error message and type
    """
    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.info
    log("%s %s -> %d %s: %s", request.method, request.url.path, status_code, type(exc).__name__, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )
