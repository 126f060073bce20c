"""
Exception handlers for the Prime Hub gateway.

Every failure leaves the service as ``{error, message, request_id, details?}``
with the request id echoed in ``X-Request-ID``. Log records carry the
caller's school and the ticket action when the request got that far.
"""

import logging
import traceback
from typing import Any, Dict, Optional
from uuid import uuid4
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from prime_hub.exceptions import PrimeHubError
from prime_hub.config import get_settings

logger = logging.getLogger(__name__)

# Only statuses the router and the dependency providers can raise
HTTP_ERROR_CODES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    503: "SERVICE_UNAVAILABLE",
}

SENSITIVE_KEY_PARTS = ("token", "secret", "password", "authorization", "api_key")


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid4())


def _request_context(request: Request) -> Dict[str, Any]:
    """Tenant and action stamped on request.state by the caller dependency and routes."""
    caller = getattr(request.state, "caller", None)
    return {
        "request_id": _request_id(request),
        "path": request.url.path,
        "user_id": getattr(caller, "user_id", None),
        "school_id": getattr(caller, "school_id", None),
        "organization_id": getattr(caller, "organization_id", None),
        "action": getattr(request.state, "action", None),
    }


def redact(details: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``details`` with credential-looking keys masked."""
    redacted = {}
    for key, value in details.items():
        if any(part in key.lower() for part in SENSITIVE_KEY_PARTS):
            redacted[key] = "***"
        elif isinstance(value, dict):
            redacted[key] = redact(value)
        else:
            redacted[key] = value
    return redacted


def create_error_response(
    request_id: str,
    error: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    content = {
        "error": error,
        "message": message,
        "request_id": request_id,
    }
    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={"X-Request-ID": request_id},
    )


async def prime_hub_exception_handler(request: Request, exc: PrimeHubError) -> JSONResponse:
    """
    Caller mistakes are logged at WARNING. Configuration and upstream
    failures are logged at ERROR together with their (redacted) details.
    """
    context = _request_context(request)
    context["error_code"] = exc.code

    if exc.status_code >= 500:
        context["details"] = redact(exc.details)
        logger.error(f"{exc.code}: {exc.message}", extra=context)
    else:
        logger.warning(f"{exc.code}: {exc.message}", extra=context)

    return create_error_response(
        request_id=context["request_id"],
        error=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details or None,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body is not an object, or a field has the wrong type (e.g. ``cardId``)."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    context = _request_context(request)
    logger.info("Request body rejected", extra={**context, "errors": errors})

    return create_error_response(
        request_id=context["request_id"],
        error="VALIDATION_ERROR",
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"validation_errors": errors},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return create_error_response(
        request_id=_request_id(request),
        error=HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        message=str(exc.detail),
        status_code=exc.status_code,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    context = _request_context(request)
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={**context, "method": request.method},
        exc_info=True,
    )

    details = None
    if get_settings().debug:
        details = {
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc().split("\n"),
        }

    return create_error_response(
        request_id=context["request_id"],
        error="INTERNAL_ERROR",
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        details=details,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PrimeHubError, prime_hub_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
