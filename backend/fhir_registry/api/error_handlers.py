"""Error Handlers: the error normalizer and request-validation handler.

Invariants:
    - Every escaped exception becomes {"message": ...} with the error's own
      status (status, status_code, http_status) or 500
    - Messages come only from an explicit message attribute or a Starlette
      HTTPException detail; str(exc) is never sent to clients
    - RequestValidationError → 400 with field-level details

Design Decisions:
    - StarletteHTTPException and RegistryError are normalized inside
      ExceptionMiddleware and never re-raised
    - Any other Exception is normalized in ServerErrorMiddleware, which sends
      the response and then re-raises, so uvicorn logs the traceback itself
      ("Exception in ASGI application"); that path logs one line without
      exc_info, whatever status the error declares
    - register_error_handlers() is called after all routers are included
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fhir_registry.core.errors import RegistryError

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Internal Server Error"
_STATUS_ATTRIBUTES = ("status", "status_code", "http_status")


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, normalize_error_handler)
    app.add_exception_handler(RegistryError, normalize_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


def error_status(exc: BaseException) -> int:
    """Declared HTTP status of an exception, or 500."""
    for attr in _STATUS_ATTRIBUTES:
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool) and 100 <= value <= 599:
            return value
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_message(exc: BaseException) -> str:
    """Declared message of an exception, or DEFAULT_MESSAGE."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    if isinstance(exc, StarletteHTTPException) and isinstance(exc.detail, str) and exc.detail:
        return exc.detail
    return DEFAULT_MESSAGE


async def normalize_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Turn a registry or HTTP exception into the uniform {"message"} envelope."""
    return _normalize(request, exc, log_traceback=True)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Same envelope for any other exception; the server logs its traceback."""
    return _normalize(request, exc, log_traceback=False)


def _normalize(request: Request, exc: Exception, log_traceback: bool) -> JSONResponse:
    status_code = error_status(exc)
    message = error_message(exc)
    log_extra = {
        "path": request.url.path,
        "method": request.method,
        "status_code": status_code,
        "error_code": getattr(exc, "code", None),
    }
    if status_code >= 500:
        logger.error(
            f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}",
            exc_info=exc if log_traceback else None, extra=log_extra,
        )
    else:
        logger.warning(f"Error: {status_code} - {message}", extra=log_extra)
    headers = getattr(exc, "headers", None) if isinstance(exc, StarletteHTTPException) else None
    return JSONResponse(
        status_code=status_code, content={"message": message}, headers=headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    logger.warning(
        f"Validation error on {request.url.path}: {exc.errors()}",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_build_validation_error_response(exc),
    )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": "Invalid request data",
        "details": [
            {
                "field": ".".join(str(loc) for loc in e["loc"]),
                "message": e["msg"],
                "type": e["type"],
            }
            for e in exc.errors()
        ],
    }
