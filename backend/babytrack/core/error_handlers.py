"""Global exception handlers for FastAPI.

Every error leaves the API in the same envelope::

    {"success": false, "error": {"code": ..., "message": ..., "request_id": ...}}

Internal details (stack traces, DB errors) are suppressed unless DEBUG.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from babytrack.config import settings

logger = logging.getLogger(__name__)


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: list | None = None,
) -> JSONResponse:
    error: dict = {"code": code, "message": message}
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        error["request_id"] = request_id
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error_response(request, exc.status_code, f"HTTP_{exc.status_code}", detail)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies (e.g. a push without client_id) never reach the dispatcher."""
    details = [
        {
            "field": " -> ".join(str(part) for part in err.get("loc", [])),
            "message": err.get("msg", "Invalid value"),
            "type": err.get("type", "value_error"),
        }
        for err in exc.errors()
    ]
    return _error_response(
        request,
        422,
        "VALIDATION_ERROR",
        "Request validation failed. Check the details for specific field errors.",
        details,
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return _error_response(request, status.HTTP_400_BAD_REQUEST, "BAD_REQUEST", str(exc))


async def sqlalchemy_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Database error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    message = f"Database error: {exc}" if settings.DEBUG else (
        "A database error occurred. Please try again later."
    )
    return _error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "DATABASE_ERROR", message,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    message = f"Internal error: {exc}" if settings.DEBUG else (
        "An unexpected error occurred. Please try again later."
    )
    return _error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", message,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all global exception handlers on the FastAPI app."""
    from sqlalchemy.exc import SQLAlchemyError

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
