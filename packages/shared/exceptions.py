"""Shared exception classes and handlers.

Every error raised by a service ends up in the same JSON envelope:

    {"errors": [{"status": "404", "title": "Not found", "detail": "..."}]}
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    title = "Error"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        title: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        if title is not None:
            self.title = title
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found exception."""

    title = "Not found"

    def __init__(
        self,
        resource: str,
        identifier: Any = None,
        key: str = "id",
    ) -> None:
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with this {key} ({identifier}) could not be found"
        super().__init__(message=message, status_code=status.HTTP_404_NOT_FOUND)


class BadParameterError(AppException):
    """A request parameter is inconsistent with the stored data."""

    title = "Bad parameter"

    def __init__(self, message: str) -> None:
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST)


class UnsupportedOperatorError(BadParameterError, ValueError):
    """A filter was given a combination operator it does not know."""

    def __init__(self, operator: Any, supported: tuple[str, ...] = ()) -> None:
        self.operator = operator
        message = f"Unsupported filter operator: {operator}"
        if supported:
            message += f" (expected one of {', '.join(supported)})"
        super().__init__(message)


class ConflictError(AppException):
    """The request conflicts with the current state of a resource."""

    title = "Conflict"

    def __init__(self, message: str) -> None:
        super().__init__(message=message, status_code=status.HTTP_409_CONFLICT)


class UnauthorizedError(AppException):
    """No valid session was provided."""

    title = "Unauthorized"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED)


class AccessDeniedError(AppException):
    """The session is valid but not allowed to perform the action."""

    title = "Access denied"

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message=message, status_code=status.HTTP_403_FORBIDDEN)


# =============================================================================
# Error views
# =============================================================================


def error_to_http_view(exc: Exception) -> tuple[int, dict[str, Any]]:
    """Map an exception to an HTTP status code and the JSON error envelope.

    Unclassified exceptions are reported as a 400 "Service unavailable" so that
    internal details never leak to the client.
    """
    if isinstance(exc, AppException):
        code = exc.status_code
        error = {"status": str(code), "title": exc.title, "detail": exc.message}
    elif isinstance(exc, HTTPException):
        code = exc.status_code
        error = {"status": str(code), "title": str(exc.detail)}
    else:
        code = status.HTTP_400_BAD_REQUEST
        error = {"status": str(code), "title": "Service unavailable", "detail": str(exc)}
    return code, {"errors": [error]}


def validation_errors_to_http_view(errors: list[dict[str, Any]]) -> dict[str, Any]:
    """Convert pydantic error entries into the error envelope."""
    view = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ())]
        view.append(
            {
                "status": "400",
                "title": "Invalid Attribute",
                "detail": error.get("msg", ""),
                "source": {"pointer": "/" + "/".join(location)},
            }
        )
    return {"errors": view}


# =============================================================================
# Handlers
# =============================================================================


async def app_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle AppException and HTTPException and return the error envelope."""
    code, content = error_to_http_view(exc)
    headers = getattr(exc, "headers", None)
    return JSONResponse(status_code=code, content=content, headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request schema validation failures."""
    logger.info(f"Invalid request on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=validation_errors_to_http_view(list(exc.errors())),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers and the catch-all error middleware."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.middleware("http")
    async def unhandled_error_middleware(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            code, content = error_to_http_view(exc)
            return JSONResponse(status_code=code, content=content)
