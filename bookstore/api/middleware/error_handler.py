"""
Error Handling for the Bookstore API

Centralized error handling:
- Structured error responses
- Logging of errors
- Exception translation
"""

import traceback
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging import get_request_id


class BookstoreException(Exception):
    """Base exception for Bookstore errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: str = None,
        errors: Optional[list[dict[str, Any]]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        self.errors = errors
        self.headers = headers
        super().__init__(message)


class ValidationError(BookstoreException):
    """Input validation failed."""

    def __init__(self, message: str, detail: str = None, errors: list[dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
            errors=errors,
        )


class AuthenticationError(BookstoreException):
    """Missing, invalid or expired credentials."""

    def __init__(self, message: str = "Not authenticated", detail: str = None):
        super().__init__(
            message=message,
            code="UNAUTHENTICATED",
            status_code=401,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(BookstoreException):
    """Authenticated but not allowed."""

    def __init__(self, message: str = "Not authorized for this action", detail: str = None):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
            detail=detail,
        )


class NotFoundError(BookstoreException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            detail=f"No {resource} with identifier '{identifier}' exists",
        )


FALLBACK_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Bookstore</title></head>
<body>
<h1>Page not found</h1>
<p><a href="/">Back to the bookstore</a></p>
</body>
</html>
"""


def create_error_response(
    error: str,
    code: str,
    status_code: int,
    detail: str = None,
    errors: Optional[list[dict[str, Any]]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Create standardized error response."""
    content = {
        "error": error,
        "code": code,
        "detail": detail,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def wants_json(request: Request, api_prefix: str = "/api") -> bool:
    """
    API paths always get JSON errors. Elsewhere, only clients whose
    Accept header rules out HTML do; no header or a wildcard means HTML.
    """
    if request.url.path.startswith(api_prefix):
        return True
    accept = request.headers.get("accept", "").replace(" ", "").lower()
    if not accept:
        return False
    media_types = {part.split(";")[0] for part in accept.split(",")}
    return not media_types & {"text/html", "text/*", "*/*"}


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Flatten FastAPI validation errors into field/message pairs."""
    errors = []
    for err in exc.errors():
        # Drop the leading "body"/"query" location segment
        location = [str(part) for part in err.get("loc", ())[1:]]
        errors.append({
            "field": ".".join(location) or None,
            "message": err.get("msg", "Invalid value"),
        })
    return errors


def setup_exception_handlers(app, api_prefix: str = "/api"):
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(BookstoreException)
    async def bookstore_exception_handler(request: Request, exc: BookstoreException):
        logger.warning(f"Bookstore error: {exc.code} - {exc.message} ({request.url.path})")
        return create_error_response(
            error=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.detail,
            errors=exc.errors,
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = format_validation_errors(exc)
        logger.warning(f"Validation error on {request.url.path}: {errors}")
        return create_error_response(
            error="Validation Error",
            code="VALIDATION_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request data failed validation",
            errors=errors,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND and not wants_json(request, api_prefix):
            return HTMLResponse(FALLBACK_PAGE, status_code=status.HTTP_404_NOT_FOUND)
        return create_error_response(
            error="Not found" if exc.status_code == 404 else str(exc.detail),
            code="NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR",
            status_code=exc.status_code,
            detail=str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception [{get_request_id()}] on {request.url.path}: "
            f"{type(exc).__name__}: {exc}\n{traceback.format_exc()}"
        )
        return create_error_response(
            error="Internal Server Error",
            code="INTERNAL_ERROR",
            status_code=500,
            detail="An unexpected error occurred",
        )
