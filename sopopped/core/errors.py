# sopopped/core/errors.py
"""
Storefront error taxonomy.

Every error is an HTTPException carrying a status code and a
human-readable message, so services can raise them exactly like
plain HTTPException. The handlers registered by
`register_exception_handlers` render all of them (and FastAPI's own
405/422 errors) as the JSON envelope the frontend expects:

    {"success": false, "error": "<message>", "errors": <optional>}

Database failures are logged with their traceback and surfaced as a
generic message; driver text never reaches the client.
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class StorefrontError(HTTPException):
    """
    Base class for storefront errors.

    Attributes:
        status_code: HTTP status returned to the client
        detail: human-readable message (the envelope's "error")
        errors: optional field-level errors (dict or list)
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(
        self,
        message: str | None = None,
        errors: Any = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.default_message,
            headers=headers,
        )
        self.errors = errors


class BadRequest(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class Unauthenticated(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class InvalidCredentials(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class Forbidden(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Admin access required"


class Deactivated(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = (
        "This account has been deactivated. "
        "Please contact support to reactivate your account."
    )


class NotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(StorefrontError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class RateLimited(StorefrontError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "rate_limited"


class ServerError(StorefrontError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"


def field_errors(exc: ValidationError, rename: dict[str, str] | None = None) -> dict[str, str]:
    """
    Flatten a pydantic ValidationError into {field: message}.

    Messages raised by our own validators (ValueError) are used as-is,
    without pydantic's "Value error, " prefix. Only the first error per
    field is kept. `rename` maps top-level field names (e.g.
    "cart_items" -> "cart") to the names the form uses.
    """
    rename = rename or {}
    out: dict[str, str] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "__root__"
        field = rename.get(field, field)
        if field in out:
            continue
        cause = (err.get("ctx") or {}).get("error")
        out[field] = str(cause) if isinstance(cause, ValueError) else err["msg"]
    return out


def error_envelope(message: str, errors: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message}
    if errors:
        body["errors"] = errors
    return body


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(detail, getattr(exc, "errors", None)),
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope("Invalid request", errors),
    )


async def _database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope(ServerError.default_message),
    )


async def _unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope(ServerError.default_message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the envelope-rendering handlers to the application."""
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, _database_exception_handler)
    app.add_exception_handler(Exception, _unexpected_exception_handler)
