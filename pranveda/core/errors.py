# pranveda/core/errors.py
"""
Error taxonomy and the centralized handlers that turn errors into the
JSON envelope every route shares:

    {"success": false, "error": "<ErrorName>", "message": "...", "details": ...}

Services raise the typed errors below; routers never build error bodies
themselves. Upstream failures (store, identity provider, LLM) keep their
internal detail in the server log only.
"""
import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """Base API error with a stable error name and optional details."""

    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "InternalServerError"
    # When False the client only sees `public_message`.
    expose_detail: bool = True
    public_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        details: Any = None,
        headers: dict[str, str] | None = None,
        status_code: int | None = None,
    ):
        message = message or self.public_message
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail=message,
            headers=headers,
        )
        self.message = message
        self.details = details


class ValidationError(AppError):
    """Malformed or out-of-range input."""

    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    error = "ValidationError"
    public_message = "Validation failed"

    def __init__(self, message: str | None = None, field: str | None = None, details: Any = None):
        if details is None and field:
            details = [{"field": field, "message": message or self.public_message}]
        super().__init__(message, details=details)


class AuthenticationError(AppError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    error = "AuthenticationError"
    public_message = "Authentication required"

    def __init__(self, message: str | None = None, details: Any = None):
        super().__init__(message, details=details, headers={"WWW-Authenticate": "Bearer"})


class InvalidToken(AuthenticationError):
    public_message = "Invalid or expired token"


class ForbiddenError(AppError):
    status_code_default = status.HTTP_403_FORBIDDEN
    error = "ForbiddenError"
    public_message = "Access denied"


class NotFoundError(AppError):
    status_code_default = status.HTTP_404_NOT_FOUND
    error = "NotFoundError"
    public_message = "Resource not found"


class UserNotFound(NotFoundError):
    public_message = "User not found"


class ConflictError(AppError):
    status_code_default = status.HTTP_409_CONFLICT
    error = "ConflictError"
    public_message = "Resource conflict"


class RateLimitError(AppError):
    status_code_default = status.HTTP_429_TOO_MANY_REQUESTS
    error = "RateLimitError"
    public_message = "Too many requests, please try again later"

    def __init__(self, retry_after: int, limit: int, message: str | None = None):
        super().__init__(
            message,
            details={"limit": limit, "retry_after": retry_after},
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
            },
        )


class StoreError(AppError):
    """Database failure; the driver message stays server-side."""

    error = "StoreError"
    expose_detail = False
    public_message = "A database error occurred"


class ProviderError(AppError):
    """Identity provider or LLM failure."""

    status_code_default = status.HTTP_502_BAD_GATEWAY
    error = "ProviderError"
    expose_detail = False
    public_message = "An upstream service error occurred"


class ServiceUnavailableError(AppError):
    status_code_default = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "ServiceUnavailableError"
    public_message = "Service temporarily unavailable"


# ----- Envelope helpers -----

_STATUS_ERROR_NAMES = {
    400: "BadRequest",
    401: "AuthenticationError",
    403: "ForbiddenError",
    404: "NotFoundError",
    405: "MethodNotAllowed",
    409: "ConflictError",
    422: "ValidationError",
    429: "RateLimitError",
}


def error_body(error: str, message: str, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": error, "message": message}
    if details is not None:
        body["details"] = details
    return body


def _field_path(loc: tuple | list) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in {"body", "query", "path", "header", "cookie"}:
        parts = parts[1:]
    return ".".join(parts) or "request"


# ----- Handlers -----


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.expose_detail:
        message = exc.message
        details = exc.details
    else:
        logger.error(
            "%s on %s %s: %s (details=%r)",
            exc.error,
            request.method,
            request.url.path,
            exc.message,
            exc.details,
        )
        message = exc.public_message
        details = None

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(exc.error, message, details)),
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc, AppError):
        return await app_error_handler(request, exc)

    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    details = None if isinstance(exc.detail, str) else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(
            error_body(_STATUS_ERROR_NAMES.get(exc.status_code, "HTTPError"), message, details)
        ),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        {"field": _field_path(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder(error_body("ValidationError", "Validation failed", details)),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("InternalServerError", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the envelope handlers to the application."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
