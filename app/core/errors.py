"""Error taxonomy and the uniform JSON error envelope.

Every failure leaving the API has the shape::

    {"success": false, "message": str, "errors": [{"field", "message", "code"}], "timestamp": iso8601}

Domain code raises an AppError subclass; register_exception_handlers() turns
those, request validation failures, stray HTTPExceptions and uncaught
exceptions into that envelope.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors mapped to an HTTP status and a stable error code."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BAD_REQUEST"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        field: str | None = None,
        detail: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.field = field
        # Human-readable explanation for the errors[] entry; defaults to message
        self.detail = detail or message
        self.headers = headers

    def to_error_item(self) -> dict[str, Any]:
        item: dict[str, Any] = {"message": self.detail, "code": self.code}
        if self.field is not None:
            item["field"] = self.field
        return item


class ValidationError(AppError):
    """Malformed or missing request fields (400)."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials or token (401)."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class AuthorizationError(AppError):
    """Valid identity without sufficient privilege (403)."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(AppError):
    """Duplicate unique field or similar conflict (409)."""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class AccountLockedError(AppError):
    """Login refused while the account lockout window is open (423)."""

    status_code = status.HTTP_423_LOCKED
    code = "ACCOUNT_LOCKED"


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"


class ServiceUnavailableError(AppError):
    """Database not configured or unreachable (503)."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "SERVICE_UNAVAILABLE"


def error_response(
    status_code: int,
    message: str,
    errors: list[dict[str, Any]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the uniform error envelope."""
    body: dict[str, Any] = {
        "success": False,
        "message": message,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if errors:
        body["errors"] = errors
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=headers,
    )


def _validation_items(exc: RequestValidationError) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    for err in exc.errors():
        # Drop the "body"/"path"/"query" location prefix
        loc = [str(part) for part in err.get("loc", ())[1:]]
        item: dict[str, Any] = {
            "message": err.get("msg", "Invalid value"),
            "code": err.get("type", "invalid"),
        }
        if loc:
            item["field"] = ".".join(loc)
        items.append(item)
    return items


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers that render every error as the uniform envelope."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        log_extra = {
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
            "error_code": exc.code,
        }
        if exc.status_code >= 500:
            logger.error("Request failed: %s", exc.message, extra=log_extra)
        else:
            logger.warning("Request rejected: %s", exc.message, extra=log_extra)
        return error_response(
            exc.status_code,
            exc.message,
            [exc.to_error_item()],
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        items = _validation_items(exc)
        logger.warning(
            "Validation failed",
            extra={"path": request.url.path, "error_count": len(items)},
        )
        return error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", items)

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning("Integrity violation on %s", request.url.path)
        return error_response(
            status.HTTP_409_CONFLICT,
            "Resource conflict",
            [{"message": "A record with the same unique value already exists", "code": "CONFLICT"}],
        )

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return error_response(
            exc.status_code,
            message,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path
        )
        errors = None
        if get_settings().APP_ENV != "prod":
            errors = [{"message": str(exc) or type(exc).__name__, "code": "INTERNAL_ERROR"}]
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            errors,
        )
