"""
Error types raised by the challenge core, and the handlers that render them.

Every error response has the same body:

    {"error": {"code", "message", "request_id"}, "detail": message}

and echoes the request id in the ``x-request-id`` header.
"""

import builtins
import logging
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.requests import Request

from dailychallenge.core.logging import LOGGER_NAME, get_request_id

logger = logging.getLogger(LOGGER_NAME)


class AppError(Exception):
    code = "app_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.code
        self.status_code = status_code or self.status_code
        self.request_id = request_id


class ValidationError(AppError, ValueError):
    """Malformed input: bad date key, negative day count, blank user id."""
    code = "validation_error"
    status_code = 400


class NotFoundError(AppError, LookupError):
    code = "not_found"
    status_code = 404


class PermissionError(AppError, builtins.PermissionError):
    """The challenge exists but belongs to another user."""
    code = "forbidden"
    status_code = 403


class ConflictError(AppError):
    code = "conflict"
    status_code = 409


class UniqueConstraintViolation(ConflictError):
    """Raised by a store when a (user_id, date) assignment already exists."""


class ConfigurationError(AppError):
    """Catalog is not seeded: no categories, or a category without templates."""
    code = "configuration_error"
    status_code = 500


class StoreUnavailable(AppError):
    code = "store_unavailable"
    status_code = 500


def _resolve_request_id(request: Request, preferred: Optional[str] = None) -> str:
    return (
        preferred
        or getattr(request.state, "request_id", None)
        or get_request_id()
        or str(uuid4())
    )


def _render(request: Request, status: int, code: str, message: str, *, request_id: Optional[str] = None) -> JSONResponse:
    rid = _resolve_request_id(request, request_id)
    level = logging.ERROR if status >= 500 else logging.WARNING
    logger.log(
        level,
        "request.failed",
        extra={"request_id": rid, "error_code": code, "status": status, "path": request.url.path},
    )
    response = JSONResponse(
        status_code=status,
        content={"error": {"code": code, "message": message, "request_id": rid}, "detail": message},
    )
    response.headers["x-request-id"] = rid
    return response


async def app_error_handler(request: Request, exc: AppError):
    return _render(request, exc.status_code, exc.code, exc.message, request_id=exc.request_id)


async def http_error_handler(request: Request, exc: HTTPException):
    code = "not_found" if exc.status_code == 404 else "http_error"
    return _render(request, exc.status_code, code, exc.detail or "HTTP error")


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "invalid request"
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()))
        text = errors[0].get("msg", message)
        message = f"{location}: {text}" if location else text
    return _render(request, 400, "validation_error", message)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled.exception", exc_info=exc, extra={"request_id": _resolve_request_id(request)})
    return _render(request, 500, "internal_error", "Unexpected error")


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
