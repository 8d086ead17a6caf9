"""
API error types and the FastAPI handlers that render them.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An expected failure that maps directly onto an HTTP status."""

    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers


class ValidationError(ApiError):
    status_code = 400


class UnauthorizedError(ApiError):
    status_code = 401


class ForbiddenError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    status_code = 409


class RateLimitExceeded(ApiError):
    status_code = 429


class UploadFailedError(ApiError):
    status_code = 500


def client_ip(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    forwarded = request.headers.get("x-forwarded-for", "")
    return forwarded.split(",")[0].strip() or "unknown"


def _log(request: Request, status_code: int, message: str) -> None:
    line = "%s - %s - %s - %s - %s"
    args = (status_code, message, request.url.path, request.method, client_ip(request))
    if status_code >= 500:
        logger.error(line, *args)
    else:
        logger.warning(line, *args)


def _error_body(message: str, **extra) -> dict:
    body = {"status": "error", "message": message}
    body.update(extra)
    return body


def register_exception_handlers(app: FastAPI, *, debug: bool = False) -> None:
    """Install the JSON error handlers on `app`."""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        _log(request, exc.status_code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        _log(request, 400, "Validation failed")
        return JSONResponse(
            status_code=400, content=_error_body("Validation failed", errors=errors)
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        _log(request, exc.status_code, message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        extra = {"error": str(exc)} if debug else {}
        return JSONResponse(
            status_code=500, content=_error_body("Something went wrong", **extra)
        )
