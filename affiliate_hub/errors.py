"""Error taxonomy and the JSON error contract.

Every error that reaches a client has the body
``{"success": false, "message": ...}``; validation failures also list each
violation under ``errors``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("affiliate_hub.errors")


class APIError(Exception):
    """Base class for errors with a fixed HTTP status and a client-safe message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message}


class ValidationError(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"

    def __init__(self, violations: Sequence[Any], message: Optional[str] = None) -> None:
        self.violations = list(violations)
        super().__init__(message)

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["errors"] = [violation.as_dict() for violation in self.violations]
        return body


class MissingTokenError(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Access denied. No token provided."


class InvalidTokenError(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid token."


class InvalidCredentialsError(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid email or password"


class DuplicateEmailError(APIError):
    status_code = status.HTTP_409_CONFLICT
    message = "User already exists"


class UnknownPlatformError(APIError):
    status_code = 422
    message = "Platform not found"


class PersistenceError(APIError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Server error"


def error_response(status_code: int, message: str, *, errors: Optional[List[Dict[str, str]]] = None) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


async def _handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unmatched routes (404) and wrong methods (405) raised by the router.
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def _handle_rate_limit(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # slowapi's middleware calls this synchronously.
    client = request.client.host if request.client else "unknown"
    logger.warning("Rate limit exceeded for %s on %s (%s)", client, request.url.path, exc.detail)
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many requests, please try again later.",
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error while serving %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def install_error_handlers(app: FastAPI) -> None:
    """Register the centralized handlers on ``app``."""

    app.add_exception_handler(APIError, _handle_api_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _handle_rate_limit)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected)


__all__ = [
    "APIError",
    "DuplicateEmailError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "MissingTokenError",
    "PersistenceError",
    "UnknownPlatformError",
    "ValidationError",
    "error_response",
    "install_error_handlers",
]
