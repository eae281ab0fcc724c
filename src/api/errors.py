# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP error taxonomy and JSON error rendering.

Every failure leaves the API as {"error": "<message>"} with the matching
status code. The reason attribute is an internal code for logs only and
never reaches the response body.

Example:
    >>> raise AuthenticationFailure("Invalid or expired token", reason="InvalidToken")
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AuthGateError(Exception):
    """Base exception for gate rejections.

    Attributes:
        status_code: HTTP status returned to the caller.
        message: Caller-visible message.
        reason: Internal reason code for logs.
    """

    status_code: int = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, reason: str | None = None) -> None:
        """Initialize the gate error.

        Args:
            message: Caller-visible message.
            reason: Internal reason code (defaults to the class name).
        """
        super().__init__(message)
        self.message = message
        self.reason = reason or type(self).__name__


class AuthenticationFailure(AuthGateError):
    """Missing, invalid or expired credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationFailure(AuthGateError):
    """Valid identity without a permitted role."""

    status_code = status.HTTP_403_FORBIDDEN


class ResourceStateFailure(AuthenticationFailure):
    """Credential is genuine but its subject is inactive or expired.

    Rendered exactly like AuthenticationFailure; only logs tell them apart.
    """


class InternalFailure(AuthGateError):
    """Store or hashing failure during authentication."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Authentication failed", reason: str | None = None) -> None:
        super().__init__(message, reason)


def error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    """Build the standard error body."""
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def auth_gate_error_handler(request: Request, exc: AuthGateError) -> JSONResponse:
    """Render gate rejections and log their internal reason."""
    if exc.status_code >= 500:
        logger.error(
            "Auth failure on %s %s: %s",
            request.method,
            request.url.path,
            exc.reason,
            exc_info=exc.__cause__,
        )
    else:
        logger.warning(
            "Request rejected on %s %s: %s (%d)",
            request.method,
            request.url.path,
            exc.reason,
            exc.status_code,
        )

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException with the error body instead of detail."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation errors as a single message."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg")
    else:
        message = "Invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors and hide their details."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on an application."""
    app.add_exception_handler(AuthGateError, auth_gate_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
