# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request context and access logging middleware.

Assigns every request an id, binds it to the structlog context so all
log lines emitted while handling the request carry it, and writes one
access log line when the response is ready.

Headers:
    X-Request-ID: Reused when the client sends one, echoed on the response.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware that binds request context for structured logs."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        """Bind the request id, call the app, and log the outcome.

        Args:
            request: Incoming HTTP request.
            call_next: Next handler in the chain.

        Returns:
            Response with the X-Request-ID header set.
        """
        clear_context()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        bind_context(request_id=request_id)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        # Gates run in a child context; read what they attached from request.state
        identity = getattr(request.state, "identity", None)
        if identity is not None:
            bind_context(identity_id=identity.id)

        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
