# app/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

The id is taken from X-Correlation-ID, then X-Request-ID, else a new
UUID4. It is held in the request context for the log filter and echoed in
the X-Correlation-ID response header.

Client Usage:
    curl -H "X-Correlation-ID: my-trace-123" http://localhost:8000/health
"""

import logging
import uuid
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.utils.context import clear_correlation_id, set_correlation_id, set_user_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Sets the correlation id for the duration of each request."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = (
            request.headers.get(CORRELATION_ID_HEADER)
            or request.headers.get(REQUEST_ID_HEADER)
            or str(uuid.uuid4())
        )
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            logger.debug(f"{request.method} {request.url.path} -> {response.status_code}")
            return response
        finally:
            clear_correlation_id()
            set_user_id(None)
