# app/middleware/rate_limit.py
"""
Rate limiting with slowapi.

Analytics requests fan out to Yahoo Finance for every symbol a user holds,
so they get a tighter limit than health checks. Limits live in
app/services/constants.py.

Key: client IP. Forwarded headers are honoured only from trusted proxies.
Storage: in-memory, per process.

Usage:
    @router.get("/performance")
    @limiter.limit(RATE_LIMIT_ANALYTICS)
    def get_performance(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.config import settings
from app.schemas.errors import ErrorDetail
from app.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_ANALYTICS,
)

logger = logging.getLogger(__name__)

# Seconds clients are told to wait after a 429
RETRY_AFTER_SECONDS = 60


def _get_client_ip(request: Request) -> str:
    """
    Client address for rate limit bucketing.

    X-Forwarded-For / X-Real-IP are read only when the direct peer is a
    trusted proxy (or trust_proxy_headers is set), so clients cannot pick
    their own bucket.
    """
    direct_ip = get_remote_address(request)

    if settings.trust_proxy_headers or direct_ip in settings.trusted_proxy_ips:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    return direct_ip


limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=not settings.is_test,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the standard error body, with a Retry-After header."""
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"
    logger.warning(f"Rate limit exceeded for {_get_client_ip(request)}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content=ErrorDetail(
            error="RateLimitError",
            message=f"Too many requests. {limit_info}",
            details={"retry_after": RETRY_AFTER_SECONDS},
        ).model_dump(),
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_HEALTH",
    "RATE_LIMIT_ANALYTICS",
]
