# app/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers the analytics router
- Defines global endpoints (health checks)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.database import check_database_health, get_db, init_db
from app.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_HEALTH,
)
from app.routers import analytics_router
from app.schemas.errors import ErrorDetail, ValidationErrorDetail
from app.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidPeriodError,
    InvalidCurrencyError,
    MarketDataError,
    ProviderUnavailableError,
    RateLimitError,
    FXRateError,
    CircuitBreakerOpen,
    AuthenticationError,
)
from app.services.constants import VALID_PERIODS
from app.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()


# =============================================================================
# APPLICATION SETUP
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"{settings.app_name} started (environment={settings.environment})")
    yield


app = FastAPI(
    title=settings.app_name,
    description="Portfolio performance analytics API",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================
# Must be added before other middleware
# Origins are configured via CORS_ORIGINS environment variable

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter

app.add_middleware(SlowAPIMiddleware)

# Outermost, so every log line of the request carries the correlation ID
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service-layer exceptions become consistent ErrorDetail responses.
# Starlette picks the handler of the most specific class in the MRO.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(InvalidPeriodError)
async def invalid_period_handler(request: Request, exc: InvalidPeriodError) -> JSONResponse:
    """Handle unknown period codes (400)."""
    logger.warning(f"Invalid period: {exc.period}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="InvalidPeriodError",
            message=str(exc),
            details={"period": exc.period, "valid_options": list(VALID_PERIODS)},
        ).model_dump(),
    )


@app.exception_handler(InvalidCurrencyError)
async def invalid_currency_handler(request: Request, exc: InvalidCurrencyError) -> JSONResponse:
    """Handle unsupported reporting currencies (400)."""
    logger.warning(f"Invalid currency: {exc.currency}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="InvalidCurrencyError",
            message=str(exc),
            details={"currency": exc.currency, "valid_options": ["USD", "RMB", "CNY"]},
        ).model_dump(),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="ValidationError",
            message=str(exc),
            details={"field": exc.field} if exc.field else None,
        ).model_dump(),
    )


@app.exception_handler(ProviderUnavailableError)
async def provider_unavailable_handler(request: Request, exc: ProviderUnavailableError) -> JSONResponse:
    """Handle market data provider unavailable (503)."""
    logger.error(f"Provider unavailable: {exc}")
    return JSONResponse(
        status_code=503,
        content=ErrorDetail(
            error="ProviderUnavailableError",
            message=str(exc),
            details={"provider": exc.provider},
        ).model_dump(),
    )


@app.exception_handler(RateLimitError)
async def rate_limit_handler(request: Request, exc: RateLimitError) -> JSONResponse:
    """Handle upstream provider throttling (429)."""
    logger.warning(f"Provider rate limit: {exc}")
    return JSONResponse(
        status_code=429,
        content=ErrorDetail(
            error="RateLimitError",
            message=str(exc),
            details={"retry_after": exc.retry_after} if exc.retry_after else None,
        ).model_dump(),
    )


@app.exception_handler(CircuitBreakerOpen)
async def circuit_breaker_handler(request: Request, exc: CircuitBreakerOpen) -> JSONResponse:
    """Handle circuit breaker open (503 with Retry-After)."""
    logger.warning(f"Circuit breaker open: {exc.breaker_name}")
    retry_after = int(exc.time_remaining) + 1  # Round up
    return JSONResponse(
        status_code=503,
        content=ErrorDetail(
            error="CircuitBreakerOpen",
            message=f"Service temporarily unavailable. The {exc.breaker_name} circuit breaker is open.",
            details={
                "breaker_name": exc.breaker_name,
                "retry_after": retry_after,
            },
        ).model_dump(),
        headers={"Retry-After": str(retry_after)},
    )


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
    """Handle generic market data errors (502)."""
    logger.error(f"Market data error: {exc}")
    return JSONResponse(
        status_code=502,
        content=ErrorDetail(
            error="MarketDataError",
            message=str(exc),
            details={"provider": exc.provider} if exc.provider else None,
        ).model_dump(),
    )


@app.exception_handler(FXRateError)
async def fx_rate_error_handler(request: Request, exc: FXRateError) -> JSONResponse:
    """Handle FX rate failures that could not be degraded (502)."""
    logger.error(f"FX rate error: {exc}")
    return JSONResponse(
        status_code=502,
        content=ErrorDetail(
            error="FXRateError",
            message=str(exc),
            details={
                "base_currency": exc.base_currency,
                "quote_currency": exc.quote_currency,
            } if exc.base_currency else None,
        ).model_dump(),
    )


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handle authentication errors (401)."""
    logger.warning(f"Authentication error: {exc}")
    return JSONResponse(
        status_code=401,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details=None,
        ).model_dump(),
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="ServiceError",
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Convert FastAPI's {"detail": "..."} body to the ErrorDetail format."""
    error_types = {
        400: "BadRequestError",
        401: "UnauthorizedError",
        403: "ForbiddenError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    error_type = error_types.get(exc.status_code, "HTTPError")

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_type,
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert the default 422 body to the ValidationErrorDetail format."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(
            error="ValidationError",
            message="Request validation failed",
            details=errors,
        ).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(analytics_router)  # /analytics/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """API root - returns basic application info."""
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request):
    """
    Health of all dependencies.

    **Response Status Codes:**
    - 200: Healthy, or degraded because the market data breaker is open
    - 503: Database unhealthy
    """
    from app.dependencies import get_market_data_provider

    checks = {}
    overall_status = "healthy"

    # Database (CRITICAL)
    database = check_database_health()
    checks["database"] = {**database, "critical": True}
    critical_healthy = database["status"] == "healthy"
    if not critical_healthy:
        overall_status = "unhealthy"

    # Market data provider (circuit breaker state) - NON-CRITICAL
    try:
        breaker = get_market_data_provider()._get_circuit_breaker()
        checks["market_data"] = {
            "status": "unhealthy" if breaker.is_open else "healthy",
            "critical": False,
            "circuit_breaker_state": breaker.state.value,
            "failure_count": breaker.failure_count,
        }
        if breaker.is_open and overall_status == "healthy":
            overall_status = "degraded"
    except Exception as e:
        logger.warning(f"Market data health check failed: {e}")
        checks["market_data"] = {
            "status": "unknown",
            "critical": False,
            "error": str(e),
        }

    response_data = {
        "status": overall_status,
        "checks": checks,
    }

    if not critical_healthy:
        return JSONResponse(status_code=503, content=response_data)

    return response_data


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """Liveness probe. Never checks dependencies."""
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """Readiness probe: 503 while the database is unreachable."""
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "error": "Database unavailable",
            },
        )
