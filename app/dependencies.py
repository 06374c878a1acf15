# app/dependencies.py
"""
Dependency injection module for FastAPI services.

Provides singleton service instances shared across all requests, so the
provider's circuit breaker and the price / FX caches are process-wide.
Services are created lazily on first use.

Usage in routers:
    from app.dependencies import get_analytics_service, get_current_user

    @router.get("/performance")
    def get_performance(
        service: AnalyticsService = Depends(get_analytics_service),
        current_user: User = Depends(get_current_user),
    ):
        ...
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models import User
from app.services.analytics.service import AnalyticsService
from app.services.auth.jwt_handler import JWTHandler
from app.services.cache import TTLCache
from app.services.currency_service import CurrencyConverter
from app.services.exceptions import TokenExpiredError, InvalidCredentialsError
from app.services.market_data.fetcher import PriceHistoryFetcher
from app.services.market_data.yahoo import YahooFinanceProvider
from app.utils.context import set_user_id

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_market_data_provider (no deps)
# 2. get_price_fetcher, get_currency_converter (depend on provider)
# 3. get_analytics_service (depends on fetcher and converter)


@lru_cache(maxsize=1)
def get_market_data_provider() -> YahooFinanceProvider:
    """Shared provider, so one circuit breaker covers every caller."""
    logger.debug("Initializing singleton YahooFinanceProvider")
    return YahooFinanceProvider(timeout=settings.market_data_timeout_seconds)


@lru_cache(maxsize=1)
def get_price_fetcher() -> PriceHistoryFetcher:
    logger.debug("Initializing singleton PriceHistoryFetcher")
    return PriceHistoryFetcher(
        provider=get_market_data_provider(),
        cache=TTLCache(ttl_seconds=settings.price_cache_ttl_seconds),
        max_workers=settings.price_fetch_max_workers,
    )


@lru_cache(maxsize=1)
def get_currency_converter() -> CurrencyConverter:
    logger.debug("Initializing singleton CurrencyConverter")
    return CurrencyConverter(
        provider=get_market_data_provider(),
        cache=TTLCache(ttl_seconds=settings.fx_cache_ttl_seconds),
    )


@lru_cache(maxsize=1)
def get_analytics_service() -> AnalyticsService:
    logger.debug("Initializing singleton AnalyticsService")
    return AnalyticsService(
        fetcher=get_price_fetcher(),
        converter=get_currency_converter(),
    )


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """
    Extract and validate the current user from the bearer token.

    Raises:
        HTTPException 401: No token, invalid or expired token, unknown or inactive user
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = JWTHandler.validate_access_token(credentials.credentials)
        user_id = JWTHandler.get_user_id(payload)
    except TokenExpiredError:
        raise _unauthorized("Token has expired")
    except InvalidCredentialsError as e:
        raise _unauthorized(str(e))

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise _unauthorized("User account is inactive")

    set_user_id(user.id)
    return user


# =============================================================================
# CACHE MANAGEMENT
# =============================================================================

def clear_service_caches() -> None:
    """Drop all singletons (fresh caches and breaker on next use). Used by tests."""
    get_market_data_provider.cache_clear()
    get_price_fetcher.cache_clear()
    get_currency_converter.cache_clear()
    get_analytics_service.cache_clear()
    logger.info("Cleared all service singleton caches")
