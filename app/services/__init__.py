# app/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions as parameters (not via Depends)
- Are easily testable via dependency injection

Architecture:
    services/
    ├── __init__.py                  # This file - main exports
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Business constants and limits
    ├── protocols.py                 # Service interfaces (Protocol classes)
    ├── circuit_breaker.py           # Circuit breaker for external APIs
    ├── cache.py                     # Injectable TTL cache
    ├── currency_service.py          # FX conversion
    ├── transactions.py              # Ledger read access
    ├── auth/                        # Bearer token validation
    ├── analytics/                   # Performance analytics engine
    └── market_data/                 # Providers, classification, fetching
"""

from app.services.analytics import AnalyticsService
from app.services.cache import TTLCache
from app.services.currency_service import CurrencyConverter
from app.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidPeriodError,
    InvalidCurrencyError,
    MarketDataError,
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
    FXRateError,
    FXRateNotFoundError,
    FXProviderError,
    AnalyticsError,
    InsufficientDataError,
    AuthenticationError,
    InvalidCredentialsError,
    TokenExpiredError,
    CircuitBreakerOpen,
)
from app.services.transactions import TransactionRecord, TransactionRepository

__all__ = [
    "AnalyticsService",
    "TTLCache",
    "CurrencyConverter",
    "TransactionRecord",
    "TransactionRepository",
    "ServiceError",
    "ValidationError",
    "InvalidPeriodError",
    "InvalidCurrencyError",
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
    "FXRateError",
    "FXRateNotFoundError",
    "FXProviderError",
    "AnalyticsError",
    "InsufficientDataError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "CircuitBreakerOpen",
]
