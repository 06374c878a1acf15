# app/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The application layer (main.py) maps them to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidPeriodError
    │   └── InvalidCurrencyError
    ├── MarketDataError
    │   ├── ProviderUnavailableError
    │   ├── TickerNotFoundError
    │   └── RateLimitError
    ├── FXRateError
    │   ├── FXRateNotFoundError
    │   └── FXProviderError
    ├── AnalyticsError
    │   └── InsufficientDataError
    └── AuthenticationError
        ├── InvalidCredentialsError
        └── TokenExpiredError

    CircuitBreakerOpen (from circuit_breaker module)
        - Raised when circuit breaker is open and blocking requests
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidPeriodError(ValidationError):
    """Raised for a period outside 1M, 3M, 6M, 1Y, ALL."""

    def __init__(self, period: str) -> None:
        self.period = period
        super().__init__(
            f"Invalid period: '{period}'. Valid options: 1M, 3M, 6M, 1Y, ALL",
            field="period",
        )


class InvalidCurrencyError(ValidationError):
    """Raised for a reporting currency other than USD or RMB (CNY)."""

    def __init__(self, currency: str) -> None:
        self.currency = currency
        super().__init__(
            f"Invalid currency: '{currency}'. Must be USD or RMB",
            field="currency",
        )


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a market data provider is temporarily unavailable
    (timeouts, server errors, maintenance).

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class TickerNotFoundError(MarketDataError):
    """
    Raised when a symbol is not recognized by the provider.

    This is NOT a retryable error.
    """

    def __init__(self, symbol: str, provider: str) -> None:
        message = f"Symbol '{symbol}' not found by {provider}"
        super().__init__(message, provider=provider)
        self.symbol = symbol


class RateLimitError(MarketDataError):
    """
    Raised when the provider's rate limit has been exceeded.

    This is a retryable error (with backoff).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


# =============================================================================
# FX RATE ERRORS
# =============================================================================


class FXRateError(ServiceError):
    """
    Base exception for FX rate errors.

    Attributes:
        base_currency: The currency converted from
        quote_currency: The currency converted to
    """

    def __init__(
            self,
            message: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.base_currency = base_currency
        self.quote_currency = quote_currency
        super().__init__(message)


class FXRateNotFoundError(FXRateError):
    """Raised when the provider returns no rate for a pair and none is cached."""

    def __init__(self, base_currency: str, quote_currency: str) -> None:
        super().__init__(
            f"No FX rate available for {base_currency}/{quote_currency}",
            base_currency=base_currency,
            quote_currency=quote_currency,
        )


class FXProviderError(FXRateError):
    """
    Raised when the FX data provider fails and no stale rate can stand in.

    Attributes:
        provider: Name of the FX data provider
        reason: Specific reason for failure
    """

    def __init__(
            self,
            provider: str,
            reason: str,
            base_currency: str | None = None,
            quote_currency: str | None = None,
    ) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(
            f"FX provider '{provider}' error: {reason}",
            base_currency=base_currency,
            quote_currency=quote_currency,
        )


# =============================================================================
# ANALYTICS ERRORS
# =============================================================================


class AnalyticsError(ServiceError):
    """Base exception for analytics calculation errors."""
    pass


class InsufficientDataError(AnalyticsError):
    """Raised by a calculation that has no defined result for its input size."""

    def __init__(self, calculation: str, points: int) -> None:
        self.calculation = calculation
        self.points = points
        super().__init__(f"{calculation} requires data points, got {points}")


# =============================================================================
# AUTHENTICATION ERRORS
# =============================================================================


class AuthenticationError(ServiceError):
    """Base exception for authentication failures."""
    pass


class InvalidCredentialsError(AuthenticationError):
    """Raised for a missing, malformed or wrongly signed token."""

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class TokenExpiredError(AuthenticationError):
    """Raised when a token's expiry has passed."""

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


# =============================================================================
# CIRCUIT BREAKER (re-exported for convenience)
# =============================================================================

from app.services.circuit_breaker import CircuitBreakerOpen

__all__ = [
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
