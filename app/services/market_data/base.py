# app/services/market_data/base.py
"""
Abstract interface for market data providers.

This module defines the contract that all market data providers must follow.
Using an abstract base class allows for:
- Swapping the data source without touching the analytics engine
- Mock implementations for testing
- Consistent retry behavior across all providers

Symbols are provider-native strings (e.g. "AAPL", "600519.SS"); the
market they belong to is derived by ``markets.classify_symbol``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TypeVar, Callable, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from app.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

# Type variable for generic return type in retry method
T = TypeVar('T')


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class PricePoint:
    """
    One trading day's closing price, in the symbol's native currency.

    Attributes:
        date: Trading date (no time component)
        price: Closing price, always positive
    """

    date: date
    price: Decimal

    def __post_init__(self) -> None:
        if self.price <= 0:
            raise ValueError(f"price must be positive, got {self.price}")


@dataclass(frozen=True)
class Quote:
    """
    Current price of a symbol.

    Attributes:
        symbol: The symbol quoted
        price: Latest traded price
        currency: ISO code the price is quoted in
    """

    symbol: str
    price: Decimal
    currency: str


@dataclass
class HistoricalPricesResult:
    """
    Result of fetching historical prices for a symbol.

    Attributes:
        symbol: The symbol requested
        prices: Price points ordered by date ascending (empty if failed)
        success: Whether the fetch was successful
        error: Error message if fetch failed
        from_date: Requested start date
        to_date: Requested end date
    """

    symbol: str
    prices: list[PricePoint] = field(default_factory=list)
    success: bool = True
    error: str | None = None
    from_date: date | None = None
    to_date: date | None = None

    @property
    def days_fetched(self) -> int:
        """Number of trading days fetched."""
        return len(self.prices)


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class MarketDataProvider(ABC):
    """
    Abstract base class for market data providers.

    Retry Behavior:
        The base class provides a `_execute_with_retry` method that implements
        exponential backoff retry logic. Subclasses can override the retry
        configuration by setting class attributes:

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)

    Retryable Exceptions:
        - ProviderUnavailableError: Network issues, timeouts, server errors
        - RateLimitError: API rate limit exceeded

    Non-Retryable Exceptions:
        - TickerNotFoundError: Permanent failure (symbol doesn't exist)
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier used in logs and error messages."""
        pass

    @abstractmethod
    def get_historical_prices(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        """
        Fetch daily closing prices for a symbol.

        Args:
            symbol: Provider symbol (e.g., "AAPL", "600519.SS")
            start_date: Start date (inclusive)
            end_date: End date (inclusive)

        Returns:
            HistoricalPricesResult with prices ordered by date

        Raises:
            TickerNotFoundError: Symbol unknown to the provider
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """
        pass

    @abstractmethod
    def get_quote(self, symbol: str) -> Quote:
        """
        Fetch the current price of a symbol.

        Raises:
            TickerNotFoundError: Symbol unknown or has no current price
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """
        pass

    def get_historical_prices_batch(
            self,
            symbols: list[str],
            start_date: date,
            end_date: date,
    ) -> dict[str, HistoricalPricesResult]:
        """
        Fetch historical prices for several symbols, one after another.

        A failure for one symbol is recorded on its result and does not stop
        the others. Concurrent fetching lives in PriceHistoryFetcher.
        """
        results: dict[str, HistoricalPricesResult] = {}

        for symbol in symbols:
            try:
                results[symbol] = self.get_historical_prices(symbol, start_date, end_date)
            except Exception as e:
                logger.error(f"Failed to fetch prices for {symbol}: {e}")
                results[symbol] = HistoricalPricesResult(
                    symbol=symbol,
                    success=False,
                    error=str(e),
                    from_date=start_date,
                    to_date=end_date,
                )

        return results

    # =========================================================================
    # RETRY HELPER METHOD
    # =========================================================================

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Uses exponential backoff for ProviderUnavailableError and
        RateLimitError. Anything else is raised on the first attempt.
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((ProviderUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()

    def is_available(self) -> bool:
        """Whether the provider is currently accepting calls."""
        return True
