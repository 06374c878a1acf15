# app/services/market_data/yahoo.py
"""
Yahoo Finance market data provider implementation.

This module implements the MarketDataProvider interface using the yfinance library.
Yahoo Finance is a free data source suitable for personal/educational use.

Key features:
- Daily closing prices for US and mainland China (.SS / .SZ) listings
- Current quotes, also used for FX pairs ("USDCNY=X")
- Error strings mapped onto the service exception taxonomy
- Retry mechanism inherited from base class
- Circuit breaker so a failing Yahoo stops being hammered

Limitations:
- Rate limits (not officially documented, but exist)
- Data may be delayed (15-20 minutes for some markets)
"""

import logging
import math
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Callable, TypeVar

import yfinance as yf

from app.services.circuit_breaker import CircuitBreaker
from app.services.constants import (
    CIRCUIT_BREAKER_FAILURE_THRESHOLD,
    CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS,
    CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
    QUOTE_HISTORY_PERIOD,
    SHARE_PRECISION,
)
from app.services.exceptions import (
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
from app.services.market_data.base import (
    MarketDataProvider,
    HistoricalPricesResult,
    PricePoint,
    Quote,
)
from app.services.market_data.markets import native_currency

logger = logging.getLogger(__name__)

T = TypeVar("T")


class YahooFinanceProvider(MarketDataProvider):
    """
    Yahoo Finance implementation of MarketDataProvider.

    Configuration:
        timeout: Per-request deadline in seconds (default: 10)

    Retry Behavior (inherited from MarketDataProvider):
        - Retries on ProviderUnavailableError and RateLimitError
        - Does NOT retry on TickerNotFoundError or CircuitBreakerOpen
        - Uses exponential backoff: 1s → 2s → 4s

    Example:
        provider = YahooFinanceProvider(timeout=10)

        prices = provider.get_historical_prices(
            "AAPL", date(2024, 1, 1), date(2024, 12, 31)
        )
        print(f"Fetched {prices.days_fetched} days of data")
    """

    def __init__(
            self,
            timeout: int = 10,
            circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        """
        Initialize the Yahoo Finance provider.

        Args:
            timeout: Request timeout in seconds
            circuit_breaker: Breaker guarding every Yahoo call (one is created if omitted)
        """
        self._timeout = timeout
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            name="yahoo-finance",
            failure_threshold=CIRCUIT_BREAKER_FAILURE_THRESHOLD,
            recovery_timeout=CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
            half_open_max_calls=CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS,
            excluded_exceptions=(TickerNotFoundError,),
        )
        logger.info(f"YahooFinanceProvider initialized (timeout={timeout}s)")

    @property
    def name(self) -> str:
        return "yahoo"

    def _get_circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    def is_available(self) -> bool:
        return not self._circuit_breaker.is_open

    def _guarded(self, func: Callable[..., T], *args: Any) -> T:
        """Run one attempt of a Yahoo call inside the circuit breaker."""
        with self._circuit_breaker:
            return func(*args)

    # =========================================================================
    # HISTORICAL PRICE METHODS
    # =========================================================================

    def get_historical_prices(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        """
        Fetch daily closing prices from Yahoo Finance.

        Raises:
            TickerNotFoundError: If symbol not found
            ProviderUnavailableError: If Yahoo Finance unavailable
            CircuitBreakerOpen: If recent calls kept failing
        """
        return self._execute_with_retry(
            self._guarded,
            self._fetch_historical_prices,
            symbol,
            start_date,
            end_date,
        )

    def _fetch_historical_prices(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        """Internal method to fetch historical prices."""
        symbol = symbol.strip().upper()

        logger.debug(f"Fetching historical prices for {symbol}: {start_date} to {end_date}")

        result = HistoricalPricesResult(
            symbol=symbol,
            from_date=start_date,
            to_date=end_date,
        )

        try:
            # Yahoo Finance end date is exclusive, so add 1 day
            yahoo_end = end_date + timedelta(days=1)

            df = yf.Ticker(symbol).history(
                start=start_date.isoformat(),
                end=yahoo_end.isoformat(),
                interval="1d",
                auto_adjust=False,
                timeout=self._timeout,
            )

            if df.empty:
                logger.warning(f"No price data for {symbol} between {start_date} and {end_date}")
                return result

            result.prices = self._dataframe_to_prices(df)
            logger.debug(f"Fetched {len(result.prices)} days for {symbol}")
            return result

        except Exception as e:
            raise self._map_error(symbol, e) from e

    def _dataframe_to_prices(self, df) -> list[PricePoint]:
        """
        Convert a yfinance history DataFrame to price points.

        Rows with a missing or non-positive close are skipped. When the index
        holds more than one row for a calendar day, the last one wins.
        """
        by_date: dict[date, PricePoint] = {}

        for idx, row in df.iterrows():
            price_date = idx.date() if hasattr(idx, 'date') else idx
            close_price = self._to_decimal(row.get('Close'))

            if close_price is None or close_price <= 0:
                logger.warning(f"Skipping {price_date}: missing close price")
                continue

            by_date[price_date] = PricePoint(date=price_date, price=close_price)

        return [by_date[d] for d in sorted(by_date)]

    # =========================================================================
    # QUOTES
    # =========================================================================

    def get_quote(self, symbol: str) -> Quote:
        """
        Fetch the latest price of a symbol or FX pair.

        Raises:
            TickerNotFoundError: If Yahoo has no price for the symbol
            ProviderUnavailableError: If Yahoo Finance unavailable
            CircuitBreakerOpen: If recent calls kept failing
        """
        return self._execute_with_retry(self._guarded, self._fetch_quote, symbol)

    def _fetch_quote(self, symbol: str) -> Quote:
        symbol = symbol.strip().upper()
        logger.debug(f"Fetching quote for {symbol}")

        try:
            # Latest daily close of a short window, under the same deadline as histories
            df = yf.Ticker(symbol).history(
                period=QUOTE_HISTORY_PERIOD,
                interval="1d",
                auto_adjust=False,
                timeout=self._timeout,
            )
        except Exception as e:
            raise self._map_error(symbol, e) from e

        prices = self._dataframe_to_prices(df) if not df.empty else []
        if not prices:
            raise TickerNotFoundError(symbol=symbol, provider=self.name)

        return Quote(symbol=symbol, price=prices[-1].price, currency=native_currency(symbol))

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _map_error(self, symbol: str, error: Exception) -> Exception:
        """Translate a yfinance/network exception into the service taxonomy."""
        if isinstance(error, (TickerNotFoundError, RateLimitError, ProviderUnavailableError)):
            return error

        error_str = str(error).lower()

        if "not found" in error_str or "no data" in error_str or "delisted" in error_str:
            return TickerNotFoundError(symbol=symbol, provider=self.name)

        if "rate limit" in error_str or "too many requests" in error_str:
            return RateLimitError(provider=self.name)

        logger.error(f"Yahoo Finance error for {symbol}: {error}")
        return ProviderUnavailableError(provider=self.name, reason=str(error))

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN/None."""
        if value is None:
            return None
        try:
            if math.isnan(float(value)):
                return None
            return Decimal(str(value)).quantize(SHARE_PRECISION)
        except (TypeError, ValueError):
            return None
