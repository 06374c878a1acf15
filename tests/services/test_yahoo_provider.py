# tests/services/test_yahoo_provider.py
"""
Tests for the YahooFinanceProvider.

This module tests:
- DataFrame to price point conversion
- Request parameters sent to yfinance
- Quote fetching
- Error handling, classification and retry behavior
- Circuit breaker integration

Note: These tests mock the yfinance library to avoid actual API calls.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pandas as pd
import pytest

from app.services.circuit_breaker import CircuitBreaker, CircuitBreakerOpen
from app.services.exceptions import (
    TickerNotFoundError,
    ProviderUnavailableError,
    RateLimitError,
)
from app.services.market_data.yahoo import YahooFinanceProvider

TICKER_PATH = "app.services.market_data.yahoo.yf.Ticker"


def _history_frame(rows: dict[str, float]) -> pd.DataFrame:
    return pd.DataFrame(
        {"Close": list(rows.values())},
        index=pd.to_datetime(list(rows.keys())),
    )


@pytest.fixture
def provider() -> YahooFinanceProvider:
    """Provider with zero retry waits so retry tests run instantly."""
    provider = YahooFinanceProvider()
    provider.RETRY_MIN_WAIT = 0
    provider.RETRY_MAX_WAIT = 0
    return provider


# =============================================================================
# PROVIDER INITIALIZATION
# =============================================================================

class TestYahooProviderInit:

    def test_provider_name(self):
        assert YahooFinanceProvider().name == "yahoo"

    def test_default_timeout(self):
        assert YahooFinanceProvider()._timeout == 10

    def test_available_when_breaker_closed(self):
        assert YahooFinanceProvider().is_available() is True


# =============================================================================
# HISTORICAL PRICES
# =============================================================================

class TestHistoricalPrices:
    """Tests for get_historical_prices."""

    def test_converts_closes(self, provider):
        frame = _history_frame({"2024-01-02": 100.5, "2024-01-03": float("nan"), "2024-01-04": 101.0})

        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.return_value = frame
            result = provider.get_historical_prices("aapl", date(2024, 1, 2), date(2024, 1, 4))

        assert result.success
        assert result.symbol == "AAPL"
        assert [(p.date, p.price) for p in result.prices] == [
            (date(2024, 1, 2), Decimal("100.5")),
            (date(2024, 1, 4), Decimal("101")),
        ]

    def test_end_date_made_inclusive(self, provider):
        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.return_value = pd.DataFrame()
            provider.get_historical_prices("AAPL", date(2024, 1, 2), date(2024, 1, 4))

        ticker_cls.assert_called_once_with("AAPL")
        ticker_cls.return_value.history.assert_called_once_with(
            start="2024-01-02",
            end="2024-01-05",
            interval="1d",
            auto_adjust=False,
            timeout=10,
        )

    def test_empty_frame(self, provider):
        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.return_value = pd.DataFrame()
            result = provider.get_historical_prices("AAPL", date(2024, 1, 2), date(2024, 1, 4))

        assert result.success
        assert result.days_fetched == 0


# =============================================================================
# QUOTES
# =============================================================================

class TestQuote:

    def test_quote_is_latest_close(self, provider):
        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.return_value = _history_frame({
                "2024-03-13": 187.0,
                "2024-03-14": 189.25,
            })
            quote = provider.get_quote("AAPL")

        assert quote.symbol == "AAPL"
        assert quote.price == Decimal("189.25")
        assert quote.currency == "USD"

    def test_quote_request_carries_timeout(self):
        provider = YahooFinanceProvider(timeout=3)
        with patch(TICKER_PATH) as ticker_cls:
            history = ticker_cls.return_value.history
            history.return_value = _history_frame({"2024-03-14": 189.25})
            provider.get_quote("AAPL")

        kwargs = history.call_args.kwargs
        assert kwargs["timeout"] == 3
        assert kwargs["interval"] == "1d"

    def test_quote_currency_is_market_currency(self, provider):
        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.return_value = _history_frame({"2024-03-14": 1700.0})
            quote = provider.get_quote("600519.SS")

        assert quote.currency == "CNY"

    def test_trailing_missing_close_skipped(self, provider):
        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.return_value = _history_frame({
                "2024-03-13": 187.0,
                "2024-03-14": float("nan"),
            })
            quote = provider.get_quote("AAPL")

        assert quote.price == Decimal("187")

    def test_no_data_is_not_found(self, provider):
        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.return_value = pd.DataFrame()
            with pytest.raises(TickerNotFoundError):
                provider.get_quote("AAPL")


# =============================================================================
# ERROR HANDLING
# =============================================================================

class TestErrorHandling:
    """Tests for error classification and retries."""

    def test_not_found_is_not_retried(self, provider):
        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.side_effect = Exception("No data found, symbol may be delisted")
            with pytest.raises(TickerNotFoundError):
                provider.get_historical_prices("ZZZZ", date(2024, 1, 2), date(2024, 1, 4))

        assert ticker_cls.return_value.history.call_count == 1

    def test_rate_limit_retried(self, provider):
        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.side_effect = Exception("Too Many Requests")
            with pytest.raises(RateLimitError):
                provider.get_historical_prices("AAPL", date(2024, 1, 2), date(2024, 1, 4))

        assert ticker_cls.return_value.history.call_count == provider.MAX_RETRY_ATTEMPTS

    def test_network_error_retried_then_succeeds(self, provider):
        frame = _history_frame({"2024-01-02": 100.0})

        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.side_effect = [ConnectionError("reset by peer"), frame]
            result = provider.get_historical_prices("AAPL", date(2024, 1, 2), date(2024, 1, 2))

        assert result.days_fetched == 1

    def test_unknown_error_is_provider_unavailable(self, provider):
        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.side_effect = ConnectionError("reset by peer")
            with pytest.raises(ProviderUnavailableError):
                provider.get_historical_prices("AAPL", date(2024, 1, 2), date(2024, 1, 4))

    def test_open_breaker_stops_calls(self):
        breaker = CircuitBreaker(name="yahoo-test", failure_threshold=1, recovery_timeout=60)
        provider = YahooFinanceProvider(circuit_breaker=breaker)
        provider.RETRY_MIN_WAIT = 0
        provider.RETRY_MAX_WAIT = 0

        with patch(TICKER_PATH) as ticker_cls:
            ticker_cls.return_value.history.side_effect = ConnectionError("down")
            with pytest.raises(CircuitBreakerOpen):
                provider.get_historical_prices("AAPL", date(2024, 1, 2), date(2024, 1, 4))

        assert ticker_cls.return_value.history.call_count == 1
        assert provider.is_available() is False
