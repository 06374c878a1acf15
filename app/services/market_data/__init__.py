# app/services/market_data/__init__.py
"""
Market data services package.

This package contains:
- Market and currency classification (markets.py)
- Abstract interface for market data providers (base.py)
- Yahoo Finance implementation (yahoo.py)
- Concurrent, cached price history fetching (fetcher.py)

Architecture:
    MarketDataProvider (ABC)
    └── YahooFinanceProvider (concrete)

    PriceHistoryFetcher
    └── One fetch task per symbol on a thread pool
    └── TTLCache for histories and quotes
"""

from app.services.market_data.base import (
    MarketDataProvider,
    HistoricalPricesResult,
    PricePoint,
    Quote,
)
from app.services.market_data.fetcher import FetchResult, PriceHistoryFetcher
from app.services.market_data.markets import (
    Currency,
    Market,
    classify_symbol,
    native_currency,
    to_iso_code,
)
from app.services.market_data.yahoo import YahooFinanceProvider

__all__ = [
    "MarketDataProvider",
    "HistoricalPricesResult",
    "PricePoint",
    "Quote",
    "YahooFinanceProvider",
    "FetchResult",
    "PriceHistoryFetcher",
    "Currency",
    "Market",
    "classify_symbol",
    "native_currency",
    "to_iso_code",
]
