# app/services/market_data/fetcher.py
"""
Concurrent, cached acquisition of price histories and quotes.

Histories for the symbols in a user's ledger are independent reads, so
each symbol gets its own task on a thread pool. The fetcher waits for every
task, records per-symbol failures and never fails the group: a symbol
whose history cannot be fetched is simply absent from the result.

Caching goes through an injected TTLCache so tests can run against a
deterministic provider with an empty (or pre-seeded) cache.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from app.services.cache import TTLCache
from app.services.constants import PREVIOUS_CLOSE_LOOKBACK_DAYS
from app.services.exceptions import MarketDataError
from app.services.market_data.base import MarketDataProvider, PricePoint, Quote

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """
    Outcome of a multi-symbol history fetch.

    Attributes:
        histories: symbol -> price points ordered by date (only symbols with data)
        failed: symbol -> reason the fetch failed
    """

    histories: dict[str, list[PricePoint]] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.histories)

    @property
    def failure_count(self) -> int:
        return len(self.failed)


class PriceHistoryFetcher:
    """
    Fetches histories and quotes through a provider, with caching and fan-out.

    Example:
        fetcher = PriceHistoryFetcher(provider, TTLCache(ttl_seconds=300))
        result = fetcher.fetch_histories(["AAPL", "600519.SS"], start, end)
        for symbol, reason in result.failed.items():
            ...
    """

    def __init__(
            self,
            provider: MarketDataProvider,
            cache: TTLCache,
            max_workers: int = 8,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._max_workers = max_workers

    @property
    def provider(self) -> MarketDataProvider:
        return self._provider

    # =========================================================================
    # HISTORIES
    # =========================================================================

    def fetch_histories(
            self,
            symbols: list[str],
            start_date: date,
            end_date: date,
    ) -> FetchResult:
        """
        Fetch daily prices for every symbol over [start_date, end_date].

        Returns once every task has completed or failed. Symbols whose
        provider call raised, or that returned no prices, are listed in
        ``FetchResult.failed``.
        """
        result = FetchResult()
        unique_symbols = sorted(set(symbols))

        if not unique_symbols:
            return result

        workers = min(self._max_workers, len(unique_symbols))
        logger.debug(f"Fetching {len(unique_symbols)} histories with {workers} workers")

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self.fetch_history, symbol, start_date, end_date): symbol
                for symbol in unique_symbols
            }
            for future in as_completed(futures):
                symbol = futures[future]
                try:
                    prices = future.result()
                except Exception as e:
                    logger.warning(f"Price history unavailable for {symbol}: {e}")
                    result.failed[symbol] = str(e)
                    continue

                if prices:
                    result.histories[symbol] = prices
                else:
                    result.failed[symbol] = "no price data in range"

        logger.info(
            f"Fetched histories: {result.success_count} ok, "
            f"{result.failure_count} failed"
        )
        return result

    def fetch_history(self, symbol: str, start_date: date, end_date: date) -> list[PricePoint]:
        """Fetch one symbol's prices, served from cache when fresh."""
        key = f"history:{symbol}:{start_date.isoformat()}:{end_date.isoformat()}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        fetched = self._provider.get_historical_prices(symbol, start_date, end_date)
        if not fetched.success:
            raise MarketDataError(
                fetched.error or f"fetch failed for {symbol}",
                provider=self._provider.name,
            )

        prices = sorted(fetched.prices, key=lambda p: p.date)
        self._cache.set(key, prices)
        return prices

    # =========================================================================
    # QUOTES
    # =========================================================================

    def latest_quote(self, symbol: str) -> Quote:
        """Current quote for a symbol, served from cache when fresh."""
        key = f"quote:{symbol}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        quote = self._provider.get_quote(symbol)
        self._cache.set(key, quote)
        return quote

    def previous_close(self, symbol: str, as_of: date) -> Decimal | None:
        """
        The second most recent daily close on or before ``as_of``.

        Returns None when fewer than two closes exist in the look-back window.
        """
        start = as_of - timedelta(days=PREVIOUS_CLOSE_LOOKBACK_DAYS)
        prices = [p for p in self.fetch_history(symbol, start, as_of) if p.date <= as_of]
        if len(prices) < 2:
            return None
        return prices[-2].price
