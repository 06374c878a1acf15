# app/services/currency_service.py
"""
Currency conversion at the latest market rate.

=============================================================================
FX RATE CONVENTION
=============================================================================

Rates follow the Yahoo Finance convention:

    rate = "1 from_currency = X to_currency"

    Yahoo symbol: {FROM}{TO}=X   (e.g. USDCNY=X, 1 USD = 7.1 CNY)
    Conversion:   to_amount = from_amount × rate

=============================================================================

Rates come from the last daily close of the pair over a short look-back
window, so weekends and holidays still resolve to the latest trading day.
Each rate is cached for FX_CACHE_TTL_SECONDS. When the provider fails, the
last cached rate is used even if expired, with a warning; only when no rate
was ever cached does the failure propagate.

Currency labels are normalized to ISO codes first, so "RMB" and "CNY" are
the same currency here.

Usage:
    converter = CurrencyConverter(provider, TTLCache(ttl_seconds=3600))
    cny_value = converter.convert(Decimal("100"), "USD", "RMB")
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable

from app.services.cache import TTLCache
from app.services.constants import FX_LOOKBACK_DAYS, SHARE_PRECISION
from app.services.exceptions import FXProviderError, FXRateNotFoundError
from app.services.market_data.base import MarketDataProvider
from app.services.market_data.markets import to_iso_code

logger = logging.getLogger(__name__)


class CurrencyConverter:
    """Converts amounts between currencies using cached provider FX rates."""

    def __init__(
            self,
            provider: MarketDataProvider,
            cache: TTLCache,
            today: Callable[[], date] = date.today,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._today = today

    @staticmethod
    def build_yahoo_symbol(from_currency: str, to_currency: str) -> str:
        """Build Yahoo Finance FX symbol."""
        return f"{from_currency.upper()}{to_currency.upper()}=X"

    def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """
        Latest rate for 1 unit of ``from_currency`` in ``to_currency``.

        Raises:
            FXProviderError: Provider failed and no rate was cached before
            FXRateNotFoundError: Provider returned no rate and none was cached
        """
        base = to_iso_code(from_currency)
        quote = to_iso_code(to_currency)

        if base == quote:
            return Decimal("1")

        key = f"fx:{base}:{quote}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            rate = self._fetch_rate(base, quote)
        except FXProviderError as e:
            stale = self._cache.get_stale(key)
            if stale is None:
                raise
            logger.warning(f"Using stale {base}/{quote} rate {stale}: {e.reason}")
            return stale

        if rate is None:
            stale = self._cache.get_stale(key)
            if stale is None:
                raise FXRateNotFoundError(base, quote)
            logger.warning(f"No fresh {base}/{quote} rate, using stale rate {stale}")
            return stale

        self._cache.set(key, rate)
        return rate

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        """Convert ``amount`` from one currency to another."""
        rate = self.get_rate(from_currency, to_currency)
        if rate == Decimal("1"):
            return amount
        return amount * rate

    def _fetch_rate(self, base: str, quote: str) -> Decimal | None:
        """Latest close of the pair, or None if the provider has no data."""
        symbol = self.build_yahoo_symbol(base, quote)
        end = self._today()
        start = end - timedelta(days=FX_LOOKBACK_DAYS)

        logger.debug(f"Fetching {symbol} from {self._provider.name}: {start} to {end}")

        try:
            result = self._provider.get_historical_prices(symbol, start, end)
        except Exception as e:
            logger.error(f"Provider error for {symbol}: {e}")
            raise FXProviderError(
                provider=self._provider.name,
                reason=f"Failed to fetch {symbol}: {e}",
                base_currency=base,
                quote_currency=quote,
            ) from e

        if not result.success:
            raise FXProviderError(
                provider=self._provider.name,
                reason=result.error or f"Failed to fetch {symbol}",
                base_currency=base,
                quote_currency=quote,
            )

        if not result.prices:
            logger.warning(f"No data returned for {symbol}")
            return None

        latest = max(result.prices, key=lambda p: p.date)
        return latest.price.quantize(SHARE_PRECISION)
