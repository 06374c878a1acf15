# app/services/market_data/markets.py
"""
Market and currency classification.

Symbols carry their market in the Yahoo suffix: Shanghai (``.SS``) and
Shenzhen (``.SZ``) listings trade in CNY, everything else is treated as a
US listing in USD. All native-currency decisions go through
``classify_symbol`` instead of checking suffixes in place.

The API exposes the Chinese currency as ``RMB`` while FX pairs and
transaction records use the ISO code ``CNY``; ``Currency.parse`` accepts
both and ``Currency.iso_code`` gives the ISO form for conversions.
"""

from enum import Enum

from app.services.exceptions import InvalidCurrencyError


class Currency(str, Enum):
    """Reporting currencies accepted by the analytics API."""

    USD = "USD"
    RMB = "RMB"

    @property
    def iso_code(self) -> str:
        """ISO 4217 code used for FX lookups."""
        return "CNY" if self is Currency.RMB else self.value

    @classmethod
    def parse(cls, value: str) -> "Currency":
        """
        Parse a user-supplied currency label.

        Accepts USD, RMB and CNY in any case; CNY is normalized to RMB.

        Raises:
            InvalidCurrencyError: For anything else
        """
        normalized = (value or "").strip().upper()
        if normalized == "CNY":
            return cls.RMB
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidCurrencyError(value) from None


class Market(str, Enum):
    """Listing market of a symbol, tagged with its native currency."""

    US = "US"
    CN = "CN"

    @property
    def currency(self) -> str:
        """ISO code of the market's trading currency."""
        return "CNY" if self is Market.CN else "USD"


# Yahoo suffixes of mainland China exchanges
CN_SUFFIXES: tuple[str, ...] = (".SS", ".SZ")


def classify_symbol(symbol: str) -> Market:
    """Return the market a symbol is listed on, from its exchange suffix."""
    if symbol.strip().upper().endswith(CN_SUFFIXES):
        return Market.CN
    return Market.US


def native_currency(symbol: str) -> str:
    """ISO code of the currency a symbol's prices are quoted in."""
    return classify_symbol(symbol).currency


def to_iso_code(currency: str) -> str:
    """Normalize a currency label to its ISO code (RMB -> CNY)."""
    code = (currency or "").strip().upper()
    return "CNY" if code == "RMB" else code
