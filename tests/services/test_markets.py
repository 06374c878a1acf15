# tests/services/test_markets.py
"""Tests for market and currency classification."""

import pytest

from app.services.exceptions import InvalidCurrencyError
from app.services.market_data.markets import (
    Currency,
    Market,
    classify_symbol,
    native_currency,
    to_iso_code,
)


class TestClassifySymbol:

    @pytest.mark.parametrize("symbol,market", [
        ("AAPL", Market.US),
        ("BRK-B", Market.US),
        ("600519.SS", Market.CN),
        ("000858.SZ", Market.CN),
        (" 600519.ss ", Market.CN),
    ])
    def test_market_from_suffix(self, symbol, market):
        assert classify_symbol(symbol) == market

    def test_native_currency(self):
        assert native_currency("AAPL") == "USD"
        assert native_currency("000858.SZ") == "CNY"


class TestCurrency:

    @pytest.mark.parametrize("label,expected", [
        ("USD", Currency.USD),
        ("usd", Currency.USD),
        ("RMB", Currency.RMB),
        ("CNY", Currency.RMB),
        (" cny ", Currency.RMB),
    ])
    def test_parse(self, label, expected):
        assert Currency.parse(label) == expected

    @pytest.mark.parametrize("label", ["EUR", "", "US"])
    def test_parse_rejects_unknown(self, label):
        with pytest.raises(InvalidCurrencyError):
            Currency.parse(label)

    def test_iso_code(self):
        assert Currency.USD.iso_code == "USD"
        assert Currency.RMB.iso_code == "CNY"

    def test_to_iso_code(self):
        assert to_iso_code("rmb") == "CNY"
        assert to_iso_code("CNY") == "CNY"
        assert to_iso_code("usd") == "USD"
