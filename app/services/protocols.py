# app/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- Existing classes satisfy protocols without modification
- Test mocks work without explicit inheritance
- Clear documentation of required interfaces
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.services.market_data.base import Quote
    from app.services.market_data.fetcher import FetchResult
    from app.services.transactions import TransactionRecord


class TransactionSourceProtocol(Protocol):
    """Interface required by AnalyticsService to read the ledger."""

    def list_transactions(self, db: Session, user_id: int) -> list[TransactionRecord]:
        ...


class PriceSourceProtocol(Protocol):
    """Interface required by AnalyticsService for prices and quotes."""

    def fetch_histories(
        self,
        symbols: list[str],
        start_date: date,
        end_date: date,
    ) -> FetchResult:
        ...

    def latest_quote(self, symbol: str) -> Quote:
        ...

    def previous_close(self, symbol: str, as_of: date) -> Decimal | None:
        ...


class CurrencyConverterProtocol(Protocol):
    """Interface required by the series builder and dashboard."""

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        ...
