# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- Mock market data provider and currency converter
- Sample data factories (users, ledger rows, value series)
- API client with dependency overrides
"""

import os

# Must be set BEFORE importing app modules (settings validate on import)
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import get_db
from app.dependencies import get_analytics_service, clear_service_caches
from app.main import app
from app.models import Base, Transaction, TransactionType, User
from app.services.analytics.service import AnalyticsService
from app.services.analytics.types import PerformanceDataPoint
from app.services.auth.jwt_handler import JWTHandler
from app.services.cache import TTLCache
from app.services.exceptions import FXProviderError, FXRateNotFoundError, TickerNotFoundError
from app.services.market_data.base import (
    HistoricalPricesResult,
    MarketDataProvider,
    PricePoint,
    Quote,
)
from app.services.market_data.fetcher import PriceHistoryFetcher
from app.services.market_data.markets import native_currency, to_iso_code
from app.services.transactions import TransactionRecord

# Fixed evaluation date for deterministic tests
TODAY = date(2024, 3, 15)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# MOCK MARKET DATA PROVIDER
# =============================================================================

class MockMarketDataProvider(MarketDataProvider):
    """
    Mock implementation of MarketDataProvider for testing.

    Serves configured histories (filtered to the requested range) and
    quotes, and raises configured errors per symbol. Unknown symbols raise
    TickerNotFoundError.
    """

    def __init__(self):
        self._histories: dict[str, list[PricePoint]] = {}
        self._quotes: dict[str, Quote] = {}
        self._errors: dict[str, Exception] = {}
        self.history_calls: list[tuple[str, date, date]] = []
        self.quote_calls: list[str] = []

    @property
    def name(self) -> str:
        return "mock"

    def set_history(self, symbol: str, prices: dict[date, str | Decimal]) -> None:
        """Configure daily closes for a symbol."""
        self._histories[symbol.upper()] = [
            PricePoint(date=d, price=Decimal(str(p))) for d, p in sorted(prices.items())
        ]

    def set_quote(self, symbol: str, price: str | Decimal, currency: str | None = None) -> None:
        self._quotes[symbol.upper()] = Quote(
            symbol=symbol.upper(),
            price=Decimal(str(price)),
            currency=currency or native_currency(symbol),
        )

    def set_error(self, symbol: str, error: Exception) -> None:
        """Make every call for a symbol raise ``error``."""
        self._errors[symbol.upper()] = error

    def clear_error(self, symbol: str) -> None:
        self._errors.pop(symbol.upper(), None)

    def get_historical_prices(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        symbol = symbol.upper()
        self.history_calls.append((symbol, start_date, end_date))

        if symbol in self._errors:
            raise self._errors[symbol]
        if symbol not in self._histories:
            raise TickerNotFoundError(symbol=symbol, provider=self.name)

        return HistoricalPricesResult(
            symbol=symbol,
            prices=[p for p in self._histories[symbol] if start_date <= p.date <= end_date],
            from_date=start_date,
            to_date=end_date,
        )

    def get_quote(self, symbol: str) -> Quote:
        symbol = symbol.upper()
        self.quote_calls.append(symbol)

        if symbol in self._errors:
            raise self._errors[symbol]
        if symbol not in self._quotes:
            raise TickerNotFoundError(symbol=symbol, provider=self.name)
        return self._quotes[symbol]


@pytest.fixture
def mock_provider() -> MockMarketDataProvider:
    """Create a fresh mock provider for each test."""
    return MockMarketDataProvider()


# =============================================================================
# MOCK CURRENCY CONVERTER
# =============================================================================

class StaticConverter:
    """
    Converter with fixed rates, keyed by ISO pair.

    Pairs listed in ``failing`` raise FXRateNotFoundError, and the next
    ``fail_next`` calls raise FXProviderError whatever the pair; every call
    is recorded in ``calls``.
    """

    def __init__(self, rates: dict[tuple[str, str], str] | None = None):
        self.rates = {pair: Decimal(rate) for pair, rate in (rates or {}).items()}
        self.failing: set[tuple[str, str]] = set()
        self.fail_next = 0
        self.calls: list[tuple[str, str]] = []

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        pair = (to_iso_code(from_currency), to_iso_code(to_currency))
        self.calls.append(pair)
        if pair[0] == pair[1]:
            return amount
        if self.fail_next > 0:
            self.fail_next -= 1
            raise FXProviderError(provider="static", reason="unavailable",
                                  base_currency=pair[0], quote_currency=pair[1])
        if pair in self.failing or pair not in self.rates:
            raise FXRateNotFoundError(*pair)
        return amount * self.rates[pair]


@pytest.fixture
def converter() -> StaticConverter:
    """USD/CNY at 7 in both directions."""
    return StaticConverter({
        ("USD", "CNY"): "7",
        ("CNY", "USD"): "0.142857",
    })


@pytest.fixture
def fetcher(mock_provider: MockMarketDataProvider) -> PriceHistoryFetcher:
    return PriceHistoryFetcher(mock_provider, TTLCache(ttl_seconds=300), max_workers=4)


@pytest.fixture
def analytics_service(fetcher: PriceHistoryFetcher, converter: StaticConverter) -> AnalyticsService:
    return AnalyticsService(fetcher=fetcher, converter=converter, today=lambda: TODAY)


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def make_points(values: list[str | int], start: date = date(2024, 1, 1)) -> list[PerformanceDataPoint]:
    """Value series on consecutive calendar days starting at ``start``."""
    return [
        PerformanceDataPoint(date=start + timedelta(days=i), value=Decimal(str(v)))
        for i, v in enumerate(values)
    ]


def make_record(
        symbol: str = "AAPL",
        action: TransactionType = TransactionType.BUY,
        shares: str | int = 10,
        price: str | int = 100,
        on: date = date(2024, 1, 1),
        currency: str | None = None,
        fees: str | int = 0,
) -> TransactionRecord:
    """Factory function for TransactionRecord test data."""
    return TransactionRecord(
        symbol=symbol,
        action=action,
        shares=Decimal(str(shares)),
        price=Decimal(str(price)),
        currency=currency or native_currency(symbol),
        date=on,
        fees=Decimal(str(fees)),
    )


def create_user(db: Session, email: str = "test@example.com", is_active: bool = True) -> User:
    """Factory function for creating User entities in the database."""
    user = User(email=email, is_active=is_active)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_transaction(
        db: Session,
        user: User,
        symbol: str = "AAPL",
        transaction_type: TransactionType = TransactionType.BUY,
        quantity: str | int = 10,
        price: str | int = 100,
        on: date = date(2024, 1, 2),
        currency: str = "USD",
        fee: str | int = 0,
) -> Transaction:
    """Factory function for creating Transaction entities in the database."""
    txn = Transaction(
        user_id=user.id,
        symbol=symbol,
        transaction_type=transaction_type,
        quantity=Decimal(str(quantity)),
        price_per_share=Decimal(str(price)),
        currency=currency,
        fee=Decimal(str(fee)),
        date=datetime(on.year, on.month, on.day),
    )
    db.add(txn)
    db.commit()
    db.refresh(txn)
    return txn


@pytest.fixture
def sample_user(db: Session) -> User:
    """Provide a sample User for tests."""
    return create_user(db)


# =============================================================================
# API CLIENT
# =============================================================================

@pytest.fixture
def client(db: Session, analytics_service: AnalyticsService) -> Iterator[TestClient]:
    """Test client with the database and analytics service overridden."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_analytics_service] = lambda: analytics_service

    yield TestClient(app)

    app.dependency_overrides.clear()
    clear_service_caches()


@pytest.fixture
def auth_headers(sample_user: User) -> dict[str, str]:
    token = JWTHandler.create_access_token(sample_user.id)
    return {"Authorization": f"Bearer {token}"}
