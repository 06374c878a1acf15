# app/services/analytics/service.py
"""
Analytics Service orchestrator.

This is the main entry point for portfolio performance analytics. It:
1. Validates the period and reporting currency (CNY is accepted as RMB)
2. Reads the user's ledger through the transaction source
3. Fetches price histories for every traded symbol concurrently
4. Builds the value series and derives all metrics from it

The computation after step 3 is a pure function of (transactions,
histories, currency, period, now); no state is kept between requests.

Architecture:
    AnalyticsService
        ├── uses → TransactionRepository (ledger snapshot)
        ├── uses → PriceHistoryFetcher (concurrent cached histories, quotes)
        ├── uses → CurrencyConverter (cached FX with stale fallback)
        ├── uses → series.build_series
        ├── uses → returns / risk / recovery calculators
        └── uses → DashboardCalculator

Usage:
    from app.services.analytics import AnalyticsService

    service = AnalyticsService(fetcher=fetcher, converter=converter)
    result = service.get_performance(db, user_id=1, period="3M", currency="USD")
"""

import logging
from collections.abc import Sequence
from datetime import date
from typing import Callable

from sqlalchemy.orm import Session

from app.services.analytics.dashboard import DashboardCalculator, normalize_group_by
from app.services.analytics.recovery import calculate_recovery
from app.services.analytics.returns import (
    calculate_best_worst_days,
    calculate_period_return,
    calculate_total_return,
)
from app.services.analytics.risk import calculate_max_drawdown
from app.services.analytics.series import build_series
from app.services.analytics.types import (
    DashboardMetrics,
    PerformanceDataPoint,
    PerformanceMetrics,
    PerformanceResult,
)
from app.services.market_data.markets import Currency
from app.services.protocols import (
    CurrencyConverterProtocol,
    PriceSourceProtocol,
    TransactionSourceProtocol,
)
from app.services.transactions import TransactionRepository
from app.utils.date_utils import normalize_period, period_start

logger = logging.getLogger(__name__)


def calculate_metrics(points: Sequence[PerformanceDataPoint], now: date) -> PerformanceMetrics:
    """
    All metrics for a value series.

    An empty series yields the all-zero placeholder with status "recovered".
    """
    if not points:
        return PerformanceMetrics()

    best_day, worst_day = calculate_best_worst_days(points)

    return PerformanceMetrics(
        total_return=calculate_total_return(points),
        period_return=calculate_period_return(points),
        best_day=best_day,
        worst_day=worst_day,
        max_drawdown=calculate_max_drawdown(points),
        recovery_time=calculate_recovery(points, now),
    )


class AnalyticsService:
    """
    Performance and dashboard analytics for one user at a time.

    Attributes:
        _transactions: Ledger source
        _prices: Price history / quote source
        _converter: Currency converter
        _today: Clock used when no explicit ``now`` is given
    """

    def __init__(
            self,
            fetcher: PriceSourceProtocol,
            converter: CurrencyConverterProtocol,
            transactions: TransactionSourceProtocol | None = None,
            today: Callable[[], date] = date.today,
    ):
        self._prices = fetcher
        self._converter = converter
        self._transactions: TransactionSourceProtocol = transactions or TransactionRepository()
        self._today = today
        self._dashboard = DashboardCalculator(fetcher, converter)

        logger.info("AnalyticsService initialized")

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_performance(
            self,
            db: Session,
            user_id: int,
            period: str,
            currency: str,
            now: date | None = None,
    ) -> PerformanceResult:
        """
        Value series and metrics for a user over a period.

        Args:
            db: Database session
            user_id: Owner of the ledger
            period: 1M, 3M, 6M, 1Y or ALL (case-insensitive)
            currency: USD, RMB or CNY (case-insensitive)
            now: Evaluation date; defaults to today

        Returns:
            PerformanceResult; empty series and zero metrics when the user has
            no transactions or no symbol has price data

        Raises:
            InvalidPeriodError: Unknown period label
            InvalidCurrencyError: Unsupported currency
        """
        period = normalize_period(period)
        reporting = Currency.parse(currency)
        now = now or self._today()
        start = period_start(period, now)

        result = PerformanceResult(period=period, currency=reporting.value)

        logger.info(
            f"Calculating performance for user {user_id}: "
            f"period={period} ({start} to {now}), currency={reporting.value}"
        )

        transactions = self._transactions.list_transactions(db, user_id)
        if not transactions:
            logger.info(f"User {user_id} has no transactions")
            return result

        symbols = sorted({t.symbol for t in transactions})
        fetched = self._prices.fetch_histories(symbols, start, now)

        for symbol, reason in sorted(fetched.failed.items()):
            result.warnings.append(f"{symbol}: price history unavailable ({reason})")

        series = build_series(
            transactions,
            fetched.histories,
            reporting.iso_code,
            start,
            now,
            self._converter,
        )
        result.warnings.extend(series.warnings)
        result.performance = series.points
        result.metrics = calculate_metrics(series.points, now)

        logger.info(
            f"Performance for user {user_id}: {len(series.points)} points, "
            f"{len(result.warnings)} warnings"
        )
        return result

    def get_dashboard(
            self,
            db: Session,
            user_id: int,
            currency: str,
            group_by: str | None = None,
            now: date | None = None,
    ) -> DashboardMetrics:
        """
        Current holdings snapshot in the reporting currency.

        ``group_by`` is "none" (default) or "currency".

        Raises:
            InvalidCurrencyError: Unsupported currency
            ValidationError: Unsupported grouping dimension
        """
        reporting = Currency.parse(currency)
        grouping = normalize_group_by(group_by)
        transactions = self._transactions.list_transactions(db, user_id)

        logger.info(f"Calculating dashboard for user {user_id} in {reporting.value}")
        return self._dashboard.calculate(transactions, reporting, now or self._today(), grouping)
