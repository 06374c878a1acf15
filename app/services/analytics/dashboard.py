# app/services/analytics/dashboard.py
"""
Current holdings snapshot for the dashboard.

Per open position (average-cost method, see positions.build_holdings):

    value      = shares × current quote            → reporting currency
    cost basis = remaining average cost            → reporting currency
    prev value = shares × previous close           → reporting currency

Totals:
    total_gain         = total_value - total_cost_basis
    percentage_return  = total_gain / total_cost_basis × 100   (0 if no cost)
    day_change         = total_value - total_prev_value
    day_change_percent = day_change / total_prev_value × 100   (0 if no prev value)
    allocation[i]      = value_i / total_value × 100

Groups (group_by="currency") bucket holdings by their native currency label,
USD or RMB; group_by="none" yields one "All Holdings" group. Groups are
ordered by value, largest first.

A holding whose quote cannot be fetched is left out. A holding without a
previous close, or whose previous value cannot be converted, counts as
unchanged for the day. Every such degradation is logged and returned as a
warning.
"""

import logging
from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from app.services.analytics.positions import build_holdings
from app.services.analytics.types import AllocationItem, DashboardMetrics, Holding, HoldingGroup
from app.services.circuit_breaker import CircuitBreakerOpen
from app.services.constants import (
    ALL_HOLDINGS_GROUP,
    GROUP_BY_CURRENCY,
    GROUP_BY_NONE,
    HUNDRED,
    PERCENTAGE_PRECISION,
    VALID_GROUP_BY,
    ZERO,
)
from app.services.exceptions import FXRateError, MarketDataError, ValidationError
from app.services.market_data.markets import Currency, native_currency
from app.services.protocols import CurrencyConverterProtocol, PriceSourceProtocol
from app.services.transactions import TransactionRecord

logger = logging.getLogger(__name__)


class DashboardCalculator:
    """
    Values current holdings in one reporting currency.

    Example:
        calculator = DashboardCalculator(fetcher, converter)
        metrics = calculator.calculate(transactions, Currency.USD, date.today())
    """

    def __init__(
            self,
            prices: PriceSourceProtocol,
            converter: CurrencyConverterProtocol,
    ) -> None:
        self._prices = prices
        self._converter = converter

    def calculate(
            self,
            transactions: Sequence[TransactionRecord],
            currency: Currency,
            as_of: date,
            group_by: str = GROUP_BY_NONE,
    ) -> DashboardMetrics:
        metrics = DashboardMetrics(currency=currency.value, group_by=group_by)
        target = currency.iso_code

        holdings = build_holdings(transactions)
        if not holdings:
            return metrics

        values: dict[str, Decimal] = {}
        total_prev_value = ZERO

        for holding in holdings:
            try:
                quote = self._prices.latest_quote(holding.symbol)
            except (MarketDataError, CircuitBreakerOpen) as e:
                self._warn(metrics, f"{holding.symbol}: no current price, excluded ({e})")
                continue

            source = native_currency(holding.symbol)
            value = self._convert(metrics, holding.shares * quote.price, source, target)
            cost = self._convert(metrics, holding.cost_basis, holding.currency, target)

            values[holding.symbol] = value
            metrics.total_value += value
            metrics.total_cost_basis += cost
            total_prev_value += self._previous_value(metrics, holding, value, source, target, as_of)

        metrics.total_gain = metrics.total_value - metrics.total_cost_basis
        metrics.percentage_return = _percent(metrics.total_gain, metrics.total_cost_basis)
        metrics.day_change = metrics.total_value - total_prev_value
        metrics.day_change_percent = _percent(metrics.day_change, total_prev_value)
        metrics.allocation = [
            AllocationItem(
                symbol=symbol,
                value=value,
                percentage=_percent(value, metrics.total_value),
            )
            for symbol, value in values.items()
        ]
        metrics.groups = _group_holdings(metrics.allocation, group_by, metrics.total_value)

        logger.info(
            f"Dashboard: value={metrics.total_value} gain={metrics.total_gain} "
            f"day_change={metrics.day_change} {metrics.currency}"
        )
        return metrics

    def _previous_value(
            self,
            metrics: DashboardMetrics,
            holding: Holding,
            current_value: Decimal,
            source: str,
            target: str,
            as_of: date,
    ) -> Decimal:
        """Value at the previous close, or the current value when unknown."""
        try:
            previous_close = self._prices.previous_close(holding.symbol, as_of)
        except (MarketDataError, CircuitBreakerOpen) as e:
            self._warn(metrics, f"{holding.symbol}: previous close unavailable ({e})")
            return current_value

        if previous_close is None:
            self._warn(metrics, f"{holding.symbol}: previous close unavailable")
            return current_value

        previous_value = holding.shares * previous_close
        if source == target:
            return previous_value

        try:
            return self._converter.convert(previous_value, source, target)
        except FXRateError as e:
            self._warn(metrics, f"{holding.symbol}: previous value not converted ({e})")
            return current_value

    def _convert(self, metrics: DashboardMetrics, amount: Decimal, source: str, target: str) -> Decimal:
        if source == target:
            return amount
        try:
            return self._converter.convert(amount, source, target)
        except FXRateError as e:
            self._warn(metrics, f"Currency conversion {source}->{target} failed, using unconverted value ({e})")
            return amount

    @staticmethod
    def _warn(metrics: DashboardMetrics, message: str) -> None:
        logger.warning(message)
        metrics.warnings.append(message)


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO
    return (part / whole * HUNDRED).quantize(PERCENTAGE_PRECISION)


def normalize_group_by(value: str | None) -> str:
    """
    Validate a grouping dimension, case-insensitive; empty means "none".

    Raises:
        ValidationError: For anything outside VALID_GROUP_BY
    """
    normalized = (value or GROUP_BY_NONE).strip().lower()
    if normalized not in VALID_GROUP_BY:
        raise ValidationError(
            f"Invalid group_by '{value}'. Valid options: {', '.join(VALID_GROUP_BY)}",
            field="group_by",
        )
    return normalized


def _group_holdings(
        allocation: Sequence[AllocationItem],
        group_by: str,
        total_value: Decimal,
) -> list[HoldingGroup]:
    groups: dict[str, HoldingGroup] = {}

    for item in allocation:
        if group_by == GROUP_BY_CURRENCY:
            name = Currency.parse(native_currency(item.symbol)).value
        else:
            name = ALL_HOLDINGS_GROUP
        group = groups.setdefault(name, HoldingGroup(name=name))
        group.value += item.value
        group.holdings.append(item)

    for group in groups.values():
        group.percentage = _percent(group.value, total_value)

    return sorted(groups.values(), key=lambda g: (-g.value, g.name))
