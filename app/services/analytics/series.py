# app/services/analytics/series.py
"""
Portfolio value time series reconstruction.

For every date on which any held symbol has a price inside the window, the
portfolio value is the sum over symbols of

    shares_held(symbol, date) × price_at(date) → converted to the reporting currency

Symbols with no position (shares <= 0) or no price yet on a date contribute
nothing to that date. Percentage return is measured from the first point
with a positive value (the baseline); day change is measured against the
immediately preceding point.

Granularity is whatever the price histories provide (daily closes); no
downsampling is applied for longer periods.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal

from app.services.analytics.positions import group_by_symbol, shares_held
from app.services.analytics.pricing import price_at
from app.services.analytics.types import PerformanceDataPoint, SeriesBuildResult
from app.services.constants import HUNDRED, PERCENTAGE_PRECISION, ZERO
from app.services.exceptions import FXRateError
from app.services.market_data.base import PricePoint
from app.services.market_data.markets import native_currency, to_iso_code
from app.services.protocols import CurrencyConverterProtocol
from app.services.transactions import TransactionRecord

logger = logging.getLogger(__name__)


def candidate_dates(
        histories: Mapping[str, Sequence[PricePoint]],
        start_date: date,
        end_date: date,
) -> list[date]:
    """Sorted union of all history dates within [start_date, end_date]."""
    dates = {
        point.date
        for prices in histories.values()
        for point in prices
        if start_date <= point.date <= end_date
    }
    return sorted(dates)


def build_series(
        transactions: Sequence[TransactionRecord],
        histories: Mapping[str, Sequence[PricePoint]],
        target_currency: str,
        start_date: date,
        end_date: date,
        converter: CurrencyConverterProtocol,
) -> SeriesBuildResult:
    """
    Reconstruct the portfolio value series over [start_date, end_date].

    Args:
        transactions: The user's full ledger (any order)
        histories: symbol -> price points in the symbol's native currency
        target_currency: Reporting currency (label or ISO code)
        start_date: First date included (period start)
        end_date: Last date included ("now")
        converter: Currency converter for non-native contributions

    Returns:
        SeriesBuildResult with points in date order and any FX warnings.
        Empty when there are no transactions or no price data.
    """
    result = SeriesBuildResult()

    if not transactions or not histories:
        return result

    target = to_iso_code(target_currency)
    by_symbol = group_by_symbol(transactions)
    # Fixed symbol order keeps the summation identical between runs
    ordered = sorted(histories.items())

    for day in candidate_dates(histories, start_date, end_date):
        total = ZERO

        for symbol, prices in ordered:
            shares = shares_held(symbol, day, by_symbol.get(symbol, ()))
            if shares <= 0:
                continue

            price = price_at(day, prices)
            if price <= 0:
                continue

            value = shares * price
            source = native_currency(symbol)
            if source != target:
                try:
                    value = converter.convert(value, source, target)
                except FXRateError as e:
                    message = (
                        f"Currency conversion {source}->{target} failed for {symbol} "
                        f"on {day.isoformat()}, using unconverted value: {e}"
                    )
                    logger.warning(message)
                    result.warnings.append(message)

            total += value

        result.points.append(PerformanceDataPoint(date=day, value=total))

    apply_returns(result.points)
    return result


def apply_returns(points: list[PerformanceDataPoint]) -> None:
    """
    Fill percentage_return, day_change and day_change_percent in place.

    Points before the baseline (first value > 0) keep a zero return.
    """
    baseline: Decimal | None = None

    for i, point in enumerate(points):
        if baseline is None and point.value > 0:
            baseline = point.value

        if baseline is not None:
            point.percentage_return = _percent(point.value - baseline, baseline)

        if i == 0:
            continue

        previous = points[i - 1].value
        point.day_change = point.value - previous
        point.day_change_percent = _percent(point.day_change, previous) if previous > 0 else ZERO


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    return (part / whole * HUNDRED).quantize(PERCENTAGE_PRECISION)
