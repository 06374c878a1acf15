# app/services/analytics/pricing.py
"""Last-known-value price lookup."""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from app.services.constants import ZERO
from app.services.market_data.base import PricePoint


def price_at(target: date, prices: Sequence[PricePoint]) -> Decimal:
    """
    Price effective on ``target``: the exact calendar-day match if present,
    otherwise the latest price before it.

    Returns ZERO (unavailable) when the series is empty or starts after
    ``target``. ``prices`` need not be sorted.
    """
    best: PricePoint | None = None
    for point in prices:
        if point.date == target:
            return point.price
        if point.date < target and (best is None or point.date > best.date):
            best = point
    return best.price if best is not None else ZERO
