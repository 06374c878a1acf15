# app/services/analytics/risk.py
"""
Maximum drawdown for the Analytics Service.

Formulas:
    Drawdown (absolute)   = Peak - V
    Drawdown (percentage) = (Peak - V) / Peak × 100

    Max Drawdown = the point where the percentage is largest, reported
    with the running peak active at that point.

Attributing the drawdown to the running peak (not the global maximum)
keeps each decline tied to its own local high even if a higher peak
comes later.
"""

import logging
from collections.abc import Sequence
from decimal import Decimal

from app.services.analytics.types import DrawdownMetric, PerformanceDataPoint
from app.services.constants import HUNDRED, PERCENTAGE_PRECISION, ZERO
from app.services.exceptions import InsufficientDataError

logger = logging.getLogger(__name__)


def drawdown_percent(peak: Decimal, value: Decimal) -> Decimal:
    """Decline of ``value`` below ``peak`` in percent; zero for a non-positive peak."""
    if peak <= 0:
        return ZERO
    return (peak - value) / peak * HUNDRED


def calculate_max_drawdown(points: Sequence[PerformanceDataPoint]) -> DrawdownMetric:
    """
    Largest peak-to-trough decline in a single forward scan.

    The running peak moves only on a strictly higher value. The stored
    maximum is replaced only by a strictly larger percentage, so the first
    of equally deep declines is reported.

    Raises:
        InsufficientDataError: For an empty series
    """
    if not points:
        raise InsufficientDataError("max drawdown", 0)

    first = points[0]
    peak_value = first.value
    peak_date = first.date

    result = DrawdownMetric(
        peak_date=first.date,
        trough_date=first.date,
        peak_value=first.value,
        trough_value=first.value,
    )

    max_percent = ZERO

    for point in points:
        if point.value > peak_value:
            peak_value = point.value
            peak_date = point.date

        percent = drawdown_percent(peak_value, point.value)
        if percent > max_percent:
            max_percent = percent
            result = DrawdownMetric(
                percentage=percent.quantize(PERCENTAGE_PRECISION),
                absolute=peak_value - point.value,
                peak_date=peak_date,
                trough_date=point.date,
                peak_value=peak_value,
                trough_value=point.value,
            )

    return result
