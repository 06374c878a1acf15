# app/services/analytics/returns.py
"""
Return and single-day move calculations for the Analytics Service.

Pure functions over an already period-filtered value series:
- Total Return: change from the first to the last point
- Period Return: same computation, the series already covers the period
- Best / Worst Day: largest and smallest day-over-day change

Formulas:
    Total Return (absolute)   = V_last - V_first
    Total Return (percentage) = (V_last - V_first) / V_first × 100

    Day change (i) = V_i - V_(i-1)
    Day change %   = Day change / V_(i-1) × 100

Series shorter than two points yield zero-valued metrics, never errors.
"""

import logging
from collections.abc import Sequence

from app.services.analytics.types import DayMetric, PerformanceDataPoint, ReturnMetric
from app.services.constants import HUNDRED, PERCENTAGE_PRECISION, ZERO

logger = logging.getLogger(__name__)


def calculate_total_return(points: Sequence[PerformanceDataPoint]) -> ReturnMetric:
    """
    Change from the first to the last point.

    Percentage is zero when the first value is not positive.
    """
    if len(points) < 2:
        return ReturnMetric()

    first = points[0].value
    last = points[-1].value
    absolute = last - first

    if first <= 0:
        return ReturnMetric(absolute=absolute, percentage=ZERO)

    return ReturnMetric(
        absolute=absolute,
        percentage=(absolute / first * HUNDRED).quantize(PERCENTAGE_PRECISION),
    )


def calculate_period_return(points: Sequence[PerformanceDataPoint]) -> ReturnMetric:
    """Return over the requested period; the series is already restricted to it."""
    return calculate_total_return(points)


def calculate_best_worst_days(
        points: Sequence[PerformanceDataPoint],
) -> tuple[DayMetric, DayMetric]:
    """
    Largest and smallest day-over-day change.

    Consecutive pairs are scanned in date order; on ties the earliest day
    is kept for both best and worst.

    Returns:
        (best_day, worst_day), both placeholders for fewer than two points
    """
    if len(points) < 2:
        return DayMetric(), DayMetric()

    best = _day_metric(points, 1)
    worst = best

    for i in range(2, len(points)):
        change = points[i].value - points[i - 1].value
        if change > best.change:
            best = _day_metric(points, i)
        if change < worst.change:
            worst = _day_metric(points, i)

    return best, worst


def _day_metric(points: Sequence[PerformanceDataPoint], i: int) -> DayMetric:
    previous = points[i - 1].value
    change = points[i].value - previous
    percent = (change / previous * HUNDRED).quantize(PERCENTAGE_PRECISION) if previous > 0 else ZERO
    return DayMetric(date=points[i].date, change=change, change_percent=percent)
