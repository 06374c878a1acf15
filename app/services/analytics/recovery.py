# app/services/analytics/recovery.py
"""
Drawdown episodes and recovery time.

A single forward scan keeps the running peak (moved only by a strictly
higher value) and tracks episodes:

    open:    drawdown from the running peak exceeds 5% and no episode is open;
             peak value/date are frozen, trough = current point
    trough:  while open, moves to the current point whenever the value is
             below the previous point's value
    close:   value returns to or above the episode's peak; recovery date =
             that point's date

Trough tracking follows the last day-over-day decline, not the lowest
value inside the episode: a series that dips, bounces and dips again less
deeply reports the later dip as trough.

After the scan:
    in_drawdown: current drawdown > 5%, days = now - running peak date
    recovered:   otherwise; days = trough-to-recovery of the latest closed episode
    average_days = mean trough-to-recovery over closed episodes

All durations are calendar days.
"""

import logging
from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from app.services.analytics.risk import drawdown_percent
from app.services.analytics.types import DrawdownEpisode, PerformanceDataPoint, RecoveryMetric
from app.services.constants import (
    DAYS_PRECISION,
    DRAWDOWN_EPISODE_THRESHOLD_PCT,
    RECOVERY_STATUS_IN_DRAWDOWN,
    RECOVERY_STATUS_RECOVERED,
    ZERO,
)

logger = logging.getLogger(__name__)


def find_drawdown_episodes(points: Sequence[PerformanceDataPoint]) -> list[DrawdownEpisode]:
    """All episodes in scan order; the last one may still be open."""
    episodes: list[DrawdownEpisode] = []

    if not points:
        return episodes

    peak_value = points[0].value
    peak_date = points[0].date
    current: DrawdownEpisode | None = None

    for i, point in enumerate(points):
        if current is not None and point.value >= current.peak_value:
            current.recovery_date = point.date
            current.recovered = True
            current = None

        if point.value > peak_value:
            peak_value = point.value
            peak_date = point.date
            continue

        if current is None:
            if drawdown_percent(peak_value, point.value) > DRAWDOWN_EPISODE_THRESHOLD_PCT:
                current = DrawdownEpisode(
                    peak_value=peak_value,
                    peak_date=peak_date,
                    trough_date=point.date,
                )
                episodes.append(current)
        elif i > 0 and point.value < points[i - 1].value:
            current.trough_date = point.date

    return episodes


def calculate_recovery(points: Sequence[PerformanceDataPoint], now: date) -> RecoveryMetric:
    """
    Recovery status of the series as of ``now``.

    Args:
        points: Value series in date order
        now: Evaluation date, used for the age of an ongoing drawdown

    Returns:
        RecoveryMetric; zero-valued "recovered" for fewer than two points
    """
    if len(points) < 2:
        return RecoveryMetric()

    episodes = find_drawdown_episodes(points)
    recovered = [e for e in episodes if e.recovered]

    peak_value = points[0].value
    peak_date = points[0].date
    for point in points:
        if point.value > peak_value:
            peak_value = point.value
            peak_date = point.date

    average_days = ZERO
    if recovered:
        total = sum(e.recovery_days for e in recovered)
        average_days = (Decimal(total) / Decimal(len(recovered))).quantize(DAYS_PRECISION)

    if drawdown_percent(peak_value, points[-1].value) > DRAWDOWN_EPISODE_THRESHOLD_PCT:
        days = (now - peak_date).days
        logger.debug(f"In drawdown since {peak_date} ({days} days)")
        return RecoveryMetric(
            status=RECOVERY_STATUS_IN_DRAWDOWN,
            days=days,
            average_days=average_days,
            episodes=episodes,
        )

    return RecoveryMetric(
        status=RECOVERY_STATUS_RECOVERED,
        days=recovered[-1].recovery_days if recovered else 0,
        average_days=average_days,
        episodes=episodes,
    )
