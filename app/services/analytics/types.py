# app/services/analytics/types.py
"""
Data types for the Analytics Service.

This module defines the data structures produced by the performance
engine. All money and percentage values use Decimal; percentages are in
percent units (25 == 25%).

Architecture:
    - PerformanceDataPoint: One date of the reconstructed value series
    - ReturnMetric / DayMetric: Return and best/worst day figures
    - DrawdownMetric: The single largest peak-to-trough decline
    - DrawdownEpisode: A >5% decline tracked by the recovery analyzer
    - RecoveryMetric: Recovery status and durations
    - PerformanceMetrics: All metrics for one series
    - PerformanceResult: Series + metrics returned to the API
    - DashboardMetrics: Current holdings snapshot, optionally grouped
"""

import datetime
from dataclasses import dataclass, field
from decimal import Decimal

from app.services.constants import GROUP_BY_NONE, RECOVERY_STATUS_RECOVERED, ZERO


# =============================================================================
# TIME SERIES
# =============================================================================

@dataclass
class PerformanceDataPoint:
    """
    Portfolio value on one trading date, in the reporting currency.

    Attributes:
        date: The trading date
        value: Total portfolio value (never negative)
        percentage_return: Percent change from the series baseline
        day_change: Value change vs. the previous point
        day_change_percent: day_change as a percent of the previous value
    """
    date: datetime.date
    value: Decimal
    percentage_return: Decimal = ZERO
    day_change: Decimal = ZERO
    day_change_percent: Decimal = ZERO


@dataclass
class SeriesBuildResult:
    """Series plus the partial-data warnings raised while building it."""
    points: list[PerformanceDataPoint] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# METRICS
# =============================================================================

@dataclass
class ReturnMetric:
    absolute: Decimal = ZERO
    percentage: Decimal = ZERO


@dataclass
class DayMetric:
    """
    Best or worst single-day move.

    ``date`` is None for the placeholder returned on series shorter than
    two points.
    """
    date: datetime.date | None = None
    change: Decimal = ZERO
    change_percent: Decimal = ZERO


@dataclass
class DrawdownMetric:
    """
    Largest decline from a running peak.

    The peak is the one active when the decline was deepest, not the
    global maximum of the series.
    """
    percentage: Decimal = ZERO
    absolute: Decimal = ZERO
    peak_date: datetime.date | None = None
    trough_date: datetime.date | None = None
    peak_value: Decimal = ZERO
    trough_value: Decimal = ZERO


@dataclass
class DrawdownEpisode:
    """
    A decline of more than 5% from the running peak.

    Attributes:
        peak_value: Running peak when the episode opened
        peak_date: Date of that peak
        trough_date: Last date the series was still falling inside the episode
        recovery_date: Date the peak was re-attained (None while open)
        recovered: Whether the episode has closed
    """
    peak_value: Decimal
    peak_date: datetime.date
    trough_date: datetime.date
    recovery_date: datetime.date | None = None
    recovered: bool = False

    @property
    def recovery_days(self) -> int | None:
        """Calendar days from trough to recovery, None while open."""
        if self.recovery_date is None:
            return None
        return (self.recovery_date - self.trough_date).days


@dataclass
class RecoveryMetric:
    """
    Recovery state of the series.

    Attributes:
        status: "recovered" or "in_drawdown"
        days: Ongoing drawdown age, or the latest recovery's duration
        average_days: Mean trough-to-recovery days over recovered episodes
        episodes: Every episode found by the scan, in order
    """
    status: str = RECOVERY_STATUS_RECOVERED
    days: int = 0
    average_days: Decimal = ZERO
    episodes: list[DrawdownEpisode] = field(default_factory=list)


@dataclass
class PerformanceMetrics:
    """All metrics derived from one value series."""
    total_return: ReturnMetric = field(default_factory=ReturnMetric)
    period_return: ReturnMetric = field(default_factory=ReturnMetric)
    best_day: DayMetric = field(default_factory=DayMetric)
    worst_day: DayMetric = field(default_factory=DayMetric)
    max_drawdown: DrawdownMetric = field(default_factory=DrawdownMetric)
    recovery_time: RecoveryMetric = field(default_factory=RecoveryMetric)


@dataclass
class PerformanceResult:
    """
    Output of AnalyticsService.get_performance.

    Attributes:
        period: Requested period label (1M, 3M, 6M, 1Y, ALL)
        currency: Reporting currency label (USD or RMB)
        performance: Value series, dates strictly increasing
        metrics: Metrics over ``performance``
        warnings: Partial-data degradations (failed symbols, FX fallbacks)
    """
    period: str
    currency: str
    performance: list[PerformanceDataPoint] = field(default_factory=list)
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# DASHBOARD
# =============================================================================

@dataclass
class Holding:
    """
    Open position in one symbol, by the average-cost method.

    Attributes:
        symbol: Provider symbol
        shares: Shares currently held
        cost_basis: Remaining cost in ``currency``
        currency: ISO code of the trades that built the position
    """
    symbol: str
    shares: Decimal = ZERO
    cost_basis: Decimal = ZERO
    currency: str = "USD"


@dataclass
class AllocationItem:
    symbol: str
    value: Decimal
    percentage: Decimal


@dataclass
class HoldingGroup:
    """
    Holdings sharing one value of the grouping dimension.

    Attributes:
        name: Group label ("USD", "RMB" or "All Holdings")
        value: Sum of member values in the reporting currency
        percentage: Share of the total portfolio value
        holdings: Member allocation items, percentages of the whole portfolio
    """
    name: str
    value: Decimal = ZERO
    percentage: Decimal = ZERO
    holdings: list[AllocationItem] = field(default_factory=list)


@dataclass
class DashboardMetrics:
    """Current snapshot of a user's holdings in the reporting currency."""
    currency: str
    group_by: str = GROUP_BY_NONE
    total_value: Decimal = ZERO
    total_cost_basis: Decimal = ZERO
    total_gain: Decimal = ZERO
    percentage_return: Decimal = ZERO
    day_change: Decimal = ZERO
    day_change_percent: Decimal = ZERO
    allocation: list[AllocationItem] = field(default_factory=list)
    groups: list[HoldingGroup] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
