# app/schemas/analytics.py
"""
Pydantic schemas for the Analytics API.

Design decisions:
- All numeric values are serialized as STRINGS to preserve Decimal precision
- Percentages are in percent units ("25" = 25%)
- Keys are camelCase on the wire (percentageReturn, maxDrawdown, ...)
- Dates with no meaning (placeholder metrics) are null
"""

import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response base: camelCase aliases, populated by field name."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# PERFORMANCE SERIES
# =============================================================================

class PerformanceDataPointResponse(CamelModel):
    date: datetime.date
    value: str = Field(..., description="Portfolio value in the reporting currency")
    percentage_return: str = Field(..., description="Percent change from the first positive value")
    day_change: str = Field(..., description="Change vs. the previous point")
    day_change_percent: str = Field(..., description="Percent change vs. the previous point")


# =============================================================================
# METRICS
# =============================================================================

class ReturnMetricResponse(CamelModel):
    absolute: str
    percentage: str


class DayMetricResponse(CamelModel):
    date: datetime.date | None = Field(None, description="Null when fewer than two points exist")
    change: str
    change_percent: str


class DrawdownMetricResponse(CamelModel):
    percentage: str = Field(..., description="Largest decline from the running peak, in percent")
    absolute: str
    peak_date: datetime.date | None
    trough_date: datetime.date | None
    peak_value: str
    trough_value: str


class RecoveryTimeResponse(CamelModel):
    status: str = Field(..., description="'recovered' or 'in_drawdown'")
    days: int = Field(..., description="Ongoing drawdown age, or latest recovery duration (calendar days)")
    average_days: str = Field(..., description="Mean trough-to-recovery days over recovered episodes")


class PerformanceMetricsResponse(CamelModel):
    total_return: ReturnMetricResponse
    period_return: ReturnMetricResponse
    best_day: DayMetricResponse
    worst_day: DayMetricResponse
    max_drawdown: DrawdownMetricResponse
    recovery_time: RecoveryTimeResponse


class PerformanceResponse(CamelModel):
    """Response of GET /analytics/performance."""

    period: str = Field(..., description="1M, 3M, 6M, 1Y or ALL")
    currency: str = Field(..., description="USD or RMB")
    performance: list[PerformanceDataPointResponse]
    metrics: PerformanceMetricsResponse
    warnings: list[str] = Field(default_factory=list, description="Partial-data degradations")


# =============================================================================
# DASHBOARD
# =============================================================================

class AllocationItemResponse(CamelModel):
    symbol: str
    value: str
    percentage: str


class HoldingGroupResponse(CamelModel):
    name: str = Field(..., description="USD, RMB or 'All Holdings'")
    value: str
    percentage: str = Field(..., description="Share of the total portfolio value")
    holdings: list[AllocationItemResponse]


class DashboardResponse(CamelModel):
    """Response of GET /analytics/dashboard."""

    currency: str
    group_by: str = Field(..., description="'none' or 'currency'")
    total_value: str
    total_cost_basis: str
    total_gain: str
    percentage_return: str
    day_change: str
    day_change_percent: str
    allocation: list[AllocationItemResponse]
    groups: list[HoldingGroupResponse]
    warnings: list[str] = Field(default_factory=list)
