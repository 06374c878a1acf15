# app/routers/analytics.py
"""
Portfolio analytics endpoints.

- GET /analytics/performance - Value series with return, drawdown and recovery metrics
- GET /analytics/dashboard - Current holdings snapshot

Both act on the authenticated user's whole ledger.

Query parameters:
- period: 1M, 3M, 6M, 1Y or ALL (default 1M, performance only)
- currency: USD, RMB or CNY (default USD; CNY is reported as RMB)
- groupBy: none or currency (default none, dashboard only)

Invalid values are rejected with 400 by the service layer exceptions.
"""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_analytics_service, get_current_user
from app.middleware.rate_limit import limiter, RATE_LIMIT_ANALYTICS
from app.models import User
from app.schemas.analytics import (
    AllocationItemResponse,
    DashboardResponse,
    DayMetricResponse,
    DrawdownMetricResponse,
    HoldingGroupResponse,
    PerformanceDataPointResponse,
    PerformanceMetricsResponse,
    PerformanceResponse,
    RecoveryTimeResponse,
    ReturnMetricResponse,
)
from app.services.analytics import (
    AllocationItem,
    AnalyticsService,
    DashboardMetrics,
    DayMetric,
    DrawdownMetric,
    PerformanceDataPoint,
    PerformanceMetrics,
    PerformanceResult,
    RecoveryMetric,
    ReturnMetric,
)
from app.services.constants import DEFAULT_PERIOD, GROUP_BY_NONE

router = APIRouter(
    prefix="/analytics",
    tags=["Analytics"],
)

DEFAULT_CURRENCY = "USD"


# =============================================================================
# MAPPERS
# =============================================================================

def _decimal_to_str(value: Decimal | int) -> str:
    """Decimal as a plain string, trailing zeros dropped, never in exponent form."""
    if isinstance(value, int):
        value = Decimal(value)
    return format(value.normalize(), "f")


def _map_point(point: PerformanceDataPoint) -> PerformanceDataPointResponse:
    return PerformanceDataPointResponse(
        date=point.date,
        value=_decimal_to_str(point.value),
        percentage_return=_decimal_to_str(point.percentage_return),
        day_change=_decimal_to_str(point.day_change),
        day_change_percent=_decimal_to_str(point.day_change_percent),
    )


def _map_return(metric: ReturnMetric) -> ReturnMetricResponse:
    return ReturnMetricResponse(
        absolute=_decimal_to_str(metric.absolute),
        percentage=_decimal_to_str(metric.percentage),
    )


def _map_day(metric: DayMetric) -> DayMetricResponse:
    return DayMetricResponse(
        date=metric.date,
        change=_decimal_to_str(metric.change),
        change_percent=_decimal_to_str(metric.change_percent),
    )


def _map_drawdown(metric: DrawdownMetric) -> DrawdownMetricResponse:
    return DrawdownMetricResponse(
        percentage=_decimal_to_str(metric.percentage),
        absolute=_decimal_to_str(metric.absolute),
        peak_date=metric.peak_date,
        trough_date=metric.trough_date,
        peak_value=_decimal_to_str(metric.peak_value),
        trough_value=_decimal_to_str(metric.trough_value),
    )


def _map_recovery(metric: RecoveryMetric) -> RecoveryTimeResponse:
    return RecoveryTimeResponse(
        status=metric.status,
        days=metric.days,
        average_days=_decimal_to_str(metric.average_days),
    )


def _map_metrics(metrics: PerformanceMetrics) -> PerformanceMetricsResponse:
    return PerformanceMetricsResponse(
        total_return=_map_return(metrics.total_return),
        period_return=_map_return(metrics.period_return),
        best_day=_map_day(metrics.best_day),
        worst_day=_map_day(metrics.worst_day),
        max_drawdown=_map_drawdown(metrics.max_drawdown),
        recovery_time=_map_recovery(metrics.recovery_time),
    )


def _map_performance(result: PerformanceResult) -> PerformanceResponse:
    return PerformanceResponse(
        period=result.period,
        currency=result.currency,
        performance=[_map_point(p) for p in result.performance],
        metrics=_map_metrics(result.metrics),
        warnings=result.warnings,
    )


def _map_allocation(item: AllocationItem) -> AllocationItemResponse:
    return AllocationItemResponse(
        symbol=item.symbol,
        value=_decimal_to_str(item.value),
        percentage=_decimal_to_str(item.percentage),
    )


def _map_dashboard(metrics: DashboardMetrics) -> DashboardResponse:
    return DashboardResponse(
        currency=metrics.currency,
        group_by=metrics.group_by,
        total_value=_decimal_to_str(metrics.total_value),
        total_cost_basis=_decimal_to_str(metrics.total_cost_basis),
        total_gain=_decimal_to_str(metrics.total_gain),
        percentage_return=_decimal_to_str(metrics.percentage_return),
        day_change=_decimal_to_str(metrics.day_change),
        day_change_percent=_decimal_to_str(metrics.day_change_percent),
        allocation=[_map_allocation(item) for item in metrics.allocation],
        groups=[
            HoldingGroupResponse(
                name=group.name,
                value=_decimal_to_str(group.value),
                percentage=_decimal_to_str(group.percentage),
                holdings=[_map_allocation(item) for item in group.holdings],
            )
            for group in metrics.groups
        ],
        warnings=metrics.warnings,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/performance",
    response_model=PerformanceResponse,
    summary="Portfolio performance over a period",
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def get_performance(
        request: Request,
        current_user: Annotated[User, Depends(get_current_user)],
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[AnalyticsService, Depends(get_analytics_service)],
        period: Annotated[str, Query(description="1M, 3M, 6M, 1Y or ALL")] = DEFAULT_PERIOD,
        currency: Annotated[str, Query(description="USD, RMB or CNY")] = DEFAULT_CURRENCY,
) -> PerformanceResponse:
    """
    Reconstruct the portfolio value series and its metrics.

    An empty ``performance`` list with zero metrics means the user has no
    transactions or no price data in the period; it is not an error.
    """
    result = service.get_performance(db, current_user.id, period, currency)
    return _map_performance(result)


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Current holdings snapshot",
)
@limiter.limit(RATE_LIMIT_ANALYTICS)
def get_dashboard(
        request: Request,
        current_user: Annotated[User, Depends(get_current_user)],
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[AnalyticsService, Depends(get_analytics_service)],
        currency: Annotated[str, Query(description="USD, RMB or CNY")] = DEFAULT_CURRENCY,
        group_by: Annotated[str, Query(alias="groupBy", description="none or currency")] = GROUP_BY_NONE,
) -> DashboardResponse:
    metrics = service.get_dashboard(db, current_user.id, currency, group_by)
    return _map_dashboard(metrics)
