# app/services/analytics/__init__.py
"""
Analytics Service Package.

This package reconstructs a portfolio value series from the transaction
ledger and price histories, then derives return, drawdown and recovery
metrics from it.

Architecture:
    analytics/
    ├── __init__.py              # This file - package exports
    ├── types.py                 # Data classes for results
    ├── positions.py             # Shares held as of a date, average-cost holdings
    ├── pricing.py               # Last-known-value price lookup
    ├── series.py                # Value series builder
    ├── returns.py               # Total / period return, best and worst day
    ├── risk.py                  # Maximum drawdown
    ├── recovery.py              # Drawdown episodes and recovery time
    ├── dashboard.py             # Current holdings snapshot and grouping
    └── service.py               # AnalyticsService (orchestrator)

Data Flow:
    Transactions + price histories + FX
        ↓
    build_series → [PerformanceDataPoint]
        ↓
    ┌──────────────────────────────────────────────┐
    │ returns   → total / period return, best/worst │
    │ risk      → max drawdown                      │
    │ recovery  → status, days, average days        │
    └──────────────────────────────────────────────┘
        ↓
    PerformanceResult
"""

from app.services.analytics.dashboard import DashboardCalculator, normalize_group_by
from app.services.analytics.positions import build_holdings, shares_held
from app.services.analytics.pricing import price_at
from app.services.analytics.recovery import calculate_recovery, find_drawdown_episodes
from app.services.analytics.returns import (
    calculate_best_worst_days,
    calculate_period_return,
    calculate_total_return,
)
from app.services.analytics.risk import calculate_max_drawdown
from app.services.analytics.series import apply_returns, build_series
from app.services.analytics.service import AnalyticsService, calculate_metrics
from app.services.analytics.types import (
    AllocationItem,
    DashboardMetrics,
    DayMetric,
    DrawdownEpisode,
    DrawdownMetric,
    Holding,
    HoldingGroup,
    PerformanceDataPoint,
    PerformanceMetrics,
    PerformanceResult,
    RecoveryMetric,
    ReturnMetric,
    SeriesBuildResult,
)

__all__ = [
    # Main service
    "AnalyticsService",
    "DashboardCalculator",
    "calculate_metrics",
    "normalize_group_by",

    # Calculators
    "shares_held",
    "build_holdings",
    "price_at",
    "build_series",
    "apply_returns",
    "calculate_total_return",
    "calculate_period_return",
    "calculate_best_worst_days",
    "calculate_max_drawdown",
    "find_drawdown_episodes",
    "calculate_recovery",

    # Types
    "PerformanceDataPoint",
    "SeriesBuildResult",
    "ReturnMetric",
    "DayMetric",
    "DrawdownMetric",
    "DrawdownEpisode",
    "RecoveryMetric",
    "PerformanceMetrics",
    "PerformanceResult",
    "Holding",
    "HoldingGroup",
    "AllocationItem",
    "DashboardMetrics",
]
