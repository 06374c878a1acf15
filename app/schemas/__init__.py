# app/schemas/__init__.py
"""
Pydantic schemas for API responses.

- analytics: Performance series, metrics and dashboard
- errors: Error response formats

Usage:
    from app.schemas import PerformanceResponse, ErrorDetail
"""

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
from app.schemas.errors import ErrorDetail, ValidationErrorDetail

__all__ = [
    "AllocationItemResponse",
    "DashboardResponse",
    "DayMetricResponse",
    "DrawdownMetricResponse",
    "HoldingGroupResponse",
    "PerformanceDataPointResponse",
    "PerformanceMetricsResponse",
    "PerformanceResponse",
    "RecoveryTimeResponse",
    "ReturnMetricResponse",
    "ErrorDetail",
    "ValidationErrorDetail",
]
