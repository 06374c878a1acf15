# tests/test_main.py
"""
Smoke tests for application assembly.

Importing app.main pulls in every router, schema and service module, so a
module that fails at import time fails here first.
"""

import importlib
from datetime import date

import pytest

from app.schemas.analytics import DayMetricResponse, DrawdownMetricResponse
from app.services.analytics.types import DayMetric


class TestApplicationImport:

    def test_app_main_imports(self):
        module = importlib.import_module("app.main")

        paths = {route.path for route in module.app.routes}
        assert {"/analytics/performance", "/analytics/dashboard", "/health"} <= paths

    @pytest.mark.parametrize("module_name", [
        "app.services.analytics",
        "app.services.analytics.types",
        "app.schemas.analytics",
        "app.routers.analytics",
    ])
    def test_analytics_modules_import(self, module_name):
        assert importlib.import_module(module_name) is not None


class TestDateFields:
    """Fields named ``date`` must still be typed as calendar dates."""

    def test_day_metric_placeholder(self):
        assert DayMetric().date is None
        assert DayMetric(date=date(2024, 3, 15)).date == date(2024, 3, 15)

    def test_day_metric_response_accepts_date_or_null(self):
        empty = DayMetricResponse(change="0", change_percent="0")
        dated = DayMetricResponse(date="2024-03-15", change="10", change_percent="10")

        assert empty.date is None
        assert dated.date == date(2024, 3, 15)

    def test_drawdown_response_dates(self):
        response = DrawdownMetricResponse(
            percentage="25", absolute="30",
            peak_date="2024-03-04", trough_date=None,
            peak_value="120", trough_value="90",
        )

        assert response.peak_date == date(2024, 3, 4)
        assert response.trough_date is None
