# tests/services/analytics/test_risk.py
"""
Unit tests for maximum drawdown.

Test Coverage:
- drawdown_percent: decline below a peak
- calculate_max_drawdown: running-peak attribution, ties, short series
"""

from datetime import date
from decimal import Decimal

import pytest

from app.services.analytics.risk import calculate_max_drawdown, drawdown_percent
from app.services.exceptions import InsufficientDataError
from tests.conftest import make_points


class TestDrawdownPercent:

    def test_decline(self):
        assert drawdown_percent(Decimal("120"), Decimal("90")) == Decimal("25")

    def test_at_peak(self):
        assert drawdown_percent(Decimal("100"), Decimal("100")) == Decimal("0")

    def test_non_positive_peak(self):
        assert drawdown_percent(Decimal("0"), Decimal("0")) == Decimal("0")


class TestMaxDrawdown:
    """Tests for calculate_max_drawdown function."""

    def test_decline_then_new_high(self):
        """100 → 120 → 90 → 130: the 120 → 90 decline is 25%."""
        result = calculate_max_drawdown(make_points([100, 120, 90, 130]))

        assert result.percentage == Decimal("25")
        assert result.absolute == Decimal("30")
        assert result.peak_value == Decimal("120")
        assert result.trough_value == Decimal("90")
        assert result.peak_date == date(2024, 1, 2)
        assert result.trough_date == date(2024, 1, 3)

    def test_uses_running_peak_not_global_max(self):
        """The 25% decline from 200 is larger than the later 10% decline from 300."""
        result = calculate_max_drawdown(make_points([200, 150, 300, 270]))

        assert result.percentage == Decimal("25")
        assert result.peak_value == Decimal("200")
        assert result.trough_value == Decimal("150")

    def test_first_of_equal_declines_kept(self):
        result = calculate_max_drawdown(make_points([100, 90, 100, 90]))

        assert result.percentage == Decimal("10")
        assert result.trough_date == date(2024, 1, 2)

    def test_strictly_increasing_series(self):
        result = calculate_max_drawdown(make_points([100, 110, 120]))

        assert result.percentage == Decimal("0")
        assert result.absolute == Decimal("0")
        assert result.peak_date == date(2024, 1, 1)
        assert result.trough_date == date(2024, 1, 1)

    def test_single_point(self):
        result = calculate_max_drawdown(make_points([500]))

        assert result.percentage == Decimal("0")
        assert result.peak_value == Decimal("500")
        assert result.trough_value == Decimal("500")
        assert result.peak_date == result.trough_date == date(2024, 1, 1)

    def test_percentage_quantized(self):
        result = calculate_max_drawdown(make_points([300, 200]))

        assert result.percentage == Decimal("33.3333")

    def test_empty_series_raises(self):
        with pytest.raises(InsufficientDataError):
            calculate_max_drawdown([])
