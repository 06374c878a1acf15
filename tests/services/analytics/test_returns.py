# tests/services/analytics/test_returns.py
"""
Unit tests for return calculations.

These tests verify the pure calculation logic WITHOUT database dependencies.
All tests use known values that can be verified by hand.

Test Coverage:
- calculate_total_return: first-to-last change
- calculate_period_return: same figure over the period series
- calculate_best_worst_days: largest and smallest day-over-day change
"""

from datetime import date
from decimal import Decimal

from app.services.analytics.returns import (
    calculate_best_worst_days,
    calculate_period_return,
    calculate_total_return,
)
from tests.conftest import make_points


# =============================================================================
# TOTAL / PERIOD RETURN
# =============================================================================

class TestTotalReturn:
    """Tests for calculate_total_return function."""

    def test_positive_return(self):
        result = calculate_total_return(make_points([100, 120, 90, 130]))

        assert result.absolute == Decimal("30")
        assert result.percentage == Decimal("30")

    def test_negative_return(self):
        result = calculate_total_return(make_points([100, 110, 90, 95]))

        assert result.absolute == Decimal("-5")
        assert result.percentage == Decimal("-5")

    def test_fractional_percentage_quantized(self):
        result = calculate_total_return(make_points([300, 400]))

        assert result.percentage == Decimal("33.3333")

    def test_single_point_is_zero(self):
        result = calculate_total_return(make_points([100]))

        assert result.absolute == Decimal("0")
        assert result.percentage == Decimal("0")

    def test_empty_series_is_zero(self):
        result = calculate_total_return([])

        assert result.absolute == Decimal("0")
        assert result.percentage == Decimal("0")

    def test_zero_first_value_has_zero_percentage(self):
        result = calculate_total_return(make_points([0, 500]))

        assert result.absolute == Decimal("500")
        assert result.percentage == Decimal("0")

    def test_period_return_matches_total(self):
        points = make_points([100, 94, 95])

        assert calculate_period_return(points) == calculate_total_return(points)


# =============================================================================
# BEST / WORST DAY
# =============================================================================

class TestBestWorstDays:
    """Tests for calculate_best_worst_days function."""

    def test_mixed_series(self):
        points = make_points([100, 110, 90, 95])

        best, worst = calculate_best_worst_days(points)

        assert best.date == date(2024, 1, 2)
        assert best.change == Decimal("10")
        assert best.change_percent == Decimal("10")
        assert worst.date == date(2024, 1, 3)
        assert worst.change == Decimal("-20")
        assert worst.change_percent == Decimal("-18.1818")

    def test_strictly_increasing_series(self):
        """Worst day is the smallest gain, never a loss that did not happen."""
        best, worst = calculate_best_worst_days(make_points([100, 101, 105, 106]))

        assert best.change == Decimal("4")
        assert best.date == date(2024, 1, 3)
        assert worst.change == Decimal("1")
        assert worst.date == date(2024, 1, 2)

    def test_ties_keep_earliest_day(self):
        best, worst = calculate_best_worst_days(make_points([100, 110, 120, 110, 100]))

        assert best.date == date(2024, 1, 2)
        assert worst.date == date(2024, 1, 4)

    def test_single_point_placeholders(self):
        best, worst = calculate_best_worst_days(make_points([100]))

        assert best.date is None
        assert best.change == Decimal("0")
        assert worst.date is None
        assert worst.change_percent == Decimal("0")

    def test_change_from_zero_value_has_zero_percent(self):
        best, _ = calculate_best_worst_days(make_points([0, 1000]))

        assert best.change == Decimal("1000")
        assert best.change_percent == Decimal("0")
