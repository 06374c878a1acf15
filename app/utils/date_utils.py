# app/utils/date_utils.py
"""
Date utility functions for the analytics periods.

Usage:
    from app.utils.date_utils import period_start

    start = period_start("3M", date.today())
"""

from datetime import date

from dateutil.relativedelta import relativedelta

from app.services.constants import ALL_PERIOD_YEARS, VALID_PERIODS
from app.services.exceptions import InvalidPeriodError

# Calendar offsets per period label
_PERIOD_OFFSETS: dict[str, relativedelta] = {
    "1M": relativedelta(months=1),
    "3M": relativedelta(months=3),
    "6M": relativedelta(months=6),
    "1Y": relativedelta(years=1),
    "ALL": relativedelta(years=ALL_PERIOD_YEARS),
}


def normalize_period(period: str) -> str:
    """
    Upper-case and validate a period label.

    Raises:
        InvalidPeriodError: If the label is not one of 1M, 3M, 6M, 1Y, ALL
    """
    normalized = (period or "").strip().upper()
    if normalized not in VALID_PERIODS:
        raise InvalidPeriodError(period)
    return normalized


def period_start(period: str, now: date) -> date:
    """
    First date included in ``period`` ending at ``now``.

    Months and years are calendar offsets, so "1M" from March 31 starts on
    February 28 (or 29). "ALL" reaches back a fixed number of years.
    """
    return now - _PERIOD_OFFSETS[normalize_period(period)]
