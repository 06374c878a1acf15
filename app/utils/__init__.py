# app/utils/__init__.py
"""
Utility modules for the portfolio analytics service.

This package contains cross-cutting utilities used throughout the application:
- logging: Logging configuration and setup with correlation ID support
- context: Request context management for correlation IDs
- date_utils: Period label validation and period start dates

Usage:
    from app.utils import setup_logging
    from app.utils import get_correlation_id, set_correlation_id
    from app.utils.date_utils import period_start
"""

from app.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from app.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
