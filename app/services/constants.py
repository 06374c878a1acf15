# app/services/constants.py
"""
Centralized constants for the portfolio analytics services.

Single source of truth for the business constants used across the
analytics engine, data acquisition layer and API.

Usage:
    from app.services.constants import (
        ZERO,
        HUNDRED,
        DRAWDOWN_EPISODE_THRESHOLD_PCT,
    )
"""

from decimal import Decimal


# =============================================================================
# UTILITY CONSTANTS
# =============================================================================

# Type-safe zero for Decimal comparisons
ZERO: Decimal = Decimal("0")

# Percent scaling factor (all percentages are in percent units, 25 == 25%)
HUNDRED: Decimal = Decimal("100")


# =============================================================================
# PERIODS
# =============================================================================

# Accepted period labels, in display order
VALID_PERIODS: tuple[str, ...] = ("1M", "3M", "6M", "1Y", "ALL")

DEFAULT_PERIOD: str = "1M"

# Look-back floor for the "ALL" period
ALL_PERIOD_YEARS: int = 10


# =============================================================================
# DRAWDOWN / RECOVERY
# =============================================================================

# A drawdown episode opens once the decline from the running peak exceeds
# this percentage. Fixed, not configurable.
DRAWDOWN_EPISODE_THRESHOLD_PCT: Decimal = Decimal("5")

RECOVERY_STATUS_RECOVERED: str = "recovered"
RECOVERY_STATUS_IN_DRAWDOWN: str = "in_drawdown"


# =============================================================================
# DASHBOARD
# =============================================================================

# Holding grouping dimensions, "none" puts every holding in one group
GROUP_BY_NONE: str = "none"
GROUP_BY_CURRENCY: str = "currency"
VALID_GROUP_BY: tuple[str, ...] = (GROUP_BY_NONE, GROUP_BY_CURRENCY)

ALL_HOLDINGS_GROUP: str = "All Holdings"


# =============================================================================
# MARKET DATA
# =============================================================================

# Calendar days of history fetched to find the previous close for day change
PREVIOUS_CLOSE_LOOKBACK_DAYS: int = 10

# yfinance history window a current quote is taken from (last close in it)
QUOTE_HISTORY_PERIOD: str = "5d"

# Calendar days of FX history fetched to find the most recent rate
FX_LOOKBACK_DAYS: int = 7

# Maximum number of entries held by a TTL cache before LRU eviction
CACHE_MAX_SIZE: int = 1000


# =============================================================================
# CIRCUIT BREAKER SETTINGS
# =============================================================================

# Failures before the circuit opens and blocks provider calls
CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = 5

# Seconds to wait before testing if the provider has recovered
CIRCUIT_BREAKER_RECOVERY_TIMEOUT: float = 60.0

# Calls allowed through while half-open
CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS: int = 3


# =============================================================================
# DECIMAL PRECISION CONSTANTS
# =============================================================================

# Share quantities, prices and FX rates: 8 decimal places
SHARE_PRECISION: Decimal = Decimal("0.00000001")

# Percentage values: 4 decimal places (e.g., 12.3456%)
PERCENTAGE_PRECISION: Decimal = Decimal("0.0001")

# Averaged day counts: 2 decimal places
DAYS_PRECISION: Decimal = Decimal("0.01")


# =============================================================================
# RATE LIMITING CONSTANTS
# =============================================================================
# Format follows slowapi/limits syntax: "100/minute", "10/hour", etc.

# Default rate limit for read endpoints
RATE_LIMIT_DEFAULT: str = "100/minute"

# Health checks are polled by monitoring tools
RATE_LIMIT_HEALTH: str = "300/minute"

# Analytics fan out to external providers, moderate limit
RATE_LIMIT_ANALYTICS: str = "30/minute"
