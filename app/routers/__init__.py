# app/routers/__init__.py
"""
API routers for the portfolio analytics service.

- analytics: Performance series, risk metrics and dashboard snapshot
"""

from app.routers.analytics import router as analytics_router

__all__ = [
    "analytics_router",
]
