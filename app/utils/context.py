# app/utils/context.py
"""
Request-scoped context: correlation id and authenticated user id.

Backed by contextvars so values follow the request through async code and
into threadpool-run sync endpoints. The logging filter reads both and
stamps them on every record.

Usage:
    from app.utils.context import get_correlation_id, set_correlation_id

    set_correlation_id("abc-123")      # middleware
    get_correlation_id()               # anywhere in the request
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_user_id_var: ContextVar[int | None] = ContextVar("user_id", default=None)


def get_correlation_id() -> str | None:
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Called by CorrelationIdMiddleware at the start of each request."""
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


def get_user_id() -> int | None:
    return _user_id_var.get()


def set_user_id(user_id: int | None) -> None:
    """Called once the bearer token has been validated."""
    _user_id_var.set(user_id)
