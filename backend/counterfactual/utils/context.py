# backend/counterfactual/utils/context.py
"""
Request-scoped context for the Counterfactual backend.

Holds the correlation ID of the request currently being served so that log
records emitted anywhere below the router (services, providers, thread pool
workers that copy the context) can be traced back to one HTTP call.

Uses contextvars, which follow async/await chains and are copied into
threads started through contextvars.copy_context().

Usage:
    from counterfactual.utils.context import correlation_scope, get_correlation_id

    with correlation_scope("abc-123"):
        get_correlation_id()  # "abc-123"
    get_correlation_id()      # None
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """
    Get the current request's correlation ID.

    Returns:
        The correlation ID for the current request, or None outside a request.
    """
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> Token:
    """
    Bind a correlation ID to the current context.

    Args:
        correlation_id: Unique identifier for this request

    Returns:
        Token that restores the previous value when passed to reset_correlation_id()
    """
    return _correlation_id_var.set(correlation_id)


def reset_correlation_id(token: Token) -> None:
    """Restore the correlation ID that was active before set_correlation_id()."""
    _correlation_id_var.reset(token)


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """
    Bind a correlation ID for the duration of a with-block.

    Nested scopes restore the outer ID on exit, so a background job started
    inside a request does not clobber the request's ID.
    """
    token = set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        reset_correlation_id(token)
