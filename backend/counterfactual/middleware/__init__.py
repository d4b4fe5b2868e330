# backend/counterfactual/middleware/__init__.py
"""
Middleware components for the Counterfactual backend.

This package contains ASGI middleware for:
- Correlation ID tracking for request tracing
- Rate limiting for API protection

Usage:
    from counterfactual.middleware import CorrelationIdMiddleware, limiter

    app.add_middleware(CorrelationIdMiddleware)
    app.state.limiter = limiter
"""

from counterfactual.middleware.correlation import (
    CORRELATION_ID_HEADER,
    CorrelationIdMiddleware,
    resolve_correlation_id,
)
from counterfactual.middleware.rate_limit import limiter, rate_limit_exceeded_handler

__all__ = [
    "CORRELATION_ID_HEADER",
    "CorrelationIdMiddleware",
    "resolve_correlation_id",
    "limiter",
    "rate_limit_exceeded_handler",
]
