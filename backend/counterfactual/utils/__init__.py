# backend/counterfactual/utils/__init__.py
"""
Utility modules for the Counterfactual backend.

This package contains cross-cutting utilities used throughout the application:
- logging: Logging configuration with correlation ID support and timing
- context: Request context (correlation IDs)

Usage:
    from counterfactual.utils import setup_logging, log_duration
    from counterfactual.utils import get_correlation_id, correlation_scope
"""

from counterfactual.utils.context import (
    get_correlation_id,
    set_correlation_id,
    reset_correlation_id,
    correlation_scope,
)
from counterfactual.utils.logging import setup_logging, log_duration

__all__ = [
    # Logging
    "setup_logging",
    "log_duration",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "reset_correlation_id",
    "correlation_scope",
]
