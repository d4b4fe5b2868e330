# backend/counterfactual/utils/logging.py
"""
Logging configuration for the Counterfactual backend.

This module provides centralized logging setup with:
- Environment-based log levels (LOG_LEVEL)
- Correlation ID on every record, for request tracing
- JSON output option for log aggregation (LOG_FORMAT=json)
- Suppression of noisy third-party library logs (yfinance, urllib3, ...)
- A small timing helper for the calculation engines

Usage:
    from counterfactual.utils import setup_logging

    # In main.py, before creating the FastAPI app
    setup_logging()

Log Levels:
    DEBUG   - Cache hits/misses, per-ticker fetch sizes, engine timings
    INFO    - Comparison runs, detected CSV formats
    WARNING - Skipped rows, tickers that degraded to empty series
    ERROR   - Provider failures
"""

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from counterfactual.config import settings
from counterfactual.utils.context import get_correlation_id

# =============================================================================
# CONSTANTS
# =============================================================================

# timestamp | level | correlation_id | logger_name | message
DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"

# Third-party loggers set to WARNING
NOISY_LOGGERS = [
    "yfinance",
    "urllib3",
    "urllib3.connectionpool",
    "requests",
    "httpx",
    "httpcore",
    "peewee",
    "asyncio",
]

# LogRecord attributes that are not user-supplied "extra" fields
_RESERVED_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
})

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


# =============================================================================
# FILTERS & FORMATTERS
# =============================================================================

class CorrelationIdFilter(logging.Filter):
    """
    Stamp the active correlation ID on every record.

    Makes %(correlation_id)s available to format strings; records emitted
    outside a request get NO_CORRELATION_ID.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per log record.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.123456+00:00",
        "level": "INFO",
        "logger": "counterfactual.services.comparison.service",
        "correlation_id": "abc-123-def",
        "message": "Comparison complete: 3 tickers, 251 points",
        "extra": { ... }
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: _json_safe(value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_ATTRS
        }
        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry)


def _json_safe(value: Any) -> Any:
    """Return value unchanged if JSON serializable, else its str()."""
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


# =============================================================================
# SETUP FUNCTION
# =============================================================================

def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        suppress_noisy_loggers: bool = True,
) -> None:
    """
    Configure the root logger with correlation ID support.

    Call once at application startup, before creating the FastAPI app.
    Calling again replaces the previously installed handler.

    Args:
        level: Log level name. Defaults to settings.log_level.
        log_format: 'text' or 'json'. Defaults to settings.log_format.
        suppress_noisy_loggers: Set third-party loggers to WARNING.

    Raises:
        ValueError: If level is not a valid log level name
    """
    level_name = level or settings.log_level
    format_type = (log_format or settings.log_format).lower()

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=DEFAULT_TEXT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(get_log_level(level_name))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if suppress_noisy_loggers:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={level_name}, format={format_type}",
        extra={"config": {"level": level_name, "format": format_type}},
    )


def get_log_level(level_name: str) -> int:
    """
    Convert a log level name (case-insensitive) to its logging constant.

    Raises:
        ValueError: If level_name is not a valid log level
    """
    normalized = level_name.upper().strip()
    if normalized not in _LEVELS:
        raise ValueError(
            f"Invalid log level: '{level_name}'. "
            f"Valid levels are: {', '.join(_LEVELS)}"
        )
    return _LEVELS[normalized]


# =============================================================================
# TIMING
# =============================================================================

@contextmanager
def log_duration(logger: logging.Logger, label: str) -> Iterator[None]:
    """
    Log how long a block took, at DEBUG level.

    Example:
        with log_duration(logger, "time series"):
            points = calculate_portfolio_time_series(...)
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(f"{label} took {elapsed_ms:.1f}ms", extra={"duration_ms": round(elapsed_ms, 1)})
