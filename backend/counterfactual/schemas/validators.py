# backend/counterfactual/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas.

This module provides:
- Ticker validation and normalization
- Date range validation for market data requests

These validators ensure consistent input handling across all schemas.
"""

import re
from datetime import date

from counterfactual.services.constants import TICKER_RENAMES

# =============================================================================
# CONSTANTS
# =============================================================================

# Ticker: 1-20 chars, alphanumeric + dots/hyphens + leading caret (indices like ^GSPC)
TICKER_PATTERN = re.compile(r'^[\^]?[A-Z0-9][A-Z0-9.\-]{0,19}$')
TICKER_MAX_LENGTH = 20

# Earliest date accepted for price requests
MIN_VALID_DATE = date(1970, 1, 1)


# =============================================================================
# TICKER VALIDATION
# =============================================================================

def validate_ticker(value: str) -> str:
    """
    Validate and normalize a ticker symbol.

    Valid formats:
    - Standard tickers: AAPL, NVDA, MSFT
    - Share classes: BRK.B, BRK-B
    - Indices with caret: ^GSPC, ^IXIC

    Known renames are applied (FB -> META).

    Args:
        value: Raw ticker input

    Returns:
        Normalized ticker (uppercase, trimmed, renamed)

    Raises:
        ValueError: If ticker format is invalid
    """
    if not value or not value.strip():
        raise ValueError("Ticker cannot be empty")

    normalized = value.strip().upper()

    if len(normalized) > TICKER_MAX_LENGTH:
        raise ValueError(f"Ticker cannot exceed {TICKER_MAX_LENGTH} characters")

    if not TICKER_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid ticker format: '{normalized}'. "
            "Ticker must be alphanumeric, may include dots (.) or hyphens (-) "
            "or start with caret (^)"
        )

    return TICKER_RENAMES.get(normalized, normalized)


# =============================================================================
# DATE VALIDATION
# =============================================================================

def validate_date_range(start_date: date, end_date: date) -> tuple[date, date]:
    """
    Validate a [start, end) request range.

    The end date is exclusive, so it may be one day past today.

    Raises:
        ValueError: If the range is empty or starts before MIN_VALID_DATE
    """
    if start_date < MIN_VALID_DATE:
        raise ValueError(f"start date cannot be before {MIN_VALID_DATE}")

    if start_date >= end_date:
        raise ValueError("start date must be before end date")

    return start_date, end_date
