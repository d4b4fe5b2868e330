# backend/counterfactual/services/constants.py
"""
Centralized constants for the Counterfactual services.

This module provides a single source of truth for the business constants
used across the application: rounding precision, market clock defaults,
ingestion vocabularies and rate limits.

Usage:
    from counterfactual.services.constants import (
        CURRENCY_PRECISION,
        DEFAULT_BENCHMARK_TICKER,
        RATE_LIMIT_DEFAULT,
    )
"""

from decimal import Decimal


# =============================================================================
# NUMERIC PRECISION
# =============================================================================

ZERO: Decimal = Decimal("0")
ONE: Decimal = Decimal("1")
HUNDRED: Decimal = Decimal("100")

# Money and percentage outputs are rounded to cents / hundredths of a percent
CURRENCY_PRECISION: Decimal = Decimal("0.01")

# Share counts in the per-stock breakdown keep fractional-share precision
SHARE_PRECISION: Decimal = Decimal("0.000001")


# =============================================================================
# BENCHMARK & MARKET CLOCK
# =============================================================================

# The index the counterfactual "invested instead" portfolio buys
DEFAULT_BENCHMARK_TICKER: str = "SPY"

# Market clock used to decide whether today's close has been published
DEFAULT_MARKET_TIMEZONE: str = "America/New_York"
DEFAULT_MARKET_CLOSE_HOUR: int = 16

# Lookback used when there are no trades to anchor the date range
DEFAULT_LOOKBACK_YEARS: int = 1


# =============================================================================
# INGESTION VOCABULARY
# =============================================================================

# Ticker renames applied by every brokerage parser
TICKER_RENAMES: dict[str, str] = {
    "FB": "META",
}

# Money market funds reported as positions by Fidelity (cash equivalents)
MONEY_MARKET_TICKERS: frozenset[str] = frozenset({"FDRXX", "SPAXX"})

# Robinhood transaction codes recognised when filtering export rows
ROBINHOOD_TRANS_CODES: tuple[str, ...] = (
    "Buy", "Sell", "SPL", "ACH", "CDIV", "SCAP", "LCAP", "INT",
    "ADR", "OEXP", "OASGN", "OEXCS", "Gold", "SLIP", "MA", "NC",
)

# Fidelity action prefixes recognised when filtering export rows
FIDELITY_ACTION_PREFIXES: tuple[str, ...] = (
    "YOU BOUGHT",
    "YOU SOLD",
    "REINVESTMENT",
    "DIVIDEND RECEIVED",
    "Contributions",
    "Electronic Funds Transfer",
    "TRANSFERRED FROM TO BROKERAGE",
)

# Maximum accepted upload size (5 MB)
MAX_UPLOAD_FILE_SIZE_BYTES: int = 5 * 1024 * 1024


# =============================================================================
# MARKET DATA SETTINGS
# =============================================================================

# Default timeout for market data provider calls
EXTERNAL_API_TIMEOUT_SECONDS: int = 10

# Worker threads used to fetch tickers in parallel
DEFAULT_FETCH_MAX_WORKERS: int = 8

# Entries kept in the per-service price cache
PRICE_CACHE_MAX_ENTRIES: int = 512


# =============================================================================
# RATE LIMITING
# =============================================================================
# Format: "<count>/<period>" as understood by slowapi / limits

# Default for read endpoints
RATE_LIMIT_DEFAULT: str = "100/minute"

# Comparison runs fan out to the market data provider for every ticker
RATE_LIMIT_COMPARISON: str = "10/minute"

# Pure calculations over caller-supplied series (CPU only)
RATE_LIMIT_CALCULATE: str = "60/minute"

# Single-ticker market data lookups
RATE_LIMIT_MARKET_DATA: str = "30/minute"

# CSV parsing and merging
RATE_LIMIT_UPLOAD: str = "20/minute"

# Health checks (monitoring systems poll frequently)
RATE_LIMIT_HEALTH: str = "300/minute"
