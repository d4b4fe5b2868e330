# backend/counterfactual/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The application layer (main.py) is responsible for mapping these to
appropriate HTTP responses.

The calculation engines in services/comparison never raise: every edge case
degrades to an empty/zero result. Errors only originate at the boundaries
(file ingestion and market data).

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── IngestionError
    │   ├── EmptyFileError
    │   └── MissingColumnsError
    └── MarketDataError
        ├── ProviderUnavailableError
        ├── TickerNotFoundError
        └── RateLimitError
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails.

    This is for programmatic validation errors (invalid parameters, bad date
    ranges, etc.), NOT for request body validation which is handled
    by Pydantic.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# =============================================================================
# INGESTION ERRORS
# =============================================================================


class IngestionError(ServiceError):
    """
    Base exception for brokerage export files that cannot be parsed at all.

    Row-level problems never raise; rows that cannot be interpreted are
    skipped. Only file-level problems end up here.
    """


class EmptyFileError(IngestionError):
    """Raised when a CSV has no data rows below its header."""

    def __init__(self) -> None:
        super().__init__("CSV must have a header row and at least one data row")


class MissingColumnsError(IngestionError):
    """
    Raised when a simple-format CSV lacks one of its required columns.

    Attributes:
        missing: Required column names that were not found in the header
    """

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            "CSV must have columns: ticker, date, shares (price and type are optional)"
        )


# =============================================================================
# MARKET DATA ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a market data provider is temporarily unavailable.

    Examples:
    - Network timeout
    - Server errors (500, 502, 503)

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class TickerNotFoundError(MarketDataError):
    """
    Raised when a ticker symbol is not known to the provider.

    This is NOT a retryable error.
    """

    def __init__(self, ticker: str, provider: str) -> None:
        message = f"Ticker '{ticker}' not found by {provider}"
        super().__init__(message, provider=provider)
        self.ticker = ticker


class RateLimitError(MarketDataError):
    """
    Raised when the provider's rate limit has been exceeded.

    This is a retryable error (with backoff).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


__all__ = [
    "ServiceError",
    # Validation
    "ValidationError",
    # Ingestion
    "IngestionError",
    "EmptyFileError",
    "MissingColumnsError",
    # Market Data
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
]
