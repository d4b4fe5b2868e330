# backend/counterfactual/config.py
"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation:
- ENVIRONMENT: Runtime mode (development, test, production)
- LOG_LEVEL / LOG_FORMAT: Logging verbosity and output format
- BENCHMARK_TICKER: Index bought by the counterfactual portfolio
- MARKET_TIMEZONE / MARKET_CLOSE_HOUR: Market clock for date ranges
- MARKET_DATA_*: Provider timeout, fetch parallelism and cache size

Configuration is validated on application startup. Invalid configuration
will raise a ValueError with a descriptive message.

Usage:
    from counterfactual.config import settings

    benchmark = settings.benchmark_ticker
"""
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Find the .env file in project root (parent of backend/)
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "WARN", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables:
        - ENVIRONMENT: Runtime environment (development, test, production)
        - APP_NAME: Application name (default: "Counterfactual Portfolio Analyzer")
        - DEBUG: Enable debug mode (default: False)
        - LOG_LEVEL: Logging level (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")

    Market settings (optional, with sensible defaults):
        - BENCHMARK_TICKER: Index ticker for the counterfactual (default: SPY)
        - MARKET_TIMEZONE: Reference time zone of the market clock
        - MARKET_CLOSE_HOUR: Hour at which the day's close is published (0-23)
        - MARKET_DATA_TIMEOUT: Provider timeout in seconds
        - MARKET_DATA_MAX_WORKERS: Threads used for per-ticker fetches
        - PRICE_CACHE_MAX_ENTRIES: Bounded size of the price cache
    """

    # Environment mode
    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment (development, test, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format (text for humans, json for aggregation)"
    )

    # Optional - safe defaults
    app_name: str = "Counterfactual Portfolio Analyzer"
    debug: bool = False

    # =========================================================================
    # BENCHMARK & MARKET CLOCK
    # =========================================================================
    benchmark_ticker: str = Field(
        default="SPY",
        min_length=1,
        description="Index ticker the counterfactual portfolio invests in"
    )
    market_timezone: str = Field(
        default="America/New_York",
        description="IANA time zone of the reference market clock"
    )
    market_close_hour: int = Field(
        default=16,
        ge=0,
        le=23,
        description="Local hour at or after which today's close is available"
    )

    # =========================================================================
    # MARKET DATA
    # =========================================================================
    market_data_timeout: int = Field(
        default=10,
        ge=1,
        le=120,
        description="Market data provider timeout in seconds"
    )
    market_data_max_workers: int = Field(
        default=8,
        ge=1,
        le=32,
        description="Worker threads used to fetch tickers in parallel"
    )
    price_cache_max_entries: int = Field(
        default=512,
        ge=1,
        description="Maximum ticker/date-range entries kept in the price cache"
    )

    # =========================================================================
    # CORS
    # =========================================================================
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Allowed CORS origins (comma-separated in env var)"
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow credentials in CORS requests"
    )
    cors_allow_methods: list[str] = Field(
        default=["*"],
        description="Allowed HTTP methods for CORS"
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        description="Allowed HTTP headers for CORS"
    )

    # =========================================================================
    # RATE LIMITING
    # =========================================================================
    rate_limit_enabled: bool = Field(
        default=True,
        description="Apply per-client request limits"
    )
    trust_proxy_headers: bool = Field(
        default=False,
        description="Trust X-Forwarded-For from any client (only behind a trusted load balancer)"
    )
    trusted_proxy_ips: list[str] = Field(
        default=["127.0.0.1"],
        description="Proxy addresses whose forwarded headers are trusted"
    )

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_market_config(self) -> "Settings":
        """
        Validate values that pydantic cannot check by type alone.

        Rules:
        - log_level must be a standard logging level name
        - market_timezone must be a known IANA zone
        - benchmark_ticker is normalized to uppercase
        """
        if self.log_level.upper().strip() not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid LOG_LEVEL: '{self.log_level}'. "
                f"Valid levels are: {', '.join(sorted(_VALID_LOG_LEVELS))}"
            )

        try:
            ZoneInfo(self.market_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(
                f"Invalid MARKET_TIMEZONE: '{self.market_timezone}'. "
                "Use an IANA zone name such as 'America/New_York'."
            )

        object.__setattr__(self, "benchmark_ticker", self.benchmark_ticker.strip().upper())
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


# Create single instance
settings = Settings()
