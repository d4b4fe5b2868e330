# backend/counterfactual/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)

Run locally:
    uvicorn counterfactual.main:app --reload --app-dir backend
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from counterfactual.config import settings
from counterfactual.middleware import CorrelationIdMiddleware, limiter, rate_limit_exceeded_handler
from counterfactual.routers import comparison_router, market_data_router, upload_router
from counterfactual.schemas.errors import ErrorDetail, ValidationErrorDetail
from counterfactual.services.constants import RATE_LIMIT_HEALTH
from counterfactual.services.exceptions import (
    IngestionError,
    MarketDataError,
    MissingColumnsError,
    ProviderUnavailableError,
    RateLimitError,
    ServiceError,
    TickerNotFoundError,
    ValidationError,
)
from counterfactual.utils import get_correlation_id, setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging(settings.log_level, settings.log_format)

# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Compare a real portfolio against the same cash invested in an index",
    version="0.1.0",
    debug=settings.debug,
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================
# Origins are configured via CORS_ORIGINS environment variable

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter

app.add_middleware(SlowAPIMiddleware)

# Outermost, so every log line of the request (rate limiting included)
# carries the correlation ID
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service exceptions carry no HTTP knowledge; the mapping lives here.
# Starlette picks the most specific handler along the exception's MRO.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


def _error_response(
        status_code: int,
        error: str,
        message: str,
        details: dict | None = None,
        headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the standard ErrorDetail body, stamped with the correlation ID."""
    body = ErrorDetail(
        error=error,
        message=message,
        details=details,
        correlation_id=get_correlation_id(),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return _error_response(
        400,
        "ValidationError",
        str(exc),
        details={"field": exc.field} if exc.field else None,
    )


@app.exception_handler(IngestionError)
async def ingestion_error_handler(request: Request, exc: IngestionError) -> JSONResponse:
    """Handle CSV files that cannot be parsed at all (400)."""
    logger.warning(f"Ingestion error ({type(exc).__name__}): {exc}")
    details = None
    if isinstance(exc, MissingColumnsError):
        details = {"missing": exc.missing}
    return _error_response(400, type(exc).__name__, str(exc), details=details)


@app.exception_handler(TickerNotFoundError)
async def ticker_not_found_handler(request: Request, exc: TickerNotFoundError) -> JSONResponse:
    """Handle ticker not found on market data provider (404)."""
    logger.warning(f"Ticker not found on provider: {exc.ticker}")
    return _error_response(404, "TickerNotFoundError", str(exc), details={"ticker": exc.ticker})


@app.exception_handler(ProviderUnavailableError)
async def provider_unavailable_handler(request: Request, exc: ProviderUnavailableError) -> JSONResponse:
    """Handle market data provider unavailable (503)."""
    logger.error(f"Provider unavailable: {exc}")
    return _error_response(503, "ProviderUnavailableError", str(exc))


@app.exception_handler(RateLimitError)
async def rate_limit_handler(request: Request, exc: RateLimitError) -> JSONResponse:
    """Handle the provider's rate limit (429)."""
    logger.warning(f"Provider rate limit exceeded: {exc}")
    headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
    return _error_response(
        429,
        "RateLimitError",
        str(exc),
        details={"retry_after": exc.retry_after} if exc.retry_after else None,
        headers=headers,
    )


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
    """Handle generic market data errors (500)."""
    logger.error(f"Market data error: {exc}")
    return _error_response(500, "MarketDataError", str(exc))


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return _error_response(500, "ServiceError", str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions with consistent error format.

    Converts the default {"detail": "..."} format to our standard
    ErrorDetail format for API consistency. Registered on the Starlette
    base class so routing 404s and 405s are covered too.
    """
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        413: "PayloadTooLargeError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    error_type = error_types.get(exc.status_code, "HTTPError")

    return _error_response(
        exc.status_code,
        error_type,
        str(exc.detail) if exc.detail else "An error occurred",
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle Pydantic validation errors with consistent format.

    Converts the default 422 validation error to our ValidationErrorDetail format.
    """
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(
            message="Request validation failed",
            details=errors,
            correlation_id=get_correlation_id(),
        ).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(comparison_router)  # /comparison/*
app.include_router(market_data_router)  # /market-data/*
app.include_router(upload_router)  # /upload/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request):
    """
    Health check endpoint.

    The service keeps no database, so health is the process plus its
    configuration. Yahoo Finance is not probed: an outage only degrades
    comparisons (failed_tickers), it never makes the service unhealthy.
    """
    return {
        "status": "healthy",
        "app": settings.app_name,
        "environment": settings.environment,
        "benchmark": settings.benchmark_ticker,
    }


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """
    Kubernetes liveness probe endpoint.

    Returns HTTP 200 if the application is running.
    This check should ALWAYS succeed if the process is alive.
    """
    return {"status": "alive"}
