# backend/counterfactual/middleware/rate_limit.py
"""
Rate limiting for API protection.

Comparison runs fan out to Yahoo Finance once per ticker, so unthrottled
clients can exhaust the provider's (undocumented) quota for everyone.
Limits per endpoint type live in services/constants.py.

Key by: Client IP address (forwarded headers only from trusted proxies)
Storage: In-memory (single instance)

Usage:
    from counterfactual.middleware.rate_limit import limiter
    from counterfactual.services.constants import RATE_LIMIT_COMPARISON

    @router.post("")
    @limiter.limit(RATE_LIMIT_COMPARISON)
    def compare(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from counterfactual.config import settings
from counterfactual.schemas.errors import ErrorDetail
from counterfactual.services.constants import RATE_LIMIT_DEFAULT
from counterfactual.utils.context import get_correlation_id

logger = logging.getLogger(__name__)

# Used when the exceeded limit does not expose its window
DEFAULT_RETRY_AFTER_SECONDS = 60


def _is_trusted_proxy(request: Request) -> bool:
    """
    Check if the immediate client is a trusted proxy.

    Forwarded headers are client-controlled; they are only believed when
    the TCP peer is a known proxy (or trust_proxy_headers is set).
    """
    if settings.trust_proxy_headers:
        return True
    return get_remote_address(request) in settings.trusted_proxy_ips


def _get_client_ip(request: Request) -> str:
    """
    Extract the client IP used as the rate limit key.

    Returns:
        First X-Forwarded-For entry or X-Real-IP behind a trusted proxy,
        otherwise the direct peer address
    """
    if _is_trusted_proxy(request):
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    return get_remote_address(request)


# =============================================================================
# LIMITER INSTANCE
# =============================================================================

limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=settings.rate_limit_enabled,
)


# =============================================================================
# RATE LIMIT EXCEEDED HANDLER
# =============================================================================

def _retry_after_seconds(exc: RateLimitExceeded) -> int:
    """Length of the exceeded limit's window, in seconds."""
    limit = getattr(exc, "limit", None)
    if limit is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    return int(limit.limit.get_expiry())


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Answer 429 in the standard error shape, with a Retry-After header.

    Args:
        request: The request that exceeded the rate limit
        exc: The RateLimitExceeded exception

    Returns:
        JSONResponse with 429 status and error details
    """
    retry_after = _retry_after_seconds(exc)
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"

    logger.warning(f"Rate limit exceeded for {_get_client_ip(request)} on {request.url.path}: {limit_info}")

    body = ErrorDetail(
        error="RateLimitError",
        message=f"Too many requests. {limit_info}",
        details={"retry_after": retry_after},
        correlation_id=get_correlation_id(),
    )
    return JSONResponse(
        status_code=429,
        content=body.model_dump(),
        headers={"Retry-After": str(retry_after)},
    )
