# backend/counterfactual/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

Correlation ID Sources (in order of precedence):
1. X-Correlation-ID header (from client or upstream service)
2. X-Request-ID header (alternative header name)
3. Generated UUID4 if neither header is present or usable

Incoming IDs are echoed into every log line, so only short IDs made of
letters, digits and ". _ : -" are accepted; anything else is replaced by a
fresh UUID.

Implemented as plain ASGI middleware: the ID is bound with a contextvar
token around the whole downstream call and restored afterwards, and the
response header is injected on http.response.start.

Client Usage:
    curl -H "X-Correlation-ID: my-trace-123" http://localhost:8000/health
    # X-Correlation-ID: my-trace-123
"""

import logging
import re
import uuid

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from counterfactual.utils.context import reset_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

# Header names for correlation ID
CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

_MAX_CORRELATION_ID_LENGTH = 128
_CORRELATION_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:\-]+$")


def resolve_correlation_id(headers: Headers) -> str:
    """
    Pick the request's correlation ID from headers, or generate one.

    Args:
        headers: Request headers

    Returns:
        A header-provided ID if it is well formed, otherwise a new UUID4
    """
    for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
        candidate = headers.get(header, "").strip()
        if not candidate:
            continue
        if len(candidate) <= _MAX_CORRELATION_ID_LENGTH and _CORRELATION_ID_PATTERN.match(candidate):
            return candidate
        logger.debug(f"Ignoring malformed {header} header")
    return str(uuid.uuid4())


class CorrelationIdMiddleware:
    """
    ASGI middleware that binds a correlation ID to each HTTP request.

    The ID is available through get_correlation_id() for the whole request
    (including thread pool work that copies the context) and is returned
    in the X-Correlation-ID response header.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = resolve_correlation_id(Headers(scope=scope))

        async def send_with_correlation_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[CORRELATION_ID_HEADER] = correlation_id
            await send(message)

        token = set_correlation_id(correlation_id)
        try:
            await self.app(scope, receive, send_with_correlation_id)
        finally:
            reset_correlation_id(token)
