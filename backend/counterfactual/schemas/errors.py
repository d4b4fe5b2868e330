# backend/counterfactual/schemas/errors.py
"""
Pydantic schemas for error bodies.

Every handler in main.py answers with one of these, so a client parses a
single shape whatever failed. The correlation ID of the request is echoed
so a user-reported error can be matched to server logs.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Body of every non-2xx response except request validation (422)."""

    error: str = Field(
        ...,
        description="Exception class or error code (e.g. 'TickerNotFoundError')"
    )
    message: str = Field(..., description="Human-readable explanation")
    details: dict | None = Field(
        default=None,
        description="Structured context such as ticker, provider or field"
    )
    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID, also sent as X-Correlation-ID"
    )


class ValidationErrorDetail(BaseModel):
    """422 body: one entry per invalid request field."""

    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(..., description="Field errors as reported by pydantic")
    correlation_id: str | None = None
