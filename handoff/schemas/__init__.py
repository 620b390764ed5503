"""Pydantic schemas for request/response validation."""

from handoff.schemas.common import ErrorResponse, HealthResponse

__all__ = [
    "HealthResponse",
    "ErrorResponse",
]
