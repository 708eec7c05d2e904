from __future__ import annotations

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement returned by write endpoints."""

    message: str = Field(..., description="Outcome of the request", examples=["ok"])


class LimitStatusResponse(BaseModel):
    """Quota state of one key.

    A count is ``None`` when no tier holds a record for that segment.
    """

    message: str = Field(
        ...,
        description="hour limit exceeded | seconds limit exceeded | within limits",
    )
    second: int | None = Field(None, description="Calls recorded in the current second", ge=0)
    hour: int | None = Field(None, description="Calls recorded in the retained window", ge=0)


class CounterStatsResponse(BaseModel):
    """Operational view of the fast tier and pending durable writes."""

    keys: int = Field(..., ge=0)
    buckets: int = Field(..., ge=0)
    evictions: int = Field(..., ge=0)
    retention_seconds: int = Field(..., ge=1)
    pending_durable_writes: int = Field(..., ge=0)
