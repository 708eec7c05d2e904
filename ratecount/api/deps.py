from __future__ import annotations

from typing import Annotated

from fastapi import Query, Request

from ratecount.adapters.counters.in_memory import InMemoryCounterStore
from ratecount.core.errors import ValidationAppError
from ratecount.services.rate_limit_service import RateLimitService


def get_rate_limit_service(request: Request) -> RateLimitService:
    """Return the service built by the app lifespan."""
    return request.app.state.rate_limit_service


def get_fast_counter(request: Request) -> InMemoryCounterStore:
    return request.app.state.fast_counter


def require_key(
    key: Annotated[str, Query(description="Rate-limited subject, e.g. an API consumer id")] = "",
) -> str:
    """Read the ``key`` query parameter, rejecting empty values."""
    if not key:
        raise ValidationAppError(
            code="empty_key",
            message="Empty keys are not allowed",
            details={"hint": "Pass the subject as ?key=<value>"},
        )
    return key
