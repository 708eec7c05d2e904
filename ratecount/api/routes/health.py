from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ratecount.adapters.counters.in_memory import InMemoryCounterStore
from ratecount.api.deps import get_fast_counter, get_rate_limit_service
from ratecount.schemas.limits import CounterStatsResponse
from ratecount.services.rate_limit_service import RateLimitService

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns a simple status response to verify the API is operational.
    Used by load balancers and monitoring systems to determine service health.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/stats", response_model=CounterStatsResponse)
def counter_stats(
    fast: Annotated[InMemoryCounterStore, Depends(get_fast_counter)],
    service: Annotated[RateLimitService, Depends(get_rate_limit_service)],
) -> CounterStatsResponse:
    """Fast-tier size and eviction totals plus in-flight durable writes."""

    return CounterStatsResponse(**fast.stats(), pending_durable_writes=service.pending_writes)
