from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ratecount.api.deps import get_rate_limit_service, require_key
from ratecount.core.config import settings
from ratecount.core.logging import hash_key
from ratecount.core.middleware import enforce_json_content_type
from ratecount.schemas.limits import LimitStatusResponse, MessageResponse
from ratecount.services.rate_limit_service import RateLimitService, Segment

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Limits"], dependencies=[Depends(enforce_json_content_type)])


@router.get(
    "/",
    response_model=LimitStatusResponse,
    responses={404: {"model": MessageResponse, "description": "No record for the key"}},
)
async def check_limits(
    key: Annotated[str, Depends(require_key)],
    service: Annotated[RateLimitService, Depends(get_rate_limit_service)],
) -> LimitStatusResponse | JSONResponse:
    """Report whether a key is over its hour or second quota.

    The hour quota is checked first; the second quota only when the hour
    quota holds. A key with no record in either tier gets a 404.

    Returns:
        LimitStatusResponse: Message plus the counts that were read.
    """
    hour = await service.count(key, Segment.HOUR)
    if hour is not None and hour > settings.app.hour_limit:
        logger.info(
            "limits.exceeded",
            extra={"key_hash": hash_key(key), "segment": "hour", "count": hour},
        )
        return LimitStatusResponse(message="hour limit exceeded", hour=hour)

    second = await service.count(key, Segment.SECOND)
    if second is not None and second > settings.app.second_limit:
        logger.info(
            "limits.exceeded",
            extra={"key_hash": hash_key(key), "segment": "second", "count": second},
        )
        return LimitStatusResponse(message="seconds limit exceeded", second=second, hour=hour)

    if hour is None and second is None:
        return JSONResponse(status_code=404, content={"message": "key not found"})

    return LimitStatusResponse(message="within limits", second=second, hour=hour)


@router.post("/", response_model=MessageResponse)
async def record_call(
    key: Annotated[str, Depends(require_key)],
    service: Annotated[RateLimitService, Depends(get_rate_limit_service)],
) -> MessageResponse:
    """Record one call for the key at the current second."""
    await service.inc(key)
    return MessageResponse(message="ok")
