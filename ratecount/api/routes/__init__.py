from __future__ import annotations

from ratecount.api.routes.health import router as health_router
from ratecount.api.routes.limits import router as limits_router

__all__ = ["health_router", "limits_router"]
