"""Application factory for the FastAPI app.

Centralizes app construction (metadata, lifespan, middleware, handlers,
routers) so tests can build an app around their own counter tiers.

Lifespan:
  • On startup: build both counter tiers and the service, start the sweep.
  • On shutdown: stop the sweep, drain durable writes within the grace
    period, close the Redis client.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ratecount import __version__
from ratecount.adapters.counters.base import AbstractCounterStore
from ratecount.adapters.counters.factory import create_durable_counter, create_fast_counter
from ratecount.adapters.counters.in_memory import InMemoryCounterStore
from ratecount.api.routes import health_router, limits_router
from ratecount.core.config import settings
from ratecount.core.exception_handlers import setup_exception_handlers
from ratecount.core.logging import configure_logging
from ratecount.core.middleware import request_id_middleware
from ratecount.services.rate_limit_service import RateLimitService

logger = logging.getLogger(__name__)


def create_app(
    *,
    fast: InMemoryCounterStore | None = None,
    durable: AbstractCounterStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        fast: Fast tier to use instead of one built from settings.
        durable: Durable tier to use instead of the Redis tier from settings.

    Returns:
        Configured FastAPI app with lifespan, middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        fast_tier = fast or create_fast_counter()
        durable_tier = durable or create_durable_counter()
        service = RateLimitService(
            fast=fast_tier,
            durable=durable_tier,
            durable_write_timeout_seconds=settings.counter.durable_write_timeout_seconds,
        )
        app.state.fast_counter = fast_tier
        app.state.rate_limit_service = service

        fast_tier.start()
        logger.info("app.started", extra={"version": __version__, "app_env": settings.app_env})
        try:
            yield
        finally:
            try:
                await fast_tier.stop()
            finally:
                try:
                    await service.drain(settings.app.shutdown_grace_seconds)
                finally:
                    await durable_tier.aclose()
                    logger.info("app.stopped")

    app = FastAPI(
        title="ratecount",
        description=(
            "Request-rate accounting: POST /?key=... records a call, "
            "GET /?key=... reports whether the key is over its hour or second quota."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(limits_router)

    return app
