"""Factory functions for creating counter tiers from settings."""

from ratecount.adapters.counters.in_memory import InMemoryCounterStore
from ratecount.adapters.counters.redis_store import RedisCounterStore, create_redis_client
from ratecount.core.config import settings


def create_fast_counter() -> InMemoryCounterStore:
    """Instantiate the in-process tier.

    Reads configuration from ratecount.core.config.settings (Pydantic Settings).
    The background sweep is not started here; the app lifespan starts it
    once an event loop is running.

    Returns:
        InMemoryCounterStore: Configured fast tier.
    """
    return InMemoryCounterStore(
        retention_seconds=settings.counter.retention_seconds,
        sweep_interval_seconds=settings.counter.sweep_interval_seconds,
        eviction_mode=settings.counter.eviction_mode,
    )


def create_durable_counter() -> RedisCounterStore:
    """Instantiate the Redis tier with its own client.

    No connection is opened until the first command.

    Returns:
        RedisCounterStore: Durable tier that closes its client on ``aclose()``.
    """
    return RedisCounterStore(
        create_redis_client(settings.redis),
        ttl_seconds=settings.counter.durable_ttl_seconds,
        key_prefix=settings.redis.key_prefix,
        owns_client=True,
    )
