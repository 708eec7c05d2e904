"""Counter tiers - a fast in-process store and a durable Redis store."""

from ratecount.adapters.counters.base import AbstractCounterStore
from ratecount.adapters.counters.in_memory import InMemoryCounterStore
from ratecount.adapters.counters.redis_store import RedisCounterStore, create_redis_client

__all__ = [
    "AbstractCounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "create_redis_client",
]
