"""Redis counter tier.

Each subject key maps to one Redis hash whose fields are bucket timestamps
and whose values are counts. The whole hash gets a TTL on its first write,
so keys nobody touches any more expire on their own.
"""

from __future__ import annotations

import logging
import re

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ratecount.adapters.counters.base import AbstractCounterStore
from ratecount.core.config import RedisSettings
from ratecount.core.errors import StorageAppError, counter_not_found
from ratecount.core.logging import hash_key

logger = logging.getLogger(__name__)

_TIER = "redis"
_COUNT_RE = re.compile(r"[0-9]+")


def create_redis_client(redis_settings: RedisSettings) -> Redis:
    """Build an asyncio Redis client from settings.

    The client keeps its own connection pool and is safe to share across
    concurrent tasks.
    """

    return Redis.from_url(
        redis_settings.url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=redis_settings.socket_timeout_seconds,
        socket_timeout=redis_settings.socket_timeout_seconds,
    )


def _parse_count(raw: str | bytes, *, bucket: str) -> int:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    # ASCII digits only: int() would also take signs, spaces and underscores
    if not _COUNT_RE.fullmatch(raw):
        raise StorageAppError(
            code="storage_bad_value",
            message="Durable counter holds a value that is not a non-negative integer",
            details={"tier": _TIER, "bucket": bucket},
        )
    return int(raw)


class RedisCounterStore(AbstractCounterStore):
    """Durable tier backed by Redis hashes.

    Failures are not retried here; they surface as ``StorageAppError`` and
    the caller decides what to do with them.
    """

    def __init__(
        self,
        client: Redis,
        *,
        ttl_seconds: int = 60,
        key_prefix: str = "",
        owns_client: bool = False,
    ) -> None:
        """Initialize the Redis counter.

        Args:
            client: Shared asyncio Redis client.
            ttl_seconds: Expiry set on a key when its first bucket is written.
            key_prefix: Namespace prepended to every subject key.
            owns_client: Close ``client`` on ``aclose()``.

        Raises:
            ValueError: If ttl_seconds is invalid.
        """
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        self._client = client
        self._ttl = ttl_seconds
        self._prefix = key_prefix
        self._owns_client = owns_client

    def _name(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _storage_error(self, op: str, key: str, exc: RedisError) -> StorageAppError:
        logger.warning(
            "durable.redis_error",
            extra={
                "operation": op,
                "key_hash": hash_key(key),
                "error_type": type(exc).__name__,
            },
        )
        return StorageAppError(
            code="storage_unavailable",
            message=f"Durable counter {op} failed",
            details={"tier": _TIER, "backend_error": str(exc)},
        )

    async def inc(self, key: str, bucket: int) -> None:
        name = self._name(key)
        try:
            # Not atomic with the increment: concurrent first writers may
            # both set the TTL, or neither if the key appears in between.
            existed = await self._client.exists(name) == 1
            await self._client.hincrby(name, str(bucket), 1)
            if not existed:
                await self._client.expire(name, self._ttl)
        except RedisError as exc:
            raise self._storage_error("inc", key, exc) from exc

    async def count(self, key: str, bucket: int) -> int:
        field = str(bucket)
        try:
            raw = await self._client.hget(self._name(key), field)
        except RedisError as exc:
            raise self._storage_error("count", key, exc) from exc

        if raw is None:
            raise counter_not_found(_TIER)
        return _parse_count(raw, bucket=field)

    async def count_all(self, key: str) -> int:
        try:
            fields = await self._client.hgetall(self._name(key))
        except RedisError as exc:
            raise self._storage_error("count_all", key, exc) from exc

        if not fields:
            raise counter_not_found(_TIER)
        return sum(_parse_count(raw, bucket=field) for field, raw in fields.items())

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
