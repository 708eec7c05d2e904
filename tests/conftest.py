"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment before settings are imported so no local .env file
leaks into the run.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("APP_ENFORCE_JSON_CONTENT_TYPE", "true")
os.environ.setdefault("APP_HOUR_LIMIT", "10")
os.environ.setdefault("APP_SECOND_LIMIT", "10")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any  # noqa: E402

import pytest  # noqa: E402
from redis.exceptions import ConnectionError as RedisConnectionError  # noqa: E402


class FakeRedis:
    """In-memory stand-in for the five hash primitives the Redis tier uses.

    Values are stored as strings, the way a ``decode_responses=True`` client
    returns them. Set ``fail`` to make every command raise a connection error.
    """

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.ttls: dict[str, int] = {}
        self.expire_calls: list[tuple[str, int]] = []
        self.fail = False
        self.closed = False

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def exists(self, name: str) -> int:
        self._check()
        return 1 if name in self.hashes else 0

    async def hincrby(self, name: str, field: str, amount: int = 1) -> int:
        self._check()
        fields = self.hashes.setdefault(name, {})
        value = int(fields.get(field, "0")) + amount
        fields[field] = str(value)
        return value

    async def expire(self, name: str, seconds: int) -> bool:
        self._check()
        self.expire_calls.append((name, seconds))
        if name not in self.hashes:
            return False
        self.ttls[name] = seconds
        return True

    async def hget(self, name: str, field: str) -> Any:
        self._check()
        return self.hashes.get(name, {}).get(field)

    async def hgetall(self, name: str) -> dict[str, str]:
        self._check()
        return dict(self.hashes.get(name, {}))

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
