"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from ratecount.core.config import AppSettings, CounterSettings, LogSettings, RedisSettings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APP_HOUR_LIMIT", "APP_SECOND_LIMIT", "APP_ENFORCE_JSON_CONTENT_TYPE"):
        monkeypatch.delenv(name, raising=False)

    app = AppSettings()
    counter = CounterSettings()

    assert app.port == 8080
    assert app.hour_limit == 10
    assert app.second_limit == 10
    assert app.shutdown_grace_seconds == 5.0
    assert counter.retention_seconds == 60
    assert counter.sweep_interval_seconds == 3.0
    assert counter.eviction_mode == "key"
    assert counter.durable_ttl_seconds == 60
    assert counter.durable_write_timeout_seconds == 1.0
    assert LogSettings().request_id_header == "X-Request-ID"


def test_env_prefixes(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COUNTER_EVICTION_MODE", "bucket")
    monkeypatch.setenv("COUNTER_RETENTION_SECONDS", "3600")
    monkeypatch.setenv("REDIS_KEY_PREFIX", "rc:")
    monkeypatch.setenv("APP_PORT", "9090")

    assert CounterSettings().eviction_mode == "bucket"
    assert CounterSettings().retention_seconds == 3600
    assert RedisSettings().key_prefix == "rc:"
    assert AppSettings().port == 9090


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("COUNTER_EVICTION_MODE", "lru"),
        ("COUNTER_RETENTION_SECONDS", "0"),
        ("COUNTER_DURABLE_WRITE_TIMEOUT_SECONDS", "0"),
    ],
)
def test_invalid_counter_settings_fail_fast(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        CounterSettings()
