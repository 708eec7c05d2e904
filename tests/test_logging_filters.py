"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from ratecount.core.logging import JsonFormatter, SensitiveDataFilter, hash_key


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_credentials():
    """Ensure SensitiveDataFilter redacts API keys and Redis credentials."""

    logger, stream = _capture("test_redaction")

    logger.info(
        "test_event",
        extra={
            "api_key": "sk-secret-123",
            "redis_url": "redis://:hunter2@cache:6379/0",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "sk-secret-123" not in output
    assert "hunter2" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_subject_keys_are_logged_hashed():
    """Raw subject keys never appear; their hash does."""

    logger, stream = _capture("test_subject_key")

    logger.warning(
        "durable.write_failed",
        extra={"subject_key": "alice@example.com", "key_hash": hash_key("alice@example.com")},
    )

    record = json.loads(stream.getvalue())
    assert record["subject_key"] == "[REDACTED]"
    assert record["key_hash"] == hash_key("alice@example.com")
    assert "alice@example.com" not in stream.getvalue()


def test_hash_key_is_stable_and_short():
    assert hash_key("alice") == hash_key("alice")
    assert hash_key("alice") != hash_key("bob")
    assert len(hash_key("alice")) == 16


def test_sensitive_filter_allows_safe_fields():
    """Verify safe fields pass through unmodified."""

    logger, stream = _capture("test_safe_fields")

    logger.info(
        "safe_event",
        extra={
            "request_id": "req-123",
            "segment": "hour",
            "evicted_buckets": 4,
            "timeout_s": 1.0,
        },
    )

    record = json.loads(stream.getvalue())

    assert record["request_id"] == "req-123"
    assert record["segment"] == "hour"
    assert record["evicted_buckets"] == 4
    assert "[REDACTED]" not in stream.getvalue()


def test_sensitive_filter_redacts_nested_dicts():
    """Ensure nested sensitive fields are redacted."""

    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "authorization": "Bearer secret-token",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()

    assert "secret-token" not in output
    assert "[REDACTED]" in output
    assert "pytest" in output
