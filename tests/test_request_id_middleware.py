from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from ratecount.adapters.counters.in_memory import InMemoryCounterStore
from ratecount.adapters.counters.redis_store import RedisCounterStore
from ratecount.core.app_factory import create_app


@pytest.fixture
def client(fake_redis):
    app = create_app(
        fast=InMemoryCounterStore(sweep_interval_seconds=3600),
        durable=RedisCounterStore(fake_redis),
    )
    with TestClient(app) as test_client:
        yield test_client


def test_preserves_incoming_request_id_header(client):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert isinstance(generated, str)
    assert len(generated) > 0

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None


def test_error_body_carries_request_id(client):
    resp = client.get("/", params={"key": ""}, headers={"X-Request-ID": "req-err-1"})

    assert resp.status_code == 400
    assert resp.json()["error"]["request_id"] == "req-err-1"
