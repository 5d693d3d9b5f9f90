"""Tests for /api/health."""

import babytrack.main as main


async def test_healthy_when_database_and_broker_answer(http, monkeypatch):
    async def broker_up():
        return None

    monkeypatch.setattr(main, "_check_redis", broker_up)
    resp = await http.get("/api/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["database"]["status"] == "ok"
    assert "latency_ms" in body["redis"]


async def test_degraded_when_broker_is_down(http, monkeypatch):
    async def broker_down():
        raise ConnectionError("connection refused")

    monkeypatch.setattr(main, "_check_redis", broker_down)
    resp = await http.get("/api/health")

    assert resp.status_code == 503
    body = resp.json()
    assert body["status"] == "degraded"
    assert body["redis"] == {"status": "error", "detail": "connection refused"}
    assert body["database"]["status"] == "ok"
