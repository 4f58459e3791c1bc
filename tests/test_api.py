"""Tests for the FastAPI server endpoints."""

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from keystroke_flow.api.server import app

PHRASE = ".tie5Roanl\n"


def _phrase_payload(start: int = 1_000, gap: int = 50) -> list[dict]:
    events = [
        {
            "timestamp": start + i * gap,
            "deltaTime": 0 if i == 0 else gap,
            "text": ch,
            "deletedChars": 0,
            "sourceId": "main.py",
        }
        for i, ch in enumerate(PHRASE)
    ]
    last = events[-1]["timestamp"]
    # A long gap closes the sample so it becomes eligible for extraction.
    events.append({"timestamp": last + 20_000, "delta_time": 20_000, "text": "x", "fileName": "main.py"})
    return events


@pytest.fixture
async def client():
    """Async test client with lifespan (startup / shutdown) fully executed."""
    async with LifespanManager(app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["scheduler_running"] is True


@pytest.mark.asyncio
async def test_initial_state(client: AsyncClient):
    resp = await client.get("/state")
    assert resp.status_code == 200
    body = resp.json()
    assert body["state"] == "FOCUSED"
    assert body["scores"]["focused"] == 1.0
    assert "durationMs" in body["features"]


@pytest.mark.asyncio
async def test_ingest_single_event(client: AsyncClient):
    payload = {"timestamp": 1_000, "delta_time": 0, "text": "a", "sourceId": "a.py"}
    resp = await client.post("/events", json=payload)
    assert resp.status_code == 202
    assert resp.json() == {"count": 1, "queued": True}


@pytest.mark.asyncio
async def test_invalid_event_rejected(client: AsyncClient):
    resp = await client.post("/events", json={"timestamp": -5, "text": "a"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_batch_then_samples_state_and_records(client: AsyncClient):
    resp = await client.post("/events/batch", params={"wait": "true"}, json=_phrase_payload())
    assert resp.status_code == 202
    assert resp.json()["count"] == len(PHRASE) + 1

    resp = await client.get("/samples")
    body = resp.json()
    assert body["closed"] == 1
    assert body["open_size"] == 1
    assert "".join(e["text"] for e in body["samples"][0]) == PHRASE
    assert body["samples"][1][0]["sourceId"] == "main.py"

    resp = await client.get("/state")
    body = resp.json()
    assert body["state"] == "THRASHING"
    assert body["features"]["events"] == len(PHRASE)

    resp = await client.post("/records/extract")
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert body["records"][0]["H.period"] == pytest.approx(45)
    assert body["records"][0]["DD.l.Return"] == pytest.approx(50)

    resp = await client.get("/records")
    body = resp.json()
    assert body["count"] == 1
    assert list(body["records"][0])[:3] == ["subject", "sessionIndex", "rep"]
