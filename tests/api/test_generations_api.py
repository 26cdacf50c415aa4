"""
Tests for the generation round HTTP endpoints.
"""

import asyncio
import json
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from imagearena.api.app import create_app


@pytest.fixture
def client(orchestrator):
    app = create_app(orchestrator)
    with TestClient(app) as test_client:
        yield test_client


def _wait_until_settled(client: TestClient, timeout: float = 2.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        state = client.get("/api/generations").json()
        if not state["is_loading"] or time.monotonic() > deadline:
            return state
        time.sleep(0.01)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_list_providers(client):
    resp = client.get("/api/providers")

    assert resp.status_code == 200
    keys = [p["key"] for p in resp.json()["providers"]]
    assert keys == ["alpha", "beta", "gamma"]


def test_start_round_and_wait(client, endpoint):
    endpoint.behaviors = {"beta": (0.01, RuntimeError("rate limited"))}

    resp = client.post(
        "/api/generations?wait=true",
        json={"prompt": "a cat", "providers": ["alpha", "beta"], "providerToModel": {"alpha": "m1", "beta": "m2"}},
    )

    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["is_loading"] is False
    assert data["images"] == [
        {"provider": "alpha", "image": "https://images.test/alpha.png", "model": "m1"},
        {"provider": "beta", "image": None, "model": "m2"},
    ]
    assert data["errors"] == [{"provider": "beta", "message": "rate limited"}]
    assert data["failed_providers"] == ["beta"]
    assert data["timings"]["alpha"]["elapsed"] is not None
    assert data["timings"]["gamma"] is None


def test_start_round_returns_accepted(client):
    resp = client.post(
        "/api/generations",
        json={"prompt": "a cat", "providers": ["alpha"], "providerToModel": {"alpha": "m1"}},
    )

    assert resp.status_code == 202
    assert resp.json()["round_id"] == 1

    state = _wait_until_settled(client)
    assert state["is_loading"] is False
    assert state["images"][0]["image"] == "https://images.test/alpha.png"


def test_empty_providers_rejected(client):
    resp = client.post("/api/generations", json={"prompt": "a cat", "providers": []})

    assert resp.status_code == 400
    assert "At least one provider" in resp.json()["detail"]


def test_unknown_provider_rejected(client):
    resp = client.post("/api/generations", json={"prompt": "a cat", "providers": ["delta"]})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Unknown provider: delta"


def test_disabled_provider_rejected(client, registry):
    registry.get("gamma").enabled = False

    resp = client.post("/api/generations", json={"prompt": "a cat", "providers": ["gamma"]})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Provider disabled: gamma"


def test_blank_prompt_rejected(client):
    resp = client.post("/api/generations", json={"prompt": "", "providers": ["alpha"]})
    assert resp.status_code == 422


def test_reset(client):
    client.post("/api/generations?wait=true", json={"prompt": "p", "providers": ["alpha"]})

    resp = client.delete("/api/generations")

    assert resp.status_code == 200
    data = resp.json()
    assert data["images"] == []
    assert data["errors"] == []
    assert data["failed_providers"] == []
    assert data["is_loading"] is False
    assert all(value is None for value in data["timings"].values())


def test_stream_when_idle_sends_single_state(client):
    resp = client.get("/api/generations/stream")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert resp.text.count("event: state") == 1


def test_refresh_hook_wired_to_broadcaster(client, orchestrator):
    assert orchestrator.on_success == client.app.state.broadcaster.publish_refresh


def _parse_events(body: str) -> list[tuple[str, dict]]:
    events = []
    for block in body.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in block.splitlines() if not line.startswith(":"))
        if "event" in lines:
            events.append((lines["event"], json.loads(lines["data"])))
    return events


@pytest.mark.asyncio
async def test_stream_follows_round_until_settled(orchestrator, endpoint):
    alpha_gate = asyncio.Event()
    beta_gate = asyncio.Event()

    async def gated_alpha(request):
        await alpha_gate.wait()
        return "https://images.test/alpha.png"

    async def gated_beta(request):
        await beta_gate.wait()
        raise RuntimeError("rate limited")

    endpoint.behaviors = {"alpha": (0, gated_alpha), "beta": (0, gated_beta)}
    app = create_app(orchestrator)
    broadcaster = app.state.broadcaster
    transport = httpx.ASGITransport(app=app)

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        round_task = orchestrator.start_generation("a cat", ["alpha", "beta"], {"alpha": "m1", "beta": "m2"})
        stream_task = asyncio.create_task(http.get("/api/generations/stream"))

        for _ in range(200):
            if len(broadcaster) == 1:
                break
            await asyncio.sleep(0.005)
        assert len(broadcaster) == 1

        alpha_gate.set()
        for _ in range(200):
            if orchestrator.images[0].image is not None:
                break
            await asyncio.sleep(0.005)
        beta_gate.set()

        await asyncio.wait_for(round_task, timeout=2)
        resp = await asyncio.wait_for(stream_task, timeout=2)

    assert resp.status_code == 200
    events = _parse_events(resp.text)
    assert [name for name, _ in events] == ["state", "state", "refresh", "state", "state"]

    states = [data for name, data in events if name == "state"]
    assert [s["is_loading"] for s in states] == [True, True, True, False]
    assert [s["images"][0]["image"] for s in states] == [
        None,
        "https://images.test/alpha.png",
        "https://images.test/alpha.png",
        "https://images.test/alpha.png",
    ]
    assert states[1]["failed_providers"] == []
    assert states[2]["failed_providers"] == ["beta"]
    assert states[3]["errors"] == [{"provider": "beta", "message": "rate limited"}]
    assert len(broadcaster) == 0
