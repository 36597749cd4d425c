"""
Pytest tests for /api/x402 agent endpoints: live path, demo placeholders when
x402 is unavailable, owner checks, execution history and webhook.
"""

from __future__ import annotations

import json

import pytest

from backend_copytrade.core.exceptions import StoreError

from conftest import AGENT_ADDRESS, FOLLOWER, OTHER, TRADER, TX_HASH

AGENT_BODY = {
    "followerAddress": FOLLOWER,
    "traderAddress": TRADER,
    "maxPerTrade": 5,
    "totalLimit": 100,
    "categories": ["sports"],
}


@pytest.fixture
def agent(client):
    r = client.post("/api/x402/agent/create", json=AGENT_BODY)
    assert r.status_code == 200
    return r.json()["agent"]


def test_create_agent_live(client, agent, store):
    assert agent["agentAddress"] == AGENT_ADDRESS.lower()
    assert agent["txHash"] == TX_HASH
    assert agent["followerAddress"] == FOLLOWER.lower()
    assert agent["active"] is True
    assert "demo" not in agent
    stored = store.get_agent_by_address(AGENT_ADDRESS)
    assert stored["id"] == agent["id"]
    assert stored["demo"] is False


def test_create_agent_demo_when_x402_down(client, agents, store):
    agents.fail = True
    r = client.post("/api/x402/agent/create", json=AGENT_BODY)
    assert r.status_code == 200
    data = r.json()
    assert data["message"] == "Demo agent created (x402 service unavailable)"
    assert "warning" in data
    placeholder = data["agent"]
    assert placeholder["demo"] is True
    assert placeholder["agentAddress"].startswith("0x")
    assert len(placeholder["agentAddress"]) == 42
    assert len(placeholder["txHash"]) == 66
    assert store.get_agent_by_address(placeholder["agentAddress"])["demo"] is True


def test_create_agent_rejects_self_copy_and_bad_limits(client, agents):
    body = dict(AGENT_BODY, traderAddress=FOLLOWER)
    r = client.post("/api/x402/agent/create", json=body)
    assert r.status_code == 400
    assert r.json() == {"error": "Cannot copy your own trades"}

    r = client.post("/api/x402/agent/create", json=dict(AGENT_BODY, totalLimit=0))
    assert r.status_code == 400
    assert r.json()["fields"] == ["totalLimit"]
    assert agents.calls == []


def test_list_agents_enriched_with_live_status(client, agent):
    data = client.get(f"/api/x402/agents/{FOLLOWER}").json()
    listed = data["agents"][0]
    assert listed["id"] == agent["id"]
    assert listed["traderAddress"] == TRADER.lower()
    assert listed["balance"] == "12.5"
    assert listed["executedTrades"] == 3


def test_list_agents_status_failure_keeps_stored_values(client, agent, agents):
    agents.fail = True
    listed = client.get(f"/api/x402/agents/{FOLLOWER}").json()["agents"][0]
    assert listed["active"] is True
    assert listed["balance"] == "0"
    assert listed["executedTrades"] == 0


def test_list_agents_skips_status_for_demo_agents(client, agents):
    agents.fail = True
    client.post("/api/x402/agent/create", json=AGENT_BODY)
    agents.fail = False
    agents.calls.clear()
    listed = client.get(f"/api/x402/agents/{FOLLOWER}").json()["agents"]
    assert listed[0]["demo"] is True
    assert "get_agent_status" not in agents.calls


def test_list_agents_unknown_wallet(client):
    assert client.get("/api/x402/agents/0xnobody").json() == {"agents": []}


def test_authorize_live_and_mirrored(client, agent, store):
    r = client.post(
        f"/api/x402/agent/{agent['id']}/authorize",
        json={"walletAddress": FOLLOWER, "spendingLimit": 50},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["message"] == "Agent spending authorized successfully"
    assert data["authorizationTx"] == TX_HASH
    assert data["spendingLimit"] == 50
    stored = store.get_agent_by_address(AGENT_ADDRESS)
    assert stored["authorized_amount"] == 50.0
    assert stored["authorized_at"] is not None


def test_authorize_demo_when_x402_down(client, agent, agents):
    agents.fail = True
    r = client.post(
        f"/api/x402/agent/{agent['id']}/authorize",
        json={"walletAddress": FOLLOWER, "spendingLimit": 50},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["demo"] is True
    assert data["authorizationTx"] != TX_HASH


def test_authorize_non_owner_is_404(client, agent, store):
    store.upsert_user(OTHER)
    r = client.post(
        f"/api/x402/agent/{agent['id']}/authorize",
        json={"walletAddress": OTHER, "spendingLimit": 50},
    )
    assert r.status_code == 404
    assert r.json() == {"error": "Agent not found"}


def test_toggle_pauses_agent(client, agent, store):
    r = client.post(f"/api/x402/agent/{agent['id']}/toggle", json={"walletAddress": FOLLOWER, "active": False})
    assert r.status_code == 200
    data = r.json()
    assert data["message"] == "Agent paused successfully"
    assert data["active"] is False
    assert data["toggleTx"] == TX_HASH
    assert store.get_agent_by_address(AGENT_ADDRESS)["active"] is False


def test_toggle_demo_when_x402_down(client, agent, agents, store):
    agents.fail = True
    r = client.post(f"/api/x402/agent/{agent['id']}/toggle", json={"walletAddress": FOLLOWER, "active": False})
    data = r.json()
    assert data["message"] == "Demo agent paused (x402 service unavailable)"
    assert data["demo"] is True
    assert store.get_agent_by_address(AGENT_ADDRESS)["active"] is False


def test_toggle_requires_boolean(client, agent):
    r = client.post(f"/api/x402/agent/{agent['id']}/toggle", json={"walletAddress": FOLLOWER, "active": "no"})
    assert r.status_code == 400


def test_executions_live(client, agent, agents):
    agents.executions = [{"id": 7, "marketId": 2, "copiedAmount": "3"}]
    data = client.get(f"/api/x402/agent/{agent['id']}/executions", params={"walletAddress": FOLLOWER}).json()
    assert data["source"] == "x402"
    assert data["executions"] == [{"id": 7, "marketId": 2, "copiedAmount": "3"}]
    assert "demo" not in data


def test_executions_demo_when_nothing_recorded(client, agent, agents):
    agents.fail = True
    data = client.get(f"/api/x402/agent/{agent['id']}/executions", params={"walletAddress": FOLLOWER}).json()
    assert data["source"] == "demo"
    assert data["demo"] is True
    assert len(data["executions"]) == 2


def test_webhook_records_execution_and_serves_it(client, agent, agents):
    r = client.post(
        "/api/x402/webhook/execution",
        json={
            "agentAddress": AGENT_ADDRESS.upper().replace("0X", "0x"),
            "executionData": {
                "marketId": 4,
                "originalAmount": "10",
                "copiedAmount": "2.5",
                "prediction": True,
                "txHash": "0xexec",
                "timestamp": "2026-01-02T03:04:05Z",
            },
        },
    )
    assert r.status_code == 200
    assert r.json()["message"] == "Execution recorded successfully"

    agents.fail = True
    data = client.get(f"/api/x402/agent/{agent['id']}/executions", params={"walletAddress": FOLLOWER}).json()
    assert data["source"] == "cache"
    ex = data["executions"][0]
    assert ex["marketId"] == 4
    assert ex["copiedAmount"] == "2.5"
    assert ex["txHash"] == "0xexec"


def test_webhook_unknown_agent_is_404(client):
    r = client.post(
        "/api/x402/webhook/execution",
        json={"agentAddress": "0xunknown", "executionData": {"marketId": 1}},
    )
    assert r.status_code == 404
    assert r.json() == {"error": "Agent not found"}


def _post_raw(client, url, raw):
    """Send a JSON body verbatim; the HTTP client refuses to encode Infinity itself."""
    return client.post(url, content=raw.encode(), headers={"Content-Type": "application/json"})


@pytest.mark.parametrize("field", ["maxPerTrade", "totalLimit"])
def test_create_agent_rejects_infinite_limits(client, agents, field):
    body = json.dumps(AGENT_BODY).replace(f'"{field}": {AGENT_BODY[field]}', f'"{field}": Infinity')
    r = _post_raw(client, "/api/x402/agent/create", body)
    assert r.status_code == 400
    assert r.json()["fields"] == [field]
    assert agents.calls == []


def test_authorize_rejects_infinite_spending_limit(client, agent, agents):
    agents.calls.clear()
    r = _post_raw(
        client,
        f"/api/x402/agent/{agent['id']}/authorize",
        f'{{"walletAddress": "{FOLLOWER}", "spendingLimit": Infinity}}',
    )
    assert r.status_code == 400
    assert r.json()["fields"] == ["spendingLimit"]
    assert agents.calls == []


def _broken(*args, **kwargs):
    raise StoreError("database is locked")


def test_create_agent_survives_mirror_write_failure(client, agents, store, monkeypatch):
    """Agent exists at x402; a failed local insert still answers 200 with a millisecond id."""
    monkeypatch.setattr(store, "insert_agent", _broken)
    r = client.post("/api/x402/agent/create", json=AGENT_BODY)
    assert r.status_code == 200
    data = r.json()
    assert data["message"] == "x402 copy trading agent created successfully"
    assert data["agent"]["agentAddress"] == AGENT_ADDRESS
    assert data["agent"]["txHash"] == TX_HASH
    assert data["agent"]["id"] > 1_600_000_000_000


def test_authorize_survives_mirror_update_failure(client, agent, store, monkeypatch):
    monkeypatch.setattr(store, "update_agent", _broken)
    r = client.post(
        f"/api/x402/agent/{agent['id']}/authorize",
        json={"walletAddress": FOLLOWER, "spendingLimit": 20},
    )
    assert r.status_code == 200
    assert r.json()["authorizationTx"] == TX_HASH


def test_webhook_survives_record_failure(client, agent, store, monkeypatch):
    monkeypatch.setattr(store, "insert_agent_execution", _broken)
    r = client.post(
        "/api/x402/webhook/execution",
        json={"agentAddress": AGENT_ADDRESS, "executionData": {"marketId": 1, "copiedAmount": "1"}},
    )
    assert r.status_code == 200
    assert r.json() == {"message": "Execution recorded successfully", "agentAddress": AGENT_ADDRESS.lower()}


def test_list_agents_does_not_hide_programming_errors(settings, store, chain, agents):
    """Only x402 faults fall back to stored status; anything else is a 500."""
    from fastapi.testclient import TestClient

    from backend_copytrade.api_server.server import create_app

    app = create_app(settings, store=store, chain=chain, agents=agents)
    with TestClient(app, raise_server_exceptions=False) as c:
        assert c.post("/api/x402/agent/create", json=AGENT_BODY).status_code == 200

        async def broken_status(agent_address):
            raise KeyError("active")

        agents.get_agent_status = broken_status
        r = c.get(f"/api/x402/agents/{FOLLOWER}")
    assert r.status_code == 500
    assert r.json() == {"error": "Something went wrong!"}
