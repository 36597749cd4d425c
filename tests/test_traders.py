"""
Pytest tests for /api/traders endpoints (fake chain gateway, temporary SQLite store).
"""

from __future__ import annotations

from backend_copytrade.core.demo_data import MOCK_TRADER_ADDRESSES

from conftest import TRADER


def test_register_normalizes_address_and_keeps_categories(client, store):
    r = client.post(
        "/api/traders/register",
        json={"walletAddress": "  " + TRADER + "  ", "isPublic": True, "categories": ["sports", "finance"]},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["message"] == "Trader registered successfully"
    assert data["trader"]["address"] == TRADER.lower()
    assert data["trader"]["isPublic"] is True
    assert data["trader"]["categories"] == ["sports", "finance"]
    assert store.get_user(TRADER)["wallet_address"] == TRADER.lower()


def test_register_twice_last_is_public_wins(client, store):
    client.post("/api/traders/register", json={"walletAddress": TRADER, "isPublic": True})
    r = client.post("/api/traders/register", json={"walletAddress": TRADER, "isPublic": False})
    assert r.status_code == 200
    assert r.json()["trader"]["isPublic"] is False
    assert store.get_user(TRADER)["is_public"] is False
    assert store.list_public_traders(None, 50) == []


def test_register_requires_wallet(client):
    r = client.post("/api/traders/register", json={"isPublic": True})
    assert r.status_code == 400
    assert "walletAddress" in r.json()["fields"]
    r = client.post("/api/traders/register", json={"walletAddress": "   "})
    assert r.status_code == 400


def test_leaderboard_mock_when_everything_is_down(client, chain):
    chain.fail = True
    r = client.get("/api/traders/leaderboard")
    assert r.status_code == 200
    data = r.json()
    assert data["source"] == "mock"
    assert [t["address"] for t in data["traders"]] == list(MOCK_TRADER_ADDRESSES)
    assert [t["winRate"] for t in data["traders"]] == [78.5, 65.2, 82.1]
    assert "timestamp" in data


def test_leaderboard_from_live_indexer(client, chain):
    chain.leaderboard = [{"address": "0xlive", "winRate": 90.0}]
    data = client.get("/api/traders/leaderboard").json()
    assert data["source"] == "substreams"
    assert data["traders"] == [{"address": "0xlive", "winRate": 90.0}]


def test_leaderboard_from_store_when_indexer_down(client, chain):
    chain.fail = True
    client.post("/api/traders/register", json={"walletAddress": TRADER, "categories": ["sports"]})
    data = client.get("/api/traders/leaderboard", params={"category": "sports"}).json()
    assert data["source"] == "cache"
    assert data["traders"][0]["address"] == TRADER.lower()
    assert data["traders"][0]["categories"] == ["sports"]

    # Category with no stored trader falls through to mock data
    data = client.get("/api/traders/leaderboard", params={"category": "weather"}).json()
    assert data["source"] == "mock"


def test_trader_details_live(client, chain):
    chain.traders[TRADER.lower()] = {"address": TRADER.lower(), "winRate": 71.0}
    r = client.get(f"/api/traders/{TRADER}")
    assert r.status_code == 200
    assert r.json()["winRate"] == 71.0


def test_trader_details_from_store(client, chain):
    chain.fail = True
    client.post("/api/traders/register", json={"walletAddress": TRADER, "categories": ["politics"]})
    r = client.get(f"/api/traders/{TRADER.upper()}")
    assert r.status_code == 200
    data = r.json()
    assert data["address"] == TRADER.lower()
    assert data["categories"] == ["politics"]
    assert data["tradeHistory"] == []


def test_trader_details_unknown_is_404(client, chain):
    chain.fail = True
    r = client.get("/api/traders/0xdeadbeef")
    assert r.status_code == 404
    assert r.json() == {"error": "Trader not found"}


def test_trader_stats_unknown_gets_zeroes(client, chain):
    chain.fail = True
    r = client.get("/api/traders/stats/0xDEADBEEF")
    assert r.status_code == 200
    assert r.json() == {
        "address": "0xdeadbeef",
        "winRate": 0,
        "totalTrades": 0,
        "profitLoss": 0,
        "totalVolume": 0,
        "categories": [],
    }


def test_trader_stats_from_store(client, chain):
    chain.fail = True
    client.post("/api/traders/register", json={"walletAddress": TRADER, "categories": ["sports"]})
    data = client.get(f"/api/traders/stats/{TRADER}").json()
    assert data["address"] == TRADER.lower()
    assert data["categories"] == ["sports"]
    assert data["totalTrades"] == 0
