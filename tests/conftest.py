"""
Pytest fixtures for copy-trading backend tests. Uses a temporary SQLite store
and in-memory fake gateways, so no external service is ever contacted.
"""

from __future__ import annotations

from typing import Any

import pytest

from backend_copytrade.config import Settings
from backend_copytrade.core.exceptions import GatewayError

FOLLOWER = "0xAAAA000000000000000000000000000000000001"
TRADER = "0xBBBB000000000000000000000000000000000002"
OTHER = "0xCCCC000000000000000000000000000000000003"
AGENT_ADDRESS = "0xA9E0000000000000000000000000000000000042"
TX_HASH = "0x" + "ab" * 32


class FakeChain:
    """Stands in for ChainGateway. fail=True makes every call raise GatewayError."""

    def __init__(self) -> None:
        self.fail = False
        self.leaderboard: list[dict[str, Any]] = []
        self.traders: dict[str, dict[str, Any]] = {}
        self.markets: list[dict[str, Any]] = []
        self.next_market_id = 100
        self.calls: list[str] = []

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if self.fail:
            raise GatewayError(f"chain down ({name})")

    async def get_trader_leaderboard(self, category, limit):
        self._check("get_trader_leaderboard")
        return list(self.leaderboard)

    async def get_trader_details(self, address):
        self._check("get_trader_details")
        return self.traders.get(address)

    async def get_active_markets(self):
        self._check("get_active_markets")
        return list(self.markets)

    async def get_market(self, market_id):
        self._check("get_market")
        return next((m for m in self.markets if m["id"] == market_id), None)

    async def create_market(self, question, duration):
        self._check("create_market")
        market_id = self.next_market_id
        self.next_market_id += 1
        return market_id

    async def place_bet(self, market_id, prediction, amount):
        self._check("place_bet")
        return TX_HASH

    async def aclose(self) -> None:
        pass


class FakeAgents:
    """Stands in for AgentGateway."""

    def __init__(self) -> None:
        self.fail = False
        self.status = {"active": True, "balance": "12.5", "executedTrades": 3}
        self.executions: list[dict[str, Any]] = []
        self.calls: list[str] = []

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if self.fail:
            raise GatewayError(f"x402 down ({name})")

    async def create_copy_trading_agent(self, follower, trader, max_per_trade, total_limit, categories):
        self._check("create_copy_trading_agent")
        return {"agentAddress": AGENT_ADDRESS, "txHash": TX_HASH}

    async def get_agent_status(self, agent_address):
        self._check("get_agent_status")
        return dict(self.status)

    async def authorize_agent_spending(self, agent_address, spending_limit):
        self._check("authorize_agent_spending")
        return {"txHash": TX_HASH}

    async def toggle_agent(self, agent_address, active):
        self._check("toggle_agent")
        return {"txHash": TX_HASH}

    async def get_agent_executions(self, agent_address):
        self._check("get_agent_executions")
        return list(self.executions)

    async def aclose(self) -> None:
        pass


def make_settings(database_url: str = "sqlite://", **overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "database_url": database_url,
        "substreams_url": None,
        "blockchain_rpc_url": None,
        "x402_api_url": None,
        "x402_api_key": None,
        "gateway_timeout_sec": 1.0,
        "frontend_url": "http://localhost:3000",
        "api_host": "127.0.0.1",
        "api_port": 5000,
        "log_level": "info",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(f"sqlite:///{tmp_path / 'copytrade.db'}")


@pytest.fixture
def store(settings):
    """Fresh SQLite store per test, tables created."""
    from backend_copytrade.database import Store

    s = Store(settings.database_url)
    s.init_db()
    yield s
    s.dispose()


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def agents():
    return FakeAgents()


@pytest.fixture
def app(settings, store, chain, agents):
    from backend_copytrade.api_server.server import create_app

    return create_app(settings, store=store, chain=chain, agents=agents)


@pytest.fixture
def client(app):
    """FastAPI TestClient with the lifespan running."""
    from fastapi.testclient import TestClient

    with TestClient(app) as c:
        yield c
