"""
x402 agentic payments gateway: provisions spending-limited copy-trading agents
and reports their status and executions.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend_copytrade.config import Settings
from backend_copytrade.core.exceptions import GatewayError
from backend_copytrade.gateways.base import ServiceClient, field, items


class AgentGateway:
    def __init__(self, client: ServiceClient) -> None:
        self.client = client

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AgentGateway":
        headers = {"Authorization": f"Bearer {settings.x402_api_key}"} if settings.x402_api_key else None
        return cls(
            ServiceClient(
                "x402",
                settings.x402_api_url,
                timeout_sec=settings.gateway_timeout_sec,
                headers=headers,
                transport=transport,
            )
        )

    async def create_copy_trading_agent(
        self,
        follower: str,
        trader: str,
        max_per_trade: float,
        total_limit: float,
        categories: list[str],
    ) -> dict[str, str]:
        """Returns {"agentAddress", "txHash"}."""
        payload = await self.client.request(
            "POST",
            "/agents",
            json={
                "follower": follower,
                "trader": trader,
                "maxPerTrade": max_per_trade,
                "totalLimit": total_limit,
                "categories": categories,
            },
        )
        return {
            "agentAddress": str(field(payload, "agentAddress")),
            "txHash": str(field(payload, "txHash")),
        }

    async def get_agent_status(self, agent_address: str) -> dict[str, Any]:
        payload = await self.client.request("GET", f"/agents/{agent_address}/status")
        try:
            return {
                "active": bool(field(payload, "active")),
                "balance": str(payload.get("balance", "0")),
                "executedTrades": int(payload.get("executedTrades", 0)),
            }
        except (TypeError, ValueError) as e:
            raise GatewayError(f"x402 status for {agent_address} is malformed") from e

    async def authorize_agent_spending(self, agent_address: str, spending_limit: float) -> dict[str, str]:
        payload = await self.client.request(
            "POST", f"/agents/{agent_address}/authorize", json={"spendingLimit": spending_limit}
        )
        return {"txHash": str(field(payload, "txHash"))}

    async def toggle_agent(self, agent_address: str, active: bool) -> dict[str, str]:
        payload = await self.client.request(
            "POST", f"/agents/{agent_address}/toggle", json={"active": active}
        )
        return {"txHash": str(field(payload, "txHash"))}

    async def get_agent_executions(self, agent_address: str) -> list[dict[str, Any]]:
        payload = await self.client.request("GET", f"/agents/{agent_address}/executions")
        return items(payload, "executions")

    async def aclose(self) -> None:
        await self.client.aclose()
