"""
On-chain gateway: Substreams indexer (traders) and prediction-market ledger
service (markets, bets).

Reads are best-effort: callers wrap them in fallback tiers. Writes
(create_market, place_bet) are authoritative: a GatewayError here fails the
request.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend_copytrade.config import Settings
from backend_copytrade.core.exceptions import GatewayError
from backend_copytrade.gateways.base import ServiceClient, field, items


class ChainGateway:
    """Live source for traders and markets."""

    def __init__(
        self,
        indexer: ServiceClient,
        ledger: ServiceClient,
    ) -> None:
        self.indexer = indexer
        self.ledger = ledger

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ChainGateway":
        return cls(
            indexer=ServiceClient(
                "substreams",
                settings.substreams_url,
                timeout_sec=settings.gateway_timeout_sec,
                transport=transport,
            ),
            ledger=ServiceClient(
                "blockchain",
                settings.blockchain_rpc_url,
                timeout_sec=settings.gateway_timeout_sec,
                transport=transport,
            ),
        )

    # Indexer

    async def get_trader_leaderboard(self, category: str | None, limit: int) -> list[dict[str, Any]]:
        payload = await self.indexer.request(
            "GET", "/traders/leaderboard", params={"category": category, "limit": limit}
        )
        return items(payload, "traders")

    async def get_trader_details(self, address: str) -> dict[str, Any] | None:
        """None when the indexer does not know the address."""
        return await self.indexer.request("GET", f"/traders/{address}", allow_not_found=True)

    # Ledger

    async def get_active_markets(self) -> list[dict[str, Any]]:
        payload = await self.ledger.request("GET", "/markets/active")
        return items(payload, "markets")

    async def get_market(self, market_id: int) -> dict[str, Any] | None:
        return await self.ledger.request("GET", f"/markets/{market_id}", allow_not_found=True)

    async def create_market(self, question: str, duration: int) -> int:
        """Create the market on-chain and return its id."""
        payload = await self.ledger.request(
            "POST", "/markets", json={"question": question, "duration": duration}
        )
        try:
            return int(field(payload, "marketId"))
        except (TypeError, ValueError) as e:
            raise GatewayError("blockchain returned a non-integer marketId") from e

    async def place_bet(self, market_id: int, prediction: bool, amount: str) -> str:
        """Submit the bet transaction and return its hash."""
        payload = await self.ledger.request(
            "POST",
            f"/markets/{market_id}/bets",
            json={"prediction": prediction, "amount": amount},
        )
        return str(field(payload, "txHash"))

    async def aclose(self) -> None:
        await self.indexer.aclose()
        await self.ledger.aclose()
