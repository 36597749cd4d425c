"""
Market routes: active markets, market details, market creation, bets, categories.

On-chain state is authoritative for writes: if the ledger call fails, market
creation and bet placement fail with 500. The local mirror row written after a
successful chain call is best-effort; its failure is logged and the response
carries a locally shaped record instead.
"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, Depends, Query

from backend_copytrade.api_server import views
from backend_copytrade.api_server.dependencies import get_chain, get_store
from backend_copytrade.api_server.schemas import CreateMarketRequest, PlaceBetRequest
from backend_copytrade.copytrade_logging import get_logger
from backend_copytrade.core import demo_data
from backend_copytrade.core.exceptions import DependencyError, GatewayError, NotFoundError, StoreError
from backend_copytrade.core.fallback import Tier, resolve
from backend_copytrade.database import Store
from backend_copytrade.database.models import iso, utcnow
from backend_copytrade.gateways import ChainGateway

logger = get_logger(__name__)

router = APIRouter(prefix="/markets", tags=["markets"])


def _filter_live(markets: list[dict[str, Any]], category: str | None, limit: int) -> list[dict[str, Any]]:
    if category:
        markets = [m for m in markets if m.get("category") == category]
    return markets[:limit]


@router.get("/active")
async def active_markets(
    category: str | None = None,
    limit: int = Query(20, ge=1, le=500),
    store: Store = Depends(get_store),
    chain: ChainGateway = Depends(get_chain),
) -> dict[str, Any]:
    """Open markets: ledger -> store cache -> fixed demo set (source="demo")."""

    async def live() -> list[dict[str, Any]]:
        return _filter_live(await chain.get_active_markets(), category, limit)

    resolution = await resolve(
        "active_markets",
        [
            Tier("blockchain", live),
            Tier("cache", lambda: [views.market(m) for m in store.list_active_markets(category, limit)]),
            Tier("demo", demo_data.demo_markets),
        ],
    )
    return {
        "markets": resolution.value,
        "source": resolution.source,
        "timestamp": demo_data.iso_now(),
    }


@router.get("/categories/list")
def categories() -> list[dict[str, Any]]:
    return [dict(c) for c in demo_data.MARKET_CATEGORIES]


@router.post("/create")
async def create_market(
    body: CreateMarketRequest,
    store: Store = Depends(get_store),
    chain: ChainGateway = Depends(get_chain),
) -> dict[str, Any]:
    end_time = utcnow() + timedelta(seconds=body.duration)
    user = store.upsert_user(body.wallet_address)

    try:
        market_id = await chain.create_market(body.question, body.duration)
    except GatewayError as e:
        logger.error("market_create_chain_failed", wallet=body.wallet_address, error=str(e))
        raise DependencyError(str(e), public_message="Failed to create market on blockchain") from e

    try:
        market = views.market(
            store.insert_market(market_id, body.question, body.category, user["id"], end_time)
        )
    except StoreError as e:
        # Market exists on-chain; the mirror can be rebuilt later.
        logger.error("market_mirror_write_failed", market_id=market_id, error=str(e))
        market = {
            "id": market_id,
            "question": body.question,
            "category": body.category,
            "endTime": iso(end_time),
            "totalYes": "0",
            "totalNo": "0",
            "resolved": False,
        }
    logger.info("market_created", market_id=market_id, wallet=body.wallet_address)
    return {"marketId": market_id, "market": market}


@router.post("/{market_id}/bet")
async def place_bet(
    market_id: int,
    body: PlaceBetRequest,
    store: Store = Depends(get_store),
    chain: ChainGateway = Depends(get_chain),
) -> dict[str, Any]:
    """Body is validated (prediction must be a boolean) before any store or chain call."""
    user = store.upsert_user(body.wallet_address)

    try:
        tx_hash = await chain.place_bet(market_id, body.prediction, body.amount)
    except GatewayError as e:
        logger.error("bet_chain_failed", market_id=market_id, wallet=body.wallet_address, error=str(e))
        raise DependencyError(str(e), public_message="Failed to place bet on blockchain") from e

    try:
        trade = views.trade(
            store.insert_trade(user["id"], market_id, body.prediction, body.amount, tx_hash)
        )
    except StoreError as e:
        logger.error("trade_mirror_write_failed", market_id=market_id, tx_hash=tx_hash, error=str(e))
        trade = {
            "id": int(time.time() * 1000),
            "userId": user["id"],
            "marketId": market_id,
            "prediction": body.prediction,
            "amount": body.amount,
            "txHash": tx_hash,
            "timestamp": demo_data.iso_now(),
        }
    logger.info("bet_placed", market_id=market_id, tx_hash=tx_hash)
    return {"txHash": tx_hash, "trade": trade}


@router.get("/{market_id}")
async def market_details(
    market_id: int,
    store: Store = Depends(get_store),
    chain: ChainGateway = Depends(get_chain),
) -> dict[str, Any]:
    """Market from the ledger, else the store (absent => 404), plus its 10 latest trades."""

    def stored() -> dict[str, Any] | None:
        row = store.get_market(market_id)
        return views.market(row) if row else None

    resolution = await resolve(
        "market_details",
        [
            Tier("blockchain", lambda: chain.get_market(market_id)),
            Tier("cache", stored, accept_empty=True),
        ],
    )
    if resolution.value is None:
        raise NotFoundError(f"market {market_id} not found", public_message="Market not found")

    try:
        recent = [views.trade(t) for t in store.recent_trades(market_id, limit=10)]
    except StoreError as e:
        logger.warning("market_recent_trades_failed", market_id=market_id, error=str(e))
        recent = []
    return {
        "market": resolution.value,
        "recentTrades": recent,
        "timestamp": demo_data.iso_now(),
    }
