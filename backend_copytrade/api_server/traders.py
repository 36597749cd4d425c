"""
Trader routes: leaderboard, trader details, registration, stats.

Reads go live indexer (Substreams) -> store -> static mock data, with the
fall-through rules fixed per endpoint (see fallback.Tier.accept_empty).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from backend_copytrade.api_server import views
from backend_copytrade.api_server.dependencies import get_chain, get_store
from backend_copytrade.api_server.schemas import RegisterTraderRequest
from backend_copytrade.copytrade_logging import get_logger
from backend_copytrade.core import demo_data
from backend_copytrade.core.exceptions import NotFoundError
from backend_copytrade.core.fallback import Tier, resolve
from backend_copytrade.database import Store
from backend_copytrade.gateways import ChainGateway
from backend_copytrade.utils.wallet_utils import normalize_address

logger = get_logger(__name__)

router = APIRouter(prefix="/traders", tags=["traders"])


def _stored_trader_detail(store: Store, address: str) -> dict[str, Any] | None:
    row = store.get_trader_by_address(address)
    if row is None:
        return None
    history = store.recent_trades_by_user(row["user_id"], limit=10)
    return {
        "address": row["wallet_address"],
        "winRate": row["win_rate"],
        "totalTrades": row["total_trades"],
        "profitLoss": row["profit_loss"],
        "totalVolume": row["total_volume"],
        "categories": row["categories"],
        "isPublic": row["is_public"],
        "tradeHistory": [views.trade(t) for t in history],
        "categoryStats": row["category_stats"],
    }


def _stored_stats(store: Store, address: str) -> dict[str, Any] | None:
    row = store.get_trader_by_address(address)
    return views.trader_stats(row) if row else None


@router.get("/leaderboard")
async def leaderboard(
    category: str | None = None,
    limit: int = Query(50, ge=1, le=500),
    store: Store = Depends(get_store),
    chain: ChainGateway = Depends(get_chain),
) -> dict[str, Any]:
    """
    Top traders by win rate. Empty or failing indexer falls back to the store;
    an empty or failing store falls back to the fixed mock set (source="mock").
    """
    resolution = await resolve(
        "trader_leaderboard",
        [
            Tier("substreams", lambda: chain.get_trader_leaderboard(category, limit)),
            Tier(
                "cache",
                lambda: [views.leaderboard_entry(r) for r in store.list_public_traders(category, limit)],
            ),
            Tier("mock", demo_data.mock_traders),
        ],
    )
    return {
        "traders": resolution.value,
        "source": resolution.source,
        "timestamp": demo_data.iso_now(),
    }


@router.post("/register")
def register_trader(body: RegisterTraderRequest, store: Store = Depends(get_store)) -> dict[str, Any]:
    """Create or update the user and its trader profile. Last isPublic wins."""
    user = store.upsert_user(body.wallet_address, is_public=body.is_public)
    trader = store.upsert_trader_profile(user["id"], body.categories)
    logger.info("trader_registered", wallet=user["wallet_address"], is_public=user["is_public"])
    return {
        "message": "Trader registered successfully",
        "trader": {
            "id": trader["id"],
            "address": user["wallet_address"],
            "isPublic": user["is_public"],
            "categories": trader["categories"],
        },
    }


@router.get("/stats/{address}")
async def trader_stats(
    address: str,
    store: Store = Depends(get_store),
    chain: ChainGateway = Depends(get_chain),
) -> dict[str, Any]:
    """Stats for any address; unknown wallets get zeroed stats rather than 404."""
    address = normalize_address(address)
    resolution = await resolve(
        "trader_stats",
        [
            Tier("substreams", lambda: chain.get_trader_details(address)),
            Tier("cache", lambda: _stored_stats(store, address), accept_empty=True),
        ],
    )
    return resolution.value if resolution.value is not None else demo_data.zero_stats(address)


@router.get("/{address}")
async def trader_details(
    address: str,
    store: Store = Depends(get_store),
    chain: ChainGateway = Depends(get_chain),
) -> dict[str, Any]:
    """Trader detail from the indexer, else the store; absent from both is 404."""
    address = normalize_address(address)
    resolution = await resolve(
        "trader_details",
        [
            Tier("substreams", lambda: chain.get_trader_details(address)),
            Tier("cache", lambda: _stored_trader_detail(store, address), accept_empty=True),
        ],
    )
    if resolution.value is None:
        raise NotFoundError(f"trader {address} not found", public_message="Trader not found")
    return resolution.value
