"""
Copy-trade relationship routes.

Ownership is enforced by the query predicate: a row is fetched or mutated only
under (id, follower_id). A row owned by someone else is indistinguishable from a
missing one, so both answer 404.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Body, Depends, Query

from backend_copytrade.api_server import views
from backend_copytrade.api_server.dependencies import get_store
from backend_copytrade.api_server.schemas import (
    CreateCopyTradeRequest,
    UpdateCopyTradeRequest,
    WalletBody,
)
from backend_copytrade.copytrade_logging import get_logger
from backend_copytrade.core.exceptions import NotFoundError, ValidationError
from backend_copytrade.database import FOLLOWING, Store
from backend_copytrade.utils.wallet_utils import normalize_address

logger = get_logger(__name__)

router = APIRouter(prefix="/copy-trades", tags=["copy-trades"])


def _caller_id(store: Store, wallet: str) -> int:
    user = store.get_user(wallet)
    if user is None:
        raise NotFoundError(f"user {wallet} not found", public_message="User not found")
    return user["id"]


@router.post("")
def create_copy_trade(body: CreateCopyTradeRequest, store: Store = Depends(get_store)) -> dict[str, Any]:
    if body.follower_address == body.trader_address:
        raise ValidationError("self copy-trade", public_message="Cannot copy your own trades")

    follower = store.upsert_user(body.follower_address)
    # A trader being copied is public from now on.
    trader = store.upsert_user(body.trader_address, is_public=True)
    row = store.insert_copy_trade(
        follower["id"], trader["id"], body.amount, body.categories, body.max_trades
    )
    logger.info(
        "copy_trade_created",
        copy_trade_id=row["id"],
        follower=follower["wallet_address"],
        trader=trader["wallet_address"],
    )
    row["follower_address"] = follower["wallet_address"]
    row["trader_address"] = trader["wallet_address"]
    return {"copyTrade": views.copy_trade(row)}


@router.get("/user/{address}")
def list_user_copy_trades(
    address: str,
    direction: Literal["following", "followers"] = Query(FOLLOWING, alias="type"),
    store: Store = Depends(get_store),
) -> dict[str, Any]:
    """Active relationships of a wallet. Unknown wallet is an empty list, not 404."""
    user = store.get_user(address)
    if user is None:
        return {"copyTrades": []}
    rows = store.list_copy_trades(user["id"], direction)
    return {"copyTrades": [views.copy_trade(r) for r in rows]}


@router.put("/{copy_trade_id}")
def update_copy_trade(
    copy_trade_id: int,
    body: UpdateCopyTradeRequest,
    store: Store = Depends(get_store),
) -> dict[str, Any]:
    follower_id = _caller_id(store, body.wallet_address)
    updated = store.update_copy_trade(copy_trade_id, follower_id, body.updates())
    if updated is None:
        raise NotFoundError(f"copy trade {copy_trade_id} not owned", public_message="Copy trade not found")
    logger.info("copy_trade_updated", copy_trade_id=copy_trade_id)
    return {
        "copyTrade": {
            "id": updated["id"],
            "amount": updated["amount"],
            "categories": updated["categories"],
            "maxTrades": updated["max_trades"],
            "active": updated["active"],
            "updatedAt": updated["updated_at"],
        }
    }


@router.delete("/{copy_trade_id}")
def stop_copy_trade(
    copy_trade_id: int,
    body: WalletBody | None = Body(None),
    wallet_address: str | None = Query(None, alias="walletAddress"),
    store: Store = Depends(get_store),
) -> dict[str, Any]:
    """Deactivate (never delete). Caller wallet comes from the JSON body or ?walletAddress."""
    wallet = body.wallet_address if body is not None else normalize_address(wallet_address)
    if not wallet:
        raise ValidationError("missing wallet", public_message="Wallet address required")
    follower_id = _caller_id(store, wallet)
    updated = store.deactivate_copy_trade(copy_trade_id, follower_id)
    if updated is None:
        raise NotFoundError(f"copy trade {copy_trade_id} not owned", public_message="Copy trade not found")
    logger.info("copy_trade_stopped", copy_trade_id=copy_trade_id)
    return {"message": "Copy trading stopped successfully", "copyTradeId": updated["id"]}


@router.get("/{copy_trade_id}/executions")
def copy_trade_executions(
    copy_trade_id: int,
    wallet_address: str = Query(..., alias="walletAddress", min_length=1),
    store: Store = Depends(get_store),
) -> dict[str, Any]:
    follower_id = _caller_id(store, wallet_address)
    if store.get_owned_copy_trade(copy_trade_id, follower_id) is None:
        raise NotFoundError(f"copy trade {copy_trade_id} not owned", public_message="Copy trade not found")
    rows = store.list_copy_trade_executions(copy_trade_id)
    return {
        "executions": [views.copy_trade_execution(r) for r in rows],
        "copyTradeId": copy_trade_id,
    }
