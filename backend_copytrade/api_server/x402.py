"""
x402 agent routes: create, list, authorize spending, pause/resume, execution
history, execution webhook.

Unlike market writes, agent writes never fail on the x402 side: when the
service is unavailable a placeholder (random address / tx hash, demo=True) is
fabricated, mirrored locally, and returned.
"""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Depends, Query

from backend_copytrade.api_server import views
from backend_copytrade.api_server.dependencies import get_agents, get_store
from backend_copytrade.api_server.schemas import (
    AuthorizeAgentRequest,
    CreateAgentRequest,
    ToggleAgentRequest,
    WebhookExecutionRequest,
)
from backend_copytrade.copytrade_logging import get_logger
from backend_copytrade.core import demo_data
from backend_copytrade.core.exceptions import GatewayError, NotFoundError, StoreError, ValidationError
from backend_copytrade.core.fallback import Tier, resolve
from backend_copytrade.database import Store
from backend_copytrade.database.models import utcnow
from backend_copytrade.gateways import AgentGateway
from backend_copytrade.utils.wallet_utils import short_address

logger = get_logger(__name__)

router = APIRouter(prefix="/x402", tags=["x402"])


def _owned_agent(store: Store, agent_id: int, wallet: str) -> dict[str, Any]:
    user = store.get_user(wallet)
    if user is None:
        raise NotFoundError(f"user {wallet} not found", public_message="User not found")
    agent = store.get_owned_agent(agent_id, user["id"])
    if agent is None:
        raise NotFoundError(f"agent {agent_id} not owned", public_message="Agent not found")
    return agent


def _mirror_agent_update(store: Store, agent_id: int, updates: dict[str, Any]) -> None:
    try:
        store.update_agent(agent_id, updates)
    except StoreError as e:
        logger.warning("agent_mirror_update_failed", agent_id=agent_id, error=str(e))


@router.post("/agent/create")
async def create_agent(
    body: CreateAgentRequest,
    store: Store = Depends(get_store),
    agents: AgentGateway = Depends(get_agents),
) -> dict[str, Any]:
    if body.follower_address == body.trader_address:
        raise ValidationError("self copy agent", public_message="Cannot copy your own trades")

    follower = store.upsert_user(body.follower_address)
    trader = store.upsert_user(body.trader_address, is_public=True)

    demo = False
    try:
        result = await agents.create_copy_trading_agent(
            follower=body.follower_address,
            trader=body.trader_address,
            max_per_trade=body.max_per_trade,
            total_limit=body.total_limit,
            categories=body.categories,
        )
        agent_address, tx_hash = result["agentAddress"], result["txHash"]
    except GatewayError as e:
        logger.warning("x402_agent_create_failed", follower=short_address(body.follower_address), error=str(e))
        agent_address, tx_hash, demo = demo_data.fake_address(), demo_data.fake_tx_hash(), True

    try:
        record = store.insert_agent(
            follower["id"],
            trader["id"],
            agent_address,
            body.max_per_trade,
            body.total_limit,
            body.categories,
            tx_hash,
            demo=demo,
        )
        agent_id = record["id"]
        agent_address = record["agent_address"]
    except StoreError as e:
        logger.error("agent_mirror_write_failed", agent_address=agent_address, error=str(e))
        agent_id = int(time.time() * 1000)

    agent: dict[str, Any] = {
        "id": agent_id,
        "agentAddress": agent_address,
        "traderAddress": body.trader_address,
        "followerAddress": body.follower_address,
        "maxPerTrade": body.max_per_trade,
        "totalLimit": body.total_limit,
        "categories": body.categories,
        "active": True,
        "txHash": tx_hash,
    }
    if demo:
        agent["demo"] = True
        return {
            "agent": agent,
            "message": "Demo agent created (x402 service unavailable)",
            "warning": "This is a demo agent - x402 service integration pending",
        }
    logger.info("x402_agent_created", agent_id=agent_id, agent_address=agent_address)
    return {"agent": agent, "message": "x402 copy trading agent created successfully"}


@router.get("/agents/{wallet_address}")
async def list_agents(
    wallet_address: str,
    store: Store = Depends(get_store),
    agents: AgentGateway = Depends(get_agents),
) -> dict[str, Any]:
    """
    The wallet's agents, newest first, each enriched with live x402 status.
    Status calls run one after another; a failed call keeps the stored flag.
    """
    user = store.get_user(wallet_address)
    if user is None:
        return {"agents": []}

    out = []
    for agent in store.list_agents(user["id"]):
        status = {"active": agent["active"], "balance": "0", "executedTrades": 0}
        if not agent["demo"]:
            try:
                status = await agents.get_agent_status(agent["agent_address"])
            except GatewayError as e:
                logger.warning("x402_agent_status_failed", agent_id=agent["id"], error=str(e))
        out.append(
            {
                "id": agent["id"],
                "agentAddress": agent["agent_address"],
                "traderAddress": agent["trader_address"],
                "maxPerTrade": agent["max_per_trade"],
                "totalLimit": agent["total_limit"],
                "categories": agent["categories"],
                "active": status["active"],
                "balance": status["balance"],
                "executedTrades": status["executedTrades"],
                "createdAt": agent["created_at"],
                "txHash": agent["tx_hash"],
                "demo": agent["demo"],
            }
        )
    return {"agents": out}


@router.post("/agent/{agent_id}/authorize")
async def authorize_agent(
    agent_id: int,
    body: AuthorizeAgentRequest,
    store: Store = Depends(get_store),
    agents: AgentGateway = Depends(get_agents),
) -> dict[str, Any]:
    agent = _owned_agent(store, agent_id, body.wallet_address)

    demo = False
    try:
        result = await agents.authorize_agent_spending(agent["agent_address"], body.spending_limit)
        tx_hash = result["txHash"]
    except GatewayError as e:
        logger.warning("x402_authorize_failed", agent_id=agent_id, error=str(e))
        tx_hash, demo = demo_data.fake_tx_hash(), True

    _mirror_agent_update(
        store, agent_id, {"authorized_amount": body.spending_limit, "authorized_at": utcnow()}
    )

    response: dict[str, Any] = {
        "message": "Agent spending authorized successfully",
        "authorizationTx": tx_hash,
        "spendingLimit": body.spending_limit,
        "agentAddress": agent["agent_address"],
    }
    if demo:
        response["message"] = "Demo authorization completed (x402 service unavailable)"
        response["demo"] = True
    return response


@router.post("/agent/{agent_id}/toggle")
async def toggle_agent(
    agent_id: int,
    body: ToggleAgentRequest,
    store: Store = Depends(get_store),
    agents: AgentGateway = Depends(get_agents),
) -> dict[str, Any]:
    agent = _owned_agent(store, agent_id, body.wallet_address)
    verb = "activated" if body.active else "paused"

    demo = False
    try:
        result = await agents.toggle_agent(agent["agent_address"], body.active)
        tx_hash = result["txHash"]
    except GatewayError as e:
        logger.warning("x402_toggle_failed", agent_id=agent_id, error=str(e))
        tx_hash, demo = demo_data.fake_tx_hash(), True

    _mirror_agent_update(store, agent_id, {"active": body.active})

    response: dict[str, Any] = {
        "message": f"Agent {verb} successfully",
        "agentId": agent_id,
        "active": body.active,
        "toggleTx": tx_hash,
    }
    if demo:
        response["message"] = f"Demo agent {verb} (x402 service unavailable)"
        response["demo"] = True
    return response


@router.get("/agent/{agent_id}/executions")
async def agent_executions(
    agent_id: int,
    wallet_address: str = Query(..., alias="walletAddress", min_length=1),
    store: Store = Depends(get_store),
    agents: AgentGateway = Depends(get_agents),
) -> dict[str, Any]:
    """x402 history, else executions recorded by the webhook, else demo rows (demo=True)."""
    agent = _owned_agent(store, agent_id, wallet_address)
    resolution = await resolve(
        "agent_executions",
        [
            Tier("x402", lambda: agents.get_agent_executions(agent["agent_address"])),
            Tier("cache", lambda: [views.agent_execution(r) for r in store.list_agent_executions(agent_id)]),
            Tier("demo", demo_data.demo_agent_executions),
        ],
    )
    response: dict[str, Any] = {
        "agentId": agent_id,
        "agentAddress": agent["agent_address"],
        "executions": resolution.value,
        "source": resolution.source,
    }
    if resolution.source == "demo":
        response["demo"] = True
    return response


@router.post("/webhook/execution")
def execution_webhook(body: WebhookExecutionRequest, store: Store = Depends(get_store)) -> dict[str, Any]:
    """Record an execution pushed by x402. Unknown agent address is 404."""
    agent = store.get_agent_by_address(body.agent_address)
    if agent is None:
        logger.warning("x402_webhook_unknown_agent", agent_address=body.agent_address)
        raise NotFoundError(f"agent {body.agent_address} unknown", public_message="Agent not found")

    data = body.execution_data
    try:
        store.insert_agent_execution(
            agent["id"],
            market_id=data.market_id,
            original_amount=None if data.original_amount is None else str(data.original_amount),
            copied_amount=None if data.copied_amount is None else str(data.copied_amount),
            prediction=data.prediction,
            tx_hash=data.tx_hash,
            executed_at=data.timestamp,
        )
    except StoreError as e:
        logger.error("x402_webhook_record_failed", agent_id=agent["id"], error=str(e))
    return {"message": "Execution recorded successfully", "agentAddress": body.agent_address}
