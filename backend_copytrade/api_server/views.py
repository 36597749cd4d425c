"""Store rows (snake_case dicts) to API payloads (camelCase)."""

from __future__ import annotations

from typing import Any


def leaderboard_entry(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "address": row["wallet_address"],
        "winRate": row["win_rate"],
        "totalTrades": row["total_trades"],
        "profitLoss": row["profit_loss"],
        "totalVolume": row["total_volume"],
        "categories": row["categories"],
        "lastActive": row["last_active"],
    }


def trader_stats(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "address": row["wallet_address"],
        "winRate": row["win_rate"] or 0,
        "totalTrades": row["total_trades"] or 0,
        "profitLoss": row["profit_loss"] or 0,
        "totalVolume": row["total_volume"] or 0,
        "categories": row["categories"],
    }


def market(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "question": row["question"],
        "category": row["category"],
        "creatorId": row["creator_id"],
        "endTime": row["end_time"],
        "totalYes": row["total_yes"],
        "totalNo": row["total_no"],
        "resolved": row["resolved"],
        "createdAt": row["created_at"],
    }


def trade(row: dict[str, Any]) -> dict[str, Any]:
    out = {
        "id": row["id"],
        "userId": row["user_id"],
        "marketId": row["market_id"],
        "prediction": row["prediction"],
        "amount": row["amount"],
        "txHash": row["tx_hash"],
        "timestamp": row["timestamp"],
    }
    if "wallet_address" in row:
        out["walletAddress"] = row["wallet_address"]
    return out


def copy_trade(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "traderAddress": row.get("trader_address"),
        "followerAddress": row.get("follower_address"),
        "amount": row["amount"],
        "categories": row["categories"],
        "maxTrades": row["max_trades"],
        "active": row["active"],
        "createdAt": row["created_at"],
        "executedTrades": row["executed_trades"],
    }


def copy_trade_execution(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "copyTradeId": row["copy_trade_id"],
        "marketId": row["market_id"],
        "amount": row["amount"],
        "prediction": row["prediction"],
        "txHash": row["tx_hash"],
        "executedAt": row["executed_at"],
        "market": row["market"],
        "originalTrade": row["original_trade"],
    }


def agent_execution(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "marketId": row["market_id"],
        "originalAmount": row["original_amount"],
        "copiedAmount": row["copied_amount"],
        "prediction": row["prediction"],
        "executedAt": row["executed_at"],
        "txHash": row["tx_hash"],
        "status": "completed",
    }
