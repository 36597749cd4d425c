"""
Static demo datasets: the last fallback tier when neither the live source nor
the store has anything to show. Timestamps are computed at call time.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

MOCK_TRADER_ADDRESSES = (
    "0x1234567890123456789012345678901234567890",
    "0x0987654321098765432109876543210987654321",
    "0x1111111111111111111111111111111111111111",
)

MARKET_CATEGORIES: list[dict[str, Any]] = [
    {"id": "sports", "name": "Sports", "count": 15},
    {"id": "politics", "name": "Politics", "count": 8},
    {"id": "finance", "name": "Finance", "count": 12},
    {"id": "weather", "name": "Weather", "count": 5},
    {"id": "entertainment", "name": "Entertainment", "count": 7},
    {"id": "technology", "name": "Technology", "count": 9},
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_now() -> str:
    return utc_now().isoformat()


def fake_hex(n_bytes: int) -> str:
    """0x-prefixed random hex, used for placeholder addresses (20 bytes) and tx hashes (32 bytes)."""
    return "0x" + secrets.token_hex(n_bytes)


def fake_address() -> str:
    return fake_hex(20)


def fake_tx_hash() -> str:
    return fake_hex(32)


def mock_traders() -> list[dict[str, Any]]:
    now = iso_now()
    return [
        {
            "address": MOCK_TRADER_ADDRESSES[0],
            "winRate": 78.5,
            "totalTrades": 45,
            "profitLoss": 1250.75,
            "totalVolume": 5000,
            "categories": ["sports", "politics"],
            "lastActive": now,
        },
        {
            "address": MOCK_TRADER_ADDRESSES[1],
            "winRate": 65.2,
            "totalTrades": 32,
            "profitLoss": 890.25,
            "totalVolume": 3200,
            "categories": ["finance", "sports"],
            "lastActive": now,
        },
        {
            "address": MOCK_TRADER_ADDRESSES[2],
            "winRate": 82.1,
            "totalTrades": 28,
            "profitLoss": 1580.50,
            "totalVolume": 4100,
            "categories": ["politics"],
            "lastActive": now,
        },
    ]


def demo_markets() -> list[dict[str, Any]]:
    now = utc_now()
    created = now.isoformat()
    return [
        {
            "id": 0,
            "question": "Will Lakers win their next game?",
            "category": "sports",
            "endTime": (now + timedelta(hours=1)).isoformat(),
            "totalYes": "150.5",
            "totalNo": "89.2",
            "resolved": False,
            "createdAt": created,
        },
        {
            "id": 1,
            "question": "Will Bitcoin hit $100k by end of month?",
            "category": "finance",
            "endTime": (now + timedelta(days=7)).isoformat(),
            "totalYes": "89.7",
            "totalNo": "110.3",
            "resolved": False,
            "createdAt": created,
        },
        {
            "id": 2,
            "question": "Will it rain tomorrow in New York?",
            "category": "weather",
            "endTime": (now + timedelta(days=1)).isoformat(),
            "totalYes": "45.2",
            "totalNo": "67.8",
            "resolved": False,
            "createdAt": created,
        },
    ]


def demo_agent_executions() -> list[dict[str, Any]]:
    now = utc_now()
    return [
        {
            "id": 1,
            "marketId": 0,
            "originalTrader": MOCK_TRADER_ADDRESSES[0],
            "copiedAmount": "25.5",
            "prediction": True,
            "executedAt": (now - timedelta(hours=1)).isoformat(),
            "txHash": fake_tx_hash(),
            "status": "completed",
        },
        {
            "id": 2,
            "marketId": 1,
            "originalTrader": MOCK_TRADER_ADDRESSES[0],
            "copiedAmount": "18.2",
            "prediction": False,
            "executedAt": (now - timedelta(hours=2)).isoformat(),
            "txHash": fake_tx_hash(),
            "status": "completed",
        },
    ]


def zero_stats(address: str) -> dict[str, Any]:
    """Stats shape for a wallet nobody has seen."""
    return {
        "address": address,
        "winRate": 0,
        "totalTrades": 0,
        "profitLoss": 0,
        "totalVolume": 0,
        "categories": [],
    }
