"""
Persistent store: users, trader profiles, markets, trades, copy-trade
relationships and x402 agents.

SQLite by default; PostgreSQL via DATABASE_URL. All access goes through Store.
"""

from backend_copytrade.database.models import (
    Agent,
    AgentExecution,
    Base,
    CopyTrade,
    CopyTradeExecution,
    Market,
    Trade,
    Trader,
    User,
)
from backend_copytrade.database.store import FOLLOWERS, FOLLOWING, Store

__all__ = [
    "Agent",
    "AgentExecution",
    "Base",
    "CopyTrade",
    "CopyTradeExecution",
    "Market",
    "Trade",
    "Trader",
    "User",
    "FOLLOWERS",
    "FOLLOWING",
    "Store",
]
