"""
SQLAlchemy models for users, trader profiles, markets, trades, copy-trade
relationships and x402 agents.

Wallet addresses are stored lowercased. Nothing is hard-deleted; deactivation
flips the active column.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso(dt: datetime | None) -> str | None:
    """ISO 8601 with UTC offset. SQLite returns naive datetimes; they are UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


class User(Base):
    """One row per wallet address (unique, lowercased)."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    wallet_address = Column(String(128), unique=True, nullable=False, index=True)
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "wallet_address": self.wallet_address,
            "is_public": bool(self.is_public),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class Trader(Base):
    """Trader profile: performance aggregates for one user."""

    __tablename__ = "traders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)
    win_rate = Column(Float, nullable=False, default=0.0)
    total_trades = Column(Integer, nullable=False, default=0)
    profit_loss = Column(Float, nullable=False, default=0.0)
    total_volume = Column(Float, nullable=False, default=0.0)
    categories = Column(JSON, nullable=False, default=list)
    category_stats = Column(JSON, nullable=True)
    last_active = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "win_rate": self.win_rate,
            "total_trades": self.total_trades,
            "profit_loss": self.profit_loss,
            "total_volume": self.total_volume,
            "categories": list(self.categories or []),
            "category_stats": dict(self.category_stats or {}),
            "last_active": iso(self.last_active),
            "updated_at": iso(self.updated_at),
        }


class Market(Base):
    """Mirror of an on-chain market. id is the on-chain market id, not autoincrement."""

    __tablename__ = "markets"

    id = Column(Integer, primary_key=True, autoincrement=False)
    question = Column(String(512), nullable=False)
    category = Column(String(64), nullable=False, index=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=False, index=True)
    total_yes = Column(String(64), nullable=False, default="0")
    total_no = Column(String(64), nullable=False, default="0")
    resolved = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "category": self.category,
            "creator_id": self.creator_id,
            "end_time": iso(self.end_time),
            "total_yes": self.total_yes,
            "total_no": self.total_no,
            "resolved": bool(self.resolved),
            "created_at": iso(self.created_at),
        }


class Trade(Base):
    """A bet placed by a user on a market."""

    __tablename__ = "trades"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    market_id = Column(Integer, nullable=False, index=True)
    prediction = Column(Boolean, nullable=False)
    amount = Column(String(64), nullable=False)  # decimal string; avoids float rounding
    tx_hash = Column(String(128), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "market_id": self.market_id,
            "prediction": bool(self.prediction),
            "amount": self.amount,
            "tx_hash": self.tx_hash,
            "timestamp": iso(self.timestamp),
        }


class CopyTrade(Base):
    """Follower -> trader copy relationship."""

    __tablename__ = "copy_trades"

    id = Column(Integer, primary_key=True, autoincrement=True)
    follower_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    trader_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    categories = Column(JSON, nullable=False, default=list)
    max_trades = Column(Integer, nullable=True)
    executed_trades = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "follower_id": self.follower_id,
            "trader_id": self.trader_id,
            "amount": self.amount,
            "categories": list(self.categories or []),
            "max_trades": self.max_trades,
            "executed_trades": self.executed_trades or 0,
            "active": bool(self.active),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class CopyTradeExecution(Base):
    """One mirrored trade executed for a copy-trade relationship."""

    __tablename__ = "copy_trade_executions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    copy_trade_id = Column(Integer, ForeignKey("copy_trades.id"), nullable=False, index=True)
    market_id = Column(Integer, nullable=True)
    original_trade_id = Column(Integer, ForeignKey("trades.id"), nullable=True)
    amount = Column(String(64), nullable=True)
    prediction = Column(Boolean, nullable=True)
    tx_hash = Column(String(128), nullable=True)
    executed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "copy_trade_id": self.copy_trade_id,
            "market_id": self.market_id,
            "original_trade_id": self.original_trade_id,
            "amount": self.amount,
            "prediction": self.prediction,
            "tx_hash": self.tx_hash,
            "executed_at": iso(self.executed_at),
        }


class Agent(Base):
    """
    x402 agent: delegated, spending-limited on-chain actor copying one trader
    for one follower. demo=True marks a locally fabricated placeholder.
    """

    __tablename__ = "x402_agents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    trader_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    agent_address = Column(String(128), nullable=False, index=True)
    max_per_trade = Column(Float, nullable=False)
    total_limit = Column(Float, nullable=False)
    categories = Column(JSON, nullable=False, default=list)
    active = Column(Boolean, nullable=False, default=True)
    tx_hash = Column(String(128), nullable=True)
    authorized_amount = Column(Float, nullable=True)
    authorized_at = Column(DateTime(timezone=True), nullable=True)
    demo = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "trader_id": self.trader_id,
            "agent_address": self.agent_address,
            "max_per_trade": self.max_per_trade,
            "total_limit": self.total_limit,
            "categories": list(self.categories or []),
            "active": bool(self.active),
            "tx_hash": self.tx_hash,
            "authorized_amount": self.authorized_amount,
            "authorized_at": iso(self.authorized_at),
            "demo": bool(self.demo),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class AgentExecution(Base):
    """Execution reported by the x402 webhook. Append-only."""

    __tablename__ = "agent_executions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    agent_id = Column(Integer, ForeignKey("x402_agents.id"), nullable=False, index=True)
    market_id = Column(Integer, nullable=True)
    original_amount = Column(String(64), nullable=True)
    copied_amount = Column(String(64), nullable=True)
    prediction = Column(Boolean, nullable=True)
    tx_hash = Column(String(128), nullable=True)
    executed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "agent_id": self.agent_id,
            "market_id": self.market_id,
            "original_amount": self.original_amount,
            "copied_amount": self.copied_amount,
            "prediction": self.prediction,
            "tx_hash": self.tx_hash,
            "executed_at": iso(self.executed_at),
        }
