"""
Persistent store client: SQLAlchemy-backed row operations keyed by wallet
address and numeric ids.

Uses DATABASE_URL for PostgreSQL when set; otherwise SQLite. Upserts are single
INSERT ... ON CONFLICT statements (both dialects), so each one is atomic at the
store level. Every method returns plain dicts; SQLAlchemy failures surface as
StoreError.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased, sessionmaker

from backend_copytrade.config.env import mask_url
from backend_copytrade.copytrade_logging import get_logger
from backend_copytrade.core.exceptions import StoreError, ValidationError
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
    utcnow,
)
from backend_copytrade.utils.wallet_utils import normalize_address

logger = get_logger(__name__)

FOLLOWING = "following"
FOLLOWERS = "followers"


def _trader_row(trader: Trader, user: User) -> dict[str, Any]:
    row = trader.to_dict()
    row["wallet_address"] = user.wallet_address
    row["is_public"] = bool(user.is_public)
    return row


class Store:
    """
    One engine and session factory per process. Create once (app lifespan) and
    inject; do not construct per request.
    """

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        connect_args: dict[str, Any] = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self._engine = create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)
        self._session_factory = sessionmaker(
            autoflush=False, bind=self._engine, expire_on_commit=False
        )
        logger.info("store_engine", url=mask_url(database_url))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def init_db(self) -> None:
        """Create tables if they do not exist. Safe to call on every startup."""
        try:
            Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as e:
            logger.exception("store_init_db_failed", error=str(e))
            raise StoreError(str(e)) from e
        logger.info("store_init_db", url=mask_url(self.database_url))

    def dispose(self) -> None:
        self._engine.dispose()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Single session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _insert(self, model: Any) -> Any:
        if self._engine.dialect.name == "postgresql":
            return pg_insert(model)
        return sqlite_insert(model)

    # -------------------------------------------------------------------------
    # Users and trader profiles
    # -------------------------------------------------------------------------

    def upsert_user(self, address: str, is_public: bool | None = None) -> dict[str, Any]:
        """
        Insert the wallet if new, else touch it. is_public is only written when
        given, so a later upsert without it keeps the previous value.
        """
        address = normalize_address(address)
        if not address:
            raise ValidationError("empty wallet address", public_message="Wallet address required")
        now = utcnow()
        set_: dict[str, Any] = {"updated_at": now}
        if is_public is not None:
            set_["is_public"] = bool(is_public)
        stmt = (
            self._insert(User)
            .values(
                wallet_address=address,
                is_public=bool(is_public) if is_public is not None else False,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_update(index_elements=[User.wallet_address], set_=set_)
        )
        with self.session_scope() as session:
            session.execute(stmt)
            row = session.query(User).filter(User.wallet_address == address).one()
            return row.to_dict()

    def get_user(self, address: str) -> dict[str, Any] | None:
        address = normalize_address(address)
        if not address:
            return None
        with self.session_scope() as session:
            row = session.query(User).filter(User.wallet_address == address).first()
            return row.to_dict() if row else None

    def upsert_trader_profile(self, user_id: int, categories: list[str]) -> dict[str, Any]:
        """Create or update the trader profile of a user; only categories are caller-controlled."""
        now = utcnow()
        stmt = (
            self._insert(Trader)
            .values(user_id=user_id, categories=list(categories), updated_at=now)
            .on_conflict_do_update(
                index_elements=[Trader.user_id],
                set_={"categories": list(categories), "updated_at": now},
            )
        )
        with self.session_scope() as session:
            session.execute(stmt)
            row = session.query(Trader).filter(Trader.user_id == user_id).one()
            return row.to_dict()

    def list_public_traders(self, category: str | None, limit: int) -> list[dict[str, Any]]:
        """Public traders ordered by win rate, optionally restricted to one category tag."""
        with self.session_scope() as session:
            rows = (
                session.query(Trader, User)
                .join(User, Trader.user_id == User.id)
                .filter(User.is_public.is_(True))
                .order_by(Trader.win_rate.desc(), Trader.id)
                .all()
            )
            # Category tags live in a JSON column; containment is filtered here to stay dialect-neutral.
            out = [
                _trader_row(t, u)
                for t, u in rows
                if category is None or category in (t.categories or [])
            ]
            return out[:limit]

    def get_trader_by_address(self, address: str) -> dict[str, Any] | None:
        address = normalize_address(address)
        with self.session_scope() as session:
            found = (
                session.query(Trader, User)
                .join(User, Trader.user_id == User.id)
                .filter(User.wallet_address == address)
                .first()
            )
            return _trader_row(*found) if found else None

    # -------------------------------------------------------------------------
    # Markets and trades
    # -------------------------------------------------------------------------

    def list_active_markets(
        self,
        category: str | None,
        limit: int,
        now: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Unresolved markets that have not ended yet, newest first."""
        now = now or utcnow()
        with self.session_scope() as session:
            q = (
                session.query(Market)
                .filter(Market.resolved.is_(False))
                .filter(Market.end_time >= now)
            )
            if category:
                q = q.filter(Market.category == category)
            rows = q.order_by(Market.created_at.desc(), Market.id.desc()).limit(limit).all()
            return [r.to_dict() for r in rows]

    def get_market(self, market_id: int) -> dict[str, Any] | None:
        with self.session_scope() as session:
            row = session.get(Market, market_id)
            return row.to_dict() if row else None

    def insert_market(
        self,
        market_id: int,
        question: str,
        category: str,
        creator_id: int | None,
        end_time: datetime,
    ) -> dict[str, Any]:
        with self.session_scope() as session:
            row = Market(
                id=market_id,
                question=question,
                category=category,
                creator_id=creator_id,
                end_time=end_time,
                total_yes="0",
                total_no="0",
                resolved=False,
                created_at=utcnow(),
            )
            session.add(row)
            session.flush()
            return row.to_dict()

    def insert_trade(
        self,
        user_id: int,
        market_id: int,
        prediction: bool,
        amount: str,
        tx_hash: str | None,
    ) -> dict[str, Any]:
        with self.session_scope() as session:
            row = Trade(
                user_id=user_id,
                market_id=market_id,
                prediction=prediction,
                amount=amount,
                tx_hash=tx_hash,
                timestamp=utcnow(),
            )
            session.add(row)
            session.flush()
            return row.to_dict()

    def recent_trades(self, market_id: int, limit: int = 10) -> list[dict[str, Any]]:
        """Latest trades on a market with the trader's wallet address."""
        with self.session_scope() as session:
            rows = (
                session.query(Trade, User.wallet_address)
                .join(User, Trade.user_id == User.id)
                .filter(Trade.market_id == market_id)
                .order_by(Trade.timestamp.desc(), Trade.id.desc())
                .limit(limit)
                .all()
            )
            return [{**t.to_dict(), "wallet_address": addr} for t, addr in rows]

    def recent_trades_by_user(self, user_id: int, limit: int = 10) -> list[dict[str, Any]]:
        with self.session_scope() as session:
            rows = (
                session.query(Trade)
                .filter(Trade.user_id == user_id)
                .order_by(Trade.timestamp.desc(), Trade.id.desc())
                .limit(limit)
                .all()
            )
            return [r.to_dict() for r in rows]

    # -------------------------------------------------------------------------
    # Copy-trade relationships
    # -------------------------------------------------------------------------

    def insert_copy_trade(
        self,
        follower_id: int,
        trader_id: int,
        amount: float,
        categories: list[str],
        max_trades: int | None,
    ) -> dict[str, Any]:
        now = utcnow()
        with self.session_scope() as session:
            row = CopyTrade(
                follower_id=follower_id,
                trader_id=trader_id,
                amount=amount,
                categories=list(categories),
                max_trades=max_trades,
                executed_trades=0,
                active=True,
                created_at=now,
            )
            session.add(row)
            session.flush()
            return row.to_dict()

    def list_copy_trades(self, user_id: int, direction: str) -> list[dict[str, Any]]:
        """
        Active relationships where the user is the follower (following) or the
        trader (followers), with both wallet addresses joined for display.
        """
        follower = aliased(User)
        trader = aliased(User)
        with self.session_scope() as session:
            q = (
                session.query(CopyTrade, follower.wallet_address, trader.wallet_address)
                .join(follower, CopyTrade.follower_id == follower.id)
                .join(trader, CopyTrade.trader_id == trader.id)
                .filter(CopyTrade.active.is_(True))
            )
            if direction == FOLLOWERS:
                q = q.filter(CopyTrade.trader_id == user_id)
            else:
                q = q.filter(CopyTrade.follower_id == user_id)
            rows = q.order_by(CopyTrade.id).all()
            return [
                {**ct.to_dict(), "follower_address": f_addr, "trader_address": t_addr}
                for ct, f_addr, t_addr in rows
            ]

    def get_owned_copy_trade(self, copy_trade_id: int, follower_id: int) -> dict[str, Any] | None:
        with self.session_scope() as session:
            row = (
                session.query(CopyTrade)
                .filter(CopyTrade.id == copy_trade_id, CopyTrade.follower_id == follower_id)
                .first()
            )
            return row.to_dict() if row else None

    def update_copy_trade(
        self,
        copy_trade_id: int,
        follower_id: int,
        updates: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Apply updates to the row only if follower_id owns it. None when no such owned row."""
        with self.session_scope() as session:
            row = (
                session.query(CopyTrade)
                .filter(CopyTrade.id == copy_trade_id, CopyTrade.follower_id == follower_id)
                .first()
            )
            if row is None:
                return None
            for key, value in updates.items():
                setattr(row, key, value)
            row.updated_at = utcnow()
            session.flush()
            return row.to_dict()

    def deactivate_copy_trade(self, copy_trade_id: int, follower_id: int) -> dict[str, Any] | None:
        return self.update_copy_trade(copy_trade_id, follower_id, {"active": False})

    def list_copy_trade_executions(self, copy_trade_id: int) -> list[dict[str, Any]]:
        """Executions newest first, with market question/category and the original trade."""
        with self.session_scope() as session:
            rows = (
                session.query(CopyTradeExecution, Market, Trade)
                .outerjoin(Market, CopyTradeExecution.market_id == Market.id)
                .outerjoin(Trade, CopyTradeExecution.original_trade_id == Trade.id)
                .filter(CopyTradeExecution.copy_trade_id == copy_trade_id)
                .order_by(CopyTradeExecution.executed_at.desc(), CopyTradeExecution.id.desc())
                .all()
            )
            out = []
            for ex, market, trade in rows:
                row = ex.to_dict()
                row["market"] = (
                    {"question": market.question, "category": market.category} if market else None
                )
                row["original_trade"] = (
                    {"amount": trade.amount, "prediction": bool(trade.prediction)} if trade else None
                )
                out.append(row)
            return out

    # -------------------------------------------------------------------------
    # x402 agents
    # -------------------------------------------------------------------------

    def insert_agent(
        self,
        user_id: int,
        trader_id: int,
        agent_address: str,
        max_per_trade: float,
        total_limit: float,
        categories: list[str],
        tx_hash: str | None,
        demo: bool = False,
    ) -> dict[str, Any]:
        with self.session_scope() as session:
            row = Agent(
                user_id=user_id,
                trader_id=trader_id,
                agent_address=normalize_address(agent_address),
                max_per_trade=max_per_trade,
                total_limit=total_limit,
                categories=list(categories),
                active=True,
                tx_hash=tx_hash,
                demo=demo,
                created_at=utcnow(),
            )
            session.add(row)
            session.flush()
            return row.to_dict()

    def list_agents(self, user_id: int) -> list[dict[str, Any]]:
        """Agents owned by the user, newest first, with the copied trader's wallet."""
        with self.session_scope() as session:
            rows = (
                session.query(Agent, User.wallet_address)
                .join(User, Agent.trader_id == User.id)
                .filter(Agent.user_id == user_id)
                .order_by(Agent.created_at.desc(), Agent.id.desc())
                .all()
            )
            return [{**a.to_dict(), "trader_address": addr} for a, addr in rows]

    def get_owned_agent(self, agent_id: int, user_id: int) -> dict[str, Any] | None:
        with self.session_scope() as session:
            row = (
                session.query(Agent)
                .filter(Agent.id == agent_id, Agent.user_id == user_id)
                .first()
            )
            return row.to_dict() if row else None

    def get_agent_by_address(self, agent_address: str) -> dict[str, Any] | None:
        address = normalize_address(agent_address)
        with self.session_scope() as session:
            row = session.query(Agent).filter(Agent.agent_address == address).first()
            return row.to_dict() if row else None

    def update_agent(self, agent_id: int, updates: dict[str, Any]) -> dict[str, Any] | None:
        with self.session_scope() as session:
            row = session.get(Agent, agent_id)
            if row is None:
                return None
            for key, value in updates.items():
                setattr(row, key, value)
            row.updated_at = utcnow()
            session.flush()
            return row.to_dict()

    def insert_agent_execution(
        self,
        agent_id: int,
        *,
        market_id: int | None = None,
        original_amount: str | None = None,
        copied_amount: str | None = None,
        prediction: bool | None = None,
        tx_hash: str | None = None,
        executed_at: datetime | None = None,
    ) -> dict[str, Any]:
        with self.session_scope() as session:
            row = AgentExecution(
                agent_id=agent_id,
                market_id=market_id,
                original_amount=original_amount,
                copied_amount=copied_amount,
                prediction=prediction,
                tx_hash=tx_hash,
                executed_at=executed_at or utcnow(),
            )
            session.add(row)
            session.flush()
            return row.to_dict()

    def list_agent_executions(self, agent_id: int) -> list[dict[str, Any]]:
        with self.session_scope() as session:
            rows = (
                session.query(AgentExecution)
                .filter(AgentExecution.agent_id == agent_id)
                .order_by(AgentExecution.executed_at.desc(), AgentExecution.id.desc())
                .all()
            )
            return [r.to_dict() for r in rows]
