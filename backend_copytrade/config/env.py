"""
Environment variable loading for Backend Copytrade.

- DATABASE_URL / COPYTRADE_DB_URL: SQLAlchemy URL (PostgreSQL or SQLite)
- DATABASE_PATH: SQLite file when no URL is set (default: copytrade.db)
- SUBSTREAMS_URL: on-chain indexer (leaderboard, trader details)
- BLOCKCHAIN_RPC_URL: prediction-market ledger service (markets, bets)
- X402_API_URL / X402_API_KEY: x402 agentic payments service
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root: config is backend_copytrade/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_SQLITE_PATH = "copytrade.db"
DEFAULT_FRONTEND_URL = "http://localhost:3000"
DEFAULT_PORT = 5000
DEFAULT_GATEWAY_TIMEOUT_SEC = 10.0


def load_copytrade_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env vars."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH)


def _env(name: str) -> str:
    return (os.getenv(name) or "").strip()


def get_database_url() -> str:
    """
    Resolve the store URL.
    Order: COPYTRADE_DB_URL > DATABASE_URL > sqlite:///DATABASE_PATH > sqlite:///copytrade.db.
    """
    load_copytrade_env()
    url = _env("COPYTRADE_DB_URL") or _env("DATABASE_URL")
    if url:
        return url
    path = _env("DATABASE_PATH") or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


def get_service_url(name: str) -> str | None:
    """Return a service base URL without trailing slash, or None when not configured."""
    load_copytrade_env()
    url = _env(name)
    return url.rstrip("/") or None


def get_str(name: str, default: str | None = None) -> str | None:
    load_copytrade_env()
    return _env(name) or default


def get_float(name: str, default: float) -> float:
    load_copytrade_env()
    raw = _env(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def get_int(name: str, default: int) -> int:
    load_copytrade_env()
    raw = _env(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def mask_url(url: str | None) -> str:
    """Hide credentials and query string for logging."""
    if not url:
        return ""
    return url.split("?")[0].split("@")[-1]
