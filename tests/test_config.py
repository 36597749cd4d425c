"""
Tests for environment-driven settings.
"""

from __future__ import annotations

import pytest

from backend_copytrade.config import env
from backend_copytrade.config.settings import get_settings, load_settings

ENV_KEYS = (
    "COPYTRADE_DB_URL",
    "DATABASE_URL",
    "DATABASE_PATH",
    "SUBSTREAMS_URL",
    "BLOCKCHAIN_RPC_URL",
    "X402_API_URL",
    "X402_API_KEY",
    "GATEWAY_TIMEOUT_SEC",
    "FRONTEND_URL",
    "API_HOST",
    "PORT",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Blank every setting so a developer .env cannot leak in (load_dotenv never overrides)."""
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


def test_defaults(clean_env):
    s = load_settings()
    assert s.database_url == "sqlite:///copytrade.db"
    assert s.substreams_url is None
    assert s.blockchain_rpc_url is None
    assert s.x402_api_url is None
    assert s.x402_api_key is None
    assert s.gateway_timeout_sec == 10.0
    assert s.frontend_url == "http://localhost:3000"
    assert s.api_port == 5000
    assert s.log_level == "info"


def test_database_url_precedence(clean_env):
    clean_env.setenv("DATABASE_PATH", "/tmp/x.db")
    assert env.get_database_url() == "sqlite:////tmp/x.db"
    clean_env.setenv("DATABASE_URL", "postgresql://u:p@db/copytrade")
    assert env.get_database_url() == "postgresql://u:p@db/copytrade"
    clean_env.setenv("COPYTRADE_DB_URL", "sqlite:///override.db")
    assert env.get_database_url() == "sqlite:///override.db"


def test_service_urls_strip_trailing_slash(clean_env):
    clean_env.setenv("SUBSTREAMS_URL", "http://indexer:8080/")
    clean_env.setenv("X402_API_URL", "  https://x402.example  ")
    s = load_settings()
    assert s.substreams_url == "http://indexer:8080"
    assert s.x402_api_url == "https://x402.example"


def test_invalid_numbers_fall_back_to_defaults(clean_env):
    clean_env.setenv("PORT", "not-a-port")
    clean_env.setenv("GATEWAY_TIMEOUT_SEC", "soon")
    s = load_settings()
    assert s.api_port == 5000
    assert s.gateway_timeout_sec == 10.0


def test_get_settings_is_cached(clean_env):
    first = get_settings()
    clean_env.setenv("PORT", "6000")
    assert get_settings() is first
    get_settings.cache_clear()
    assert get_settings().api_port == 6000


def test_mask_url_hides_credentials():
    assert env.mask_url("postgresql://user:secret@db:5432/app?sslmode=require") == "db:5432/app"
    assert env.mask_url(None) == ""
