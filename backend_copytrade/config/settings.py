"""
Application settings and environment configuration.

Typed, immutable settings (store URL, service URLs, API bind, CORS origin)
built once from the environment and shared by the API server, store and gateways.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass

from backend_copytrade.config import env


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration. Unset service URLs mean the service is unavailable."""

    database_url: str
    substreams_url: str | None
    blockchain_rpc_url: str | None
    x402_api_url: str | None
    x402_api_key: str | None
    gateway_timeout_sec: float
    frontend_url: str
    api_host: str
    api_port: int
    log_level: str


def load_settings() -> Settings:
    """Build Settings from the current environment (.env included)."""
    env.load_copytrade_env()
    return Settings(
        database_url=env.get_database_url(),
        substreams_url=env.get_service_url("SUBSTREAMS_URL"),
        blockchain_rpc_url=env.get_service_url("BLOCKCHAIN_RPC_URL"),
        x402_api_url=env.get_service_url("X402_API_URL"),
        x402_api_key=env.get_str("X402_API_KEY"),
        gateway_timeout_sec=env.get_float("GATEWAY_TIMEOUT_SEC", env.DEFAULT_GATEWAY_TIMEOUT_SEC),
        frontend_url=env.get_service_url("FRONTEND_URL") or env.DEFAULT_FRONTEND_URL,
        api_host=env.get_str("API_HOST", "0.0.0.0"),
        api_port=env.get_int("PORT", env.DEFAULT_PORT),
        log_level=env.get_str("LOG_LEVEL", "info").lower(),
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the current application settings (cached for the process).

    Tests that change env vars call get_settings.cache_clear() first.
    """
    return load_settings()
