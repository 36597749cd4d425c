"""
Shared JSON-over-HTTP client for external services.

One httpx.AsyncClient per service with process lifetime. A service with no
configured base URL is "unavailable": every call raises GatewayError so the
caller's fallback tiers take over. No retry, no backoff.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend_copytrade.config.env import mask_url
from backend_copytrade.copytrade_logging import get_logger
from backend_copytrade.core.exceptions import GatewayError

logger = get_logger(__name__)


class ServiceClient:
    """Thin JSON client; non-2xx, transport errors and malformed bodies all become GatewayError."""

    def __init__(
        self,
        name: str,
        base_url: str | None,
        *,
        timeout_sec: float = 10.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.name = name
        self.base_url = base_url
        self._client: httpx.AsyncClient | None = None
        if base_url:
            self._client = httpx.AsyncClient(
                base_url=base_url,
                timeout=httpx.Timeout(timeout_sec),
                headers=headers,
                transport=transport,
            )
            logger.info("gateway_configured", service=name, url=mask_url(base_url))
        else:
            logger.info("gateway_unconfigured", service=name)

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> Any:
        """
        Send one request and return the decoded JSON body.
        With allow_not_found, a 404 returns None instead of raising.
        """
        if self._client is None:
            raise GatewayError(f"{self.name} unavailable: base URL not configured")
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            resp = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            raise GatewayError(f"{self.name} {method} {path} failed: {e}") from e
        if allow_not_found and resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            raise GatewayError(f"{self.name} {method} {path} returned {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise GatewayError(f"{self.name} {method} {path} returned malformed JSON") from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()


def items(payload: Any, key: str) -> list[Any]:
    """Accept either a bare JSON list or {key: [...]}."""
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get(key), list):
        return payload[key]
    raise GatewayError(f"unexpected payload shape, expected list or {{{key!r}: [...]}}")


def field(payload: Any, key: str) -> Any:
    """Required field from a JSON object response."""
    if not isinstance(payload, dict) or payload.get(key) is None:
        raise GatewayError(f"response missing {key!r}")
    return payload[key]
