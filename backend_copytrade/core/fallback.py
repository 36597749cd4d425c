"""
Fallback resolution across data sources.

A read intent (e.g. "leaderboard", "market by id") is served by trying tiers in
fixed order: live external source, persistent store, static demo data. The
first tier that returns without raising and, unless it accepts emptiness, with
a non-empty result wins. Each tier is tried exactly once; there is no retry.

Whether an empty store result falls through is decided per endpoint by the
tier's accept_empty flag:

    resolution = await resolve("leaderboard", [
        Tier("substreams", lambda: chain.get_trader_leaderboard(category, limit)),
        Tier("cache", lambda: store.list_public_traders(category, limit)),
        Tier("mock", demo_data.mock_traders),
    ])
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

from backend_copytrade.copytrade_logging import get_logger

logger = get_logger(__name__)

Fetch = Callable[[], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class Tier:
    """One data source. fetch may be sync (store, static data) or async (gateways)."""

    source: str
    fetch: Fetch
    accept_empty: bool = False


@dataclass(frozen=True)
class Resolution:
    value: Any
    source: str


def is_empty(value: Any) -> bool:
    """None, empty list/dict/str count as empty; 0 and False do not."""
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict, str)):
        return len(value) == 0
    return False


async def _call(tier: Tier) -> Any:
    result = tier.fetch()
    if inspect.isawaitable(result):
        result = await result
    return result


async def resolve(intent: str, tiers: list[Tier]) -> Resolution:
    """
    Return the first acceptable tier result.

    A fault in any tier but the last is logged as a warning and never
    propagated. The last tier's result is returned as-is (empty or not) and
    its fault propagates to the caller.
    """
    if not tiers:
        raise ValueError("resolve() needs at least one tier")
    last = len(tiers) - 1
    for i, tier in enumerate(tiers):
        if i == last:
            value = await _call(tier)
            logger.debug("fallback_resolved", intent=intent, source=tier.source, tier=i)
            return Resolution(value=value, source=tier.source)
        try:
            value = await _call(tier)
        except Exception as e:
            logger.warning("fallback_tier_failed", intent=intent, source=tier.source, error=str(e))
            continue
        if is_empty(value) and not tier.accept_empty:
            logger.info("fallback_tier_empty", intent=intent, source=tier.source)
            continue
        logger.debug("fallback_resolved", intent=intent, source=tier.source, tier=i)
        return Resolution(value=value, source=tier.source)
    raise AssertionError("unreachable")
