"""
External service gateways: on-chain indexer/ledger and x402 agents.

Any failure surfaces as GatewayError; callers decide between fallback,
placeholder records, or a 500.
"""

from backend_copytrade.gateways.base import ServiceClient
from backend_copytrade.gateways.chain import ChainGateway
from backend_copytrade.gateways.x402 import AgentGateway

__all__ = ["AgentGateway", "ChainGateway", "ServiceClient"]
