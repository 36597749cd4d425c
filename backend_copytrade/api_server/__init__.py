"""
API server package: REST interface for traders, markets, copy trades and x402 agents.

Validates request bodies, resolves reads through the fallback tiers, and
delegates writes to the gateways and the store.
"""
