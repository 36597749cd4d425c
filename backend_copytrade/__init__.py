"""
Backend Copytrade: aggregation API for prediction-market copy trading.

Serves traders, markets, copy-trade relationships and x402 agents over REST.
Reads the on-chain indexer first, falls back to the relational store, and
finally to static demo data when both are unavailable.
"""

__version__ = "0.1.0"
