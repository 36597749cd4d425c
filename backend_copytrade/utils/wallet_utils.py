"""Wallet address helpers."""

from __future__ import annotations


def normalize_address(address: str | None) -> str:
    """Strip and lowercase a wallet address; addresses are case-insensitive keys."""
    return (address or "").strip().lower()


def short_address(address: str) -> str:
    """Truncated form for log lines."""
    return address[:10] + "..." if len(address) > 10 else address
