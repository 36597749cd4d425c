"""
ASGI application entrypoint.

Run with: uvicorn backend_copytrade.api_server.app:app --host 0.0.0.0 --port 5000
"""

from backend_copytrade.api_server.server import app

__all__ = ["app"]
