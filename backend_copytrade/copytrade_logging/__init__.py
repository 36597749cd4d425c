"""
Structured logging for Backend Copytrade.

JSON logs with timestamp, event_type and request context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_copytrade.copytrade_logging.logger import bind_request, get_logger

__all__ = ["bind_request", "get_logger"]
