"""
HTTP middleware: request logging, security headers, CORS.

- One structured http_request log line per request (method, path, status, duration).
- request_id taken from X-Request-ID or generated, bound to every log line of the
  request and echoed back in the response header.
- Conservative security headers on every response.
- CORS restricted to the configured frontend origin.
"""

from __future__ import annotations

import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from backend_copytrade.config import Settings
from backend_copytrade.copytrade_logging import bind_request, get_logger

logger = get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
}


async def log_requests(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
    bind_request(request_id, method=request.method, path=request.url.path)
    t0 = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("http_request_failed", duration_ms=round((time.perf_counter() - t0) * 1000, 2))
        raise
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "http_request",
        status=response.status_code,
        duration_ms=round((time.perf_counter() - t0) * 1000, 2),
    )
    return response


async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


def install_middleware(app: FastAPI, settings: Settings) -> None:
    """Order matters: the last added runs first, so CORS wraps everything."""
    app.middleware("http")(security_headers)
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
