"""
FastAPI server: copy-trading aggregation API.

Mounts the trader, market, copy-trade and x402 routers under /api. The store
and gateway clients are created once in the lifespan and injected into handlers
via Depends. Every error leaves as {"error": <public message>}; fault detail is
logged server-side only.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend_copytrade import __version__
from backend_copytrade.api_server.copy_trades import router as copy_trades_router
from backend_copytrade.api_server.markets import router as markets_router
from backend_copytrade.api_server.middleware import install_middleware
from backend_copytrade.api_server.traders import router as traders_router
from backend_copytrade.api_server.x402 import router as x402_router
from backend_copytrade.config import Settings, get_settings
from backend_copytrade.copytrade_logging import get_logger
from backend_copytrade.core import demo_data
from backend_copytrade.core.exceptions import CopyTradeError
from backend_copytrade.database import Store
from backend_copytrade.gateways import AgentGateway, ChainGateway

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Exception handlers
# -----------------------------------------------------------------------------


def copytrade_error_handler(request: Request, exc: CopyTradeError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_dependency_error", error=str(exc), error_class=type(exc).__name__)
    else:
        logger.info("request_rejected", status=exc.status_code, error=str(exc))
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or missing fields are 400; only field names are echoed back."""
    fields = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        if loc:
            fields.append(".".join(loc))
    logger.info("request_invalid", fields=fields)
    return JSONResponse(status_code=400, content={"error": "Invalid request", "fields": fields})


def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "Route not found"})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_unhandled_error", error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Something went wrong!"})


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    *,
    store: Store | None = None,
    chain: ChainGateway | None = None,
    agents: AgentGateway | None = None,
) -> FastAPI:
    """
    Build the ASGI app. Handles passed in are used as-is and left open on
    shutdown; handles created here are closed by the lifespan.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.store = store or Store(settings.database_url)
        app.state.chain = chain or ChainGateway.from_settings(settings)
        app.state.agents = agents or AgentGateway.from_settings(settings)
        app.state.store.init_db()
        logger.info(
            "api_started",
            substreams=bool(settings.substreams_url),
            blockchain=bool(settings.blockchain_rpc_url),
            x402=bool(settings.x402_api_url),
        )

        yield

        if chain is None:
            await app.state.chain.aclose()
        if agents is None:
            await app.state.agents.aclose()
        if store is None:
            app.state.store.dispose()
        logger.info("api_stopped")

    app = FastAPI(
        title="Copy Trading Backend API",
        description="Traders, markets, copy-trade relationships and x402 agents with on-chain fallback.",
        version=__version__,
        lifespan=lifespan,
    )
    install_middleware(app, settings)

    app.add_exception_handler(CopyTradeError, copytrade_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(traders_router, prefix="/api")
    app.include_router(markets_router, prefix="/api")
    app.include_router(copy_trades_router, prefix="/api")
    app.include_router(x402_router, prefix="/api")

    @app.get("/api/health", tags=["health"])
    def health() -> dict[str, Any]:
        """Liveness probe: API is up."""
        return {
            "status": "OK",
            "message": "Copy Trading Backend is running!",
            "timestamp": demo_data.iso_now(),
        }

    return app


app = create_app()
