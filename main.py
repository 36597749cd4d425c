"""
Main entrypoint: copy-trading API server.

Env: DATABASE_URL, SUBSTREAMS_URL, BLOCKCHAIN_RPC_URL, X402_API_URL, FRONTEND_URL,
API_HOST, PORT, LOG_LEVEL. Unset service URLs run the API in fallback/demo mode.

Equivalent: uvicorn backend_copytrade.api_server.app:app --host 0.0.0.0 --port 5000
"""

# Configure structured JSON logging before other imports that may log
from backend_copytrade.copytrade_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Run the FastAPI server in the main thread."""
    import uvicorn

    from backend_copytrade.api_server.app import app
    from backend_copytrade.config import get_settings

    settings = get_settings()
    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        health=f"http://localhost:{settings.api_port}/api/health",
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
