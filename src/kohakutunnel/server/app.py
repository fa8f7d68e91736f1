"""
KohakuTunnel Server FastAPI Application.

Main entry point for the tunnel server.

Responsibilities:
    - WebSocket tunnel relay (any path)
    - Subscription link endpoint
    - Status page
"""

from fastapi import FastAPI, WebSocket

from kohakutunnel import __version__
from kohakutunnel.models.enums import LogLevel
from kohakutunnel.server.config import TunnelConfig, config
from kohakutunnel.server.endpoints import subscription
from kohakutunnel.server.endpoints.tunnel import tunnel_websocket_endpoint
from kohakutunnel.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


# =============================================================================
# Application Setup
# =============================================================================


def create_app(cfg: TunnelConfig | None = None) -> FastAPI:
    """
    Create the tunnel server application.

    Args:
        cfg: Configuration to serve with (defaults to the global config)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="KohakuTunnel",
        description="WebSocket to TCP tunnel server",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = cfg or config

    # WebSocket endpoint for tunnel clients (matches every path)
    @app.websocket("/{path:path}")
    async def websocket_tunnel(websocket: WebSocket):
        """WebSocket endpoint for tunnel client connections."""
        await tunnel_websocket_endpoint(websocket)

    app.include_router(subscription.router, tags=["Subscription"])
    return app


# Module-level app for `uvicorn kohakutunnel.server.app:app`
app = create_app()


# =============================================================================
# Server Entry Points
# =============================================================================


def run(cfg: TunnelConfig | None = None):
    """Run the tunnel server using uvicorn."""
    import uvicorn

    cfg = cfg or config
    cfg.validate()

    # Configure logging before starting uvicorn
    configure_logging(cfg.LOG_LEVEL, cfg.LOG_FILE)

    uvicorn_level_map = {
        LogLevel.FULL: "debug",
        LogLevel.DEBUG: "debug",
        LogLevel.INFO: "info",
        LogLevel.WARNING: "warning",
    }
    uvicorn_level = uvicorn_level_map.get(cfg.LOG_LEVEL, "info")

    logger.info(f"Starting tunnel server on {cfg.BIND_IP}:{cfg.PORT}")
    logger.info(f"UUID: {cfg.UUID}")
    if cfg.PROXY_IP:
        logger.info(f"Dialing through PROXY_IP={cfg.PROXY_IP}")
    if cfg.STRICT_UUID:
        logger.info("Strict UUID check enabled")

    uvicorn.run(
        create_app(cfg),
        host=cfg.BIND_IP,
        port=cfg.PORT,
        log_level=uvicorn_level,
        log_config=None,  # Disable uvicorn's default logging config (use loguru)
    )


def main():
    """Entry point for the tunnel server (environment configuration)."""
    config.load_from_env()
    run(config)


if __name__ == "__main__":
    main()
