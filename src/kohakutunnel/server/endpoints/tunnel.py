"""
Tunnel WebSocket endpoint.

Every WebSocket upgrade, on any path, becomes one relay session.
"""

from fastapi import WebSocket

from kohakutunnel.server.config import TunnelConfig
from kohakutunnel.server.services.inbound import WebSocketStream
from kohakutunnel.server.services.session import TunnelSession
from kohakutunnel.utils.logger import get_logger

logger = get_logger(__name__)


async def tunnel_websocket_endpoint(websocket: WebSocket) -> None:
    """Accept a tunnel WebSocket and relay it until either side closes."""
    cfg: TunnelConfig = websocket.app.state.config
    client = websocket.client
    peer = f"{client.host}:{client.port}" if client else "-"

    await websocket.accept()
    logger.debug(f"[Tunnel] WebSocket accepted from {peer} ({websocket.url.path})")

    session = TunnelSession(WebSocketStream(websocket), cfg.session_config(), peer)
    await session.run()
