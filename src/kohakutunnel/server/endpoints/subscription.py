"""
Subscription and status endpoints.

GET /{SUB_PATH} returns the base64 subscription for this server; any other
GET returns a short plain-text status page.
"""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from kohakutunnel.server.config import TunnelConfig
from kohakutunnel.server.services.subscription import (
    build_subscription,
    host_without_port,
)
from kohakutunnel.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/{path:path}", response_class=PlainTextResponse)
async def subscription_or_status(request: Request, path: str):
    """Serve the subscription link or the status page."""
    cfg: TunnelConfig = request.app.state.config

    if path.strip("/") == cfg.SUB_PATH.strip("/"):
        host = host_without_port(request.headers.get("host"))
        logger.info(f"[Subscription] Link requested for host={host}")
        return PlainTextResponse(
            build_subscription(cfg.UUID, host, cfg.LINK_PORT),
            media_type="text/plain; charset=utf-8",
        )

    return PlainTextResponse(f"KohakuTunnel is running.\nUUID: {cfg.UUID}\n")
