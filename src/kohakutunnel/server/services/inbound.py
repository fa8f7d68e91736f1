"""
Inbound stream adapters.

A relay session talks to its client through the small InboundStream
interface: receive binary frames, send binary frames, close, and report
whether the stream is still open. WebSocketStream implements it on top of a
FastAPI/Starlette WebSocket.
"""

from typing import Protocol

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from kohakutunnel.utils.logger import get_logger

logger = get_logger(__name__)


class InboundStream(Protocol):
    """Duplex frame stream from the tunnel client."""

    @property
    def is_open(self) -> bool: ...

    async def receive(self) -> bytes | None:
        """Return the next binary frame, or None once the peer has gone."""
        ...

    async def send(self, data: bytes) -> None: ...

    async def close(self) -> None: ...


class WebSocketStream:
    """InboundStream backed by an accepted WebSocket."""

    def __init__(self, ws: WebSocket, close_code: int = 1000):
        self.ws = ws
        self.close_code = close_code
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self.ws.client_state == WebSocketState.CONNECTED
            and self.ws.application_state == WebSocketState.CONNECTED
        )

    async def receive(self) -> bytes | None:
        while True:
            message = await self.ws.receive()
            if message["type"] == "websocket.disconnect":
                return None

            data = message.get("bytes")
            if data is not None:
                return data

            # Text frames carry nothing for the tunnel
            text = message.get("text")
            logger.debug(f"Ignoring text frame ({len(text or '')} chars)")

    async def send(self, data: bytes) -> None:
        await self.ws.send_bytes(data)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if (
            self.ws.client_state == WebSocketState.CONNECTED
            and self.ws.application_state == WebSocketState.CONNECTED
        ):
            await self.ws.close(code=self.close_code)
