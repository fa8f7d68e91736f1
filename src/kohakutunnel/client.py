"""
Tunnel client helpers.

Opens a tunnel through a KohakuTunnel server with the websockets library.
Used by the `probe` CLI command to check a deployment end to end.
"""

import asyncio

import websockets

from kohakutunnel.tunnel.exceptions import TunnelError
from kohakutunnel.tunnel.protocol import build_header
from kohakutunnel.utils.logger import get_logger

logger = get_logger(__name__)


class ProbeError(TunnelError):
    """Tunnel could not be opened through the server."""

    pass


async def open_tunnel(
    url: str,
    user_id: str,
    host: str,
    port: int,
    payload: bytes = b"",
    version: int = 0,
    timeout: float = 10.0,
):
    """
    Open a tunnel to host:port through the server at url.

    Args:
        url: Server WebSocket URL (ws:// or wss://)
        user_id: UUID to put in the handshake
        host: Destination host
        port: Destination port
        payload: Early data sent in the handshake frame
        version: Protocol version byte
        timeout: Seconds to wait for the response header

    Returns:
        Tuple of (websocket, bytes that followed the response header
        in the same frame)

    Raises:
        ProbeError: Server closed the tunnel or answered unexpectedly
    """
    ws = await websockets.connect(url)
    try:
        await ws.send(build_header(user_id, host, port, version=version) + payload)
        try:
            response = await asyncio.wait_for(ws.recv(), timeout=timeout)
        except websockets.exceptions.ConnectionClosed as e:
            raise ProbeError(f"Server closed the tunnel: {e}") from e
        except asyncio.TimeoutError as e:
            raise ProbeError("Timeout waiting for response header") from e

        if isinstance(response, str) or len(response) < 2:
            raise ProbeError(f"Unexpected response: {response!r}")
        if response[0] != version:
            raise ProbeError(f"Version mismatch in response: {response[0]}")

        logger.debug(f"Tunnel to {host}:{port} opened via {url}")
        return ws, bytes(response[2 + response[1] :])
    except BaseException:
        await ws.close()
        raise


async def probe(
    url: str,
    user_id: str,
    host: str,
    port: int,
    payload: bytes = b"",
    timeout: float = 10.0,
) -> bytes:
    """
    Open a tunnel, send payload and return the first bytes answered.

    Returns:
        First chunk relayed back from the destination (may be empty)
    """
    ws, leftover = await open_tunnel(url, user_id, host, port, payload, timeout=timeout)
    try:
        if leftover or not payload:
            return leftover
        try:
            data = await asyncio.wait_for(ws.recv(), timeout=timeout)
        except websockets.exceptions.ConnectionClosed:
            return b""
        return data if isinstance(data, bytes) else data.encode()
    finally:
        await ws.close()
