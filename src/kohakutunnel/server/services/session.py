"""
Relay session for one tunnel WebSocket.

Each accepted WebSocket gets one TunnelSession. The session reads the first
binary frame as the handshake, dials the requested destination once, answers
with the response header and then relays bytes:

    client frames ──(run loop)──→ destination TCP
    client       ←──(pump task)── destination TCP

State machine:
    AWAITING_HEADER ──→ ESTABLISHED ──→ CLOSED
           └──────────────────────────→ CLOSED

Every failure is terminal for its session and ends in close(), which tears
down both sides. The client only sees the WebSocket closing.
"""

import asyncio

from kohakutunnel.models.enums import SessionState
from kohakutunnel.server.config import SessionConfig
from kohakutunnel.server.services.inbound import InboundStream
from kohakutunnel.tunnel.exceptions import (
    DialFailedError,
    HeaderError,
    IOFailureError,
)
from kohakutunnel.tunnel.protocol import Handshake, build_response, parse_header
from kohakutunnel.tunnel.routing import resolve_destination
from kohakutunnel.utils.logger import get_logger

logger = get_logger(__name__)

# Seconds to wait for the outbound socket to finish closing
OUTBOUND_CLOSE_TIMEOUT = 1.0

# Seconds the pump gets to notice teardown before it is cancelled
PUMP_EXIT_TIMEOUT = 1.0


class TunnelSession:
    """
    State machine owning one inbound stream and at most one TCP connection.

    The inbound stream is borrowed; the outbound connection is created and
    owned by the session.
    """

    def __init__(
        self,
        inbound: InboundStream,
        settings: SessionConfig,
        peer: str = "-",
    ):
        """
        Initialize a relay session.

        Args:
            inbound: Accepted client stream
            settings: Immutable tunnel settings
            peer: Client address, used in log lines
        """
        self.inbound = inbound
        self.settings = settings
        self.state = SessionState.AWAITING_HEADER
        self.handshake: Handshake | None = None
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._pump_task: asyncio.Task | None = None
        self._log_prefix = f"[Session {peer}]"

    @property
    def closed(self) -> bool:
        return self.state == SessionState.CLOSED

    # =========================================================================
    # Inbound Direction
    # =========================================================================

    async def run(self) -> None:
        """Consume client frames until either side closes."""
        try:
            while not self.closed:
                data = await self.inbound.receive()
                if data is None:
                    logger.debug(f"{self._log_prefix} Client disconnected")
                    break
                await self.handle_frame(data)
        except Exception as e:
            if self.closed:
                logger.debug(f"{self._log_prefix} Receive ended after close: {e}")
            else:
                logger.exception(f"{self._log_prefix} Unexpected error: {e}")
        finally:
            await self.close()
            await self._wait_pump()

    async def handle_frame(self, data: bytes) -> None:
        """
        Handle one binary frame from the client.

        The first frame is the handshake; later frames go to the destination
        unchanged. Frames arriving after close are dropped.
        """
        if self.state == SessionState.AWAITING_HEADER:
            await self._open(data)
        elif self.state == SessionState.ESTABLISHED:
            await self._forward(data)
        else:
            logger.debug(
                f"{self._log_prefix} Dropping {len(data)} bytes, session closed"
            )

    async def _open(self, chunk: bytes) -> None:
        settings = self.settings

        try:
            handshake = parse_header(
                chunk, user_id=settings.user_id, strict=settings.strict_user_id
            )
        except HeaderError as e:
            logger.warning(f"{self._log_prefix} Header error: {e}")
            await self.close()
            return

        if settings.user_id and handshake.user_id != settings.user_id.lower():
            logger.debug(
                f"{self._log_prefix} UUID {handshake.user_id} does not match, "
                "accepted (lenient mode)"
            )

        host, port = resolve_destination(handshake, settings.override_host)
        logger.info(
            f"{self._log_prefix} Connecting {handshake.hostname}:{handshake.port} "
            f"-> {host}:{port}"
        )

        try:
            reader, writer = await self._dial(host, port)
        except DialFailedError as e:
            logger.warning(f"{self._log_prefix} {e}")
            await self.close()
            return

        self._reader, self._writer = reader, writer
        if self.closed:
            # Torn down from elsewhere while dialing
            await self._close_outbound()
            return
        self.handshake = handshake

        try:
            await self.inbound.send(build_response(handshake.version))
        except Exception as e:
            logger.debug(
                f"{self._log_prefix} {IOFailureError('outbound->inbound', e)}"
            )
            await self.close()
            return

        payload = chunk[handshake.payload_offset :]
        if payload:
            try:
                writer.write(payload)
                await writer.drain()
            except OSError as e:
                logger.warning(
                    f"{self._log_prefix} {IOFailureError('inbound->outbound', e)}"
                )
                await self.close()
                return

        self.state = SessionState.ESTABLISHED
        self._pump_task = asyncio.create_task(self._pump())
        logger.debug(
            f"{self._log_prefix} Established, {len(payload)} early bytes forwarded"
        )

    async def _dial(
        self, host: str, port: int
    ) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        timeout = self.settings.dial_timeout
        try:
            if timeout:
                return await asyncio.wait_for(
                    asyncio.open_connection(host, port), timeout=timeout
                )
            return await asyncio.open_connection(host, port)
        except (OSError, asyncio.TimeoutError, ValueError) as e:
            raise DialFailedError(host, port, e) from e

    async def _forward(self, data: bytes) -> None:
        writer = self._writer
        if writer is None:
            return
        try:
            writer.write(data)
            await writer.drain()
        except OSError as e:
            logger.warning(
                f"{self._log_prefix} {IOFailureError('inbound->outbound', e)}"
            )
            await self.close()

    # =========================================================================
    # Outbound Direction
    # =========================================================================

    async def _pump(self) -> None:
        """Copy destination bytes back to the client until EOF or error."""
        reader = self._reader
        buffer_size = self.settings.buffer_size
        try:
            while True:
                data = await reader.read(buffer_size)
                if not data:
                    logger.debug(f"{self._log_prefix} Destination closed")
                    break
                if not self.inbound.is_open:
                    break
                await self.inbound.send(data)
        except Exception as e:
            logger.debug(
                f"{self._log_prefix} {IOFailureError('outbound->inbound', e)}"
            )
        finally:
            await self.close()

    async def _wait_pump(self) -> None:
        task = self._pump_task
        if task is None or task is asyncio.current_task():
            return
        done, _ = await asyncio.wait({task}, timeout=PUMP_EXIT_TIMEOUT)
        if not done:
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    # =========================================================================
    # Teardown
    # =========================================================================

    async def close(self) -> None:
        """
        Close both sides of the session.

        Idempotent: only the first call does any work. The outbound
        connection and the inbound stream are closed independently, so a
        failure on one does not leave the other open.
        """
        if self.closed:
            return
        self.state = SessionState.CLOSED

        await self._close_outbound()

        try:
            await self.inbound.close()
        except Exception as e:
            logger.debug(f"{self._log_prefix} Inbound close error: {e}")

        logger.info(f"{self._log_prefix} Closed")

    async def _close_outbound(self) -> None:
        writer = self._writer
        if writer is None:
            return
        self._writer = None
        try:
            writer.close()
            await asyncio.wait_for(writer.wait_closed(), timeout=OUTBOUND_CLOSE_TIMEOUT)
        except asyncio.TimeoutError:
            writer.transport.abort()
        except OSError as e:
            logger.debug(f"{self._log_prefix} Outbound close error: {e}")
