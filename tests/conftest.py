"""Shared helpers for tunnel tests."""

import asyncio
import socketserver
import threading

import pytest
from loguru import logger

USER_ID = "a2056d0d-c98e-4aeb-9aab-37f64edd5710"
OTHER_USER_ID = "00000000-1111-2222-3333-444444444444"


class FakeInbound:
    """In-memory InboundStream: frames are fed by the test."""

    def __init__(self):
        self.sent: list[bytes] = []
        self.close_calls = 0
        self._open = True
        self._frames: asyncio.Queue = asyncio.Queue()

    @property
    def is_open(self) -> bool:
        return self._open

    def feed(self, data: bytes) -> None:
        self._frames.put_nowait(data)

    def disconnect(self) -> None:
        self._open = False
        self._frames.put_nowait(None)

    async def receive(self) -> bytes | None:
        return await self._frames.get()

    async def send(self, data: bytes) -> None:
        if not self._open:
            raise RuntimeError("inbound stream closed")
        self.sent.append(bytes(data))

    async def close(self) -> None:
        self.close_calls += 1
        self._open = False
        self._frames.put_nowait(None)


class TcpServer:
    """Local destination server recording what it receives."""

    def __init__(
        self,
        echo: bool = True,
        close_on_connect: bool = False,
        greeting: bytes = b"",
    ):
        self.echo = echo
        self.close_on_connect = close_on_connect
        self.greeting = greeting
        self.received = bytearray()
        self.connections = 0
        self.server = None
        self.port = 0

    async def start(self) -> "TcpServer":
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self.server.sockets[0].getsockname()[1]
        return self

    async def stop(self) -> None:
        if self.server:
            self.server.close()
            await self.server.wait_closed()

    async def _handle(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        self.connections += 1
        try:
            if self.close_on_connect:
                return
            if self.greeting:
                writer.write(self.greeting)
                await writer.drain()
            while True:
                data = await reader.read(4096)
                if not data:
                    break
                self.received.extend(data)
                if self.echo:
                    writer.write(data)
                    await writer.drain()
        except OSError:
            pass
        finally:
            writer.close()


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Poll until predicate() is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


class _EchoHandler(socketserver.BaseRequestHandler):
    def handle(self):
        while True:
            data = self.request.recv(4096)
            if not data:
                break
            self.request.sendall(data)


class _ThreadedEchoServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True


@pytest.fixture
def echo_port():
    """Threaded TCP echo server for tests that run the app in a TestClient."""
    server = _ThreadedEchoServer(("127.0.0.1", 0), _EchoHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server.server_address[1]
    server.shutdown()
    server.server_close()


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    sink_id = logger.add(
        lambda message: messages.append(message.record["message"]), level="TRACE"
    )
    yield messages
    logger.remove(sink_id)
