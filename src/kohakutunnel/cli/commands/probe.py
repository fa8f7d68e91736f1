"""
Probe command: open a tunnel through a running server.

Example:
    # Check that the server can reach example.com:80
    kohakutunnel probe wss://tunnel.example.org/ example.com 80 --http
"""

import asyncio
from typing import Annotated

import typer
from rich.markup import escape

from kohakutunnel.cli.output import console, print_error, print_success
from kohakutunnel.client import ProbeError, probe as probe_tunnel
from kohakutunnel.server.config import config


def probe(
    url: Annotated[str, typer.Argument(help="Server WebSocket URL")],
    host: Annotated[str, typer.Argument(help="Destination host")],
    port: Annotated[int, typer.Argument(help="Destination port")],
    user_id: Annotated[
        str, typer.Option("--uuid", "-u", help="User UUID", envvar="UUID")
    ] = config.UUID,
    http: Annotated[
        bool, typer.Option("--http", help="Send an HTTP HEAD request as payload")
    ] = False,
    timeout: Annotated[float, typer.Option("--timeout", help="Seconds")] = 10.0,
):
    """Open a tunnel to HOST:PORT and report the result."""
    payload = b""
    if http:
        payload = f"HEAD / HTTP/1.0\r\nHost: {host}\r\n\r\n".encode()

    try:
        reply = asyncio.run(
            probe_tunnel(url, user_id, host, port, payload, timeout=timeout)
        )
    except ProbeError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except OSError as e:
        print_error(f"Cannot reach {url}: {e}")
        raise typer.Exit(1)

    print_success(f"Tunnel to {host}:{port} established")
    if reply:
        first_line = reply.split(b"\r\n", 1)[0].decode("utf-8", errors="replace")
        console.print(f"[dim]Reply ({len(reply)} bytes):[/dim] {escape(first_line)}")
