"""
Serve command: run the tunnel server.

Example:
    # Listen on 8080 and dial everything through a relay IP
    kohakutunnel serve --port 8080 --proxy-ip 104.16.0.1

    # Same, configured through the environment
    PORT=8080 PROXYIP=104.16.0.1 kohakutunnel serve
"""

from dataclasses import replace
from typing import Annotated

import typer
from rich.table import Table

from kohakutunnel.cli.output import console, print_error
from kohakutunnel.models.enums import LogLevel
from kohakutunnel.server.config import ConfigError, config


def serve(
    bind: Annotated[
        str, typer.Option("--bind", "-b", help="Bind address", envvar="BIND_IP")
    ] = config.BIND_IP,
    port: Annotated[
        int, typer.Option("--port", "-p", help="Listen port", envvar="PORT")
    ] = config.PORT,
    user_id: Annotated[
        str, typer.Option("--uuid", "-u", help="User UUID", envvar="UUID")
    ] = config.UUID,
    proxy_ip: Annotated[
        str,
        typer.Option(
            "--proxy-ip",
            help="Dial this host instead of the requested one (port is kept)",
            envvar="PROXYIP",
        ),
    ] = config.PROXY_IP,
    sub_path: Annotated[
        str,
        typer.Option("--sub-path", help="Subscription path", envvar="SUB_PATH"),
    ] = config.SUB_PATH,
    strict_uuid: Annotated[
        bool,
        typer.Option(
            "--strict-uuid/--lenient-uuid",
            help="Reject handshakes with a different UUID",
            envvar="STRICT_UUID",
        ),
    ] = config.STRICT_UUID,
    dial_timeout: Annotated[
        float,
        typer.Option(
            "--dial-timeout",
            help="Outbound connect timeout in seconds (0 = none)",
            envvar="DIAL_TIMEOUT",
        ),
    ] = config.DIAL_TIMEOUT_SECONDS,
    link_port: Annotated[
        int,
        typer.Option(
            "--link-port", help="Port advertised in share links", envvar="LINK_PORT"
        ),
    ] = config.LINK_PORT,
    buffer_size: Annotated[
        int,
        typer.Option(
            "--buffer-size",
            help="Max bytes relayed per frame to the client",
            envvar="RELAY_BUFFER_SIZE",
        ),
    ] = config.RELAY_BUFFER_SIZE,
    log_level: Annotated[
        LogLevel,
        typer.Option("--log-level", help="Log verbosity", envvar="LOG_LEVEL"),
    ] = config.LOG_LEVEL,
    log_file: Annotated[
        str, typer.Option("--log-file", help="Log file path", envvar="LOG_FILE")
    ] = config.LOG_FILE,
):
    """Run the WebSocket tunnel server."""
    from kohakutunnel.server.app import run

    cfg = replace(
        config,
        BIND_IP=bind,
        PORT=port,
        UUID=user_id,
        PROXY_IP=proxy_ip,
        SUB_PATH=sub_path.strip("/"),
        STRICT_UUID=strict_uuid,
        DIAL_TIMEOUT_SECONDS=dial_timeout,
        LINK_PORT=link_port,
        RELAY_BUFFER_SIZE=buffer_size,
        LOG_LEVEL=log_level,
        LOG_FILE=log_file,
    )

    try:
        cfg.validate()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1)

    table = Table(title="KohakuTunnel", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Listen", f"{cfg.BIND_IP}:{cfg.PORT}")
    table.add_row("UUID", cfg.UUID)
    table.add_row("PROXY_IP", cfg.PROXY_IP or "[dim](none)[/dim]")
    table.add_row("UUID check", "strict" if cfg.STRICT_UUID else "lenient")
    table.add_row("Subscription", f"/{cfg.SUB_PATH}")
    table.add_row("Link port", str(cfg.LINK_PORT))
    console.print(table)

    run(cfg)
