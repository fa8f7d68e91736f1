"""Link command: print the share link / subscription for a public host."""

from typing import Annotated

import typer

from kohakutunnel.cli.output import console
from kohakutunnel.server.config import config
from kohakutunnel.server.services.subscription import (
    build_subscription,
    build_vless_link,
)


def link(
    host: Annotated[str, typer.Argument(help="Public host name of the server")],
    user_id: Annotated[
        str, typer.Option("--uuid", "-u", help="User UUID", envvar="UUID")
    ] = config.UUID,
    port: Annotated[
        int, typer.Option("--port", "-p", help="Public TLS port", envvar="LINK_PORT")
    ] = config.LINK_PORT,
    path: Annotated[str, typer.Option("--path", help="WebSocket path")] = "/",
    as_base64: Annotated[
        bool, typer.Option("--base64", help="Print the base64 subscription body")
    ] = False,
):
    """Print the vless:// link clients import."""
    if as_base64:
        text = build_subscription(user_id, host, port, path)
    else:
        text = build_vless_link(user_id, host, port, path)
    console.print(text, soft_wrap=True, markup=False, highlight=False)
