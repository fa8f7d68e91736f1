"""Destination selection for relay sessions."""

from kohakutunnel.tunnel.protocol import Handshake


def resolve_destination(
    handshake: Handshake, override_host: str | None = None
) -> tuple[str, int]:
    """
    Pick the address to dial for a parsed handshake.

    The override host (PROXY_IP) only replaces the host. The port always
    comes from the handshake.

    Returns:
        Tuple of (host, port)
    """
    if override_host and override_host.strip():
        return override_host.strip(), handshake.port
    return handshake.hostname, handshake.port
