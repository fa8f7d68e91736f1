"""
Subscription link generation.

Clients import the server as a vless:// share link over WebSocket + TLS.
The subscription endpoint serves that link base64-encoded, which is the
format V2RayN-style clients expect.
"""

import base64
from urllib.parse import quote

DEFAULT_HOST = "kohakutunnel"


def host_without_port(host_header: str | None) -> str:
    """Strip the port from a Host header value, falling back to a default."""
    host = (host_header or "").strip()
    if not host:
        return DEFAULT_HOST
    if host.startswith("["):
        # Bracketed IPv6 literal, keep the brackets
        return host.split("]", 1)[0] + "]"
    return host.rsplit(":", 1)[0] if host.count(":") == 1 else host


def build_vless_link(user_id: str, host: str, port: int = 443, path: str = "/") -> str:
    """
    Build a vless:// share link for this server.

    Args:
        user_id: UUID clients must send in the handshake
        host: Public host name clients connect to (also used as SNI/Host)
        port: Public TLS port
        path: WebSocket path

    Returns:
        Share link string
    """
    name = host.split(".")[0] or DEFAULT_HOST
    return (
        f"vless://{user_id}@{host}:{port}"
        f"?encryption=none&security=tls&type=ws&host={host}"
        f"&path={quote(path, safe='')}#Kohaku-{name}"
    )


def build_subscription(
    user_id: str, host: str, port: int = 443, path: str = "/"
) -> str:
    """Build the base64 subscription body for a single share link."""
    link = build_vless_link(user_id, host, port, path)
    return base64.b64encode(link.encode("utf-8")).decode("ascii")
