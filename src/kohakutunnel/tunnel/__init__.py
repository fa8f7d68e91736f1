"""
Tunnel handshake codec.

This module provides the binary request/response header format used on the
first frame of every tunnel WebSocket, and the destination routing rules.
"""

from kohakutunnel.tunnel.exceptions import (
    DialFailedError,
    HeaderError,
    IOFailureError,
    TooShortError,
    TruncatedHeaderError,
    TunnelError,
    UnknownAddressTypeError,
    UnsupportedAddressTypeError,
    UnsupportedCommandError,
    UserIdMismatchError,
)
from kohakutunnel.tunnel.protocol import (
    MIN_HEADER_SIZE,
    Handshake,
    build_header,
    build_response,
    parse_header,
)
from kohakutunnel.tunnel.routing import resolve_destination

__all__ = [
    "MIN_HEADER_SIZE",
    "Handshake",
    "build_header",
    "build_response",
    "parse_header",
    "resolve_destination",
    "TunnelError",
    "HeaderError",
    "TooShortError",
    "TruncatedHeaderError",
    "UnsupportedCommandError",
    "UnsupportedAddressTypeError",
    "UnknownAddressTypeError",
    "UserIdMismatchError",
    "DialFailedError",
    "IOFailureError",
]
