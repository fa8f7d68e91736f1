"""
Tunnel handshake definitions and utilities.

Request header (first binary frame of a WebSocket, big-endian):
┌─────────┬───────────┬──────────┬───────────┬─────────┬──────────┬──────────┬──────────────┐
│ Ver(1B) │ UUID(16B) │ OptLen   │ Options   │ Cmd(1B) │ Port(2B) │ Atyp(1B) │ Address(var) │
│         │           │  (1B)    │ (OptLen)  │         │          │          │              │
└─────────┴───────────┴──────────┴───────────┴─────────┴──────────┴──────────┴──────────────┘

Address:
    IPv4   (Atyp=1): 4 bytes
    Domain (Atyp=2): length(1B) + UTF-8 name
    IPv6   (Atyp=3): rejected

Anything after the address is application payload for the destination.

Response header (sent once, after the destination is connected):
┌─────────┬───────────┐
│ Ver(1B) │ OptLen=0  │
└─────────┴───────────┘
"""

import ipaddress
import struct
import uuid
from dataclasses import dataclass

from kohakutunnel.models.enums import AddressType, Command
from kohakutunnel.tunnel.exceptions import (
    InvalidAddressError,
    InvalidPortError,
    TooShortError,
    TruncatedHeaderError,
    UnknownAddressTypeError,
    UnsupportedAddressTypeError,
    UnsupportedCommandError,
    UserIdMismatchError,
)

# =============================================================================
# Layout
# =============================================================================

MIN_HEADER_SIZE: int = 24

VERSION_OFFSET: int = 0
USER_ID_OFFSET: int = 1
USER_ID_SIZE: int = 16
OPT_LEN_OFFSET: int = USER_ID_OFFSET + USER_ID_SIZE  # 17

PORT_FORMAT = ">H"
PORT_SIZE = struct.calcsize(PORT_FORMAT)  # 2 bytes

IPV4_SIZE: int = 4


@dataclass(frozen=True)
class Handshake:
    """Parsed tunnel request header."""

    version: int
    user_id: str
    command: int
    address_type: AddressType
    hostname: str
    port: int
    payload_offset: int


def _require(chunk: bytes, needed: int, field: str) -> None:
    if len(chunk) < needed:
        raise TruncatedHeaderError(field, needed, len(chunk))


def format_user_id(raw: bytes) -> str:
    """Format 16 raw identifier bytes as canonical hyphenated UUID text."""
    return str(uuid.UUID(bytes=bytes(raw)))


def parse_header(
    chunk: bytes,
    user_id: str | None = None,
    strict: bool = False,
) -> Handshake:
    """
    Parse the request header from the first frame of a tunnel.

    Args:
        chunk: First binary frame received from the client
        user_id: Configured user UUID to compare against
        strict: Reject the handshake when the UUID does not match

    Returns:
        Parsed Handshake

    Raises:
        HeaderError: The frame is not a usable TCP request
    """
    if len(chunk) < MIN_HEADER_SIZE:
        raise TooShortError(len(chunk), MIN_HEADER_SIZE)

    version = chunk[VERSION_OFFSET]
    request_user_id = format_user_id(
        chunk[USER_ID_OFFSET : USER_ID_OFFSET + USER_ID_SIZE]
    )
    if strict and user_id and request_user_id != user_id.lower():
        raise UserIdMismatchError(request_user_id)

    opt_len = chunk[OPT_LEN_OFFSET]
    cmd_idx = OPT_LEN_OFFSET + 1 + opt_len
    _require(chunk, cmd_idx + 1, "command")
    command = chunk[cmd_idx]
    if command != Command.TCP:
        raise UnsupportedCommandError(command)

    port_idx = cmd_idx + 1
    _require(chunk, port_idx + PORT_SIZE, "port")
    (port,) = struct.unpack_from(PORT_FORMAT, chunk, port_idx)

    addr_idx = port_idx + PORT_SIZE
    _require(chunk, addr_idx + 1, "address type")
    addr_type = chunk[addr_idx]

    if addr_type == AddressType.IPV4:
        end = addr_idx + 1 + IPV4_SIZE
        _require(chunk, end, "IPv4 address")
        hostname = str(ipaddress.IPv4Address(bytes(chunk[addr_idx + 1 : end])))
    elif addr_type == AddressType.DOMAIN:
        _require(chunk, addr_idx + 2, "domain length")
        length = chunk[addr_idx + 1]
        end = addr_idx + 2 + length
        _require(chunk, end, "domain")
        hostname = bytes(chunk[addr_idx + 2 : end]).decode("utf-8", errors="replace")
        if not hostname:
            raise InvalidAddressError("Empty domain name")
    elif addr_type == AddressType.IPV6:
        raise UnsupportedAddressTypeError(addr_type)
    else:
        raise UnknownAddressTypeError(addr_type)

    if port == 0:
        raise InvalidPortError(port)

    return Handshake(
        version=version,
        user_id=request_user_id,
        command=command,
        address_type=AddressType(addr_type),
        hostname=hostname,
        port=port,
        payload_offset=end,
    )


def build_response(version: int) -> bytes:
    """
    Build the response header sent after the destination is connected.

    Args:
        version: Version byte echoed from the request

    Returns:
        Two bytes: version and an empty options length
    """
    return bytes([version, 0])


def build_header(
    user_id: str,
    host: str,
    port: int,
    version: int = 0,
    command: int = Command.TCP,
    options: bytes = b"",
) -> bytes:
    """
    Build a request header (client side).

    IPv4 literals are encoded as IPv4 addresses, anything else as a domain.

    Args:
        user_id: UUID text identifying the user
        host: Destination host
        port: Destination port
        version: Protocol version byte
        command: Command byte (Command.TCP)
        options: Opaque options bytes

    Returns:
        Header bytes, without payload
    """
    try:
        address = bytes([AddressType.IPV4]) + ipaddress.IPv4Address(host).packed
    except ValueError:
        name = host.encode("utf-8")
        address = bytes([AddressType.DOMAIN, len(name)]) + name

    return (
        bytes([version])
        + uuid.UUID(user_id).bytes
        + bytes([len(options)])
        + options
        + bytes([command])
        + struct.pack(PORT_FORMAT, port)
        + address
    )
