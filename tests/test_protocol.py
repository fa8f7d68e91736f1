import struct
import uuid

import pytest

from kohakutunnel.models.enums import AddressType
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
from kohakutunnel.tunnel.protocol import (
    MIN_HEADER_SIZE,
    build_header,
    build_response,
    parse_header,
)

from conftest import OTHER_USER_ID, USER_ID


def raw_header(
    address: bytes,
    port: int = 443,
    command: int = 1,
    options: bytes = b"",
    version: int = 0,
    user_id: str = USER_ID,
) -> bytes:
    return (
        bytes([version])
        + uuid.UUID(user_id).bytes
        + bytes([len(options)])
        + options
        + bytes([command])
        + struct.pack(">H", port)
        + address
    )


@pytest.mark.parametrize(
    "octets, port",
    [
        ((93, 184, 216, 34), 80),
        ((10, 0, 0, 1), 443),
        ((255, 255, 255, 255), 65535),
        ((1, 2, 3, 4), 1),
    ],
)
def test_ipv4_hostname_and_port(octets, port):
    chunk = raw_header(bytes([1, *octets]), port=port)
    handshake = parse_header(chunk)

    assert handshake.hostname == ".".join(str(o) for o in octets)
    assert handshake.port == port
    assert handshake.address_type == AddressType.IPV4
    assert handshake.payload_offset == len(chunk) == 26


def test_version_and_user_id_are_extracted():
    chunk = raw_header(bytes([1, 127, 0, 0, 1]), version=7)
    handshake = parse_header(chunk)

    assert handshake.version == 7
    assert handshake.user_id == USER_ID


def test_domain_payload_offset():
    name = b"example.com"
    chunk = raw_header(bytes([2, len(name)]) + name) + b"GET / HTTP/1.1\r\n"
    handshake = parse_header(chunk)

    addr_idx = 18 + 1 + 2
    assert handshake.hostname == "example.com"
    assert handshake.address_type == AddressType.DOMAIN
    assert handshake.payload_offset == addr_idx + 2 + len(name)
    assert chunk[handshake.payload_offset :] == b"GET / HTTP/1.1\r\n"


def test_options_are_skipped():
    chunk = raw_header(bytes([1, 8, 8, 4, 4]), port=53, options=b"\xaa\xbb\xcc")
    handshake = parse_header(chunk)

    assert handshake.hostname == "8.8.4.4"
    assert handshake.port == 53
    assert handshake.payload_offset == 29


@pytest.mark.parametrize("length", [0, 1, 17, MIN_HEADER_SIZE - 1])
def test_too_short(length):
    with pytest.raises(TooShortError):
        parse_header(b"\x01" * length)


@pytest.mark.parametrize("command", [0, 2, 3, 255])
def test_unsupported_command(command):
    chunk = raw_header(bytes([1, 1, 1, 1, 1]), command=command)
    with pytest.raises(UnsupportedCommandError) as exc_info:
        parse_header(chunk)
    assert exc_info.value.command == command


def test_unsupported_command_names_known_commands():
    with pytest.raises(UnsupportedCommandError, match="UDP"):
        parse_header(raw_header(bytes([1, 1, 1, 1, 1]), command=2))
    with pytest.raises(UnsupportedCommandError, match="MUX"):
        parse_header(raw_header(bytes([1, 1, 1, 1, 1]), command=3))


def test_ipv6_rejected():
    chunk = raw_header(bytes([3]) + bytes(16))
    with pytest.raises(UnsupportedAddressTypeError):
        parse_header(chunk)


@pytest.mark.parametrize("addr_type", [0, 4, 9])
def test_unknown_address_type(addr_type):
    chunk = raw_header(bytes([addr_type, 1, 2, 3, 4]))
    with pytest.raises(UnknownAddressTypeError) as exc_info:
        parse_header(chunk)
    assert exc_info.value.address_type == addr_type


def test_options_length_past_end_is_truncated():
    chunk = bytearray(raw_header(bytes([1, 1, 2, 3, 4])))
    chunk[17] = 200
    with pytest.raises(TruncatedHeaderError):
        parse_header(bytes(chunk))


def test_domain_length_past_end_is_truncated():
    chunk = raw_header(bytes([2, 50]) + b"short.example")
    with pytest.raises(TruncatedHeaderError):
        parse_header(chunk)


def test_ipv4_address_past_end_is_truncated():
    chunk = raw_header(bytes([1, 10, 0]))
    assert len(chunk) >= MIN_HEADER_SIZE
    with pytest.raises(TruncatedHeaderError):
        parse_header(chunk)


def test_port_zero_rejected():
    chunk = raw_header(bytes([1, 10, 0, 0, 1]), port=0)
    with pytest.raises(InvalidPortError):
        parse_header(chunk)


def test_empty_domain_rejected():
    chunk = raw_header(bytes([2, 0])) + b"padding"
    with pytest.raises(InvalidAddressError):
        parse_header(chunk)


def test_user_id_mismatch_only_rejected_when_strict():
    chunk = raw_header(bytes([1, 10, 0, 0, 1]), user_id=OTHER_USER_ID)

    assert parse_header(chunk, user_id=USER_ID).user_id == OTHER_USER_ID
    with pytest.raises(UserIdMismatchError):
        parse_header(chunk, user_id=USER_ID, strict=True)


def test_strict_user_id_match_is_case_insensitive():
    chunk = raw_header(bytes([1, 10, 0, 0, 1]))
    handshake = parse_header(chunk, user_id=USER_ID.upper(), strict=True)
    assert handshake.hostname == "10.0.0.1"


def test_build_response():
    assert build_response(0) == b"\x00\x00"
    assert build_response(5) == b"\x05\x00"


def test_build_header_matches_layout():
    assert build_header(USER_ID, "93.184.216.34", 80) == raw_header(
        bytes([1, 93, 184, 216, 34]), port=80
    )
    assert build_header(USER_ID, "example.org", 8443, version=1) == raw_header(
        bytes([2, 11]) + b"example.org", port=8443, version=1
    )
