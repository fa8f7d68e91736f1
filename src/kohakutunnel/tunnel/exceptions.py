"""Tunnel-related exception classes."""

from kohakutunnel.models.enums import Command


class TunnelError(Exception):
    """Base exception for tunnel operations."""

    pass


# =============================================================================
# Handshake Parsing
# =============================================================================


class HeaderError(TunnelError):
    """Handshake header could not be parsed."""

    pass


class TooShortError(HeaderError):
    """First chunk is shorter than the minimum header size."""

    def __init__(self, length: int, minimum: int):
        self.length = length
        self.minimum = minimum
        super().__init__(f"Data too short: {length} bytes (minimum {minimum})")


class TruncatedHeaderError(HeaderError):
    """A header field extends past the end of the chunk."""

    def __init__(self, field: str, needed: int, length: int):
        self.field = field
        self.needed = needed
        self.length = length
        super().__init__(
            f"Header truncated at {field}: need {needed} bytes, got {length}"
        )


class UnsupportedCommandError(HeaderError):
    """Command other than TCP requested."""

    def __init__(self, command: int):
        self.command = command
        try:
            name = f"{Command(command).name} ({command})"
        except ValueError:
            name = str(command)
        super().__init__(f"Unsupported command: {name}, only TCP is relayed")


class UnsupportedAddressTypeError(HeaderError):
    """Known address type that this server does not dial (IPv6)."""

    def __init__(self, address_type: int):
        self.address_type = address_type
        super().__init__(f"Unsupported address type: {address_type} (IPv6)")


class UnknownAddressTypeError(HeaderError):
    """Address type byte is not a known value."""

    def __init__(self, address_type: int):
        self.address_type = address_type
        super().__init__(f"Unknown address type: {address_type}")


class InvalidPortError(HeaderError):
    """Destination port outside 1..65535."""

    def __init__(self, port: int):
        self.port = port
        super().__init__(f"Invalid destination port: {port}")


class InvalidAddressError(HeaderError):
    """Destination address is empty or undecodable."""

    pass


class UserIdMismatchError(HeaderError):
    """Handshake identifier does not match the configured one (strict mode)."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Unknown user id: {user_id}")


# =============================================================================
# Connection Errors
# =============================================================================


class DialFailedError(TunnelError):
    """Outbound TCP connection could not be opened."""

    def __init__(self, host: str, port: int, cause: BaseException):
        self.host = host
        self.port = port
        self.cause = cause
        super().__init__(f"Connect to {host}:{port} failed: {cause!r}")


class IOFailureError(TunnelError):
    """Read or write failed while relaying."""

    def __init__(self, direction: str, cause: BaseException):
        self.direction = direction
        self.cause = cause
        super().__init__(f"I/O failure ({direction}): {cause!r}")
