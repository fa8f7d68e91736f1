"""
Enumeration types for KohakuTunnel.

This module defines the enumeration types shared between the header codec,
the relay sessions and the configuration layer.
"""

from enum import Enum, IntEnum


# =============================================================================
# Protocol Enums
# =============================================================================


class Command(IntEnum):
    """Handshake command byte."""

    TCP = 0x01
    UDP = 0x02  # Named in errors only, never relayed
    MUX = 0x03


class AddressType(IntEnum):
    """
    Destination address type in the handshake.

    Only IPV4 and DOMAIN are dialed; IPV6 is recognised and rejected.
    """

    IPV4 = 0x01
    DOMAIN = 0x02
    IPV6 = 0x03


# =============================================================================
# Session Enums
# =============================================================================


class SessionState(str, Enum):
    """
    Relay session lifecycle state.

    State transitions:
        AWAITING_HEADER -> ESTABLISHED (handshake parsed and dial succeeded)
        AWAITING_HEADER -> CLOSED (parse or dial failure)
        ESTABLISHED -> CLOSED (either side closed or failed)
    """

    AWAITING_HEADER = "awaiting_header"
    ESTABLISHED = "established"
    CLOSED = "closed"


# =============================================================================
# Configuration Enums
# =============================================================================


class LogLevel(str, Enum):
    """
    Logging verbosity levels for KohakuTunnel components.

    Levels (from most to least verbose):
        - FULL: Complete trace with detailed stack information
        - DEBUG: Debug messages and above
        - INFO: Informational messages and above
        - WARNING: Only warnings and errors
    """

    FULL = "full"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
