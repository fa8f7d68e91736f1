"""
Tunnel server configuration for KohakuTunnel.

This module defines the configuration dataclass for the tunnel server,
providing a centralized place for all configurable parameters.

Configuration can be modified at runtime by importing the global config
instance and updating its attributes before starting the server, or loaded
from the environment with load_from_env().

Usage:
    from kohakutunnel.server.config import config

    config.PORT = 9000
    config.PROXY_IP = "104.16.0.1"
"""

import os
import uuid
from dataclasses import dataclass

from kohakutunnel.models.enums import LogLevel

DEFAULT_UUID = "a2056d0d-c98e-4aeb-9aab-37f64edd5710"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(ValueError):
    """Invalid configuration value."""

    pass


@dataclass(frozen=True)
class SessionConfig:
    """
    Immutable per-session settings.

    Built once from TunnelConfig and handed to every relay session, so
    sessions never read the mutable global config.
    """

    user_id: str = DEFAULT_UUID
    strict_user_id: bool = False
    override_host: str = ""
    dial_timeout: float | None = 10.0
    buffer_size: int = 32 * 1024


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class TunnelConfig:
    """
    Tunnel server configuration.

    Attributes:
        BIND_IP: IP address to bind the server to.
        PORT: HTTP/WebSocket port.
        UUID: User identifier clients put in the handshake.
        PROXY_IP: Host to dial instead of the requested one (port is kept).
        SUB_PATH: Path of the subscription endpoint (without slash).
        STRICT_UUID: Reject handshakes whose UUID does not match.
        DIAL_TIMEOUT_SECONDS: Outbound connect timeout, 0 disables it.
        RELAY_BUFFER_SIZE: Max bytes read from the destination per frame.
        LINK_PORT: Port advertised in subscription links.
        LOG_LEVEL: Logging verbosity level.
        LOG_FILE: Optional log file path.
    """

    # -------------------------------------------------------------------------
    # Network Configuration
    # -------------------------------------------------------------------------

    BIND_IP: str = "0.0.0.0"
    PORT: int = 8000

    # -------------------------------------------------------------------------
    # Tunnel Configuration
    # -------------------------------------------------------------------------

    UUID: str = DEFAULT_UUID
    PROXY_IP: str = ""
    STRICT_UUID: bool = False
    DIAL_TIMEOUT_SECONDS: float = 10.0
    RELAY_BUFFER_SIZE: int = 32 * 1024

    # -------------------------------------------------------------------------
    # Subscription Configuration
    # -------------------------------------------------------------------------

    SUB_PATH: str = "sub"
    LINK_PORT: int = 443

    # -------------------------------------------------------------------------
    # Logging Configuration
    # -------------------------------------------------------------------------

    LOG_LEVEL: LogLevel = LogLevel.INFO
    LOG_FILE: str = ""

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def load_from_env(self, environ: dict[str, str] | None = None) -> "TunnelConfig":
        """
        Update fields from environment variables.

        Recognised variables: BIND_IP, PORT, UUID, PROXYIP, SUB_PATH,
        STRICT_UUID, DIAL_TIMEOUT, LINK_PORT, RELAY_BUFFER_SIZE, LOG_LEVEL,
        LOG_FILE.
        Unset or empty variables leave the current value untouched.

        Returns:
            self, for chaining
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(name, "").strip()
            return value or None

        try:
            if (value := get("BIND_IP")) is not None:
                self.BIND_IP = value
            if (value := get("PORT")) is not None:
                self.PORT = int(value)
            if (value := get("UUID")) is not None:
                self.UUID = value
            if (value := get("PROXYIP")) is not None:
                self.PROXY_IP = value
            if (value := get("SUB_PATH")) is not None:
                self.SUB_PATH = value.strip("/")
            if (value := get("STRICT_UUID")) is not None:
                self.STRICT_UUID = value.lower() in _TRUE_VALUES
            if (value := get("DIAL_TIMEOUT")) is not None:
                self.DIAL_TIMEOUT_SECONDS = float(value)
            if (value := get("LINK_PORT")) is not None:
                self.LINK_PORT = int(value)
            if (value := get("RELAY_BUFFER_SIZE")) is not None:
                self.RELAY_BUFFER_SIZE = int(value)
            if (value := get("LOG_LEVEL")) is not None:
                self.LOG_LEVEL = LogLevel(value.lower())
            if (value := get("LOG_FILE")) is not None:
                self.LOG_FILE = value
        except ValueError as e:
            raise ConfigError(f"Invalid environment value: {e}") from e

        self.validate()
        return self

    def validate(self) -> None:
        """
        Check field values.

        Raises:
            ConfigError: A field holds an unusable value
        """
        try:
            parsed = uuid.UUID(self.UUID)
        except ValueError:
            raise ConfigError(f"UUID is not a valid UUID: {self.UUID!r}")
        if str(parsed) != self.UUID.lower():
            raise ConfigError(f"UUID must be in canonical 36-char form: {self.UUID!r}")

        for name in ("PORT", "LINK_PORT"):
            port = getattr(self, name)
            if not 1 <= port <= 65535:
                raise ConfigError(f"{name} out of range: {port}")

        if self.DIAL_TIMEOUT_SECONDS < 0:
            raise ConfigError(
                f"DIAL_TIMEOUT_SECONDS must be >= 0: {self.DIAL_TIMEOUT_SECONDS}"
            )
        if self.RELAY_BUFFER_SIZE <= 0:
            raise ConfigError(
                f"RELAY_BUFFER_SIZE must be positive: {self.RELAY_BUFFER_SIZE}"
            )

    def session_config(self) -> SessionConfig:
        """Build the immutable settings handed to relay sessions."""
        return SessionConfig(
            user_id=self.UUID.lower(),
            strict_user_id=self.STRICT_UUID,
            override_host=self.PROXY_IP.strip(),
            dial_timeout=self.DIAL_TIMEOUT_SECONDS or None,
            buffer_size=self.RELAY_BUFFER_SIZE,
        )


# =============================================================================
# Global Instance
# =============================================================================

# Global config instance - modify before server startup
config = TunnelConfig()
