"""
KohakuTunnel: WebSocket to TCP tunneling proxy.

Accepts WebSocket connections carrying a binary handshake, dials the
requested TCP destination and relays bytes in both directions.
"""

__version__ = "0.1.0"
