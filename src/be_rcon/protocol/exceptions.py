"""Exception types for RCon protocol errors.

Decode and handshake failures are raised by the codec and converted to error
events by the connection manager; they never escape the datagram callback.
"""

from __future__ import annotations


class RconError(Exception):
    """Base exception for all RCon errors.

    Attributes:
        reason: Short machine-friendly failure reason

    """

    def __init__(self, reason: str, message: str | None = None) -> None:
        """Initialize with a reason and an optional display message."""
        self.reason: str = reason
        super().__init__(message or reason)


class PacketDecodeError(RconError):
    """Inbound packet is malformed.

    Raised when parsing fails: packet too short, wrong protocol tag, missing
    marker byte, unknown type or an impossible fragment header.

    Attributes:
        reason: Specific failure reason (e.g., "too_short", "invalid_tag")
        data_preview: First 16 bytes of packet data (never the full datagram)

    """

    def __init__(self, reason: str, data: bytes = b"") -> None:
        """Initialize decode error with reason and offending data."""
        self.data_preview: bytes = data[:16] if data else b""
        super().__init__(reason, f"Packet decode failed: {reason}")


class AuthenticationRejected(RconError):
    """Login response was not a success.

    ``reason`` is "authentication rejected" when the server answered with the
    failure byte, "unrecognized response" for any other status value.

    Attributes:
        status: Status byte received in the login response

    """

    def __init__(self, reason: str, status: int) -> None:
        """Initialize with the reason and the received status byte."""
        self.status: int = status
        super().__init__(reason, f"Login failed: {reason} (status: 0x{status:02x})")
