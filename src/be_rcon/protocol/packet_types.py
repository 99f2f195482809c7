"""RCon packet type definitions and dataclass structures.

Wire layout shared by every packet, in both directions:

- Bytes 0-1: protocol tag ``b"BE"``
- Bytes 2-5: CRC-32 of bytes 6.. (little-endian)
- Byte 6: marker 0xFF
- Byte 7: packet type
- Bytes 8+: type-dependent payload

Packet Type Overview:
- 0x00: Login (client → server: password, server → client: status byte)
- 0x01: Command channel (client → server: command, server → client: response,
  possibly fragmented)
- 0x02: Server message (server → client: text, client → server: acknowledgment)
"""

from dataclasses import dataclass

PROTOCOL_TAG = b"BE"
PACKET_MARKER = 0xFF

# Packet Type Constants
PACKET_TYPE_LOGIN = 0x00
PACKET_TYPE_COMMAND = 0x01
PACKET_TYPE_SERVER_MESSAGE = 0x02

# Login response status bytes
LOGIN_STATUS_REJECTED = 0x00
LOGIN_STATUS_SUCCESS = 0x01

# Offsets into a full packet
OFFSET_CHECKSUM = 2
OFFSET_MARKER = 6
OFFSET_TYPE = 7
OFFSET_SEQUENCE = 8
OFFSET_LOGIN_STATUS = 8
OFFSET_MESSAGE_TEXT = 9
OFFSET_FRAGMENT_FLAG = 9
OFFSET_FRAGMENT_TOTAL = 10
OFFSET_FRAGMENT_INDEX = 11
OFFSET_FRAGMENT_DATA = 12

HEADER_LENGTH = 7  # tag (2) + checksum (4) + marker (1)
MIN_PACKET_LENGTH = 8  # header + type byte
SEQUENCE_MODULUS = 256


@dataclass
class RconPacket:
    """Base structure for every decoded RCon packet.

    Attributes:
        packet_type: Type byte at offset 7
        checksum: CRC-32 read from the header
        checksum_valid: Whether the header CRC matches the packet body
        raw: Complete packet bytes

    """

    packet_type: int
    checksum: int
    checksum_valid: bool
    raw: bytes


@dataclass
class LoginResponsePacket(RconPacket):
    """Login response (0x00); status 0x01 is success, 0x00 rejection."""

    status: int

    @property
    def success(self) -> bool:
        return self.status == LOGIN_STATUS_SUCCESS


@dataclass
class ServerMessagePacket(RconPacket):
    """Unsolicited server message (0x02) that must be acknowledged."""

    sequence_number: int
    text: str


@dataclass
class CommandResponsePacket(RconPacket):
    """Unfragmented command-channel text (0x01, reserved bytes not both zero)."""

    sequence_number: int
    text: str


@dataclass
class CommandAckPacket(RconPacket):
    """Command-channel packet carrying only a sequence number (keep-alive reply)."""

    sequence_number: int


@dataclass
class FragmentPacket(RconPacket):
    """One piece of a multi-datagram command response (0x01 0x00 0x00 header).

    Attributes:
        total: Declared number of fragments in the message
        index: 0-based position of this fragment
        data: Undecoded fragment bytes

    """

    total: int
    index: int
    data: bytes
