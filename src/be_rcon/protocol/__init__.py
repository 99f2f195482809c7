"""RCon protocol package - packet framing, checksum, decoding and reassembly.

Public API:
- Packet type constants (PACKET_TYPE_*)
- Packet dataclasses (RconPacket and its subclasses)
- Protocol encoder/decoder (RconProtocol)
- Fragment reassembly (FragmentReassembler)
"""

from be_rcon.protocol.checksum import calculate_checksum, checksum_bytes
from be_rcon.protocol.fragment_reassembler import FragmentReassembler
from be_rcon.protocol.packet_types import (
    PACKET_TYPE_COMMAND,
    PACKET_TYPE_LOGIN,
    PACKET_TYPE_SERVER_MESSAGE,
    CommandAckPacket,
    CommandResponsePacket,
    FragmentPacket,
    LoginResponsePacket,
    RconPacket,
    ServerMessagePacket,
)
from be_rcon.protocol.rcon_protocol import RconProtocol

__all__ = [
    "PACKET_TYPE_COMMAND",
    "PACKET_TYPE_LOGIN",
    "PACKET_TYPE_SERVER_MESSAGE",
    "CommandAckPacket",
    "CommandResponsePacket",
    "FragmentPacket",
    "FragmentReassembler",
    "LoginResponsePacket",
    "RconPacket",
    "RconProtocol",
    "ServerMessagePacket",
    "calculate_checksum",
    "checksum_bytes",
]
