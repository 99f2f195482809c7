"""RCon protocol encoder/decoder implementation.

This module implements packet framing (tag, checksum, marker), the client
payload encoders and a bounds-checked decoder for server packets.
"""

from __future__ import annotations

import logging

from be_rcon.protocol.checksum import calculate_checksum, checksum_bytes
from be_rcon.protocol.exceptions import PacketDecodeError
from be_rcon.protocol.packet_types import (
    MIN_PACKET_LENGTH,
    OFFSET_CHECKSUM,
    OFFSET_FRAGMENT_DATA,
    OFFSET_FRAGMENT_FLAG,
    OFFSET_FRAGMENT_INDEX,
    OFFSET_FRAGMENT_TOTAL,
    OFFSET_LOGIN_STATUS,
    OFFSET_MARKER,
    OFFSET_MESSAGE_TEXT,
    OFFSET_SEQUENCE,
    OFFSET_TYPE,
    PACKET_MARKER,
    PACKET_TYPE_COMMAND,
    PACKET_TYPE_LOGIN,
    PACKET_TYPE_SERVER_MESSAGE,
    PROTOCOL_TAG,
    SEQUENCE_MODULUS,
    CommandAckPacket,
    CommandResponsePacket,
    FragmentPacket,
    LoginResponsePacket,
    RconPacket,
    ServerMessagePacket,
)

TEXT_ENCODING = "utf-8"

logger = logging.getLogger(__name__)


def encode_text(text: str) -> bytes:
    return text.encode(TEXT_ENCODING)


def decode_text(data: bytes) -> str:
    return data.decode(TEXT_ENCODING, errors="replace")


class RconProtocol:
    """RCon protocol encoder/decoder.

    Provides static methods for encoding and decoding RCon packets.
    All methods are stateless - no instance state maintained.
    """

    @staticmethod
    def build_packet(payload: bytes) -> bytes:
        """Wrap a payload with the protocol tag, checksum and marker.

        The checksum covers the 0xFF marker followed by the payload.

        Args:
            payload: Type byte followed by type-specific bytes

        Returns:
            Complete packet, ``7 + len(payload)`` bytes long

        Example:
            >>> packet = RconProtocol.build_packet(bytes([0x01, 0x00]))
            >>> packet[:2] == b"BE" and len(packet) == 9
            True

        """
        body = bytes([PACKET_MARKER]) + bytes(payload)
        return PROTOCOL_TAG + checksum_bytes(body) + body

    @staticmethod
    def encode_login(password: str) -> bytes:
        """Encode the login packet: ``[0x00, *password]``."""
        return RconProtocol.build_packet(bytes([PACKET_TYPE_LOGIN]) + encode_text(password))

    @staticmethod
    def encode_command(command: str) -> bytes:
        """Encode a command packet: ``[0x01, 0x00, *command]``.

        The client always sends sequence 0x00; the server echoes it back in
        the response.
        """
        return RconProtocol.build_packet(bytes([PACKET_TYPE_COMMAND, 0x00]) + encode_text(command))

    @staticmethod
    def encode_keepalive() -> bytes:
        """Encode the keep-alive packet: an empty command ``[0x01, 0x00, 0x00]``."""
        return RconProtocol.build_packet(bytes([PACKET_TYPE_COMMAND, 0x00, 0x00]))

    @staticmethod
    def encode_acknowledgment(sequence_number: int) -> bytes:
        """Encode the acknowledgment of a server message: ``[0x02, seq]``.

        Raises:
            ValueError: If sequence_number does not fit in one byte

        """
        if not 0 <= sequence_number < SEQUENCE_MODULUS:
            error_msg = f"Sequence number must be 0-255, got {sequence_number}"
            raise ValueError(error_msg)
        return RconProtocol.build_packet(bytes([PACKET_TYPE_SERVER_MESSAGE, sequence_number]))

    @staticmethod
    def decode_packet(data: bytes) -> RconPacket:
        """Decode any RCon packet.

        Steps:
        1. Validate minimum length, tag and marker
        2. Read checksum and compare it with the body CRC (informational only)
        3. Dispatch on the type byte at offset 7

        Args:
            data: Complete datagram

        Returns:
            LoginResponsePacket, ServerMessagePacket, CommandAckPacket,
            FragmentPacket or CommandResponsePacket

        Raises:
            PacketDecodeError: If the datagram is malformed or of unknown type

        """
        if len(data) < MIN_PACKET_LENGTH:
            error_reason = "too_short"
            raise PacketDecodeError(error_reason, data)
        if data[: len(PROTOCOL_TAG)] != PROTOCOL_TAG:
            error_reason = "invalid_tag"
            raise PacketDecodeError(error_reason, data)
        if data[OFFSET_MARKER] != PACKET_MARKER:
            error_reason = "invalid_marker"
            raise PacketDecodeError(error_reason, data)

        checksum = int.from_bytes(data[OFFSET_CHECKSUM:OFFSET_MARKER], "little")
        checksum_valid = calculate_checksum(data[OFFSET_MARKER:]) == checksum
        if not checksum_valid:
            logger.debug("Checksum mismatch on inbound packet", extra={"bytes": len(data)})

        packet_type = data[OFFSET_TYPE]
        raw = bytes(data)

        if packet_type == PACKET_TYPE_LOGIN:
            if len(data) <= OFFSET_LOGIN_STATUS:
                error_reason = "too_short"
                raise PacketDecodeError(error_reason, data)
            return LoginResponsePacket(
                packet_type=packet_type,
                checksum=checksum,
                checksum_valid=checksum_valid,
                raw=raw,
                status=data[OFFSET_LOGIN_STATUS],
            )

        if packet_type == PACKET_TYPE_SERVER_MESSAGE:
            if len(data) <= OFFSET_SEQUENCE:
                error_reason = "too_short"
                raise PacketDecodeError(error_reason, data)
            return ServerMessagePacket(
                packet_type=packet_type,
                checksum=checksum,
                checksum_valid=checksum_valid,
                raw=raw,
                sequence_number=data[OFFSET_SEQUENCE],
                text=decode_text(data[OFFSET_MESSAGE_TEXT:]),
            )

        if packet_type == PACKET_TYPE_COMMAND:
            return RconProtocol._decode_command_packet(raw, checksum, checksum_valid)

        error_reason = "unknown_type"
        raise PacketDecodeError(error_reason, data)

    @staticmethod
    def _decode_command_packet(raw: bytes, checksum: int, checksum_valid: bool) -> RconPacket:
        """Decode a 0x01 command-channel packet.

        Layouts:
        - ``seq``: reply to a keep-alive or empty command
        - ``0x00 0x00 total index data...``: one fragment of a long response
        - ``seq text...``: unfragmented response

        """
        if len(raw) <= OFFSET_SEQUENCE:
            error_reason = "too_short"
            raise PacketDecodeError(error_reason, raw)

        sequence_number = raw[OFFSET_SEQUENCE]
        if len(raw) == OFFSET_SEQUENCE + 1:
            return CommandAckPacket(
                packet_type=PACKET_TYPE_COMMAND,
                checksum=checksum,
                checksum_valid=checksum_valid,
                raw=raw,
                sequence_number=sequence_number,
            )

        if sequence_number == 0x00 and raw[OFFSET_FRAGMENT_FLAG] == 0x00:
            if len(raw) < OFFSET_FRAGMENT_DATA:
                error_reason = "too_short"
                raise PacketDecodeError(error_reason, raw)
            total = raw[OFFSET_FRAGMENT_TOTAL]
            index = raw[OFFSET_FRAGMENT_INDEX]
            if total == 0 or index >= total:
                error_reason = "invalid_fragment_header"
                raise PacketDecodeError(error_reason, raw)
            logger.debug("Decoded fragment %d/%d", index + 1, total)
            return FragmentPacket(
                packet_type=PACKET_TYPE_COMMAND,
                checksum=checksum,
                checksum_valid=checksum_valid,
                raw=raw,
                total=total,
                index=index,
                data=raw[OFFSET_FRAGMENT_DATA:],
            )

        return CommandResponsePacket(
            packet_type=PACKET_TYPE_COMMAND,
            checksum=checksum,
            checksum_valid=checksum_valid,
            raw=raw,
            sequence_number=sequence_number,
            text=decode_text(raw[OFFSET_MESSAGE_TEXT:]),
        )
