"""CRC-32 checksum used in the RCon packet header.

The header carries the standard reflected CRC-32 (polynomial 0xEDB88320, the
table used by zip and zlib) computed over the 0xFF marker and the payload,
written in little-endian byte order.
"""

from __future__ import annotations

import zlib

CHECKSUM_LENGTH_BYTES = 4


def calculate_checksum(data: bytes) -> int:
    """Return the unsigned 32-bit CRC of ``data``.

    Example:
        >>> hex(calculate_checksum(b"123456789"))
        '0xcbf43926'

    """
    return zlib.crc32(data) & 0xFFFFFFFF


def checksum_bytes(data: bytes) -> bytes:
    """Return the 4-byte little-endian header encoding of the CRC of ``data``."""
    return calculate_checksum(data).to_bytes(CHECKSUM_LENGTH_BYTES, "little")
