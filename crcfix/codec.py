"""
IHDR Codec — canonical byte layout of the header chunk and its CRC.

The PNG chunk CRC covers the chunk type followed by the chunk data.
For IHDR that is exactly 17 bytes:

    offset  size  field
    ──────  ────  ─────────────────────────
       0      4   chunk type ("IHDR")
       4      4   width              (big-endian)
       8      4   height             (big-endian)
      12      1   bit depth
      13      1   colour type
      14      1   compression method (always 0)
      15      1   filter method      (always 0)
      16      1   interlace method

The CRC is CRC-32/ISO-HDLC (IEEE 802.3 polynomial, reflected, init and
xorout 0xFFFFFFFF), the variant mandated by the PNG specification and
provided by zlib.
"""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass

PNG_SIGNATURE = b"\x89PNG\r\n\x1A\n"

# Signature (8) + IHDR length field (4): start of the CRC-covered bytes
HEADER_OFFSET = 12

# Inclusive upper bound of the width/height recovery range
MAX_DIMENSION = 8191

_IHDR_LAYOUT = struct.Struct(">4sII5B")
ENCODED_SIZE = _IHDR_LAYOUT.size  # 17


@dataclass
class HeaderRecord:
    """CRC-covered payload of the IHDR chunk."""
    chunk_type: bytes = b"IHDR"
    width: int = 0
    height: int = 0
    bit_depth: int = 0
    color_type: int = 0
    compression_method: int = 0
    filter_method: int = 0
    interlace_method: int = 0

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.width, self.height


def encode(record: HeaderRecord) -> bytes:
    """Serialize a record to the 17 bytes its chunk CRC is computed over.

    Raises struct.error if a field does not fit its on-disk width.
    """
    if len(record.chunk_type) != 4:
        raise ValueError(
            f"chunk type must be 4 bytes, got {record.chunk_type!r}")
    return _IHDR_LAYOUT.pack(
        record.chunk_type,
        record.width,
        record.height,
        record.bit_depth,
        record.color_type,
        record.compression_method,
        record.filter_method,
        record.interlace_method,
    )


def checksum(data: bytes) -> int:
    """CRC-32/ISO-HDLC of data as an unsigned 32-bit value."""
    return zlib.crc32(data) & 0xFFFFFFFF
