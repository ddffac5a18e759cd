"""Buffer Patcher — write a recovered IHDR record back into the file buffer."""

from __future__ import annotations

import logging

from .codec import HeaderRecord, encode

logger = logging.getLogger(__name__)


def patch_buffer(buffer: bytearray, offset: int, record: HeaderRecord) -> int:
    """Overwrite buffer[offset:offset+17] with the record's encoding.

    Nothing else is touched, including the chunk's stored CRC, which
    already matches the recovered data. Returns the number of bytes
    that actually changed.
    """
    new_bytes = encode(record)
    end = offset + len(new_bytes)
    if offset < 0 or end > len(buffer):
        raise ValueError(
            f"patch range {offset}..{end} outside buffer of {len(buffer)} bytes")

    old_bytes = bytes(buffer[offset:end])
    buffer[offset:end] = new_bytes
    changed = sum(1 for a, b in zip(old_bytes, new_bytes) if a != b)
    logger.debug("Patched %d bytes at offset %d (%d changed)",
                 len(new_bytes), offset, changed)
    return changed
