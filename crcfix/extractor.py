"""
Chunk Extractor — pull the declared IHDR checksum out of a damaged PNG.

Drives Pillow's incremental chunk decoder (PngImagePlugin.PngStream)
through exactly three events:

  1. chunk begin   — ChunkStream.read()   → chunk type, position, length
  2. header fields — PngStream.chunk_IHDR → width, height, depth, colour, interlace
  3. checksum      — HeaderStream.crc     → raises ChecksumMismatch on a bad CRC

A ChecksumMismatch at step 3 is the *recoverable* outcome: its declared
value is the CRC of the original, uncorrupted IHDR data. Any other decoder
failure is a ParseError, and a clean pass through all three events means
there is nothing to repair (CorrectCrc).
"""

from __future__ import annotations

import io
import struct
import logging
from dataclasses import dataclass

from PIL import PngImagePlugin

from .codec import PNG_SIGNATURE, HeaderRecord, checksum
from .errors import ChecksumMismatch, CorrectCrc, ParseError

logger = logging.getLogger(__name__)

# Exceptions Pillow's chunk decoder raises on malformed input
_DECODER_ERRORS = (SyntaxError, ValueError, OSError, EOFError, struct.error)


class HeaderStream(PngImagePlugin.PngStream):
    """PngStream whose CRC check surfaces the value stored in the file.

    Pillow's ChunkStream.crc only reports "bad header checksum"; recovery
    needs the stored value itself, so verification goes through
    codec.checksum and failures raise ChecksumMismatch.
    """

    def crc(self, cid: bytes, data: bytes) -> None:
        stored = self.fp.read(4)
        if len(stored) < 4:
            raise SyntaxError(
                f"broken PNG file (incomplete checksum in {cid!r})")
        declared = struct.unpack(">I", stored)[0]
        computed = checksum(cid + data)
        if declared != computed:
            raise ChecksumMismatch(cid, declared, computed)


@dataclass
class ExtractedHeader:
    """Outcome of a successful extraction."""
    target_crc: int
    record: HeaderRecord
    offset: int          # start of the CRC-covered bytes in the file
    length: int          # IHDR data length as declared by the file


def extract_header(data: bytes) -> ExtractedHeader:
    """Parse the IHDR chunk of raw PNG bytes and capture its stored CRC.

    Args:
        data: Entire file contents

    Returns:
        ExtractedHeader with the declared CRC and the record as parsed

    Raises:
        ParseError: the stream is not a PNG or breaks before the IHDR CRC
        CorrectCrc: the IHDR CRC already matches its data
    """
    fp = io.BytesIO(data)
    signature = fp.read(len(PNG_SIGNATURE))
    if signature != PNG_SIGNATURE:
        raise ParseError(SyntaxError(f"not a PNG file: {signature[:8].hex()}"))

    record = HeaderRecord()
    stream = HeaderStream(fp)
    offset = 0
    length = 0
    cid = b""
    header = b""

    try:
        # Event 1: chunk begin
        cid, pos, length = stream.read()
        if cid != b"IHDR":
            raise SyntaxError(f"first chunk is {cid!r}, expected b'IHDR'")
        record.chunk_type = bytes(cid)
        offset = pos - 4
        logger.debug("Chunk begin: %r at %d (length %d)", cid, offset, length)

        # Event 2: header fields
        header = stream.call(cid, pos, length)
        if len(header) < 13:
            raise ValueError("Truncated IHDR chunk")
        record.width, record.height = struct.unpack(">II", header[:8])
        record.bit_depth = header[8]
        record.color_type = header[9]
        record.interlace_method = header[12]
        logger.debug(
            "IHDR fields: %dx%d depth=%d colour=%d interlace=%d",
            record.width, record.height, record.bit_depth,
            record.color_type, record.interlace_method)

        # Event 3: checksum validation
        stream.crc(cid, header)
    except ChecksumMismatch as mismatch:
        logger.debug("IHDR checksum mismatch: stored 0x%08X, computed 0x%08X",
                     mismatch.declared, mismatch.computed)
        return ExtractedHeader(
            target_crc=mismatch.declared,
            record=record,
            offset=offset,
            length=length,
        )
    except _DECODER_ERRORS as e:
        raise ParseError(e) from e

    raise CorrectCrc()
