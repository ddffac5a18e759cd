# crcfix — IHDR dimension recovery for PNG files
# Brute-forces a corrupted width/height against the IHDR chunk's stored CRC.
#
# Architecture (bottom → top):
#   codec      — IHDR record, canonical 17-byte encoding, CRC-32
#   errors     — ParseError / CorrectCrc / RecoveryExhausted
#   extractor  — Event-based chunk decoder (Pillow PngStream) + declared CRC capture
#   search     — Two-phase width/height brute force (sequential + multiprocessing)
#   patcher    — Splice the recovered IHDR bytes back into the file buffer
#   integrity  — Pillow re-validation + post-save readback verification
#   pngfile    — Orchestrator (open, fix, atomic save)

from .codec import HeaderRecord, MAX_DIMENSION, checksum, encode
from .errors import (
    ChecksumMismatch,
    CorrectCrc,
    ParseError,
    RecoveryError,
    RecoveryExhausted,
)
from .pngfile import FixResult, PngFile

__version__ = "1.1.0"

__all__ = [
    "HeaderRecord",
    "MAX_DIMENSION",
    "checksum",
    "encode",
    "ChecksumMismatch",
    "CorrectCrc",
    "ParseError",
    "RecoveryError",
    "RecoveryExhausted",
    "FixResult",
    "PngFile",
]
