"""Exception hierarchy for IHDR recovery."""

from __future__ import annotations

from typing import Optional


class RecoveryError(Exception):
    """Base class for everything crcfix raises on purpose."""


class ParseError(RecoveryError):
    """The PNG stream could not be parsed up to the IHDR checksum."""

    def __init__(self, err: BaseException):
        self.err = err
        super().__init__(f"failed to parse PNG: {err}")


class CorrectCrc(RecoveryError):
    """The IHDR checksum already matches its data."""

    def __init__(self):
        super().__init__("this file has no incorrect crc value")


class RecoveryExhausted(RecoveryError):
    """No width or height in [1, limit] reproduces the stored checksum."""

    def __init__(self, limit: int, target: Optional[int] = None):
        self.limit = limit
        self.target = target
        msg = f"no width or height in 1..{limit} matches the stored crc"
        if target is not None:
            msg += f" 0x{target:08X}"
        super().__init__(msg)


class ChecksumMismatch(SyntaxError):
    """Raised by the chunk decoder when a chunk's stored CRC is wrong.

    Subclasses SyntaxError like Pillow's own "broken PNG file" errors.
    """

    def __init__(self, chunk_type: bytes, declared: int, computed: int):
        self.chunk_type = chunk_type
        self.declared = declared
        self.computed = computed
        super().__init__(
            f"broken PNG file (bad header checksum in {chunk_type!r}: "
            f"stored 0x{declared:08X}, computed 0x{computed:08X})")
