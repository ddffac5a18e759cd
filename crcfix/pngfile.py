"""
PngFile — open a damaged PNG, recover its IHDR dimensions, save it.

The whole file is held in memory as a bytearray. The buffer is modified
only after a match is found, and save() writes it in one go through a
temporary file + os.replace, so a failed run never leaves a partial
output behind.
"""

from __future__ import annotations

import os
import tempfile
import logging
from dataclasses import dataclass, field
from typing import Optional

from .codec import MAX_DIMENSION, HeaderRecord
from .errors import RecoveryExhausted
from .extractor import extract_header
from .integrity import IntegrityCheck, compute_md5, verify_png_data, verify_saved_file
from .patcher import patch_buffer
from .search import parallel_recover, recover_dimensions

logger = logging.getLogger(__name__)


@dataclass
class FixResult:
    """Outcome of a successful recovery."""
    width: int = 0
    height: int = 0
    original_width: int = 0
    original_height: int = 0
    bytes_changed: int = 0
    md5_before: str = ""
    md5_after: str = ""
    verification: Optional[IntegrityCheck] = None
    actions_taken: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        return (f"Fixed: {', '.join(self.actions_taken)} "
                f"({self.bytes_changed} bytes changed)")


class PngFile:
    """A PNG whose IHDR checksum disagrees with its width or height."""

    def __init__(self, raw_data: bytes, path: str = ""):
        self.path = path
        self.raw_data = bytearray(raw_data)
        header = extract_header(self.raw_data)
        self.crc_val: int = header.target_crc
        self.record: HeaderRecord = header.record
        self.offset: int = header.offset
        self.result: Optional[FixResult] = None

    @classmethod
    def open(cls, path: str) -> "PngFile":
        """Read a file from disk. OSError propagates unchanged."""
        with open(path, "rb") as f:
            data = f.read()
        logger.debug("Read %d bytes from %s", len(data), path)
        return cls(data, path=path)

    @classmethod
    def from_bytes(cls, data: bytes) -> "PngFile":
        return cls(data)

    # ── Recovery ──────────────────────────────────────────────

    def try_fix(self, limit: int = MAX_DIMENSION, workers: int = 1,
                verify: bool = True) -> Optional[tuple[int, int]]:
        """Search for the original dimensions and patch them in.

        Args:
            limit: Inclusive upper bound of the width/height search
            workers: 1 = sequential search, 0 = auto, N = N processes
            verify: Re-check the patched IHDR and validate it with Pillow

        Returns:
            (width, height) on success, None if nothing matched (the
            buffer is then left byte-for-byte unchanged)
        """
        original = self.record.dimensions
        md5_before = compute_md5(self.raw_data)

        if workers == 1:
            found = recover_dimensions(self.crc_val, self.record, limit)
        else:
            found = parallel_recover(self.crc_val, self.record, limit, workers)

        if found is None:
            logger.info("No dimensions in 1..%d match IHDR crc 0x%08X",
                        limit, self.crc_val)
            return None

        changed = patch_buffer(self.raw_data, self.offset, self.record)

        result = FixResult(
            width=found[0],
            height=found[1],
            original_width=original[0],
            original_height=original[1],
            bytes_changed=changed,
            md5_before=md5_before,
            md5_after=compute_md5(self.raw_data),
        )
        if found[0] != original[0]:
            result.actions_taken.append(f"width {original[0]} → {found[0]}")
        if found[1] != original[1]:
            result.actions_taken.append(f"height {original[1]} → {found[1]}")

        if verify:
            result.verification = verify_png_data(bytes(self.raw_data), found)
            if not result.verification.passed:
                logger.warning("Repaired data did not verify: %s",
                               result.verification.summary)

        self.result = result
        logger.info("IHDR repaired: %s [MD5: %s → %s]", result.summary,
                    result.md5_before[:12], result.md5_after[:12])
        return found

    def fix(self, limit: int = MAX_DIMENSION, workers: int = 1,
            verify: bool = True) -> tuple[int, int]:
        """Like try_fix() but raises RecoveryExhausted instead of returning None."""
        found = self.try_fix(limit=limit, workers=workers, verify=verify)
        if found is None:
            raise RecoveryExhausted(limit, self.crc_val)
        return found

    # ── Persistence ───────────────────────────────────────────

    def save(self, path: str, validate_format: bool = True) -> IntegrityCheck:
        """Write the whole buffer to path atomically and read it back.

        OSError from creating, writing or reading back the file propagates.
        """
        data = bytes(self.raw_data)
        out_dir = os.path.dirname(os.path.abspath(path))

        fd, tmp = tempfile.mkstemp(prefix=".crcfix-", suffix=".tmp", dir=out_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

        integrity = verify_saved_file(path, data, validate_format=validate_format)
        if integrity.passed:
            logger.info("Saved & verified %d bytes to %s [MD5: %s]",
                        len(data), path, integrity.md5[:12])
        else:
            logger.warning("Post-save integrity check FAILED for %s: %s",
                           path, ", ".join(integrity.issues))
        return integrity
