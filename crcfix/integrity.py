"""
Integrity Verification — confirm a repaired PNG before and after saving.

  • IHDR:       the header chunk must now pass its own CRC check
                (extract_header reports CorrectCrc).
  • Pillow:     Image.verify() walks every chunk up to IEND, checking each
                CRC; the decoded size must match the recovered dimensions.
  • On disk:    the saved file is read back and must equal the buffer.
"""

from __future__ import annotations

import io
import hashlib
import logging
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image

from .errors import CorrectCrc, RecoveryError
from .extractor import extract_header

logger = logging.getLogger(__name__)


@dataclass
class IntegrityCheck:
    """Result of an integrity verification."""
    passed: bool = False
    file_path: str = ""
    md5: str = ""
    ihdr_valid: bool = False
    format_valid: bool = False
    issues: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        if self.passed:
            return f"Verified OK (MD5: {self.md5[:12]}…)"
        return f"FAILED: {', '.join(self.issues)}"


def compute_md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def ihdr_crc_matches(data: bytes) -> bool:
    """True if the IHDR chunk of data is intact."""
    try:
        extract_header(data)
    except CorrectCrc:
        return True
    except RecoveryError as e:
        logger.debug("IHDR re-check failed: %s", e)
    return False


def pillow_validate(data: bytes,
                    expected_size: Optional[tuple[int, int]] = None) -> tuple[bool, str]:
    """Run Pillow's PNG verifier over data. Returns (ok, message)."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            size = img.size
            img.verify()
    except (OSError, SyntaxError, ValueError,
            Image.DecompressionBombError) as e:
        return False, f"Pillow rejected data: {e}"

    if expected_size is not None and size != tuple(expected_size):
        return False, f"Pillow reports {size[0]}x{size[1]}, expected " \
                      f"{expected_size[0]}x{expected_size[1]}"
    return True, f"{size[0]}x{size[1]} PNG verified"


def verify_png_data(data: bytes,
                    expected_size: Optional[tuple[int, int]] = None) -> IntegrityCheck:
    """Verify repaired data in memory before it is written."""
    check = IntegrityCheck(md5=compute_md5(data))

    check.ihdr_valid = ihdr_crc_matches(data)
    if not check.ihdr_valid:
        check.issues.append("IHDR checksum still does not match its data")

    check.format_valid, message = pillow_validate(data, expected_size)
    if not check.format_valid:
        check.issues.append(message)
    else:
        logger.debug("In-memory verification: %s", message)

    check.passed = not check.issues
    return check


def verify_saved_file(file_path: str, expected_data: bytes,
                      validate_format: bool = True) -> IntegrityCheck:
    """Read a saved PNG back and compare it with the buffer it came from.

    OSError from the readback propagates like any other save failure.
    Only a byte difference or a still-broken IHDR fails the check; a
    Pillow complaint about other chunks is logged and recorded in
    format_valid.
    """
    with open(file_path, "rb") as f:
        saved = f.read()

    check = IntegrityCheck(file_path=file_path, md5=compute_md5(saved))
    if saved != expected_data:
        check.issues.append(
            f"readback differs from repaired buffer "
            f"({len(saved)} vs {len(expected_data)} bytes, "
            f"MD5 {check.md5[:12]} vs {compute_md5(expected_data)[:12]})")

    check.ihdr_valid = ihdr_crc_matches(saved)
    if not check.ihdr_valid:
        check.issues.append("saved IHDR checksum does not match its data")

    if validate_format:
        check.format_valid, message = pillow_validate(saved)
        if not check.format_valid:
            logger.warning("Saved file %s: %s", file_path, message)

    check.passed = not check.issues
    return check
