"""
Recovery Search — brute-force the corrupted IHDR dimension.

Assumes at most one of width/height was altered. Two phases, fixed order:

  A. width  ∈ [1, limit], height held at its parsed value
  B. height ∈ [1, limit], width restored to its parsed value

The first candidate whose encoded record hashes to the stored CRC wins.
A CRC-32 makes accidental collisions inside 8191 candidates practically
impossible, so "first match" and "unique match" coincide on real files.

parallel_recover() splits each phase across worker processes and keeps
the lowest matching candidate, which gives the same answer as the
sequential search.
"""

from __future__ import annotations

import os
import logging
import multiprocessing as mp
from dataclasses import replace
from typing import Callable, Optional

from .codec import MAX_DIMENSION, HeaderRecord, checksum, encode

logger = logging.getLogger(__name__)

# Search order: width first, then height
PHASES = ("width", "height")

MAX_WORKERS = 8
# Below this many candidates per worker, process start-up costs more than it saves
MIN_CANDIDATES_PER_WORKER = 1024

ProbeCallback = Callable[[str, int], None]


def _scan(target: int, record: HeaderRecord, field_name: str,
          start: int, end: int,
          on_probe: Optional[ProbeCallback] = None) -> Optional[int]:
    """Try field_name = start..end (inclusive); return the first match.

    Leaves the record holding the matching value, or the last probe.
    """
    for candidate in range(start, end + 1):
        setattr(record, field_name, candidate)
        if on_probe is not None:
            on_probe(field_name, candidate)
        if checksum(encode(record)) == target:
            return candidate
    return None


def recover_dimensions(
    target: int,
    record: HeaderRecord,
    limit: int = MAX_DIMENSION,
    on_probe: Optional[ProbeCallback] = None,
) -> Optional[tuple[int, int]]:
    """Find the (width, height) whose IHDR encoding matches target.

    Args:
        target: CRC stored in the damaged file
        record: Parsed IHDR record; mutated to the winning values on success
        limit: Inclusive upper bound of the candidate range
        on_probe: Called with (field name, candidate) before each CRC check

    Returns:
        (width, height) on success, None if neither phase matches.
        On failure the record is restored to its parsed width and height.
    """
    if limit < 1:
        raise ValueError(f"search limit must be >= 1, got {limit}")

    original_width = record.width
    original_height = record.height

    for field_name in PHASES:
        logger.debug("Searching %s in 1..%d for crc 0x%08X",
                     field_name, limit, target)
        found = _scan(target, record, field_name, 1, limit, on_probe)
        if found is not None:
            logger.info("Recovered %s = %d", field_name, found)
            return record.width, record.height
        # Restore before the next phase so only one field ever differs
        record.width = original_width
        record.height = original_height

    logger.debug("No candidate in 1..%d matches crc 0x%08X", limit, target)
    return None


# ══════════════════════════════════════════════════════════════
#  Multiprocessing
# ══════════════════════════════════════════════════════════════

def optimal_worker_count(limit: int, requested: int = 0) -> int:
    """Number of worker processes to use for a range of `limit` candidates.

    requested > 0 is honoured (capped at MAX_WORKERS); 0 means auto-detect.
    """
    if requested > 0:
        return min(requested, MAX_WORKERS)
    cpu_count = os.cpu_count() or 2
    max_by_size = max(1, limit // MIN_CANDIDATES_PER_WORKER)
    return min(max_by_size, cpu_count, MAX_WORKERS)


def split_candidate_range(limit: int, num_workers: int) -> list[tuple[int, int]]:
    """Split [1, limit] into contiguous inclusive slices, one per worker."""
    if num_workers <= 1 or limit <= 1:
        return [(1, limit)]

    num_workers = min(num_workers, limit)
    size, extra = divmod(limit, num_workers)
    ranges = []
    start = 1
    for i in range(num_workers):
        end = start + size - 1 + (1 if i < extra else 0)
        ranges.append((start, end))
        start = end + 1
    return ranges


def _scan_worker(args: tuple[int, HeaderRecord, str, int, int]) -> Optional[int]:
    """Pool entry point: scan one slice on a private copy of the record."""
    target, record, field_name, start, end = args
    return _scan(target, record, field_name, start, end)


def parallel_recover(
    target: int,
    record: HeaderRecord,
    limit: int = MAX_DIMENSION,
    workers: int = 0,
) -> Optional[tuple[int, int]]:
    """Multiprocess variant of recover_dimensions with identical results.

    Each phase is split across a process pool; the lowest matching
    candidate of the phase wins. Falls back to the sequential search when
    only one worker would be used.
    """
    if limit < 1:
        raise ValueError(f"search limit must be >= 1, got {limit}")

    num_workers = optimal_worker_count(limit, workers)
    ranges = split_candidate_range(limit, num_workers)
    if len(ranges) <= 1:
        return recover_dimensions(target, record, limit)

    logger.debug("Parallel search: %d workers over 1..%d", len(ranges), limit)

    with mp.Pool(processes=len(ranges)) as pool:
        for field_name in PHASES:
            jobs = [(target, replace(record), field_name, start, end)
                    for start, end in ranges]
            matches = [m for m in pool.map(_scan_worker, jobs) if m is not None]
            if matches:
                found = min(matches)
                setattr(record, field_name, found)
                logger.info("Recovered %s = %d", field_name, found)
                return record.width, record.height

    logger.debug("No candidate in 1..%d matches crc 0x%08X", limit, target)
    return None
