#!/usr/bin/env python3
"""
crcfix — recover a PNG's corrupted IHDR width/height from its stored CRC.

Usage:
    python main.py broken.png                 # writes output.png
    python main.py broken.png -o fixed.png
    python main.py broken.png -j 0            # use all CPU cores
"""

APP_VERSION = "1.1.0"

import sys
import logging
import argparse

from crcfix.codec import MAX_DIMENSION
from crcfix.errors import CorrectCrc, ParseError, RecoveryExhausted
from crcfix.pngfile import PngFile

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "output.png"

EXIT_OK = 0
EXIT_FAILURE = 1


def log_level(verbose: int, quiet: bool) -> int:
    """Warnings only by default; stderr stays quiet on success."""
    if quiet:
        return logging.ERROR
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def _configure_logging(verbose: int, quiet: bool):
    logging.basicConfig(
        level=log_level(verbose, quiet),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {n}")
    return n


def _worker_count(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crcfix",
        description="Recover a corrupted PNG width/height by brute-forcing "
                    "the IHDR chunk CRC.")
    parser.add_argument("inputfile", help="Corrupted PNG file")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT,
                        help=f"Where to write the repaired file (default: {DEFAULT_OUTPUT})")
    parser.add_argument("--max-dimension", type=_positive_int, default=MAX_DIMENSION,
                        help=f"Largest width/height to try (default: {MAX_DIMENSION})")
    parser.add_argument("-j", "--workers", type=_worker_count, default=1,
                        help="Search processes: 1 = sequential, 0 = one per CPU")
    parser.add_argument("--no-verify", action="store_true",
                        help="Skip Pillow validation of the repaired file")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="-v for progress, -vv for debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Errors only")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {APP_VERSION}")
    return parser


def run(args) -> int:
    try:
        png = PngFile.open(args.inputfile)
    except CorrectCrc as e:
        print(f"nothing to repair: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except (ParseError, OSError) as e:
        print(f"failed to open input file: {e}", file=sys.stderr)
        return EXIT_FAILURE

    logger.info("IHDR of %s: %dx%d, stored crc 0x%08X",
                args.inputfile, png.record.width, png.record.height, png.crc_val)

    try:
        width, height = png.fix(limit=args.max_dimension, workers=args.workers,
                                verify=not args.no_verify)
    except RecoveryExhausted as e:
        logger.debug("%s", e)
        print("not found! : (", file=sys.stderr)
        return EXIT_FAILURE

    print(f"FOUND! width: {width} height: {height}")

    try:
        integrity = png.save(args.output, validate_format=not args.no_verify)
    except OSError as e:
        print(f"failed to save: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if not integrity.passed:
        print(f"failed to save: {integrity.summary}", file=sys.stderr)
        return EXIT_FAILURE
    return EXIT_OK


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.quiet)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
