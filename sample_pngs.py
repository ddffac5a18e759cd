"""PNG fixtures shared by the test scripts."""
import io
import struct
import zlib

from PIL import Image

PNG_SIG = b"\x89PNG\r\n\x1A\n"

# Byte offsets inside a PNG whose first chunk is IHDR
WIDTH_OFFSET = 16
HEIGHT_OFFSET = 20
IHDR_CRC_OFFSET = 29


def make_png(width, height, mode="RGB", color=(200, 30, 90)):
    """Encode a solid-colour image with Pillow."""
    if mode in ("L", "P", "1"):
        color = 128 if mode != "1" else 1
    elif mode == "RGBA":
        color = tuple(color) + (255,)
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()


def _chunk(chunk_type, data):
    crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + chunk_type + data + struct.pack(">I", crc)


def build_minimal_png(width, height, bit_depth=8, color_type=0, interlace=0,
                      ihdr_crc=None):
    """Hand-build a PNG (IHDR + IDAT + IEND) with zero-filled rows.

    ihdr_crc overrides the stored IHDR checksum.
    """
    ihdr = struct.pack(">IIBBBBB", width, height, bit_depth, color_type,
                       0, 0, interlace)
    ihdr_chunk = _chunk(b"IHDR", ihdr)
    if ihdr_crc is not None:
        ihdr_chunk = ihdr_chunk[:-4] + struct.pack(">I", ihdr_crc)

    channels = {0: 1, 2: 3, 3: 1, 4: 2, 6: 4}[color_type]
    row_bytes = (width * channels * bit_depth + 7) // 8
    raw = (b"\x00" + b"\x00" * row_bytes) * height
    return (PNG_SIG + ihdr_chunk + _chunk(b"IDAT", zlib.compress(raw))
            + _chunk(b"IEND", b""))


def corrupt(data, offset, value):
    """Return a copy of data with a big-endian u32 overwritten at offset."""
    buf = bytearray(data)
    struct.pack_into(">I", buf, offset, value)
    return bytes(buf)


def stored_ihdr_crc(data):
    return struct.unpack(">I", data[IHDR_CRC_OFFSET:IHDR_CRC_OFFSET + 4])[0]
