"""
ICO container encoder.

File layout (all integers little-endian):

- Header, 6 bytes: reserved (0), resource type (1 = icon), entry count.
- Directory, 16 bytes per entry: width, height, colour count, reserved,
  planes, bits per pixel, payload size, payload offset.
- Payloads, in directory order.

Width and height are single bytes where 0 means 256. Payloads are either a
PNG file or a BMP DIB (BITMAPINFOHEADER + bottom-up BGRA rows + AND mask)
whose height field is doubled to account for the mask.
"""

import contextlib
import logging
import os
import stat
import struct
import tempfile
from io import BytesIO
from pathlib import Path

from PIL import Image

from svg_to_ico.errors import IoError

logger = logging.getLogger(__name__)

HEADER_SIZE = 6
ENTRY_SIZE = 16
RESOURCE_TYPE_ICON = 1
COLOR_PLANES = 1
BITS_PER_PIXEL = 32
BITMAPINFOHEADER_SIZE = 40
BI_RGB = 0

# Images with a side at least this long are stored as PNG.
PNG_THRESHOLD = 256

MAX_ENTRIES = 0xFFFF
MAX_OFFSET = 0xFFFFFFFF

_HEADER_FORMAT = "<HHH"
_ENTRY_FORMAT = "<BBBBHHII"
_BITMAPINFOHEADER_FORMAT = "<IiiHHIIiiII"


def stored_dimension(pixels: int) -> int:
    """Directory byte for a width or height: the low 8 bits, so 256 becomes 0."""
    return pixels & 0xFF


class IconDirEntry:
    """One row of the directory table."""

    def __init__(self, width, height, size, offset, color_count=0, reserved=0,
                 planes=COLOR_PLANES, bit_count=BITS_PER_PIXEL):
        self.width = width
        self.height = height
        self.color_count = color_count
        self.reserved = reserved
        self.planes = planes
        self.bit_count = bit_count
        self.size = size
        self.offset = offset

    def __repr__(self):
        return (f"IconDirEntry(width={self.width}, height={self.height}, "
                f"size={self.size}, offset={self.offset})")

    def pack(self) -> bytes:
        return struct.pack(
            _ENTRY_FORMAT,
            self.width,
            self.height,
            self.color_count,
            self.reserved,
            self.planes,
            self.bit_count,
            self.size,
            self.offset,
        )


class IconDir:
    """In-memory icon container: directory entries and their payloads."""

    def __init__(self, entries=None, payloads=None):
        self.entries = list(entries or [])
        self.payloads = list(payloads or [])
        if len(self.entries) != len(self.payloads):
            raise ValueError(
                f"{len(self.entries)} entries but {len(self.payloads)} payloads"
            )

    def header(self) -> bytes:
        return struct.pack(_HEADER_FORMAT, 0, RESOURCE_TYPE_ICON, len(self.entries))

    def to_bytes(self) -> bytes:
        parts = [self.header()]
        parts.extend(entry.pack() for entry in self.entries)
        parts.extend(self.payloads)
        return b"".join(parts)


def _and_mask(image) -> bytes:
    # 1 bit per pixel, bottom-up rows padded to 4 bytes, set where alpha is 0.
    transparent = image.to_pil().getchannel("A").point(lambda a: 255 if a == 0 else 0, mode="1")
    packed = transparent.transpose(Image.Transpose.FLIP_TOP_BOTTOM).tobytes("raw", "1")
    packed_row = (image.width + 7) // 8
    padding = bytes(((image.width + 31) // 32) * 4 - packed_row)
    return b"".join(
        packed[start:start + packed_row] + padding
        for start in range(0, len(packed), packed_row)
    )


def encode_bmp(image) -> bytes:
    """Encode a RasterImage as a 32-bit BMP DIB for an ICO entry."""
    flipped = image.to_pil().transpose(Image.Transpose.FLIP_TOP_BOTTOM)
    xor_data = flipped.tobytes("raw", "BGRA")
    and_data = _and_mask(image)
    header = struct.pack(
        _BITMAPINFOHEADER_FORMAT,
        BITMAPINFOHEADER_SIZE,
        image.width,
        image.height * 2,  # XOR + AND mask
        COLOR_PLANES,
        BITS_PER_PIXEL,
        BI_RGB,
        len(xor_data) + len(and_data),
        0, 0,
        0, 0,
    )
    return header + xor_data + and_data


def encode_png(image) -> bytes:
    """Encode a RasterImage as a PNG file."""
    buf = BytesIO()
    image.to_pil().save(buf, format="PNG")
    return buf.getvalue()


def encode_payload(image) -> bytes:
    """Encode one image, as PNG for 256 px and up, as BMP otherwise."""
    if image.width >= PNG_THRESHOLD or image.height >= PNG_THRESHOLD:
        return encode_png(image)
    return encode_bmp(image)


def build_entry(image, payload, offset):
    """
    Directory entry for a payload placed at ``offset``.

    Returns:
        tuple: (IconDirEntry, offset of the next payload)
    """
    next_offset = offset + len(payload)
    if next_offset > MAX_OFFSET:
        raise ValueError("Icon data exceeds the 4 GiB addressable by the directory")
    entry = IconDirEntry(
        width=stored_dimension(image.width),
        height=stored_dimension(image.height),
        size=len(payload),
        offset=offset,
    )
    return entry, next_offset


def build_directory(images) -> IconDir:
    """
    Build the container for images in the given order.

    Payloads are encoded independently; offsets are then assigned in order,
    starting right after the directory table.
    """
    images = list(images)
    if len(images) > MAX_ENTRIES:
        raise ValueError(f"An icon holds at most {MAX_ENTRIES} entries, got {len(images)}")

    payloads = [encode_payload(image) for image in images]

    entries = []
    offset = HEADER_SIZE + len(images) * ENTRY_SIZE
    for image, payload in zip(images, payloads):
        entry, offset = build_entry(image, payload, offset)
        entries.append(entry)

    return IconDir(entries, payloads)


def encode(images) -> bytes:
    """Serialize RasterImages into the bytes of one ICO file."""
    icon_dir = build_directory(images)
    data = icon_dir.to_bytes()
    logger.debug(f"Encoded {len(icon_dir.entries)} icon entries into {len(data)} bytes")
    return data


def _file_mode(path):
    """Permissions for the written file: the existing file's, else 0666 less the umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write(path, data: bytes) -> Path:
    """
    Write ICO bytes to ``path``, creating missing parent directories.

    The data goes to a temporary file next to the target which then replaces
    it, so the target never holds a partial file.

    Raises:
        IoError: Directory creation or writing failed.
    """
    path = Path(path)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp_name, _file_mode(path))
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None:
            with contextlib.suppress(OSError):
                os.remove(tmp_name)
        raise IoError(f"Could not write {path}: {e}", e) from e

    logger.info(f"Wrote {path} ({len(data)} bytes)")
    return path
