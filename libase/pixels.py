"""libase.pixels

Per-format pixel I/O.

There are exactly three pixel formats. Each gets one PixelIO object; callers
look it up once per image with `pixel_io()` and reuse it for every row.
"""

from __future__ import annotations

import struct
from typing import Callable, Dict, List, Optional

from .binio import Bin, BinWriter
from .model import Image, PixelFormat


class PixelIO:
    pixel_format: PixelFormat
    bytes_per_pixel: int
    _code: str

    def scanline_size(self, width: int) -> int:
        return width * self.bytes_per_pixel

    def read_pixel(self, b: Bin) -> int:
        return struct.unpack("<" + self._code, b.read(self.bytes_per_pixel))[0]

    def write_pixel(self, w: BinWriter, c: int) -> None:
        w.write(struct.pack("<" + self._code, c))

    def pack_scanline(self, row: List[int]) -> bytes:
        return struct.pack(f"<{len(row)}{self._code}", *row)

    def unpack_scanline(self, buf: bytes, width: int, offset: int = 0) -> List[int]:
        return list(struct.unpack_from(f"<{width}{self._code}", buf, offset))


class RgbIO(PixelIO):
    # r, g, b, a bytes == one little-endian u32
    pixel_format = PixelFormat.RGB
    bytes_per_pixel = 4
    _code = "I"


class GrayscaleIO(PixelIO):
    # value, alpha bytes == one little-endian u16
    pixel_format = PixelFormat.GRAYSCALE
    bytes_per_pixel = 2
    _code = "H"


class IndexedIO(PixelIO):
    pixel_format = PixelFormat.INDEXED
    bytes_per_pixel = 1
    _code = "B"

    def read_pixel(self, b: Bin) -> int:
        return b.u8()

    def write_pixel(self, w: BinWriter, c: int) -> None:
        w.u8(c)

    def pack_scanline(self, row: List[int]) -> bytes:
        return bytes(row)

    def unpack_scanline(self, buf: bytes, width: int, offset: int = 0) -> List[int]:
        return list(buf[offset : offset + width])


_PIXEL_IO: Dict[PixelFormat, PixelIO] = {
    PixelFormat.RGB: RgbIO(),
    PixelFormat.GRAYSCALE: GrayscaleIO(),
    PixelFormat.INDEXED: IndexedIO(),
}


def pixel_io(fmt: PixelFormat) -> PixelIO:
    return _PIXEL_IO[fmt]


def read_raw_image(b: Bin, image: Image, progress: Optional[Callable[[int], None]] = None) -> None:
    """Uncompressed row-major pixels straight from the chunk body."""
    io = pixel_io(image.pixel_format)
    for y in range(image.height):
        image.set_row(y, [io.read_pixel(b) for _ in range(image.width)])
        if progress is not None:
            progress(b.tell())


def write_raw_image(w: BinWriter, image: Image) -> None:
    io = pixel_io(image.pixel_format)
    for c in image.pixels:
        io.write_pixel(w, c)
