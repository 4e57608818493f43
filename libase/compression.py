"""libase.compression

zlib adapter for compressed cels.

Reading: the deflate stream has no length field, it simply runs to the end of
the enclosing chunk. Input is pulled in blocks of at most `buffer_size`
bytes and every block is clipped to `chunk_end`, so the decoder never touches
bytes that belong to the next chunk. All scanlines are inflated into one
buffer first, then unpacked row by row.

Writing: each row is packed and fed to deflate; the stream is finished on the
last row and the compressed output is written verbatim.
"""

from __future__ import annotations

import logging
import zlib
from typing import Callable, Optional

from .binio import Bin, BinWriter
from .errors import CompressionError
from .model import Image
from .pixels import pixel_io

log = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 4096

# Best case for deflate is about 1032 output bytes per input byte.
MAX_INFLATE_RATIO = 1032


def read_compressed_image(
    b: Bin,
    image: Image,
    chunk_end: int,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    progress: Optional[Callable[[int], None]] = None,
) -> None:
    io = pixel_io(image.pixel_format)
    row_size = io.scanline_size(image.width)
    expected = row_size * image.height

    z = zlib.decompressobj()
    uncompressed = bytearray()

    while True:
        input_bytes = min(buffer_size, chunk_end - b.tell())
        if input_bytes <= 0:
            break  # consumed the whole chunk

        data = b.read(input_bytes)
        try:
            while data and not z.eof:
                # Never let zlib hand back more than one byte past the image.
                out = z.decompress(data, expected - len(uncompressed) + 1)
                if len(uncompressed) + len(out) > expected:
                    raise CompressionError("Bad compressed image (more data than pixels)")
                uncompressed += out
                if not out and z.unconsumed_tail == data:
                    break
                data = z.unconsumed_tail
        except zlib.error as e:
            raise CompressionError(f"zlib error in inflate(): {e}") from e

        if progress is not None:
            progress(b.tell())

    if len(uncompressed) < expected:
        log.debug("compressed cel short by %d bytes", expected - len(uncompressed))
        uncompressed += bytes(expected - len(uncompressed))

    ofs = 0
    for y in range(image.height):
        image.set_row(y, io.unpack_scanline(uncompressed, image.width, ofs))
        ofs += row_size


def write_compressed_image(
    w: BinWriter,
    image: Image,
    level: int = zlib.Z_DEFAULT_COMPRESSION,
) -> None:
    io = pixel_io(image.pixel_format)
    try:
        z = zlib.compressobj(level)
        for y in range(image.height):
            out = z.compress(io.pack_scanline(image.row(y)))
            if out:
                w.write(out)
        w.write(z.flush(zlib.Z_FINISH))
    except zlib.error as e:
        raise CompressionError(f"zlib error in deflate(): {e}") from e
