"""libase.mask

Mask chunks (old selection masks). Parsed so their payload is validated,
then dropped; they are never written.

Payload: u16 x, u16 y, u16 w, u16 h, u8[8], string name, then h rows of
ceil(w/8) bytes, 1 bit per pixel, most significant bit first.
"""

from __future__ import annotations

from .binio import Bin
from .errors import ChunkError
from .model import Mask


def read_mask_chunk(b: Bin) -> Mask:
    x = b.u16()
    y = b.u16()
    w = b.u16()
    h = b.u16()
    b.padding(8)
    name = b.string()

    row_bytes = (w + 7) // 8
    if row_bytes * h > b.remaining():
        raise ChunkError(f"Mask {w}x{h} needs {row_bytes * h} bytes, chunk has {b.remaining()}")

    mask = Mask(x, y, w, h, name)
    for v in range(h):
        row = b.read(row_bytes)
        for u, byte in enumerate(row):
            for c in range(8):
                mask.putpixel(u * 8 + c, v, bool(byte & (1 << (7 - c))))
    return mask
