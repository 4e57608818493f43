"""libase.palette

Colour chunks.

Two encodings can be read: FLI_COLOR (components 0..63, scaled to 0..255)
and FLI_COLOR2 (components 0..255). Only FLI_COLOR2 is written.

Payload: u16 packet count, then per packet
  u8 skip   entries left untouched before this packet
  u8 count  entries that follow (0 means 256)
  count * (u8 r, u8 g, u8 b)   alpha is always 255
"""

from __future__ import annotations

from .binio import Bin
from .chunks import ChunkType, ChunkWriter
from .errors import ChunkError, UnstorableError
from .model import MAX_PALETTE_SIZE, Document, Palette, rgba, rgba_getb, rgba_getg, rgba_getr

# 6-bit -> 8-bit component table (0, 4, 8, ... 251, 255)
RGB_SCALE_6 = tuple((v * 255 + 31) // 63 for v in range(64))


def read_color_chunk(b: Bin, base: Palette, frame: int, six_bit: bool) -> Palette:
    """Apply the chunk's packets on top of a copy of `base`."""
    pal = base.copy()
    pal.frame = frame

    packets = b.u16()
    index = 0
    for _ in range(packets):
        index += b.u8()
        size = b.u8() or 256
        if index + size > MAX_PALETTE_SIZE:
            raise ChunkError(f"Palette packet writes entries {index}..{index + size - 1}, past {MAX_PALETTE_SIZE}")
        if index + size > pal.size():
            pal.resize(index + size)

        for c in range(index, index + size):
            r, g, bl = b.read(3)
            if six_bit:
                if r > 63 or g > 63 or bl > 63:
                    raise ChunkError(f"6-bit palette entry {c} out of range: ({r}, {g}, {bl})")
                r, g, bl = RGB_SCALE_6[r], RGB_SCALE_6[g], RGB_SCALE_6[bl]
            pal.set_entry(c, rgba(r, g, bl, 255))
        index += size

    return pal


def write_color2_chunk(cw: ChunkWriter, pal: Palette) -> None:
    """Whole palette as a single packet."""
    n = pal.size()
    if not 1 <= n <= MAX_PALETTE_SIZE:
        raise UnstorableError(f"Palette size {n} can't be stored (1..{MAX_PALETTE_SIZE})")

    with cw.chunk(ChunkType.FLI_COLOR2) as w:
        w.u16(1)                        # packets
        w.u8(0)                         # skip
        w.u8(0 if n == 256 else n)      # colours
        for c in pal.entries:
            w.u8(rgba_getr(c))
            w.u8(rgba_getg(c))
            w.u8(rgba_getb(c))


def palette_changed(doc: Document, frame: int) -> bool:
    """True if `frame` needs its own colour chunk."""
    if frame == 0:
        return True
    return doc.get_palette(frame - 1).count_diff(doc.get_palette(frame)) > 0
