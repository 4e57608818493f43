"""libase.chunks

File framing: the 128-byte document header, 16-byte frame headers and the
6-byte chunk prefix.

Layout (all little-endian):

  header  u32 file size, u16 magic 0xA5E0, u16 frames, u16 width, u16 height,
          u16 depth, u32 flags, u16 speed, u32 next, u32 frit,
          u8 transparent index, u8[3], u16 ncolors, zero fill to 128
  frame   u32 size, u16 magic 0xF1FA, u16 chunk count, u16 duration, u8[6]
  chunk   u32 size (prefix included), u16 type, payload

Sizes are not known until the body is written, so the writer reserves the
prefix, writes the body, then seeks back and patches it.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Optional, Union

from .binio import Bin, BinWriter
from .errors import ChunkStateError, StructuralError

ASE_FILE_MAGIC = 0xA5E0
ASE_FILE_FRAME_MAGIC = 0xF1FA

HEADER_SIZE = 128
FRAME_HEADER_SIZE = 16
CHUNK_PREFIX_SIZE = 6


class ChunkType(IntEnum):
    FLI_COLOR2 = 4       # palette, 8-bit components
    FLI_COLOR = 11       # palette, 6-bit components (old files)
    LAYER = 0x2004
    CEL = 0x2005
    MASK = 0x2016
    PATH = 0x2017


def chunk_type_name(t: int) -> str:
    try:
        return ChunkType(t).name
    except ValueError:
        return f"UNKNOWN(0x{t:04X})"


@dataclass
class AseHeader:
    file_size: int
    frames: int
    width: int
    height: int
    depth: int
    flags: int = 0
    speed: int = 0
    next: int = 0
    frit: int = 0
    transparent_index: int = 0
    ncolors: int = 256
    magic: int = ASE_FILE_MAGIC
    # stream offset of the header itself
    pos: int = 0


@dataclass
class FrameHeader:
    size: int
    magic: int
    chunks: int
    duration: int


def read_header(b: Bin) -> AseHeader:
    pos = b.tell()
    file_size = b.u32()
    magic = b.u16()
    if magic != ASE_FILE_MAGIC:
        raise StructuralError(f"Not an .ase file (magic 0x{magic:04X}, expected 0x{ASE_FILE_MAGIC:04X})")

    h = AseHeader(
        file_size=file_size,
        frames=b.u16(),
        width=b.u16(),
        height=b.u16(),
        depth=b.u16(),
        flags=b.u32(),
        speed=b.u16(),
        next=b.u32(),
        frit=b.u32(),
        transparent_index=b.u8(),
        pos=pos,
    )
    b.padding(3)
    h.ncolors = b.u16()
    if h.ncolors == 0:  # 0 means 256 (old .ase files)
        h.ncolors = 256

    if pos + HEADER_SIZE > b.end:
        raise StructuralError(f"Truncated header ({b.end - pos} bytes)")
    b.seek(pos + HEADER_SIZE)
    return h


def write_header(w: BinWriter, h: AseHeader) -> None:
    """Backpatch the header at `h.pos`; file size runs up to the current offset."""
    end = w.tell()
    h.file_size = end - h.pos

    w.seek(h.pos)
    w.u32(h.file_size)
    w.u16(h.magic)
    w.u16(h.frames)
    w.u16(h.width)
    w.u16(h.height)
    w.u16(h.depth)
    w.u32(h.flags)
    w.u16(h.speed)
    w.u32(h.next)
    w.u32(h.frit)
    w.u8(h.transparent_index)
    w.padding(3)
    w.u16(h.ncolors)
    w.padding(HEADER_SIZE - 34)
    w.seek(end)


def read_frame_header(b: Bin) -> FrameHeader:
    fh = FrameHeader(size=b.u32(), magic=b.u16(), chunks=b.u16(), duration=b.u16())
    b.padding(6)
    return fh


# -----------------------------
# Write-side framing
# -----------------------------

@dataclass(frozen=True)
class _Closed:
    pass


@dataclass(frozen=True)
class _Open:
    start: int
    type: int


CLOSED = _Closed()


class ChunkWriter:
    """Frame and chunk framing state for a single save call.

    At most one frame and one chunk can be open. Breaking that rule is a bug
    in the caller and raises ChunkStateError.
    """

    def __init__(self, w: BinWriter):
        self.w = w
        self.state: Union[_Closed, _Open] = CLOSED
        self._frame_start: Optional[int] = None
        self._frame_chunks = 0

    @property
    def in_frame(self) -> bool:
        return self._frame_start is not None

    def begin_frame(self) -> None:
        if self.in_frame:
            raise ChunkStateError("begin_frame() while a frame is still open")
        self._frame_start = self.w.tell()
        self._frame_chunks = 0
        self.w.padding(FRAME_HEADER_SIZE)

    def end_frame(self, duration: int) -> int:
        """Patch the frame header; returns the frame size."""
        if not self.in_frame:
            raise ChunkStateError("end_frame() without begin_frame()")
        if isinstance(self.state, _Open):
            raise ChunkStateError(f"end_frame() with chunk 0x{self.state.type:04X} still open")

        pos = self._frame_start
        end = self.w.tell()
        size = end - pos

        self.w.seek(pos)
        self.w.u32(size)
        self.w.u16(ASE_FILE_FRAME_MAGIC)
        self.w.u16(self._frame_chunks)
        self.w.u16(duration)
        self.w.padding(6)
        self.w.seek(end)

        self._frame_start = None
        return size

    def start_chunk(self, chunk_type: int) -> None:
        if not self.in_frame:
            raise ChunkStateError("start_chunk() outside of a frame")
        if isinstance(self.state, _Open):
            raise ChunkStateError(
                f"start_chunk(0x{chunk_type:04X}) while chunk 0x{self.state.type:04X} is open"
            )
        self._frame_chunks += 1
        self.state = _Open(self.w.tell(), chunk_type)
        self.w.padding(CHUNK_PREFIX_SIZE)

    def close_chunk(self) -> int:
        """Patch the chunk prefix; returns the chunk size."""
        if not isinstance(self.state, _Open):
            raise ChunkStateError("close_chunk() without an open chunk")
        start, chunk_type = self.state.start, self.state.type
        end = self.w.tell()
        size = end - start

        self.w.seek(start)
        self.w.u32(size)
        self.w.u16(chunk_type)
        self.w.seek(end)

        self.state = CLOSED
        return size

    @contextmanager
    def chunk(self, chunk_type: int) -> Iterator[BinWriter]:
        self.start_chunk(chunk_type)
        yield self.w
        self.close_chunk()
