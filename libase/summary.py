from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Tuple

from .binio import Bin
from .chunks import (
    CHUNK_PREFIX_SIZE,
    FRAME_HEADER_SIZE,
    AseHeader,
    chunk_type_name,
    read_frame_header,
    read_header,
)
from .errors import AseError, StructuralError
from .model import LayerImage
from .reader import loads


# -----------------------------
# Chunk-level scan (no decoding)
# -----------------------------

@dataclass
class AseChunkInfo:
    offset: int
    size: int
    type_int: int

    @property
    def type_name(self) -> str:
        return chunk_type_name(self.type_int)


@dataclass
class AseFrameInfo:
    index: int
    offset: int
    size: int
    magic: int
    duration: int
    chunks: List[AseChunkInfo] = field(default_factory=list)


def scan_ase(data: bytes) -> Tuple[AseHeader, List[AseFrameInfo]]:
    """Walk header, frames and chunk prefixes only."""
    b = Bin(data)
    header = read_header(b)
    frames: List[AseFrameInfo] = []

    for i in range(header.frames):
        pos = b.tell()
        fh = read_frame_header(b)
        if fh.size < FRAME_HEADER_SIZE or pos + fh.size > b.end:
            raise StructuralError(f"Frame {i} at {pos}: bad size {fh.size}")
        info = AseFrameInfo(i, pos, fh.size, fh.magic, fh.duration)
        end = pos + fh.size

        for _ in range(fh.chunks):
            cpos = b.tell()
            if cpos + CHUNK_PREFIX_SIZE > end:
                raise StructuralError(f"Frame {i}: chunk prefix at {cpos} past frame end")
            size = b.u32()
            ctype = b.u16()
            if size < CHUNK_PREFIX_SIZE or cpos + size > end:
                raise StructuralError(f"Frame {i}: chunk at {cpos} has bad size {size}")
            info.chunks.append(AseChunkInfo(cpos, size, ctype))
            b.seek(cpos + size)

        frames.append(info)
        b.seek(end)

    return header, frames


# -----------------------------
# High-level summary used by asecli
# -----------------------------

@dataclass
class AseLayerInfo:
    depth: int
    kind: str
    name: str
    flags: int
    cels: int


@dataclass
class AseSummary:
    path: str
    file_size: int
    header: AseHeader
    frames: List[AseFrameInfo]
    layers: List[AseLayerInfo]
    palettes: int
    errors: List[str]


def summarize_ase(path: str) -> AseSummary:
    size = os.path.getsize(path)
    with open(path, "rb") as f:
        data = f.read()

    header, frames = scan_ase(data)

    errors: List[AseError] = []
    doc = loads(data, errors=errors)

    layers = [
        AseLayerInfo(
            depth=l.depth(),
            kind=l.kind.name,
            # names are raw bytes; show them the way old tools did
            name=l.name.decode("latin1", errors="replace"),
            flags=l.flags,
            cels=len(l.cels()) if isinstance(l, LayerImage) else 0,
        )
        for l in doc.layers()
    ]

    return AseSummary(
        path=path,
        file_size=size,
        header=header,
        frames=frames,
        layers=layers,
        palettes=len(doc.palettes),
        errors=[str(e) for e in errors],
    )
