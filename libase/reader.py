"""libase.reader

Loads an .ase document.

The whole stream is read into memory, then walked frame by frame. Each chunk
body is decoded from a view bounded by the chunk's declared size. Whatever
the decoder does, the cursor is put back at chunk start + declared size
before the next chunk, so a bad chunk never desynchronises the rest of the
file.

Errors with `recoverable = True` (ChunkError, CompressionError) are logged,
appended to the caller's `errors` list and skipped. Anything else aborts the
load.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Callable, List, Optional, Union

from .binio import Bin
from .cels import read_cel_chunk
from .chunks import (
    ASE_FILE_FRAME_MAGIC,
    CHUNK_PREFIX_SIZE,
    FRAME_HEADER_SIZE,
    ChunkType,
    read_frame_header,
    read_header,
)
from .errors import AseError, AseIOError, ChunkError, StructuralError
from .layers import LayerTreeBuilder, read_layer_chunk
from .mask import read_mask_chunk
from .model import MAX_PALETTE_SIZE, Document, PixelFormat
from .options import LoadOptions
from .palette import read_color_chunk

log = logging.getLogger(__name__)

# Called with the fraction of the file consumed. Return False to cancel.
ProgressFn = Callable[[float], Optional[bool]]


class _Progress:
    def __init__(self, fn: Optional[ProgressFn], total: int):
        self.fn = fn
        self.total = total
        self.cancelled = False

    def __call__(self, offset: int) -> None:
        if self.fn is None or self.total <= 0:
            return
        if self.fn(min(1.0, offset / self.total)) is False:
            self.cancelled = True


def _recover(e: AseError, errors: Optional[List[AseError]]) -> None:
    log.warning("%s", e)
    if errors is not None:
        errors.append(e)


def _read_chunk(
    body: Bin,
    chunk_type: int,
    chunk_end: int,
    doc: Document,
    frame: int,
    builder: LayerTreeBuilder,
    options: LoadOptions,
    report: _Progress,
) -> None:
    if chunk_type in (ChunkType.FLI_COLOR, ChunkType.FLI_COLOR2):
        if doc.pixel_format != PixelFormat.INDEXED:
            raise ChunkError(f"Frame {frame}: colour chunk in a non-indexed file (ignored)")
        prev = doc.get_palette(frame)
        pal = read_color_chunk(body, prev, frame, six_bit=chunk_type == ChunkType.FLI_COLOR)
        if prev.count_diff(pal) > 0:
            doc.set_palette(pal)

    elif chunk_type == ChunkType.LAYER:
        read_layer_chunk(body, builder)

    elif chunk_type == ChunkType.CEL:
        read_cel_chunk(body, doc, frame, chunk_end, options.input_buffer_size, report)

    elif chunk_type == ChunkType.MASK:
        mask = read_mask_chunk(body)
        log.debug("frame %d: mask %r %dx%d dropped", frame, mask.name, mask.width, mask.height)

    elif chunk_type == ChunkType.PATH:
        pass

    else:
        raise ChunkError(f"Frame {frame}: unsupported chunk type 0x{chunk_type:04X} (skipped)")


def loads(
    data: bytes,
    progress: Optional[ProgressFn] = None,
    options: Optional[LoadOptions] = None,
    errors: Optional[List[AseError]] = None,
) -> Document:
    options = options or LoadOptions()
    b = Bin(data)

    header = read_header(b)
    if header.file_size > len(data):
        raise StructuralError(f"Header declares {header.file_size} bytes, stream has {len(data)}")
    try:
        pixel_format = PixelFormat(header.depth)
    except ValueError:
        raise StructuralError(f"Unsupported colour depth {header.depth}") from None
    if header.frames == 0:
        raise StructuralError("File declares no frames")

    ncolors = header.ncolors
    if ncolors > MAX_PALETTE_SIZE:
        if pixel_format == PixelFormat.INDEXED:
            raise StructuralError(f"Header declares {ncolors} colours, at most {MAX_PALETTE_SIZE} are possible")
        # RGB/grayscale files never store a palette; the field is unused
        log.debug("header palette size %d clamped to %d", ncolors, MAX_PALETTE_SIZE)
        ncolors = MAX_PALETTE_SIZE

    doc = Document(pixel_format, header.width, header.height, ncolors, header.frames)
    doc.set_duration_for_all_frames(header.speed)
    doc.transparent_index = header.transparent_index

    builder = LayerTreeBuilder(doc.root)
    report = _Progress(progress, header.file_size)

    for frame in range(header.frames):
        frame_pos = b.tell()
        report(frame_pos)

        fh = read_frame_header(b)
        if fh.size < FRAME_HEADER_SIZE or frame_pos + fh.size > b.end:
            raise StructuralError(f"Frame {frame} at {frame_pos}: bad size {fh.size}")
        frame_end = frame_pos + fh.size

        if fh.magic == ASE_FILE_FRAME_MAGIC:
            if fh.duration > 0:
                doc.set_frame_duration(frame, fh.duration)
            elif frame > 0:
                doc.set_frame_duration(frame, doc.frame_duration(frame - 1))

            for c in range(fh.chunks):
                chunk_pos = b.tell()
                report(chunk_pos)

                if chunk_pos + CHUNK_PREFIX_SIZE > frame_end:
                    raise StructuralError(f"Frame {frame}: chunk {c} starts past the end of the frame")
                chunk_size = b.u32()
                chunk_type = b.u16()
                chunk_end = chunk_pos + chunk_size
                if chunk_size < CHUNK_PREFIX_SIZE or chunk_end > frame_end:
                    raise StructuralError(
                        f"Frame {frame}: chunk {c} at {chunk_pos} has bad size {chunk_size}"
                    )

                log.debug("frame %d chunk %d: type 0x%04X size %d", frame, c, chunk_type, chunk_size)
                try:
                    _read_chunk(
                        b.view(chunk_end, ChunkError),
                        chunk_type, chunk_end, doc, frame, builder, options, report,
                    )
                except AseError as e:
                    if not e.recoverable:
                        raise
                    _recover(e, errors)

                b.seek(chunk_end)
        else:
            _recover(ChunkError(f"Frame {frame}: bad frame magic 0x{fh.magic:04X} (skipped)"), errors)

        b.seek(frame_end)

        if options.one_frame:
            break
        if report.cancelled:
            log.info("load cancelled after frame %d", frame)
            break

    return doc


def load(
    f: BinaryIO,
    progress: Optional[ProgressFn] = None,
    options: Optional[LoadOptions] = None,
    errors: Optional[List[AseError]] = None,
) -> Document:
    try:
        data = f.read()
    except OSError as e:
        raise AseIOError(f"Error reading file: {e}") from e
    return loads(data, progress, options, errors)


def read_ase(
    path: Union[str, Path],
    progress: Optional[ProgressFn] = None,
    options: Optional[LoadOptions] = None,
    errors: Optional[List[AseError]] = None,
) -> Document:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise AseIOError(f"Error reading {path}: {e}") from e

    doc = loads(data, progress, options, errors)
    log.info(
        "loaded %s: %dx%d %s, %d frame(s), %d layer(s)",
        path, doc.width, doc.height, doc.pixel_format.name, doc.total_frames, len(doc.layers()),
    )
    return doc
