"""libase.writer

Saves a Document as .ase.

Per frame: a colour chunk when the palette changed (indexed documents only,
always in frame 0), every layer chunk in frame 0, then one COMPRESSED cel
chunk per cel in layer pre-order. Header, frame and chunk sizes are patched
once their extent is known, so the target stream must be seekable.

All framing state lives in a ChunkWriter created per call.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

from .binio import BinWriter
from .cels import write_cels
from .chunks import HEADER_SIZE, AseHeader, ChunkWriter, write_header
from .errors import AseIOError, UnstorableError
from .layers import write_layers
from .model import Document, PixelFormat
from .options import SaveOptions
from .palette import palette_changed, write_color2_chunk

log = logging.getLogger(__name__)


def _check_u16(what: str, v: int) -> None:
    if not 0 <= v <= 0xFFFF:
        raise UnstorableError(f"{what} {v} does not fit in 16 bits")


def _prepare_header(w: BinWriter, doc: Document) -> AseHeader:
    h = AseHeader(
        file_size=0,
        frames=doc.total_frames,
        width=doc.width,
        height=doc.height,
        depth=doc.pixel_format.depth,
        speed=doc.frame_duration(0),
        transparent_index=doc.transparent_index,
        ncolors=doc.get_palette(0).size(),
        pos=w.tell(),
    )
    w.padding(HEADER_SIZE)
    return h


def save(
    doc: Document,
    f: BinaryIO,
    progress: Optional[Callable[[float], object]] = None,
    options: Optional[SaveOptions] = None,
) -> None:
    options = options or SaveOptions()

    _check_u16("Frame count", doc.total_frames)
    _check_u16("Width", doc.width)
    _check_u16("Height", doc.height)
    for frame in range(doc.total_frames):
        _check_u16(f"Frame {frame} duration", doc.frame_duration(frame))

    w = BinWriter(f)
    header = _prepare_header(w, doc)
    cw = ChunkWriter(w)
    total = doc.total_frames

    for frame in range(total):
        cw.begin_frame()

        if doc.pixel_format == PixelFormat.INDEXED and palette_changed(doc, frame):
            write_color2_chunk(cw, doc.get_palette(frame))

        if frame == 0:
            for layer in doc.root.layers:
                write_layers(cw, layer)

        write_cels(cw, doc, doc.root, frame, options.compression_level)

        size = cw.end_frame(doc.frame_duration(frame))
        log.debug("frame %d written (%d bytes)", frame, size)

        if total > 1 and progress is not None:
            progress((frame + 1) / total)

    write_header(w, header)


def write_ase(
    doc: Document,
    path: Union[str, Path],
    progress: Optional[Callable[[float], object]] = None,
    options: Optional[SaveOptions] = None,
) -> None:
    try:
        with open(path, "wb") as f:
            save(doc, f, progress, options)
    except OSError as e:
        raise AseIOError(f"Error writing {path}: {e}") from e
    log.info("saved %s (%d frame(s))", path, doc.total_frames)
