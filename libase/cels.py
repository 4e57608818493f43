"""libase.cels

Cel chunks.

Payload: u16 layer index (pre-order), s16 x, s16 y, u8 opacity, u16 cel type,
u8[7], then by type:

  RAW         u16 w, u16 h, w*h pixels
  LINK        u16 frame whose cel (same layer) supplies the pixels
  COMPRESSED  u16 w, u16 h, zlib stream running to the end of the chunk

Link cels are materialised as an independent copy of the other frame's image;
nothing is shared after loading. Saving always produces COMPRESSED cels.
"""

from __future__ import annotations

import zlib
from enum import IntEnum
from typing import Callable, Optional

from .binio import Bin
from .chunks import ChunkType, ChunkWriter
from .compression import DEFAULT_BUFFER_SIZE, MAX_INFLATE_RATIO, read_compressed_image, write_compressed_image
from .errors import ChunkError, CompressionError, UnstorableError
from .model import Cel, Document, Image, Layer, LayerFolder, LayerImage
from .pixels import pixel_io, read_raw_image, write_raw_image


class CelType(IntEnum):
    RAW = 0
    LINK = 1
    COMPRESSED = 2


def read_cel_chunk(
    b: Bin,
    doc: Document,
    frame: int,
    chunk_end: int,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    progress: Optional[Callable[[int], None]] = None,
) -> Cel:
    layer_index = b.u16()
    x = b.s16()
    y = b.s16()
    opacity = b.u8()
    cel_type = b.u16()
    b.padding(7)

    layer = doc.index_to_layer(layer_index)
    if layer is None:
        raise ChunkError(f"Frame {frame}: no layer with index {layer_index}")
    if not isinstance(layer, LayerImage):
        raise ChunkError(f"Frame {frame}: layer {layer_index} ({layer.name!r}) does not contain images")

    cel = Cel(frame, x, y, opacity)

    if cel_type == CelType.RAW:
        w, h = b.u16(), b.u16()
        if w > 0 and h > 0:
            need = pixel_io(doc.pixel_format).scanline_size(w) * h
            if need > b.remaining():
                raise ChunkError(
                    f"Frame {frame}: raw cel {w}x{h} needs {need} bytes, chunk has {b.remaining()}"
                )
            image = Image(doc.pixel_format, w, h)
            read_raw_image(b, image, progress)
            cel.image = image
        layer.add_cel(cel)

    elif cel_type == CelType.LINK:
        link_frame = b.u16()
        link = layer.get_cel(link_frame)
        if link is None:
            raise ChunkError(
                f"Frame {frame}: linked cel (frame {link_frame}, layer {layer_index}) not found"
            )
        if link.image is not None:
            cel.image = link.image.copy()
        layer.add_cel(cel)

    elif cel_type == CelType.COMPRESSED:
        w, h = b.u16(), b.u16()
        # Added before decoding: if inflate fails the cel stays, without pixels.
        layer.add_cel(cel)
        if w > 0 and h > 0:
            need = pixel_io(doc.pixel_format).scanline_size(w) * h
            if need > (chunk_end - b.tell()) * MAX_INFLATE_RATIO:
                raise CompressionError(
                    f"Frame {frame}: compressed cel {w}x{h} can't come from {chunk_end - b.tell()} bytes"
                )
            image = Image(doc.pixel_format, w, h)
            read_compressed_image(b, image, chunk_end, buffer_size, progress)
            cel.image = image

    else:
        raise ChunkError(f"Frame {frame}: unknown cel type {cel_type}")

    return cel


def write_cel_chunk(
    cw: ChunkWriter,
    cel: Cel,
    layer: LayerImage,
    doc: Document,
    level: int = zlib.Z_DEFAULT_COMPRESSION,
    cel_type: CelType = CelType.COMPRESSED,
) -> None:
    if cel_type == CelType.LINK:
        raise ValueError("Link cels are read-only; write RAW or COMPRESSED")

    image = cel.image
    if image is not None and image.pixel_format != doc.pixel_format:
        raise UnstorableError(
            f"Cel at frame {cel.frame} has {image.pixel_format.name} pixels in a {doc.pixel_format.name} document"
        )

    with cw.chunk(ChunkType.CEL) as w:
        w.u16(doc.layer_to_index(layer))
        w.s16(cel.x)
        w.s16(cel.y)
        w.u8(cel.opacity)
        w.u16(int(cel_type))
        w.padding(7)

        if image is None or image.width == 0 or image.height == 0:
            w.u16(0)
            w.u16(0)
        else:
            w.u16(image.width)
            w.u16(image.height)
            if cel_type == CelType.RAW:
                write_raw_image(w, image)
            else:
                write_compressed_image(w, image, level)


def write_cels(cw: ChunkWriter, doc: Document, layer: Layer, frame: int, level: int = zlib.Z_DEFAULT_COMPRESSION) -> None:
    """Cels of `frame`, in the same pre-order walk as the layer chunks."""
    if isinstance(layer, LayerImage):
        cel = layer.get_cel(frame)
        if cel is not None:
            write_cel_chunk(cw, cel, layer, doc, level)

    if isinstance(layer, LayerFolder):
        for child in layer.layers:
            write_cels(cw, doc, child, frame, level)
