"""libase.layers

Layer chunks.

Payload: u16 flags, u16 type (0 image, 1 folder), u16 child level,
u16 default width, u16 default height (both legacy, always 0),
u16 blend mode, u8[4], string name.

The file stores the tree flattened in pre-order with only a depth per layer.
Cels refer to layers by their position in that same pre-order walk, so the
read-side insertion order and the write-side traversal must agree.
"""

from __future__ import annotations

import logging
from typing import Optional

from .binio import Bin
from .chunks import ChunkType, ChunkWriter
from .errors import ChunkError
from .model import Layer, LayerFolder, LayerImage, LayerKind

log = logging.getLogger(__name__)


class LayerTreeBuilder:
    """Rebuilds the layer tree from consecutive (layer, depth) records.

    Same level -> sibling of the previous layer. Deeper -> child of the
    previous layer. Shallower -> walk up from the previous layer and become a
    sibling at that level. A jump of more than one level down still lands
    one level down (old files rely on this).
    """

    def __init__(self, root: LayerFolder):
        self.root = root
        self.previous: Layer = root
        self.current_level = -1

    def attach(self, layer: Layer, depth: int) -> None:
        if depth == self.current_level:
            parent = self.previous.parent
        elif depth > self.current_level:
            if not isinstance(self.previous, LayerFolder):
                raise ChunkError(
                    f"Layer {layer.name!r} at level {depth} would be a child of image layer {self.previous.name!r}"
                )
            if depth > self.current_level + 1:
                log.warning(
                    "layer %r jumps from level %d to %d; attached one level down",
                    layer.name, self.current_level, depth,
                )
            parent = self.previous
        else:
            ancestor: Optional[Layer] = self.previous
            for _ in range(self.current_level - depth):
                if ancestor is None:
                    break
                ancestor = ancestor.parent
            parent = ancestor.parent if ancestor is not None else None

        if parent is None:
            raise ChunkError(f"Layer {layer.name!r} at level {depth} has no parent folder")

        parent.add_layer(layer)
        self.previous = layer
        self.current_level = depth


def read_layer_chunk(b: Bin, builder: LayerTreeBuilder) -> Layer:
    flags = b.u16()
    layer_type = b.u16()
    child_level = b.u16()
    b.u16()                     # default width
    b.u16()                     # default height
    blend_mode = b.u16()
    b.padding(4)
    name = b.string()

    if layer_type == LayerKind.IMAGE:
        layer: Layer = LayerImage(name, flags, blend_mode)
    elif layer_type == LayerKind.FOLDER:
        layer = LayerFolder(name, flags)
    else:
        raise ChunkError(f"Unknown layer type {layer_type} for layer {name!r}")

    builder.attach(layer, child_level)
    return layer


def write_layer_chunk(cw: ChunkWriter, layer: Layer) -> None:
    with cw.chunk(ChunkType.LAYER) as w:
        w.u16(layer.flags)
        w.u16(int(layer.kind))
        w.u16(layer.depth())
        w.u16(0)
        w.u16(0)
        w.u16(layer.blend_mode if isinstance(layer, LayerImage) else 0)
        w.padding(4)
        w.string(layer.name)


def write_layers(cw: ChunkWriter, layer: Layer) -> None:
    write_layer_chunk(cw, layer)
    if isinstance(layer, LayerFolder):
        for child in layer.layers:
            write_layers(cw, child)
