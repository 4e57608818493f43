from __future__ import annotations

import pytest

from libase.model import (
    Cel,
    Document,
    Image,
    LayerFolder,
    LayerImage,
    PixelFormat,
    graya,
    rgba,
)


@pytest.fixture
def indexed_doc():
    """1 frame, 2x2 indexed, transparent index 0, one cel with indices 0..3."""
    doc = Document(PixelFormat.INDEXED, 2, 2, ncolors=8)
    doc.transparent_index = 0
    layer = LayerImage(b"Layer 1")
    doc.root.add_layer(layer)
    layer.add_cel(Cel(0, 0, 0, 255, Image(PixelFormat.INDEXED, 2, 2, [0, 1, 2, 3])))
    return doc


@pytest.fixture
def rgb_doc():
    """3 frames, nested folders, negative cel offsets."""
    doc = Document(PixelFormat.RGB, 32, 16, frames=3)
    doc.set_frame_duration(1, 40)
    doc.set_frame_duration(2, 250)

    bg = LayerImage(b"Background", flags=11)
    group = LayerFolder(b"Group")
    inner = LayerFolder(b"Inner")
    fx = LayerImage(b"FX", blend_mode=3)
    top = LayerImage(b"Top")
    doc.root.add_layer(bg)
    doc.root.add_layer(group)
    group.add_layer(inner)
    inner.add_layer(fx)
    doc.root.add_layer(top)

    img = Image(PixelFormat.RGB, 3, 2, [rgba(i * 10, 255 - i, i, 200) for i in range(6)])
    bg.add_cel(Cel(0, 0, 0, 255, img))
    bg.add_cel(Cel(2, 1, 1, 128, img.copy()))
    fx.add_cel(Cel(1, -5, -3, 64, Image(PixelFormat.RGB, 1, 1, [rgba(1, 2, 3, 4)])))
    top.add_cel(Cel(0, 30, 10, 255, None))
    return doc


@pytest.fixture
def gray_doc():
    doc = Document(PixelFormat.GRAYSCALE, 5, 5)
    layer = LayerImage(b"ink")
    doc.root.add_layer(layer)
    layer.add_cel(Cel(0, 2, -1, 255, Image(PixelFormat.GRAYSCALE, 2, 3, [graya(v * 40, 255 - v) for v in range(6)])))
    return doc
