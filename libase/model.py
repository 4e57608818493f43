from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag
from typing import Dict, Iterator, List, Optional


# -----------------------------
# Colour values
#
# Pixels are stored as plain ints, packed the same way they go to disk
# (little-endian component order):
#   RGB        r | g<<8 | b<<16 | a<<24
#   Grayscale  v | a<<8
#   Indexed    palette index
# Palette entries always use the RGB packing.
# -----------------------------

def rgba(r: int, g: int, b: int, a: int = 255) -> int:
    return (r & 0xFF) | (g & 0xFF) << 8 | (b & 0xFF) << 16 | (a & 0xFF) << 24

def rgba_getr(c: int) -> int:
    return c & 0xFF

def rgba_getg(c: int) -> int:
    return (c >> 8) & 0xFF

def rgba_getb(c: int) -> int:
    return (c >> 16) & 0xFF

def rgba_geta(c: int) -> int:
    return (c >> 24) & 0xFF

def graya(v: int, a: int = 255) -> int:
    return (v & 0xFF) | (a & 0xFF) << 8

def graya_getv(c: int) -> int:
    return c & 0xFF

def graya_geta(c: int) -> int:
    return (c >> 8) & 0xFF


class PixelFormat(Enum):
    RGB = 32
    GRAYSCALE = 16
    INDEXED = 8

    @property
    def depth(self) -> int:
        """Bits per pixel as stored in the file header."""
        return self.value


# -----------------------------
# Images / palettes
# -----------------------------

@dataclass
class Image:
    pixel_format: PixelFormat
    width: int
    height: int
    pixels: List[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Bad image size {self.width}x{self.height}")
        n = self.width * self.height
        if not self.pixels:
            self.pixels = [0] * n
        elif len(self.pixels) != n:
            raise ValueError(f"Expected {n} pixels, got {len(self.pixels)}")

    def getpixel(self, x: int, y: int) -> int:
        return self.pixels[y * self.width + x]

    def putpixel(self, x: int, y: int, c: int) -> None:
        self.pixels[y * self.width + x] = c

    def row(self, y: int) -> List[int]:
        i = y * self.width
        return self.pixels[i : i + self.width]

    def set_row(self, y: int, values: List[int]) -> None:
        i = y * self.width
        self.pixels[i : i + self.width] = values

    def copy(self) -> "Image":
        return Image(self.pixel_format, self.width, self.height, list(self.pixels))


MAX_PALETTE_SIZE = 256


@dataclass
class Palette:
    """Colour table that becomes active at `frame`."""

    frame: int
    entries: List[int]

    @classmethod
    def black(cls, frame: int, ncolors: int) -> "Palette":
        return cls(frame, [rgba(0, 0, 0, 255)] * ncolors)

    def size(self) -> int:
        return len(self.entries)

    def set_entry(self, i: int, c: int) -> None:
        self.entries[i] = c

    def resize(self, n: int) -> None:
        if n > len(self.entries):
            self.entries.extend([rgba(0, 0, 0, 255)] * (n - len(self.entries)))
        else:
            del self.entries[n:]

    def copy(self) -> "Palette":
        return Palette(self.frame, list(self.entries))

    def count_diff(self, other: "Palette") -> int:
        """Number of differing entries; extra entries on either side count as different."""
        n = sum(1 for a, b in zip(self.entries, other.entries) if a != b)
        return n + abs(len(self.entries) - len(other.entries))


# -----------------------------
# Layers / cels
# -----------------------------

class LayerKind(IntEnum):
    IMAGE = 0
    FOLDER = 1


class LayerFlags(IntFlag):
    VISIBLE = 1
    EDITABLE = 2
    LOCK_MOVE = 4
    BACKGROUND = 8

DEFAULT_LAYER_FLAGS = int(LayerFlags.VISIBLE | LayerFlags.EDITABLE)


class Layer:
    kind: LayerKind

    def __init__(self, name: bytes = b"", flags: int = DEFAULT_LAYER_FLAGS):
        # Names are opaque byte runs; no charset is assumed.
        self.name = name
        self.flags = flags
        self.parent: Optional[LayerFolder] = None

    def depth(self) -> int:
        """Parent links to the root folder, minus one (top-level layers are 0)."""
        level = -1
        p = self.parent
        while p is not None:
            level += 1
            p = p.parent
        return level

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, flags={self.flags})"


class LayerImage(Layer):
    kind = LayerKind.IMAGE

    def __init__(self, name: bytes = b"", flags: int = DEFAULT_LAYER_FLAGS, blend_mode: int = 0):
        super().__init__(name, flags)
        self.blend_mode = blend_mode
        self._cels: Dict[int, Cel] = {}

    def add_cel(self, cel: "Cel") -> None:
        cel.layer = self
        self._cels[cel.frame] = cel

    def get_cel(self, frame: int) -> Optional["Cel"]:
        return self._cels.get(frame)

    def cels(self) -> List["Cel"]:
        return [self._cels[f] for f in sorted(self._cels)]


class LayerFolder(Layer):
    kind = LayerKind.FOLDER

    def __init__(self, name: bytes = b"", flags: int = DEFAULT_LAYER_FLAGS):
        super().__init__(name, flags)
        self.layers: List[Layer] = []

    def add_layer(self, layer: Layer) -> None:
        layer.parent = self
        self.layers.append(layer)

    def iter_preorder(self) -> Iterator[Layer]:
        """Folder first, then its children, then the next sibling."""
        for layer in self.layers:
            yield layer
            if isinstance(layer, LayerFolder):
                yield from layer.iter_preorder()


@dataclass(eq=False)
class Cel:
    frame: int
    x: int = 0
    y: int = 0
    opacity: int = 255
    image: Optional[Image] = None
    layer: Optional[LayerImage] = field(default=None, repr=False)


@dataclass
class Mask:
    """Selection bitmap. Read for compatibility only; never kept in a Document."""

    x: int
    y: int
    width: int
    height: int
    name: bytes = b""
    bitmap: bytearray = field(default_factory=bytearray)

    def __post_init__(self) -> None:
        if not self.bitmap:
            self.bitmap = bytearray(self.width * self.height)

    def getpixel(self, u: int, v: int) -> bool:
        return bool(self.bitmap[v * self.width + u])

    def putpixel(self, u: int, v: int, on: bool) -> None:
        # Clipped like the editor's putpixel: row padding bits fall outside.
        if 0 <= u < self.width and 0 <= v < self.height:
            self.bitmap[v * self.width + u] = 1 if on else 0


# -----------------------------
# Document
# -----------------------------

DEFAULT_FRAME_DURATION = 100


class Document:
    def __init__(
        self,
        pixel_format: PixelFormat,
        width: int,
        height: int,
        ncolors: int = MAX_PALETTE_SIZE,
        frames: int = 1,
    ):
        self.pixel_format = pixel_format
        self.width = width
        self.height = height
        self.transparent_index = 0
        self.root = LayerFolder(b"")
        self._palettes: List[Palette] = [Palette.black(0, ncolors)]
        self._durations: List[int] = [DEFAULT_FRAME_DURATION] * max(1, frames)

    # frames

    @property
    def total_frames(self) -> int:
        return len(self._durations)

    @total_frames.setter
    def total_frames(self, n: int) -> None:
        if n < 1:
            raise ValueError("A document needs at least one frame")
        last = self._durations[-1]
        if n > len(self._durations):
            self._durations.extend([last] * (n - len(self._durations)))
        else:
            del self._durations[n:]

    def frame_duration(self, frame: int) -> int:
        return self._durations[frame]

    def set_frame_duration(self, frame: int, msecs: int) -> None:
        self._durations[frame] = msecs

    def set_duration_for_all_frames(self, msecs: int) -> None:
        self._durations = [msecs] * len(self._durations)

    # palettes

    @property
    def palettes(self) -> List[Palette]:
        return list(self._palettes)

    def get_palette(self, frame: int) -> Palette:
        """Palette active at `frame` (the last one starting at or before it)."""
        found = self._palettes[0]
        for pal in self._palettes:
            if pal.frame > frame:
                break
            found = pal
        return found

    def set_palette(self, pal: Palette) -> None:
        pal = pal.copy()
        for i, cur in enumerate(self._palettes):
            if cur.frame == pal.frame:
                self._palettes[i] = pal
                return
            if cur.frame > pal.frame:
                self._palettes.insert(i, pal)
                return
        self._palettes.append(pal)

    # layers

    def layers(self) -> List[Layer]:
        """Flat pre-order enumeration; cel chunks address layers by this index."""
        return list(self.root.iter_preorder())

    def layer_to_index(self, layer: Layer) -> int:
        for i, l in enumerate(self.root.iter_preorder()):
            if l is layer:
                return i
        raise ValueError(f"{layer!r} is not part of this document")

    def index_to_layer(self, index: int) -> Optional[Layer]:
        for i, l in enumerate(self.root.iter_preorder()):
            if i == index:
                return l
        return None

    def cels(self, frame: Optional[int] = None) -> List[Cel]:
        out: List[Cel] = []
        for layer in self.root.iter_preorder():
            if isinstance(layer, LayerImage):
                if frame is None:
                    out.extend(layer.cels())
                else:
                    cel = layer.get_cel(frame)
                    if cel is not None:
                        out.append(cel)
        return out
