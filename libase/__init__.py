"""libase: reader/writer for the .ase layered animation format."""

from .errors import (
    AseError,
    AseIOError,
    ChunkError,
    ChunkStateError,
    CompressionError,
    StructuralError,
    UnstorableError,
)
from .model import (
    Cel,
    Document,
    Image,
    Layer,
    LayerFlags,
    LayerFolder,
    LayerImage,
    LayerKind,
    Palette,
    PixelFormat,
)
from .options import LoadOptions, SaveOptions
from .reader import load, loads, read_ase
from .writer import save, write_ase
