"""libase.errors

Error types raised by the .ase codec.

Every codec error derives from AseError. The `recoverable` flag tells the
load loop whether it may skip the offending record (using the chunk's declared
size) and keep going, or must abort the whole load.
"""

from __future__ import annotations


class AseError(Exception):
    recoverable = False


class StructuralError(AseError):
    """Bad magic, bad extents, truncated stream. Aborts the load."""


class ChunkError(AseError):
    """A single chunk could not be decoded; the chunk is skipped."""

    recoverable = True


class CompressionError(AseError):
    """zlib reported an error while inflating/deflating a cel."""

    recoverable = True


class AseIOError(AseError):
    """The underlying byte stream failed."""


class ChunkStateError(RuntimeError):
    """Chunk writer used out of order (caller bug, not bad data)."""


class UnstorableError(AseError, ValueError):
    """The document holds a value the file format has no room for. Aborts the save."""
