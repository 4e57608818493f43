"""libase.binio

Little-endian primitives used by every chunk codec.

`Bin` reads from an in-memory buffer with an explicit end bound. Chunk
decoders get a `view()` limited to the chunk's declared extent, so an
overrunning decoder fails with ChunkError instead of eating the next chunk.

`BinWriter` writes to a seekable binary stream; seek/tell are exposed so the
header/frame/chunk writers can reserve space and backpatch sizes later.
"""

from __future__ import annotations

import struct
from typing import BinaryIO, Optional, Type

from .errors import AseError, AseIOError, StructuralError, UnstorableError

_U16 = struct.Struct("<H")
_S16 = struct.Struct("<h")
_U32 = struct.Struct("<I")


class Bin:
    __slots__ = ("data", "ofs", "end", "error")

    def __init__(
        self,
        data: bytes,
        ofs: int = 0,
        end: Optional[int] = None,
        error: Type[AseError] = StructuralError,
    ):
        self.data = data
        self.ofs = ofs
        self.end = len(data) if end is None else min(end, len(data))
        self.error = error

    def tell(self) -> int:
        return self.ofs

    def seek(self, ofs: int) -> None:
        self.ofs = ofs

    def remaining(self) -> int:
        return max(0, self.end - self.ofs)

    def view(self, end: int, error: Type[AseError]) -> "Bin":
        """Sub-reader sharing the buffer, starting here and stopping at `end`."""
        return Bin(self.data, self.ofs, end, error)

    def read(self, n: int) -> bytes:
        if self.ofs + n > self.end:
            raise self.error(f"Unexpected end of data at {self.ofs}, need {n}")
        b = self.data[self.ofs : self.ofs + n]
        self.ofs += n
        return b

    def u8(self) -> int:
        return self.read(1)[0]

    def u16(self) -> int:
        return _U16.unpack(self.read(2))[0]

    def s16(self) -> int:
        return _S16.unpack(self.read(2))[0]

    def u32(self) -> int:
        return _U32.unpack(self.read(4))[0]

    def padding(self, n: int) -> None:
        self.read(n)

    def string(self) -> bytes:
        # u16 byte count + raw bytes, no terminator
        n = self.u16()
        return self.read(n)


class BinWriter:
    __slots__ = ("f",)

    def __init__(self, f: BinaryIO):
        self.f = f

    def tell(self) -> int:
        try:
            return self.f.tell()
        except OSError as e:
            raise AseIOError(f"tell() failed: {e}") from e

    def seek(self, ofs: int) -> None:
        try:
            self.f.seek(ofs)
        except OSError as e:
            raise AseIOError(f"seek({ofs}) failed: {e}") from e

    def write(self, b: bytes) -> None:
        try:
            n = self.f.write(b)
        except OSError as e:
            raise AseIOError(f"write failed: {e}") from e
        if n is not None and n != len(b):
            raise AseIOError(f"Short write: {n} of {len(b)} bytes")

    def u8(self, v: int) -> None:
        self.write(bytes((v & 0xFF,)))

    def u16(self, v: int) -> None:
        self.write(_U16.pack(v & 0xFFFF))

    def s16(self, v: int) -> None:
        if not -0x8000 <= v <= 0x7FFF:
            raise UnstorableError(f"Value {v} does not fit in a signed 16-bit field")
        self.write(_S16.pack(v))

    def u32(self, v: int) -> None:
        self.write(_U32.pack(v & 0xFFFFFFFF))

    def padding(self, n: int) -> None:
        self.write(bytes(n))

    def string(self, s: bytes) -> None:
        if len(s) > 0xFFFF:
            raise UnstorableError(f"String of {len(s)} bytes is too long for a u16 length prefix")
        self.u16(len(s))
        self.write(s)
