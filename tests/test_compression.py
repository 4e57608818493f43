"""Tests for libase.compression: the deflate adapter used by compressed cels."""

from __future__ import annotations

import io
import zlib

import pytest

from libase.binio import Bin, BinWriter
from libase.compression import read_compressed_image, write_compressed_image
from libase.errors import ChunkError, CompressionError
from libase.model import Image, PixelFormat, rgba


def _compress(image: Image) -> bytes:
    buf = io.BytesIO()
    write_compressed_image(BinWriter(buf), image)
    return buf.getvalue()


def test_written_stream_is_plain_zlib_of_scanlines():
    img = Image(PixelFormat.RGB, 2, 1, [rgba(1, 2, 3, 4), rgba(5, 6, 7, 8)])
    assert zlib.decompress(_compress(img)) == bytes(range(1, 9))


def test_decode_stops_at_chunk_end():
    img = Image(PixelFormat.INDEXED, 64, 64, [(x * 7) & 0xFF for x in range(64 * 64)])
    stream = _compress(img)
    trailer = b"NEXTCHUNK"
    b = Bin(stream + trailer, error=ChunkError)

    out = Image(PixelFormat.INDEXED, 64, 64)
    read_compressed_image(b, out, chunk_end=len(stream), buffer_size=16)
    assert out == img
    assert b.tell() == len(stream)


def test_small_buffer_progress_reports_offsets():
    img = Image(PixelFormat.GRAYSCALE, 40, 40, [i & 0xFFFF for i in range(1600)])
    stream = _compress(img)
    seen = []
    out = Image(PixelFormat.GRAYSCALE, 40, 40)
    read_compressed_image(Bin(stream), out, len(stream), buffer_size=64, progress=seen.append)
    assert out == img
    assert seen == sorted(seen)
    assert seen[-1] == len(stream)


def test_short_stream_leaves_zero_pixels():
    data = zlib.compress(bytes([5, 6]))
    out = Image(PixelFormat.INDEXED, 2, 2)
    read_compressed_image(Bin(data), out, len(data))
    assert out.pixels == [5, 6, 0, 0]


def test_too_much_data_is_an_error():
    data = zlib.compress(bytes(10))
    with pytest.raises(CompressionError, match="more data"):
        read_compressed_image(Bin(data), Image(PixelFormat.INDEXED, 2, 2), len(data))


def test_garbage_is_an_error():
    data = b"\x00\x01garbage-not-zlib"
    with pytest.raises(CompressionError):
        read_compressed_image(Bin(data), Image(PixelFormat.INDEXED, 2, 2), len(data))
