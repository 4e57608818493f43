"""Tests for libase.palette: colour chunk packets and change detection."""

from __future__ import annotations

import io
import struct

import pytest

import asebuild
from libase.binio import Bin, BinWriter
from libase.chunks import ChunkWriter
from libase.errors import ChunkError, UnstorableError
from libase.model import Document, Palette, PixelFormat, rgba
from libase.palette import RGB_SCALE_6, palette_changed, read_color_chunk, write_color2_chunk

A = (10, 20, 30)
B = (40, 50, 60)
C = (70, 80, 90)


def _body(chunk_bytes: bytes) -> Bin:
    b = Bin(chunk_bytes, error=ChunkError)
    b.seek(6)
    return b


def _default8() -> Palette:
    return Palette(0, [rgba(i, i, i, 255) for i in range(8)])


def test_packets_skip_relative_to_previous_packet():
    data = asebuild.color_chunk([(0, [A, B]), (3, [C])])
    base = _default8()
    pal = read_color_chunk(_body(data), base, frame=0, six_bit=False)

    assert pal.entries[0] == rgba(*A)
    assert pal.entries[1] == rgba(*B)
    assert pal.entries[2:5] == base.entries[2:5]
    assert pal.entries[5] == rgba(*C)
    assert pal.entries[6:] == base.entries[6:]
    # base untouched
    assert base == _default8()


def test_six_bit_components_are_scaled():
    data = asebuild.color_chunk([(0, [(0, 63, 32)])], six_bit=True)
    pal = read_color_chunk(_body(data), _default8(), frame=3, six_bit=True)
    assert pal.frame == 3
    assert pal.entries[0] == rgba(0, 255, 130)
    assert RGB_SCALE_6[1] == 4
    assert RGB_SCALE_6[11] == 45


def test_six_bit_out_of_range():
    data = asebuild.color_chunk([(0, [(64, 0, 0)])], six_bit=True)
    with pytest.raises(ChunkError):
        read_color_chunk(_body(data), _default8(), 0, six_bit=True)


def test_packet_grows_palette():
    data = asebuild.color_chunk([(9, [A])])
    pal = read_color_chunk(_body(data), _default8(), 0, six_bit=False)
    assert pal.size() == 10
    assert pal.entries[9] == rgba(*A)


def test_packet_past_256_is_malformed():
    data = asebuild.color_chunk([(255, [A, B])])
    with pytest.raises(ChunkError):
        read_color_chunk(_body(data), _default8(), 0, six_bit=False)


def test_truncated_packet_is_a_chunk_error():
    data = asebuild.color_chunk([(0, [A, B])])[:-2]
    data = struct.pack("<I", len(data)) + data[4:]
    b = Bin(data, 6, len(data), ChunkError)
    with pytest.raises(ChunkError):
        read_color_chunk(b, _default8(), 0, six_bit=False)


class TestWrite:

    def _write(self, pal: Palette) -> bytes:
        buf = io.BytesIO()
        cw = ChunkWriter(BinWriter(buf))
        cw.begin_frame()
        write_color2_chunk(cw, pal)
        cw.end_frame(100)
        return buf.getvalue()[16:]

    def test_single_packet(self):
        pal = Palette(0, [rgba(1, 2, 3, 77), rgba(4, 5, 6)])
        data = self._write(pal)
        assert struct.unpack_from("<IH", data) == (len(data), 4)
        assert data[6:] == bytes([1, 0, 0, 2, 1, 2, 3, 4, 5, 6])

    def test_256_colours_stored_as_zero(self):
        data = self._write(Palette(0, [0] * 256))
        assert data[8:11] == bytes([0, 0, 0])    # skip, count=0 (256), first r
        assert len(data) == 6 + 2 + 2 + 256 * 3

    def test_read_back(self):
        pal = Palette(0, [rgba(i, 255 - i, i // 2) for i in range(256)])
        data = self._write(pal)
        back = read_color_chunk(_body(data), Palette.black(0, 256), 0, six_bit=False)
        assert back.entries == pal.entries

    def test_empty_palette_rejected(self):
        with pytest.raises(UnstorableError):
            self._write(Palette(0, []))


class TestPaletteChanged:

    def test_frame_zero_always(self):
        doc = Document(PixelFormat.INDEXED, 1, 1, ncolors=4, frames=2)
        assert palette_changed(doc, 0)
        assert not palette_changed(doc, 1)

    def test_entry_change(self):
        doc = Document(PixelFormat.INDEXED, 1, 1, ncolors=4, frames=3)
        pal = doc.get_palette(0).copy()
        pal.frame = 2
        pal.set_entry(1, rgba(1, 1, 1))
        doc.set_palette(pal)
        assert not palette_changed(doc, 1)
        assert palette_changed(doc, 2)

    def test_size_change(self):
        doc = Document(PixelFormat.INDEXED, 1, 1, ncolors=4, frames=2)
        pal = doc.get_palette(0).copy()
        pal.frame = 1
        pal.resize(5)
        doc.set_palette(pal)
        assert palette_changed(doc, 1)
