"""libase.roundtrip

Load -> save -> load verification.

A document that went through save and load again must come back with the
same structure and the same pixels. Byte identity with the input file is
only expected for files this library wrote itself; old files with 6-bit
palettes, raw/link cels or masks are normalised on save.
"""

from __future__ import annotations

import hashlib
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .errors import AseError
from .model import Document, LayerImage, PixelFormat
from .options import LoadOptions, SaveOptions
from .reader import loads
from .writer import save


def _sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def diff_documents(a: Document, b: Document) -> List[str]:
    """Human readable differences; empty when the documents are equivalent."""
    out: List[str] = []

    for attr in ("pixel_format", "width", "height", "total_frames"):
        va, vb = getattr(a, attr), getattr(b, attr)
        if va != vb:
            out.append(f"{attr}: {va} != {vb}")
    if out:
        return out

    if a.pixel_format == PixelFormat.INDEXED:
        if a.transparent_index != b.transparent_index:
            out.append(f"transparent_index: {a.transparent_index} != {b.transparent_index}")
        for frame in range(a.total_frames):
            pa, pb = a.get_palette(frame), b.get_palette(frame)
            n = pa.count_diff(pb)
            if n:
                out.append(f"frame {frame}: palette differs in {n} entries")

    for frame in range(a.total_frames):
        if a.frame_duration(frame) != b.frame_duration(frame):
            out.append(f"frame {frame}: duration {a.frame_duration(frame)} != {b.frame_duration(frame)}")

    la, lb = a.layers(), b.layers()
    if len(la) != len(lb):
        out.append(f"layer count: {len(la)} != {len(lb)}")
        return out

    for i, (x, y) in enumerate(zip(la, lb)):
        tag = f"layer {i} ({x.name!r})"
        if x.kind != y.kind:
            out.append(f"{tag}: kind {x.kind.name} != {y.kind.name}")
            continue
        if x.name != y.name:
            out.append(f"{tag}: name {x.name!r} != {y.name!r}")
        if x.flags != y.flags:
            out.append(f"{tag}: flags {x.flags} != {y.flags}")
        if x.depth() != y.depth():
            out.append(f"{tag}: depth {x.depth()} != {y.depth()}")
        if not isinstance(x, LayerImage) or not isinstance(y, LayerImage):
            continue
        if x.blend_mode != y.blend_mode:
            out.append(f"{tag}: blend mode {x.blend_mode} != {y.blend_mode}")

        for frame in range(a.total_frames):
            ca, cb = x.get_cel(frame), y.get_cel(frame)
            if ca is None and cb is None:
                continue
            if ca is None or cb is None:
                out.append(f"{tag} frame {frame}: cel missing on one side")
                continue
            if (ca.x, ca.y, ca.opacity) != (cb.x, cb.y, cb.opacity):
                out.append(
                    f"{tag} frame {frame}: cel ({ca.x}, {ca.y}, {ca.opacity}) != ({cb.x}, {cb.y}, {cb.opacity})"
                )
            ia, ib = ca.image, cb.image
            if (ia is None) != (ib is None):
                out.append(f"{tag} frame {frame}: image missing on one side")
            elif ia is not None and ib is not None and ia != ib:
                out.append(f"{tag} frame {frame}: image {ia.width}x{ia.height} pixels differ")

    return out


@dataclass
class RoundtripResult:
    input_sha256: str
    output_sha256: str
    output: bytes
    differences: List[str] = field(default_factory=list)
    errors: List[AseError] = field(default_factory=list)

    @property
    def identical(self) -> bool:
        return self.input_sha256 == self.output_sha256

    @property
    def equivalent(self) -> bool:
        return not self.differences


def roundtrip_bytes(
    data: bytes,
    load_options: Optional[LoadOptions] = None,
    save_options: Optional[SaveOptions] = None,
) -> RoundtripResult:
    errors: List[AseError] = []
    doc = loads(data, options=load_options, errors=errors)

    buf = io.BytesIO()
    save(doc, buf, options=save_options)
    out = buf.getvalue()

    again = loads(out, options=load_options, errors=errors)
    return RoundtripResult(
        input_sha256=_sha256(data),
        output_sha256=_sha256(out),
        output=out,
        differences=diff_documents(doc, again),
        errors=errors,
    )


def roundtrip_file(path: Union[str, Path], out_path: Optional[Union[str, Path]] = None) -> RoundtripResult:
    data = Path(path).read_bytes()
    result = roundtrip_bytes(data)
    if out_path is not None:
        Path(out_path).write_bytes(result.output)
    return result
