from __future__ import annotations

import zlib
from dataclasses import dataclass

from .compression import DEFAULT_BUFFER_SIZE


@dataclass
class LoadOptions:
    # Stop after the first frame (thumbnails / quick previews).
    one_frame: bool = False
    # Max compressed bytes fed to inflate per step.
    input_buffer_size: int = DEFAULT_BUFFER_SIZE


@dataclass
class SaveOptions:
    compression_level: int = zlib.Z_DEFAULT_COMPRESSION

    def __post_init__(self) -> None:
        if not -1 <= self.compression_level <= 9:
            raise ValueError(f"compression_level must be -1..9, got {self.compression_level}")
