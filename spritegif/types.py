"""
Core data structures used throughout the encoder.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Sequence


MAX_COLORS = 256


class DisposalMethod(enum.IntEnum):
    """What a viewer does with a frame before drawing the next one."""
    UNSPECIFIED = 0
    NONE = 1              # Leave the frame in place.
    BACKGROUND = 2        # Restore the frame area to the background.
    PREVIOUS = 3          # Restore whatever was there before the frame.


class PaletteMode(enum.Enum):
    """Where the color table for each frame lives."""
    GLOBAL = "global"     # One table shared by every frame.
    LOCAL = "local"       # One table per frame.


@dataclass(frozen=True)
class Frame:
    """A single full-canvas frame of row-major RGB or RGBA samples."""
    width: int
    height: int
    pixels: bytes
    channels: int = 4                # 3 = RGB, 4 = RGBA
    delay_ms: int = 100
    disposal: DisposalMethod = DisposalMethod.UNSPECIFIED
    transparent: bool = False        # alpha < 128 becomes the transparent index

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def delay_cs(self) -> int:
        """Display delay in the centiseconds stored by the format."""
        return self.delay_ms // 10


@dataclass(frozen=True)
class Palette:
    """Ordered RGB color table with an optional transparent slot."""
    colors: tuple[tuple[int, int, int], ...]
    transparent_index: int | None = None

    def __len__(self) -> int:
        return len(self.colors)

    @property
    def table_size(self) -> int:
        """Entry count rounded up to a power of two in [2, 256]."""
        return max(2, 1 << (len(self.colors) - 1).bit_length())

    @property
    def size_bits(self) -> int:
        """The 3-bit size field: log2(table_size) - 1."""
        return self.table_size.bit_length() - 2

    def to_bytes(self) -> bytes:
        """Serialize as ``table_size`` RGB triples, padded with black."""
        out = bytearray()
        for r, g, b in self.colors:
            out.extend((r, g, b))
        out.extend(b"\x00" * (3 * (self.table_size - len(self.colors))))
        return bytes(out)


@dataclass
class AnimationDescriptor:
    """Everything one encode call needs."""
    width: int
    height: int
    frames: Sequence[Frame] = field(default_factory=list)
    loop_count: int | None = 0       # 0 = infinite, None / -1 = play once


@dataclass(frozen=True)
class FrameProgress:
    """Progress event emitted after each frame is encoded."""
    index: int                       # 0-based frame number
    total: int
    compressed_bytes: int            # size of the frame's image data section
