"""
GIF89a container serialization.

Every function here returns one format block as ``bytes``; ``GifWriter``
strings them together in the order the format requires:

    header, logical screen descriptor, [global color table],
    [NETSCAPE2.0 loop extension],
    per frame: graphic control extension, image descriptor,
               [local color table], image data,
    trailer

All multi-byte integers are little-endian.
"""

from __future__ import annotations

import struct

from spritegif.exceptions import InvalidInputError
from spritegif.types import DisposalMethod, Palette

SIGNATURE = b"GIF89a"
EXTENSION_INTRODUCER = 0x21
IMAGE_SEPARATOR = 0x2C
TRAILER = 0x3B

GRAPHIC_CONTROL_LABEL = 0xF9
APPLICATION_LABEL = 0xFF

COLOR_TABLE_FLAG = 0x80
COLOR_RESOLUTION_BITS = 0x70      # 8 bits per primary
TRANSPARENCY_FLAG = 0x01

MAX_U16 = 0xFFFF


def _check_u16(name: str, value: int) -> int:
    if not 0 <= value <= MAX_U16:
        raise InvalidInputError(f"{name} must be between 0 and {MAX_U16}, got {value}.")
    return value


def header() -> bytes:
    return SIGNATURE


def logical_screen_descriptor(width: int, height: int,
                              palette: Palette | None = None) -> bytes:
    """Canvas size and, when *palette* is given, the global table flags."""
    flags = COLOR_RESOLUTION_BITS
    if palette is not None:
        flags |= COLOR_TABLE_FLAG | palette.size_bits
    return struct.pack(
        "<HHBBB",
        _check_u16("Canvas width", width),
        _check_u16("Canvas height", height),
        flags,
        0,    # background color index
        0,    # pixel aspect ratio
    )


def color_table(palette: Palette) -> bytes:
    return palette.to_bytes()


def netscape_extension(loop_count: int) -> bytes:
    """Application extension asking viewers to repeat the animation.

    A *loop_count* of 0 means loop forever.
    """
    return (
        struct.pack("<BBB", EXTENSION_INTRODUCER, APPLICATION_LABEL, 11)
        + b"NETSCAPE2.0"
        + struct.pack("<BBHB", 3, 1, _check_u16("Loop count", loop_count), 0)
    )


def graphic_control_extension(
    disposal: DisposalMethod = DisposalMethod.UNSPECIFIED,
    delay_cs: int = 0,
    transparent_index: int | None = None,
) -> bytes:
    """Per-frame timing, disposal and transparency."""
    flags = (int(disposal) & 0x07) << 2
    if transparent_index is not None:
        flags |= TRANSPARENCY_FLAG
    return struct.pack(
        "<BBBBHBB",
        EXTENSION_INTRODUCER,
        GRAPHIC_CONTROL_LABEL,
        4,
        flags,
        _check_u16("Frame delay", delay_cs),
        transparent_index or 0,
        0,
    )


def image_descriptor(left: int, top: int, width: int, height: int,
                     local_palette: Palette | None = None) -> bytes:
    """Frame placement; flags a local color table when one follows."""
    flags = 0
    if local_palette is not None:
        flags = COLOR_TABLE_FLAG | local_palette.size_bits
    return struct.pack(
        "<BHHHHB",
        IMAGE_SEPARATOR,
        _check_u16("Frame left", left),
        _check_u16("Frame top", top),
        _check_u16("Frame width", width),
        _check_u16("Frame height", height),
        flags,
    )


def trailer() -> bytes:
    return bytes((TRAILER,))


class GifWriter:
    """Sequential builder for one GIF file held in memory."""

    def __init__(self, width: int, height: int,
                 global_palette: Palette | None = None) -> None:
        self.width = width
        self.height = height
        self.global_palette = global_palette
        self._buffer = bytearray()
        self._frames = 0
        self._closed = False

        self._buffer += header()
        self._buffer += logical_screen_descriptor(width, height, global_palette)
        if global_palette is not None:
            self._buffer += color_table(global_palette)

    @property
    def frame_count(self) -> int:
        return self._frames

    def write_loop(self, loop_count: int) -> None:
        """Add the loop extension; must precede the first frame."""
        if self._frames:
            raise InvalidInputError("The loop extension must precede all frames.")
        self._buffer += netscape_extension(loop_count)

    def write_frame(
        self,
        image_data: bytes,
        *,
        delay_cs: int = 0,
        disposal: DisposalMethod = DisposalMethod.UNSPECIFIED,
        transparent_index: int | None = None,
        local_palette: Palette | None = None,
        left: int = 0,
        top: int = 0,
        width: int | None = None,
        height: int | None = None,
    ) -> None:
        """Append one frame whose *image_data* is already LZW-encoded."""
        if self._closed:
            raise InvalidInputError("Cannot add frames after the trailer.")
        if local_palette is None and self.global_palette is None:
            raise InvalidInputError("Frame has no color table to refer to.")
        self._buffer += graphic_control_extension(disposal, delay_cs, transparent_index)
        self._buffer += image_descriptor(
            left, top,
            self.width if width is None else width,
            self.height if height is None else height,
            local_palette,
        )
        if local_palette is not None:
            self._buffer += color_table(local_palette)
        self._buffer += image_data
        self._frames += 1

    def getvalue(self) -> bytes:
        """Close the stream with the trailer and return the file bytes."""
        if not self._closed:
            self._buffer += trailer()
            self._closed = True
        return bytes(self._buffer)
