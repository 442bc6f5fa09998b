"""
GIF-flavoured LZW compression.

Codes ``0 .. 2**min_code_size - 1`` stand for single palette indices,
followed by the Clear and End-of-Information control codes.  Codes start
``min_code_size + 1`` bits wide and grow one bit at a time up to 12 bits.
When the code space is exhausted the compressor emits Clear and starts
over with a fresh table.

The width bookkeeping mirrors the decoder, which always adds its table
entries one code later than the encoder does: the width is widened right
after a code is emitted, once the next free code no longer fits.
"""

from __future__ import annotations

import logging
from typing import Sequence, Union

import numpy as np

from spritegif.bitstream import BitWriter, pack_sub_blocks
from spritegif.exceptions import InternalInvariantError, InvalidInputError
from spritegif.types import MAX_COLORS

logger = logging.getLogger(__name__)

MAX_CODE_WIDTH = 12
# The last code of the 12-bit space is never assigned.
RESET_AT_CODE = (1 << MAX_CODE_WIDTH) - 1

IndexInput = Union[bytes, bytearray, memoryview, Sequence[int], np.ndarray]


def min_code_size(palette_size: int) -> int:
    """LZW minimum code size for a palette of *palette_size* entries."""
    if not 1 <= palette_size <= MAX_COLORS:
        raise InvalidInputError(
            f"Palette size must be between 1 and {MAX_COLORS}, got {palette_size}."
        )
    return max(2, (palette_size - 1).bit_length())


def _index_bytes(indices: IndexInput, palette_size: int) -> bytes:
    """Validate an index stream and return it as one byte per pixel."""
    if isinstance(indices, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(indices, dtype=np.uint8)
    else:
        arr = np.asarray(indices, dtype=np.int64).reshape(-1)
    if arr.size == 0:
        raise InvalidInputError("Index stream is empty.")
    lo, hi = int(arr.min()), int(arr.max())
    if lo < 0 or hi >= palette_size:
        bad = lo if lo < 0 else hi
        raise InvalidInputError(
            f"Palette index {bad} out of range for a palette of {palette_size} colors."
        )
    return arr.astype(np.uint8).tobytes()


def compress(indices: IndexInput, palette_size: int) -> bytes:
    """Compress an index stream into packed LZW codes (no sub-blocking)."""
    code_size = min_code_size(palette_size)
    data = _index_bytes(indices, palette_size)

    clear_code = 1 << code_size
    end_code = clear_code + 1
    first_width = code_size + 1

    writer = BitWriter()
    table: dict[int, int] = {}
    next_code = end_code + 1
    width = first_width
    n_codes = 1
    n_resets = 0

    writer.write(clear_code, width)
    prefix = data[0]
    for index in data[1:]:
        key = (prefix << 8) | index
        code = table.get(key)
        if code is not None:
            prefix = code
            continue

        writer.write(prefix, width)
        n_codes += 1
        if next_code >= (1 << width) and width < MAX_CODE_WIDTH:
            width += 1

        if next_code < RESET_AT_CODE:
            table[key] = next_code
            next_code += 1
        else:
            writer.write(clear_code, width)
            n_codes += 1
            n_resets += 1
            table.clear()
            next_code = end_code + 1
            width = first_width
        prefix = index

    writer.write(prefix, width)
    if next_code >= (1 << width) and width < MAX_CODE_WIDTH:
        width += 1
    writer.write(end_code, width)
    n_codes += 2

    if next_code > RESET_AT_CODE or width > MAX_CODE_WIDTH:
        raise InternalInvariantError(
            f"LZW table overflowed: next code {next_code}, width {width}."
        )

    packed = writer.getvalue()
    logger.debug(
        "LZW: %d indices -> %d codes, %d bytes, %d resets (min code size %d).",
        len(data), n_codes, len(packed), n_resets, code_size,
    )
    return packed


def encode_image_data(indices: IndexInput, palette_size: int) -> bytes:
    """Return a frame's complete image data section.

    That is the LZW minimum code size byte, the compressed codes as
    sub-blocks, and the zero-length terminator.
    """
    packed = compress(indices, palette_size)
    return bytes((min_code_size(palette_size),)) + pack_sub_blocks(packed)
