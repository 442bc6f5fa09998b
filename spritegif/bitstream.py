"""
Bit-level output buffer and GIF data sub-blocks.

GIF packs variable-width codes least-significant-bit first and frames
all variable-length data as a chain of length-prefixed sub-blocks of at
most 255 bytes, closed by a zero-length block.
"""

from __future__ import annotations

from typing import Iterator

from spritegif.exceptions import InternalInvariantError

SUB_BLOCK_SIZE = 255
BLOCK_TERMINATOR = b"\x00"


class BitWriter:
    """Accumulate variable-width values LSB-first and flush whole bytes."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._bits = 0           # pending bits, lowest bit is written first
        self._n_bits = 0

    def write(self, value: int, width: int) -> None:
        """Append the low *width* bits of *value*."""
        if width <= 0 or value < 0 or value >> width:
            raise InternalInvariantError(
                f"Value {value} does not fit in {width} bits."
            )
        self._bits |= value << self._n_bits
        self._n_bits += width
        while self._n_bits >= 8:
            self._buffer.append(self._bits & 0xFF)
            self._bits >>= 8
            self._n_bits -= 8

    @property
    def bit_length(self) -> int:
        """Total number of bits written so far."""
        return len(self._buffer) * 8 + self._n_bits

    def getvalue(self) -> bytes:
        """Return the packed bytes, zero-padding the final partial byte."""
        if self._n_bits:
            return bytes(self._buffer) + bytes((self._bits & 0xFF,))
        return bytes(self._buffer)


def iter_sub_blocks(data: bytes) -> Iterator[bytes]:
    """Yield consecutive chunks of at most 255 bytes."""
    for start in range(0, len(data), SUB_BLOCK_SIZE):
        yield data[start:start + SUB_BLOCK_SIZE]


def pack_sub_blocks(data: bytes) -> bytes:
    """Frame *data* as length-prefixed sub-blocks plus the terminator."""
    out = bytearray()
    for chunk in iter_sub_blocks(data):
        if len(chunk) > SUB_BLOCK_SIZE:
            raise InternalInvariantError(
                f"Sub-block of {len(chunk)} bytes exceeds {SUB_BLOCK_SIZE}."
            )
        out.append(len(chunk))
        out.extend(chunk)
    out.extend(BLOCK_TERMINATOR)
    return bytes(out)
