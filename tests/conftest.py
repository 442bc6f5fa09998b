"""
Shared fixtures for the spritegif test suite.
"""

from __future__ import annotations

import io
import tempfile
from pathlib import Path

import pytest
from PIL import Image

from spritegif.types import Frame


def solid_frame(
    color: tuple[int, ...],
    size: tuple[int, int] = (2, 2),
    delay_ms: int = 100,
    **kwargs,
) -> Frame:
    """A frame filled with a single RGB or RGBA color."""
    w, h = size
    return Frame(
        width=w,
        height=h,
        pixels=bytes(color) * (w * h),
        channels=len(color),
        delay_ms=delay_ms,
        **kwargs,
    )


def read_gif_frames(data: bytes) -> list[bytes]:
    """Decode every frame with Pillow and return its RGB bytes."""
    frames = []
    with Image.open(io.BytesIO(data)) as img:
        for i in range(img.n_frames):
            img.seek(i)
            frames.append(img.convert("RGB").tobytes())
    return frames


def _join_sub_blocks(data: bytes, pos: int) -> tuple[bytes, int]:
    out = bytearray()
    while True:
        n = data[pos]
        pos += 1
        if n == 0:
            return bytes(out), pos
        out += data[pos:pos + n]
        pos += n


def decode_lzw(image_data: bytes) -> tuple[list[int], int]:
    """Reference GIF LZW decoder.

    Takes a complete image data section (minimum code size byte plus
    sub-blocks) and returns ``(indices, number_of_clear_codes)``.
    """
    min_size = image_data[0]
    payload, _ = _join_sub_blocks(image_data, 1)
    clear = 1 << min_size
    eoi = clear + 1
    bits = int.from_bytes(payload, "little")
    total_bits = len(payload) * 8

    width = min_size + 1
    pos = 0
    table: list[list[int]] | None = None
    prev: list[int] | None = None
    out: list[int] = []
    clears = 0
    while True:
        if pos + width > total_bits:
            raise AssertionError("code stream ended without an End code")
        code = (bits >> pos) & ((1 << width) - 1)
        pos += width
        if code == clear:
            table = [[i] for i in range(clear)] + [[], []]
            width = min_size + 1
            prev = None
            clears += 1
            continue
        if code == eoi:
            return out, clears
        assert table is not None, "code stream must start with a Clear code"
        if prev is None:
            entry = table[code]
        else:
            if code < len(table):
                entry = table[code]
            elif code == len(table):
                entry = prev + [prev[0]]
            else:
                raise AssertionError(f"code {code} beyond table of {len(table)}")
            if len(table) < 4096:
                table.append(prev + [entry[0]])
            if len(table) == (1 << width) and width < 12:
                width += 1
        out.extend(entry)
        prev = entry


def walk_gif(data: bytes) -> dict:
    """Split a GIF into its blocks without decoding pixels."""
    assert data[:6] == b"GIF89a"
    flags = data[10]
    pos = 13
    if flags & 0x80:
        pos += 3 * (2 << (flags & 0x07))
    result = {"extensions": [], "images": [], "trailer_at": None}
    while pos < len(data):
        kind = data[pos]
        if kind == 0x21:
            label = data[pos + 1]
            body, pos = _join_sub_blocks(data, pos + 2)
            result["extensions"].append((label, body))
        elif kind == 0x2C:
            img_flags = data[pos + 9]
            pos += 10
            if img_flags & 0x80:
                pos += 3 * (2 << (img_flags & 0x07))
            start = pos
            pos += 1
            lengths = []
            while data[pos] != 0:
                lengths.append(data[pos])
                pos += 1 + data[pos]
            pos += 1
            result["images"].append({
                "data": data[start:pos],
                "block_lengths": lengths,
            })
        elif kind == 0x3B:
            result["trailer_at"] = pos
            pos += 1
        else:
            raise AssertionError(f"unexpected block 0x{kind:02x} at {pos}")
    return result


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory(prefix="spritegif_test_") as d:
        yield Path(d)


@pytest.fixture
def red_blue_frames() -> list[Frame]:
    """Two 2x2 frames: all red, then all blue."""
    return [solid_frame((255, 0, 0)), solid_frame((0, 0, 255))]


@pytest.fixture
def gradient_frame() -> Frame:
    """A 32x32 RGB frame with 1024 distinct colors."""
    pixels = bytearray()
    for y in range(32):
        for x in range(32):
            pixels += bytes((x * 8, y * 8, 128))
    return Frame(width=32, height=32, pixels=bytes(pixels), channels=3)


@pytest.fixture
def sprite_sheet() -> Image.Image:
    """A 40x20 sheet holding a 4x2 grid of solid 10x10 cells."""
    colors = [
        (255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0),
        (0, 255, 255), (255, 0, 255), (255, 255, 255), (0, 0, 0),
    ]
    sheet = Image.new("RGBA", (40, 20))
    for i, color in enumerate(colors):
        row, col = divmod(i, 4)
        sheet.paste(Image.new("RGBA", (10, 10), (*color, 255)), (col * 10, row * 10))
    return sheet
