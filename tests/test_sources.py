"""
Tests for frame sources: Pillow images and sprite sheets.
"""

from __future__ import annotations

import pytest
from PIL import Image

from spritegif.exceptions import SpriteSheetError
from spritegif.sources import (
    delay_from_fps,
    frame_from_image,
    frames_from_callable,
    frames_from_images,
    frames_from_sprite_sheet,
    slice_sprite_sheet,
)
from spritegif.types import DisposalMethod, Frame


class TestDelayFromFps:
    @pytest.mark.parametrize("fps, expected", [
        (10, 100), (3, 333), (24, 41), (1, 1000), (0.5, 2000),
    ])
    def test_values(self, fps, expected):
        assert delay_from_fps(fps) == expected

    @pytest.mark.parametrize("fps", [0, -5])
    def test_non_positive(self, fps):
        with pytest.raises(SpriteSheetError):
            delay_from_fps(fps)


class TestFrameFromImage:
    def test_rgb_keeps_three_channels(self):
        frame = frame_from_image(Image.new("RGB", (3, 2), (1, 2, 3)))
        assert (frame.width, frame.height, frame.channels) == (3, 2, 3)
        assert frame.pixels == bytes((1, 2, 3)) * 6

    def test_other_modes_become_rgba(self):
        img = Image.new("P", (2, 2))
        img.putpalette([9, 8, 7] * 256)
        frame = frame_from_image(img, delay_ms=40, disposal=DisposalMethod.NONE)
        assert frame.channels == 4
        assert frame.pixels == bytes((9, 8, 7, 255)) * 4
        assert frame.delay_ms == 40
        assert frame.disposal == DisposalMethod.NONE


class TestSpriteSheet:
    def test_grid_order(self, sprite_sheet):
        cells = slice_sprite_sheet(sprite_sheet, 4, 2)
        assert len(cells) == 8
        assert all(c.size == (10, 10) for c in cells)
        firsts = [c.getpixel((0, 0))[:3] for c in cells]
        assert firsts[0] == (255, 0, 0)
        assert firsts[3] == (255, 255, 0)
        assert firsts[4] == (0, 255, 255)
        assert firsts[7] == (0, 0, 0)

    def test_leftover_pixels_ignored(self):
        sheet = Image.new("RGB", (23, 11))
        cells = slice_sprite_sheet(sheet, 2, 2)
        assert [c.size for c in cells] == [(11, 5)] * 4

    @pytest.mark.parametrize("cols, rows", [(0, 1), (1, 0), (-1, 2), (50, 1)])
    def test_bad_grid(self, sprite_sheet, cols, rows):
        with pytest.raises(SpriteSheetError):
            slice_sprite_sheet(sprite_sheet, cols, rows)

    def test_frames_from_sprite_sheet(self, sprite_sheet):
        frames = frames_from_sprite_sheet(sprite_sheet, 4, 2, fps=5)
        assert len(frames) == 8
        assert all(f.delay_ms == 200 for f in frames)
        assert all((f.width, f.height) == (10, 10) for f in frames)
        assert frames[1].pixels == bytes((0, 255, 0, 255)) * 100

    def test_frames_from_images(self):
        images = [Image.new("RGBA", (2, 2), (i, i, i, 255)) for i in range(3)]
        frames = frames_from_images(images, delay_ms=70, transparent=True)
        assert [f.pixels[0] for f in frames] == [0, 1, 2]
        assert all(f.transparent and f.delay_ms == 70 for f in frames)


class TestFramesFromCallable:
    def test_collects_in_order(self):
        frames = frames_from_callable(
            3, lambda i: Frame(width=1, height=1, pixels=bytes((i, 0, 0)), channels=3))
        assert [f.pixels[0] for f in frames] == [0, 1, 2]

    def test_zero(self):
        assert frames_from_callable(0, lambda i: None) == []

    def test_negative(self):
        with pytest.raises(SpriteSheetError):
            frames_from_callable(-1, lambda i: None)
