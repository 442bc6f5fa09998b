"""
Frame sources: turning Pillow images and sprite sheets into Frames.

A sprite sheet is a grid of equally sized cells read row by row, left
to right.  Cell size is ``sheet.width // cols`` by ``sheet.height // rows``;
leftover pixels on the right and bottom edges are ignored.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from PIL import Image

from spritegif.exceptions import SpriteSheetError
from spritegif.types import DisposalMethod, Frame

logger = logging.getLogger(__name__)


def delay_from_fps(fps: float) -> int:
    """Per-frame delay in whole milliseconds for a frame rate."""
    if fps <= 0:
        raise SpriteSheetError(f"Frame rate must be positive, got {fps}.")
    return int(1000 // fps)


def frame_from_image(
    image: Image.Image,
    delay_ms: int = 100,
    disposal: DisposalMethod = DisposalMethod.UNSPECIFIED,
    transparent: bool = False,
) -> Frame:
    """Convert a Pillow image of any mode into an RGBA (or RGB) Frame."""
    if image.mode == "RGB":
        img, channels = image, 3
    else:
        img, channels = image.convert("RGBA"), 4
    return Frame(
        width=img.width,
        height=img.height,
        pixels=img.tobytes(),
        channels=channels,
        delay_ms=delay_ms,
        disposal=disposal,
        transparent=transparent,
    )


def slice_sprite_sheet(sheet: Image.Image, cols: int, rows: int) -> list[Image.Image]:
    """Cut *sheet* into ``cols * rows`` cells, row-major."""
    if cols <= 0 or rows <= 0:
        raise SpriteSheetError(f"Grid must be at least 1x1, got {cols}x{rows}.")
    cell_w = sheet.width // cols
    cell_h = sheet.height // rows
    if cell_w == 0 or cell_h == 0:
        raise SpriteSheetError(
            f"Sheet of {sheet.width}x{sheet.height} is too small "
            f"for a {cols}x{rows} grid."
        )
    cells = []
    for row in range(rows):
        for col in range(cols):
            box = (col * cell_w, row * cell_h, (col + 1) * cell_w, (row + 1) * cell_h)
            cells.append(sheet.crop(box))
    logger.debug("Sliced %dx%d sheet into %d cells of %dx%d.",
                 sheet.width, sheet.height, len(cells), cell_w, cell_h)
    return cells


def frames_from_images(
    images: Sequence[Image.Image],
    delay_ms: int = 100,
    disposal: DisposalMethod = DisposalMethod.UNSPECIFIED,
    transparent: bool = False,
) -> list[Frame]:
    return [frame_from_image(img, delay_ms, disposal, transparent) for img in images]


def frames_from_sprite_sheet(
    sheet: Image.Image,
    cols: int,
    rows: int,
    fps: float = 10.0,
    disposal: DisposalMethod = DisposalMethod.UNSPECIFIED,
    transparent: bool = False,
) -> list[Frame]:
    """Slice *sheet* and time every cell for playback at *fps*."""
    delay = delay_from_fps(fps)
    return frames_from_images(slice_sprite_sheet(sheet, cols, rows),
                              delay, disposal, transparent)


def frames_from_callable(count: int, factory: Callable[[int], Frame]) -> list[Frame]:
    """Collect ``factory(0) .. factory(count - 1)``."""
    if count < 0:
        raise SpriteSheetError(f"Frame count must be >= 0, got {count}.")
    return [factory(i) for i in range(count)]
