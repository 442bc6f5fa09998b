"""
Palette construction and pixel-to-index mapping.

Reduces true-color frames to an indexed palette of at most 256 colors:

    1. Gather every opaque pixel color (packed as 0xRRGGBB).
    2. If the distinct colors fit, use them as-is in first-seen order.
    3. Otherwise run a deterministic weighted median cut on the RGB cube.
    4. Map each pixel to its nearest palette entry (Euclidean RGB
       distance, lowest index on ties).

Frames flagged ``transparent`` reserve one extra slot, appended after
the colors, for their RGBA pixels with alpha below 128.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from spritegif.exceptions import InvalidInputError, UnsupportedPaletteError
from spritegif.types import MAX_COLORS, Frame, Palette

logger = logging.getLogger(__name__)

ALPHA_THRESHOLD = 128
_NEAREST_CHUNK = 4096


@dataclass
class PaletteResult:
    """A palette and the index stream of every frame it was built for."""
    palette: Palette
    indices: list[bytes] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Pixel access
# ---------------------------------------------------------------------------

def _frame_samples(frame: Frame) -> tuple[np.ndarray, np.ndarray | None]:
    """Return packed RGB keys for every pixel, plus a transparency mask."""
    if frame.channels not in (3, 4):
        raise InvalidInputError(
            f"Frames must have 3 (RGB) or 4 (RGBA) channels, got {frame.channels}."
        )
    if frame.width <= 0 or frame.height <= 0:
        raise InvalidInputError(
            f"Frame has no pixels ({frame.width}x{frame.height})."
        )
    expected = frame.pixel_count * frame.channels
    if len(frame.pixels) != expected:
        raise InvalidInputError(
            f"Frame buffer holds {len(frame.pixels)} bytes, "
            f"expected {expected} for {frame.width}x{frame.height}x{frame.channels}."
        )
    samples = np.frombuffer(frame.pixels, dtype=np.uint8).reshape(-1, frame.channels)
    rgb = samples[:, :3].astype(np.uint32)
    keys = (rgb[:, 0] << 16) | (rgb[:, 1] << 8) | rgb[:, 2]
    mask = None
    if frame.transparent and frame.channels == 4:
        mask = samples[:, 3] < ALPHA_THRESHOLD
    return keys, mask


def _unpack(keys: np.ndarray) -> np.ndarray:
    keys = keys.astype(np.int64)
    return np.stack([(keys >> 16) & 0xFF, (keys >> 8) & 0xFF, keys & 0xFF], axis=1)


def _distinct_colors(keys: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Distinct keys and their pixel counts, in order of first occurrence."""
    uniq, first, counts = np.unique(keys, return_index=True, return_counts=True)
    order = np.argsort(first, kind="stable")
    return uniq[order], counts[order]


# ---------------------------------------------------------------------------
# Median cut
# ---------------------------------------------------------------------------

def _box_extent(rgb: np.ndarray) -> tuple[int, int]:
    """Widest channel range of a box and the channel it belongs to."""
    spans = rgb.max(axis=0) - rgb.min(axis=0)
    channel = int(np.argmax(spans))
    return int(spans[channel]), channel


def median_cut(keys: np.ndarray, counts: np.ndarray, max_colors: int) -> np.ndarray:
    """Reduce distinct *keys* (first-seen order) to at most *max_colors*.

    Boxes are split at the pixel-weighted median of their widest channel.
    Returns the packed representative colors, ordered by the earliest
    first occurrence among each box's members.
    """
    rgb = _unpack(keys)
    weights = counts.astype(np.int64)

    # Each box holds member positions, sorted, i.e. in first-seen order.
    boxes = [np.arange(len(keys))]
    extents = [_box_extent(rgb)]
    while len(boxes) < max_colors:
        target = max(range(len(boxes)), key=lambda i: (extents[i][0], -i))
        span, channel = extents[target]
        if span == 0:
            break
        members = boxes[target]
        ranked = members[np.argsort(rgb[members, channel], kind="stable")]
        cumulative = np.cumsum(weights[ranked])
        split = int(np.searchsorted(cumulative, cumulative[-1] / 2.0)) + 1
        split = min(max(split, 1), len(ranked) - 1)
        low, high = np.sort(ranked[:split]), np.sort(ranked[split:])
        boxes[target:target + 1] = [low, high]
        extents[target:target + 1] = [_box_extent(rgb[low]), _box_extent(rgb[high])]

    boxes.sort(key=lambda members: int(members[0]))
    reps: list[int] = []
    for members in boxes:
        w = weights[members]
        total = int(w.sum())
        channels = (rgb[members] * w[:, None]).sum(axis=0)
        r, g, b = ((2 * int(c) + total) // (2 * total) for c in channels)
        key = (r << 16) | (g << 8) | b
        if key not in reps:
            reps.append(key)
    return np.array(reps, dtype=np.uint32)


def nearest_indices(keys: np.ndarray, palette_keys: np.ndarray) -> np.ndarray:
    """Index of the closest palette color for every key."""
    uniq, inverse = np.unique(keys, return_inverse=True)
    src = _unpack(uniq)
    pal = _unpack(palette_keys)
    nearest = np.empty(len(uniq), dtype=np.uint8)
    for start in range(0, len(uniq), _NEAREST_CHUNK):
        block = src[start:start + _NEAREST_CHUNK]
        dist = ((block[:, None, :] - pal[None, :, :]) ** 2).sum(axis=2)
        nearest[start:start + len(block)] = dist.argmin(axis=1)
    return nearest[inverse.reshape(-1)]


def choose_colors(keys: np.ndarray, limit: int, quantize: bool = True) -> np.ndarray:
    """Pick at most *limit* palette colors for the given pixel keys."""
    if keys.size == 0:
        return np.empty(0, dtype=np.uint32)
    distinct, counts = _distinct_colors(keys)
    if len(distinct) <= limit:
        return distinct.astype(np.uint32)
    if not quantize:
        raise UnsupportedPaletteError(
            f"Frames use {len(distinct)} distinct colors but at most {limit} fit "
            f"and quantization is disabled.",
            color_count=len(distinct),
        )
    logger.debug("Quantizing %d distinct colors to %d.", len(distinct), limit)
    return median_cut(distinct, counts, limit)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def build_palette(
    frames: Sequence[Frame],
    max_colors: int = MAX_COLORS,
    quantize: bool = True,
) -> PaletteResult:
    """Build one palette shared by all *frames* and index every frame."""
    if not frames:
        raise InvalidInputError("Cannot build a palette for zero frames.")
    if not 2 <= max_colors <= MAX_COLORS:
        raise InvalidInputError(
            f"max_colors must be between 2 and {MAX_COLORS}, got {max_colors}."
        )

    samples = [_frame_samples(f) for f in frames]
    reserve = any(f.transparent for f in frames)
    limit = max_colors - 1 if reserve else max_colors

    opaque = [keys if mask is None else keys[~mask] for keys, mask in samples]
    palette_keys = choose_colors(np.concatenate(opaque), limit, quantize)

    colors = [tuple(int(c) for c in rgb) for rgb in _unpack(palette_keys)]
    transparent_index = None
    if reserve:
        transparent_index = len(colors)
        colors.append((0, 0, 0))
    palette = Palette(colors=tuple(colors), transparent_index=transparent_index)

    indices: list[bytes] = []
    for keys, mask in samples:
        if len(palette_keys):
            mapped = nearest_indices(keys, palette_keys)
        else:
            mapped = np.zeros(len(keys), dtype=np.uint8)
        if mask is not None:
            mapped[mask] = transparent_index
        indices.append(mapped.tobytes())

    logger.debug(
        "Palette of %d colors (table size %d) for %d frame(s).",
        len(palette), palette.table_size, len(frames),
    )
    return PaletteResult(palette=palette, indices=indices)


def build_local_palettes(
    frames: Sequence[Frame],
    max_colors: int = MAX_COLORS,
    quantize: bool = True,
) -> list[PaletteResult]:
    """Build an independent palette for each frame."""
    if not frames:
        raise InvalidInputError("Cannot build palettes for zero frames.")
    return [build_palette([f], max_colors, quantize) for f in frames]
