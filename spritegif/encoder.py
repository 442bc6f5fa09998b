"""
Animated GIF encoder.

Pipeline
--------
    frames --> [palette]  --> index streams --> [lzw] --> image data
                                                            |
                              bytes <-- [container writer] <-+

With a global palette the palette stage is a barrier: every frame is
read before any frame can be indexed.  Frames are then compressed one at
a time, in order, and handed straight to the writer.

Validation happens up front, so a failed encode never yields partial
output.  Nothing is cached between calls and no timestamps are written;
encoding the same frames twice gives identical bytes.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Sequence

from spritegif.config import EncoderConfig
from spritegif.container import MAX_U16, GifWriter
from spritegif.exceptions import EncodeCancelledError, InvalidInputError
from spritegif.lzw import encode_image_data
from spritegif.palette import PaletteResult, build_local_palettes, build_palette
from spritegif.sources import frame_from_image
from spritegif.types import (
    AnimationDescriptor,
    DisposalMethod,
    Frame,
    FrameProgress,
    PaletteMode,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[FrameProgress], None]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _validate(frames: Sequence[Frame], width: int, height: int,
              loop_count: int | None) -> None:
    """Reject anything that would produce an invalid file."""
    if not frames:
        raise InvalidInputError("No frames to encode.")
    if not (0 < width <= MAX_U16 and 0 < height <= MAX_U16):
        raise InvalidInputError(
            f"Canvas size {width}x{height} must be between 1 and {MAX_U16} per side."
        )
    if loop_count is not None and not -1 <= loop_count <= MAX_U16:
        raise InvalidInputError(
            f"Loop count must be -1, None or 0 -- {MAX_U16}, got {loop_count}."
        )
    for i, frame in enumerate(frames):
        if (frame.width, frame.height) != (width, height):
            raise InvalidInputError(
                f"Frame {i}: size {frame.width}x{frame.height} "
                f"!= canvas {width}x{height}."
            )
        if frame.channels not in (3, 4):
            raise InvalidInputError(
                f"Frame {i}: expected 3 or 4 channels, got {frame.channels}."
            )
        expected = frame.pixel_count * frame.channels
        if len(frame.pixels) != expected:
            raise InvalidInputError(
                f"Frame {i}: buffer holds {len(frame.pixels)} bytes, expected {expected}."
            )
        if frame.delay_ms < 0 or frame.delay_cs > MAX_U16:
            raise InvalidInputError(
                f"Frame {i}: delay {frame.delay_ms} ms is outside 0 -- {MAX_U16 * 10} ms."
            )


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise EncodeCancelledError("Encode cancelled.")


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def encode(
    frames: Sequence[Frame],
    canvas_width: int,
    canvas_height: int,
    loop_count: int | None = 0,
    *,
    config: EncoderConfig | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> bytes:
    """
    Encode *frames* as an animated GIF89a file.

    Parameters
    ----------
    frames : sequence of Frame
        Full-canvas frames, in display order.
    canvas_width, canvas_height : int
        Logical screen size; every frame must match it.
    loop_count : int or None
        0 loops forever, N repeats N times, -1 / None plays once.
        Overrides ``config.loop_count``.
    config : EncoderConfig, optional
        Palette mode and color limits.
    on_progress : callable, optional
        Invoked with a FrameProgress after each frame is encoded.
    cancel_event : threading.Event, optional
        When set, the encode stops between frames.

    Returns
    -------
    bytes
        The complete GIF file.

    Raises
    ------
    InvalidInputError
        Empty frame list, size mismatch, inconsistent buffer, bad range.
    UnsupportedPaletteError
        Too many colors with quantization disabled.
    EncodeCancelledError
        *cancel_event* was set before the encode finished.
    """
    config = config or EncoderConfig()
    _validate(frames, canvas_width, canvas_height, loop_count)
    _check_cancelled(cancel_event)

    n = len(frames)
    logger.info(
        "Encoding %d frame(s) at %dx%d with %s palette.",
        n, canvas_width, canvas_height, config.palette_mode.value,
    )

    # -- Stage 1: palettes (global barrier) ---------------------------------
    if config.palette_mode == PaletteMode.GLOBAL:
        shared = build_palette(frames, config.max_colors, config.quantize)
        per_frame = [PaletteResult(shared.palette, [idx]) for idx in shared.indices]
        writer = GifWriter(canvas_width, canvas_height, shared.palette)
    else:
        per_frame = build_local_palettes(frames, config.max_colors, config.quantize)
        writer = GifWriter(canvas_width, canvas_height)

    if loop_count is not None and loop_count >= 0:
        writer.write_loop(loop_count)

    # -- Stage 2: per-frame compression, written in order -------------------
    for i, (frame, result) in enumerate(zip(frames, per_frame)):
        _check_cancelled(cancel_event)
        palette = result.palette
        image_data = encode_image_data(result.indices[0], palette.table_size)
        writer.write_frame(
            image_data,
            delay_cs=frame.delay_cs,
            disposal=frame.disposal,
            transparent_index=palette.transparent_index,
            local_palette=None if config.palette_mode == PaletteMode.GLOBAL else palette,
        )
        logger.debug("Frame %d/%d: %d bytes of image data.", i + 1, n, len(image_data))
        if on_progress is not None:
            on_progress(FrameProgress(index=i, total=n, compressed_bytes=len(image_data)))

    _check_cancelled(cancel_event)
    data = writer.getvalue()
    logger.info("Encoded %d frame(s) into %d bytes.", n, len(data))
    return data


def encode_animation(
    descriptor: AnimationDescriptor,
    *,
    config: EncoderConfig | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> bytes:
    """Encode an AnimationDescriptor; see :func:`encode`."""
    return encode(
        descriptor.frames,
        descriptor.width,
        descriptor.height,
        descriptor.loop_count,
        config=config,
        on_progress=on_progress,
        cancel_event=cancel_event,
    )


class GifEncoder:
    """Incremental builder: add frames one by one, then render.

    Frames added without explicit settings take their delay, disposal
    and transparency from the encoder's configuration.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        delay_ms: int | None = None,
        loop_count: int | None = None,
        config: EncoderConfig | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.config = (config or EncoderConfig()).replace(
            default_delay_ms=delay_ms, loop_count=loop_count,
        )
        self.frames: list[Frame] = []

    def add_frame(
        self,
        pixels: bytes,
        *,
        channels: int = 4,
        delay_ms: int | None = None,
        disposal: DisposalMethod | None = None,
        transparent: bool | None = None,
    ) -> GifEncoder:
        """Append a full-canvas frame of raw RGB / RGBA bytes."""
        self.frames.append(Frame(
            width=self.width,
            height=self.height,
            pixels=bytes(pixels),
            channels=channels,
            delay_ms=self.config.default_delay_ms if delay_ms is None else delay_ms,
            disposal=self.config.disposal if disposal is None else disposal,
            transparent=self.config.transparent if transparent is None else transparent,
        ))
        return self

    def add_image(self, image: Any, **kwargs: Any) -> GifEncoder:
        """Append a Pillow image; keyword arguments as for add_frame."""
        frame = frame_from_image(image)
        if (frame.width, frame.height) != (self.width, self.height):
            raise InvalidInputError(
                f"Image size {frame.width}x{frame.height} "
                f"!= canvas {self.width}x{self.height}."
            )
        return self.add_frame(frame.pixels, channels=frame.channels, **kwargs)

    def render(
        self,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> bytes:
        """Encode all frames added so far."""
        return encode(
            self.frames,
            self.width,
            self.height,
            self.config.loop_count,
            config=self.config,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )

    def save(self, output_path: str | Path, **kwargs: Any) -> Path:
        """Render and write the GIF to *output_path*."""
        data = self.render(**kwargs)
        out = Path(output_path)
        out.write_bytes(data)
        return out
