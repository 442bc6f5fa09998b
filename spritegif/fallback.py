"""
Still-image fallback.

When an animation cannot be encoded, a caller may settle for a single
still frame instead.  That decision belongs to the caller: the encoder
itself only ever succeeds with a GIF or raises an EncodeError.
"""

from __future__ import annotations

import io
import logging
import threading
from dataclasses import dataclass
from typing import Sequence

from PIL import Image

from spritegif.config import EncoderConfig
from spritegif.encoder import ProgressCallback, encode
from spritegif.exceptions import EncodeCancelledError, EncodeError, InvalidInputError
from spritegif.types import Frame

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    """Encoded output and what it turned out to be."""
    data: bytes
    format: str              # "gif" or "png"
    frame_count: int
    width: int
    height: int

    @property
    def is_fallback(self) -> bool:
        return self.format != "gif"

    @property
    def suffix(self) -> str:
        return f".{self.format}"


def encode_still_png(frame: Frame) -> bytes:
    """Encode a single frame as PNG."""
    mode = "RGBA" if frame.channels == 4 else "RGB"
    try:
        img = Image.frombytes(mode, (frame.width, frame.height), frame.pixels)
    except ValueError as exc:
        raise InvalidInputError(f"Cannot build a still image from frame: {exc}") from exc
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def render_with_fallback(
    frames: Sequence[Frame],
    canvas_width: int,
    canvas_height: int,
    loop_count: int | None = 0,
    *,
    config: EncoderConfig | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> RenderResult:
    """Encode a GIF, or the first frame as PNG if GIF encoding fails.

    Cancellation is never turned into a fallback.
    """
    try:
        data = encode(
            frames, canvas_width, canvas_height, loop_count,
            config=config, on_progress=on_progress, cancel_event=cancel_event,
        )
        return RenderResult(data=data, format="gif", frame_count=len(frames),
                            width=canvas_width, height=canvas_height)
    except EncodeCancelledError:
        raise
    except EncodeError as exc:
        if not frames:
            raise
        logger.warning("GIF encoding failed (%s); falling back to a PNG still.", exc)
        first = frames[0]
        return RenderResult(data=encode_still_png(first), format="png", frame_count=1,
                            width=first.width, height=first.height)
