"""
spritegif -- Pure Python animated GIF89a encoder.

Turns RGB / RGBA frames (or a sprite sheet) into an animated GIF with a
median-cut palette and GIF-flavoured LZW compression.
"""

__version__ = "0.1.0"

from spritegif.config import EncoderConfig, load_config
from spritegif.encoder import GifEncoder, encode, encode_animation
from spritegif.exceptions import (
    ConfigError,
    EncodeCancelledError,
    EncodeError,
    InternalInvariantError,
    InvalidInputError,
    SpriteGifError,
    SpriteSheetError,
    UnsupportedPaletteError,
)
from spritegif.types import (
    AnimationDescriptor,
    DisposalMethod,
    Frame,
    FrameProgress,
    Palette,
    PaletteMode,
)

__all__ = [
    "AnimationDescriptor",
    "ConfigError",
    "DisposalMethod",
    "EncodeCancelledError",
    "EncodeError",
    "EncoderConfig",
    "Frame",
    "FrameProgress",
    "GifEncoder",
    "InternalInvariantError",
    "InvalidInputError",
    "Palette",
    "PaletteMode",
    "SpriteGifError",
    "SpriteSheetError",
    "UnsupportedPaletteError",
    "encode",
    "encode_animation",
    "load_config",
]
