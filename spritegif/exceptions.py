"""
Custom exception hierarchy for spritegif.

All spritegif exceptions inherit from SpriteGifError so callers can catch
the entire family with a single except clause.  Errors raised by the
encoder core inherit from EncodeError.
"""

from __future__ import annotations


class SpriteGifError(Exception):
    """Base exception for all spritegif errors."""


class EncodeError(SpriteGifError):
    """Base exception for failures of the GIF encoder core."""


class InvalidInputError(EncodeError):
    """Raised when frames, dimensions, buffers or indices are unusable.

    Always raised before any output byte is produced.
    """


class UnsupportedPaletteError(EncodeError):
    """Raised when more colors are needed than fit in a GIF color table
    and quantization has been disabled."""

    def __init__(self, message: str, color_count: int = 0) -> None:
        super().__init__(message)
        self.color_count = color_count


class InternalInvariantError(EncodeError):
    """Raised when the compressor or writer breaks a format invariant.

    This indicates a bug in spritegif, not bad input.
    """


class EncodeCancelledError(EncodeError):
    """Raised when an encode is cancelled before it completes."""


class SpriteSheetError(SpriteGifError):
    """Raised when a sprite sheet cannot be sliced into frames."""


class ConfigError(SpriteGifError):
    """Raised when an encoder configuration file is malformed."""
