"""
CLI commands for encoding animations.

Usage:
    spritegif encode walk_cycle.png --cols 8 --rows 1 --fps 12 -o walk.gif
    spritegif frames f0.png f1.png f2.png --delay 80 --loop 3 -o out.gif
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from PIL import Image
from tqdm import tqdm

from ..config import EncoderConfig, load_config
from ..encoder import encode
from ..exceptions import SpriteGifError
from ..fallback import render_with_fallback
from ..sources import frames_from_images, frames_from_sprite_sheet
from ..types import DisposalMethod, Frame, PaletteMode


_PALETTE_MAP = {
    "global": PaletteMode.GLOBAL,
    "local": PaletteMode.LOCAL,
}

_DISPOSAL_MAP = {
    "unspecified": DisposalMethod.UNSPECIFIED,
    "none": DisposalMethod.NONE,
    "background": DisposalMethod.BACKGROUND,
    "previous": DisposalMethod.PREVIOUS,
}


def _build_config(args: argparse.Namespace) -> EncoderConfig:
    """Config file first, then command-line overrides."""
    config = load_config(args.config) if args.config else EncoderConfig()
    return config.replace(
        palette_mode=_PALETTE_MAP[args.palette] if args.palette else None,
        max_colors=args.colors,
        loop_count=args.loop,
        disposal=_DISPOSAL_MAP[args.disposal] if args.disposal else None,
        transparent=True if args.transparent else None,
    )


def _format_size(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def _write_animation(
    frames: Sequence[Frame],
    config: EncoderConfig,
    output: Path,
    fallback: bool,
    quiet: bool,
) -> int:
    """Encode *frames* and write them to *output*, returning an exit code."""
    if not frames:
        print("Error: no frames to encode.", file=sys.stderr)
        return 1
    width, height = frames[0].width, frames[0].height

    with tqdm(total=len(frames), desc="Encoding", unit="frame",
              file=sys.stderr, disable=quiet) as bar:
        def on_progress(event):
            bar.update(1)

        if fallback:
            result = render_with_fallback(
                frames, width, height, config.loop_count,
                config=config, on_progress=on_progress,
            )
            data = result.data
            if result.is_fallback:
                output = output.with_suffix(result.suffix)
                print("Warning: GIF encoding failed, wrote a PNG still instead.",
                      file=sys.stderr)
        else:
            data = encode(frames, width, height, config.loop_count,
                          config=config, on_progress=on_progress)

    output.write_bytes(data)
    print(f"Done! {len(frames)} frames -> {output} ({_format_size(len(data))})")
    return 0


def cmd_encode(args: argparse.Namespace) -> int:
    """Handler for ``spritegif encode``."""
    sheet_path = Path(args.sheet)
    if not sheet_path.is_file():
        print(f"Error: file not found: {sheet_path}", file=sys.stderr)
        return 1
    output = Path(args.output) if args.output else sheet_path.with_suffix(".gif")

    try:
        config = _build_config(args)
        with Image.open(sheet_path) as sheet:
            sheet.load()
            frames = frames_from_sprite_sheet(
                sheet, args.cols, args.rows, args.fps,
                disposal=config.disposal, transparent=config.transparent,
            )
        return _write_animation(frames, config, output, args.fallback_png, args.quiet)
    except (SpriteGifError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def cmd_frames(args: argparse.Namespace) -> int:
    """Handler for ``spritegif frames``."""
    paths = [Path(p) for p in args.images]
    missing = [p for p in paths if not p.is_file()]
    if missing:
        print(f"Error: file not found: {missing[0]}", file=sys.stderr)
        return 1
    output = Path(args.output) if args.output else paths[0].with_suffix(".gif")

    try:
        config = _build_config(args)
        delay = args.delay if args.delay is not None else config.default_delay_ms
        images = []
        for path in paths:
            with Image.open(path) as img:
                images.append(img.convert("RGBA"))
        frames = frames_from_images(images, delay, config.disposal, config.transparent)
        return _write_animation(frames, config, output, args.fallback_png, args.quiet)
    except (SpriteGifError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _add_common_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--loop", type=int, default=None,
        help="Loop count: 0 = forever, -1 = play once (default: 0)",
    )
    p.add_argument(
        "--palette", choices=sorted(_PALETTE_MAP), default=None,
        help="One shared color table or one per frame (default: global)",
    )
    p.add_argument(
        "--colors", type=int, default=None,
        help="Maximum palette size, 2 -- 256 (default: 256)",
    )
    p.add_argument(
        "--disposal", choices=sorted(_DISPOSAL_MAP), default=None,
        help="Frame disposal method (default: unspecified)",
    )
    p.add_argument(
        "--transparent", action="store_true",
        help="Keep fully transparent pixels transparent",
    )
    p.add_argument(
        "--config", default=None,
        help="YAML file with encoder settings",
    )
    p.add_argument(
        "--fallback-png", action="store_true",
        help="Write the first frame as PNG if GIF encoding fails",
    )
    p.add_argument(
        "-q", "--quiet", action="store_true",
        help="Hide the progress bar",
    )
    p.add_argument(
        "-o", "--output", default=None,
        help="Output file path (default: <input_stem>.gif)",
    )


def build_encode_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``encode`` subcommand and its arguments."""
    p = subparsers.add_parser(
        "encode",
        help="Encode a sprite sheet as an animated GIF",
        description="Slice a sprite sheet into a grid of frames and encode them as a GIF.",
    )
    p.add_argument("sheet", help="Path to the sprite sheet image")
    p.add_argument("--cols", type=int, required=True, help="Number of grid columns")
    p.add_argument("--rows", type=int, default=1, help="Number of grid rows (default: 1)")
    p.add_argument(
        "--fps", type=float, default=10.0,
        help="Frames per second (default: 10)",
    )
    _add_common_options(p)
    p.set_defaults(func=cmd_encode)


def build_frames_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the ``frames`` subcommand and its arguments."""
    p = subparsers.add_parser(
        "frames",
        help="Encode a list of images as an animated GIF",
        description="Encode same-sized images, one frame each, as a GIF.",
    )
    p.add_argument("images", nargs="+", help="Frame images in display order")
    p.add_argument(
        "--delay", type=int, default=None,
        help="Per-frame delay in milliseconds (default: 100)",
    )
    _add_common_options(p)
    p.set_defaults(func=cmd_frames)
