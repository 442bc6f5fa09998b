"""
Encoder configuration.

Settings can be built in code or read from a YAML file such as::

    palette_mode: global      # global | local
    max_colors: 256
    quantize: true
    default_delay_ms: 100
    loop_count: 0             # 0 = forever, -1 = play once
    disposal: background      # unspecified | none | background | previous
    transparent: false
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from spritegif.exceptions import ConfigError
from spritegif.types import MAX_COLORS, DisposalMethod, PaletteMode


@dataclass(frozen=True)
class EncoderConfig:
    """Options shared by every frame of one encode."""
    palette_mode: PaletteMode = PaletteMode.GLOBAL
    max_colors: int = MAX_COLORS     # palette entries, 2 -- 256
    quantize: bool = True            # False = fail instead of reducing colors
    default_delay_ms: int = 100
    loop_count: int | None = 0       # 0 = infinite, None / -1 = play once
    disposal: DisposalMethod = DisposalMethod.UNSPECIFIED
    transparent: bool = False

    def __post_init__(self) -> None:
        if not 2 <= self.max_colors <= MAX_COLORS:
            raise ConfigError(
                f"max_colors must be between 2 and {MAX_COLORS}, got {self.max_colors}."
            )
        if self.default_delay_ms < 0:
            raise ConfigError("default_delay_ms must be >= 0.")
        if self.loop_count is not None and self.loop_count < -1:
            raise ConfigError("loop_count must be -1, 0 or a positive repeat count.")

    @property
    def loops(self) -> bool:
        """True when the NETSCAPE loop extension should be written."""
        return self.loop_count is not None and self.loop_count >= 0

    def replace(self, **overrides: Any) -> EncoderConfig:
        """Return a copy with the non-None *overrides* applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)


_FIELDS = {f.name for f in dataclasses.fields(EncoderConfig)}


def _parse_enum(enum_cls: Any, name: str, raw: Any) -> Any:
    if isinstance(raw, enum_cls):
        return raw
    key = str(raw).strip().upper()
    try:
        return enum_cls[key]
    except KeyError:
        choices = ", ".join(m.name.lower() for m in enum_cls)
        raise ConfigError(f"Unknown {name} {raw!r}; expected one of: {choices}.") from None


def config_from_mapping(data: dict[str, Any]) -> EncoderConfig:
    """Build an EncoderConfig from plain values (as parsed from YAML)."""
    unknown = sorted(set(data) - _FIELDS)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}.")
    values = dict(data)
    if "palette_mode" in values:
        values["palette_mode"] = _parse_enum(PaletteMode, "palette_mode", values["palette_mode"])
    if "disposal" in values:
        values["disposal"] = _parse_enum(DisposalMethod, "disposal", values["disposal"])
    for key in ("max_colors", "default_delay_ms"):
        if key in values and not isinstance(values[key], int):
            raise ConfigError(f"{key} must be an integer, got {values[key]!r}.")
    if "loop_count" in values and values["loop_count"] is not None \
            and not isinstance(values["loop_count"], int):
        raise ConfigError(f"loop_count must be an integer, got {values['loop_count']!r}.")
    return EncoderConfig(**values)


def load_config(path: str | Path) -> EncoderConfig:
    """Read an EncoderConfig from a YAML file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping.")
    return config_from_mapping(data)
