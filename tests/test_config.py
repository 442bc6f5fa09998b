"""
Tests for encoder configuration loading.
"""

from __future__ import annotations

import textwrap

import pytest

from spritegif.config import EncoderConfig, config_from_mapping, load_config
from spritegif.exceptions import ConfigError
from spritegif.types import DisposalMethod, PaletteMode


class TestEncoderConfig:
    def test_defaults(self):
        cfg = EncoderConfig()
        assert cfg.palette_mode == PaletteMode.GLOBAL
        assert cfg.max_colors == 256
        assert cfg.quantize
        assert cfg.loop_count == 0
        assert cfg.loops

    @pytest.mark.parametrize("loop, loops", [(0, True), (5, True), (-1, False), (None, False)])
    def test_loops(self, loop, loops):
        assert EncoderConfig(loop_count=loop).loops is loops

    def test_replace_ignores_none(self):
        cfg = EncoderConfig(max_colors=64).replace(max_colors=None, loop_count=2)
        assert cfg.max_colors == 64
        assert cfg.loop_count == 2

    @pytest.mark.parametrize("kwargs", [
        {"max_colors": 1},
        {"max_colors": 300},
        {"default_delay_ms": -1},
        {"loop_count": -2},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigError):
            EncoderConfig(**kwargs)


class TestConfigFromMapping:
    def test_enums_by_name(self):
        cfg = config_from_mapping({"palette_mode": "local", "disposal": "Background"})
        assert cfg.palette_mode == PaletteMode.LOCAL
        assert cfg.disposal == DisposalMethod.BACKGROUND

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="colours"):
            config_from_mapping({"colours": 8})

    def test_unknown_enum_value(self):
        with pytest.raises(ConfigError, match="palette_mode"):
            config_from_mapping({"palette_mode": "shared"})

    def test_wrong_type(self):
        with pytest.raises(ConfigError):
            config_from_mapping({"max_colors": "many"})


class TestLoadConfig:
    def test_full_file(self, tmp_dir):
        path = tmp_dir / "spritegif.yaml"
        path.write_text(textwrap.dedent("""
            palette_mode: local
            max_colors: 64
            quantize: false
            default_delay_ms: 80
            loop_count: -1
            disposal: previous
            transparent: true
        """))
        cfg = load_config(path)
        assert cfg == EncoderConfig(
            palette_mode=PaletteMode.LOCAL,
            max_colors=64,
            quantize=False,
            default_delay_ms=80,
            loop_count=-1,
            disposal=DisposalMethod.PREVIOUS,
            transparent=True,
        )

    def test_empty_file(self, tmp_dir):
        path = tmp_dir / "empty.yaml"
        path.write_text("")
        assert load_config(path) == EncoderConfig()

    def test_missing_file(self, tmp_dir):
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(tmp_dir / "nope.yaml")

    def test_invalid_yaml(self, tmp_dir):
        path = tmp_dir / "bad.yaml"
        path.write_text("max_colors: [1, 2\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_dir):
        path = tmp_dir / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)
