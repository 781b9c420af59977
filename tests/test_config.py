"""Tests for configuration models and TOML loading."""

from pathlib import Path

import pytest

from worldgen.config import CONFIGS_DIR, find_config, list_configs, load_config
from worldgen.terrain.config import MIN_SCALE, WorldGenConfig


class TestClamping:
    """Out-of-range values are clamped rather than rejected."""

    def test_unit_interval(self) -> None:
        """Fractions are clamped to [0, 1]."""
        config = WorldGenConfig(sea_level=1.5, island_density=-0.2)
        assert config.sea_level == 1.0
        assert config.island_density == 0.0

    def test_dimensions(self) -> None:
        """Dimensions are at least 1."""
        config = WorldGenConfig(width=0, height=-5)
        assert config.width == 1
        assert config.height == 1

    def test_scales(self) -> None:
        """Noise scales stay positive."""
        assert WorldGenConfig(elevation_scale=0.0).elevation_scale == MIN_SCALE

    def test_counts(self) -> None:
        """Feature counts are non-negative."""
        config = WorldGenConfig(river_count=-2, lake_count=-1)
        assert config.river_count == 0
        assert config.lake_count == 0

    def test_defaults(self) -> None:
        config = WorldGenConfig()
        assert (config.width, config.height) == (128, 128)
        assert config.sea_level == 0.5
        assert config.debug_output_dir is None


class TestLoadConfig:
    """Tests for TOML loading."""

    def test_nested_tables(self, tmp_path: Path) -> None:
        """Top-level keys and nested tables both load."""
        path = tmp_path / "custom.toml"
        path.write_text(
            "seed = 99\nwidth = 40\n\n[hydrology]\nlake_max_radius = 6\n"
        )
        config = load_config(path)
        assert config.seed == 99
        assert config.width == 40
        assert config.hydrology.lake_max_radius == 6
        assert config.hydrology.lake_min_radius == 2

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.toml")

    @pytest.mark.parametrize("name", ["default", "small", "archipelago"])
    def test_bundled_configs(self, name: str) -> None:
        """Every bundled config parses."""
        config = load_config(find_config(name))
        assert config.width >= 1


class TestFindConfig:
    """Tests for config lookup."""

    def test_by_name(self) -> None:
        assert find_config("small") == CONFIGS_DIR / "small.toml"

    def test_by_path(self, tmp_path: Path) -> None:
        """Explicit paths are returned as-is."""
        path = tmp_path / "world.toml"
        path.write_text("seed = 1\n")
        assert find_config(str(path)) == path

    def test_extensionless_preset(self, tmp_path: Path) -> None:
        """A bare name falls back to a file without the .toml suffix."""
        (tmp_path / "islands").write_text("seed = 3\n")
        assert find_config("islands", configs_dir=tmp_path) == tmp_path / "islands"

    def test_not_found(self, tmp_path: Path) -> None:
        """Unknown names list the available presets."""
        with pytest.raises(FileNotFoundError, match="Available presets"):
            find_config("nope", configs_dir=tmp_path)

    def test_list(self, tmp_path: Path) -> None:
        (tmp_path / "b.toml").write_text("")
        (tmp_path / "a.toml").write_text("")
        assert list_configs(tmp_path) == ["a", "b"]
        assert {"default", "small", "archipelago"} <= set(list_configs())
